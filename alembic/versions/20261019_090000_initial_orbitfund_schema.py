"""initial_orbitfund_schema

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ATTACHMENT_TABLES = ('mission_images', 'mission_videos', 'mission_documents')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('admin_granted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('missions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('type', sa.String(), nullable=True),
        sa.Column('launch_date', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('team_info', sa.Text(), nullable=True),
        sa.Column('funding_goal', sa.String(), nullable=True),
        sa.Column('duration', sa.String(), nullable=True),
        sa.Column('budget_breakdown', sa.Text(), nullable=True),
        sa.Column('rewards', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'ARCHIVED', name='missionstatusenum'), nullable=False),
        sa.Column('user_approved', sa.Boolean(), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_missions_user_id'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_missions_user_id', 'missions', ['user_id'], unique=False)
    op.create_index('ix_missions_end_time', 'missions', ['end_time'], unique=False)
    op.create_index('ix_missions_status', 'missions', ['status'], unique=False)

    for table in ATTACHMENT_TABLES:
        op.create_table(table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('mission_id', sa.Integer(), nullable=False),
            sa.Column('url', sa.String(), nullable=False),
            sa.ForeignKeyConstraint(['mission_id'], ['missions.id'], name=f'fk_{table}_mission_id'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(f'ix_{table}_mission_id', table, ['mission_id'], unique=False)

    op.create_table('mission_milestones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('mission_id', sa.Integer(), nullable=False),
        sa.Column('milestone_name', sa.String(), nullable=False),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['mission_id'], ['missions.id'], name='fk_mission_milestones_mission_id'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_mission_milestones_mission_id', 'mission_milestones', ['mission_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_mission_milestones_mission_id', table_name='mission_milestones')
    op.drop_table('mission_milestones')
    for table in reversed(ATTACHMENT_TABLES):
        op.drop_index(f'ix_{table}_mission_id', table_name=table)
        op.drop_table(table)
    op.drop_index('ix_missions_status', table_name='missions')
    op.drop_index('ix_missions_end_time', table_name='missions')
    op.drop_index('ix_missions_user_id', table_name='missions')
    op.drop_table('missions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
