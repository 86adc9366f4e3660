"""
SQLModel database table definitions for the OrbitFund backend.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Type

from sqlmodel import Column, Text
from sqlmodel import Field as SQLModelField
from sqlmodel import SQLModel

from .enums import AttachmentKindEnum, MissionStatusEnum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- User Database Model ---
class UserInDB(SQLModel, table=True):
    """User database table."""
    __tablename__ = "users"

    id: Optional[int] = SQLModelField(default=None, primary_key=True, description="Unique database identifier for the user.")
    username: str = SQLModelField(unique=True, index=True, description="Unique username for the user.")
    email: str = SQLModelField(unique=True, index=True, description="Email address of the user, used to log in.")
    hashed_password: str = SQLModelField(description="Hashed password for the user.")
    admin_granted_at: Optional[datetime] = SQLModelField(
        default=None, description="When admin rights were granted. Presence makes the user an admin."
    )
    created_at: datetime = SQLModelField(default_factory=_utcnow)


# --- Mission Database Model ---
class Mission(SQLModel, table=True):
    """Mission (crowdfunding proposal) database table."""
    __tablename__ = "missions"

    id: Optional[int] = SQLModelField(default=None, primary_key=True)
    user_id: int = SQLModelField(foreign_key="users.id", index=True, description="Owner of the mission.")

    title: Optional[str] = SQLModelField(default=None)
    description: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))
    goals: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))
    type: Optional[str] = SQLModelField(default=None)
    launch_date: Optional[datetime] = SQLModelField(default=None)
    end_time: Optional[datetime] = SQLModelField(default=None, index=True, description="When the funding campaign ends.")
    team_info: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))
    funding_goal: Optional[str] = SQLModelField(default=None)
    duration: Optional[str] = SQLModelField(default=None)
    budget_breakdown: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))
    rewards: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))

    status: MissionStatusEnum = SQLModelField(default=MissionStatusEnum.PENDING, index=True)
    user_approved: bool = SQLModelField(default=True, description="Owner-controlled visibility flag.")
    admin_notes: Optional[str] = SQLModelField(default=None, sa_column=Column(Text))

    created_at: datetime = SQLModelField(default_factory=_utcnow)
    last_updated: datetime = SQLModelField(default_factory=_utcnow)


# --- Attachment Database Models ---
class MissionAttachmentBase(SQLModel):
    """Columns shared by the per-kind attachment tables."""
    mission_id: int = SQLModelField(foreign_key="missions.id", index=True)
    url: str = SQLModelField(description="Public URL of the object in storage.")


class MissionImage(MissionAttachmentBase, table=True):
    __tablename__ = "mission_images"

    id: Optional[int] = SQLModelField(default=None, primary_key=True)


class MissionVideo(MissionAttachmentBase, table=True):
    __tablename__ = "mission_videos"

    id: Optional[int] = SQLModelField(default=None, primary_key=True)


class MissionDocument(MissionAttachmentBase, table=True):
    __tablename__ = "mission_documents"

    id: Optional[int] = SQLModelField(default=None, primary_key=True)


ATTACHMENT_MODELS: Dict[AttachmentKindEnum, Type[MissionAttachmentBase]] = {
    AttachmentKindEnum.IMAGE: MissionImage,
    AttachmentKindEnum.VIDEO: MissionVideo,
    AttachmentKindEnum.DOCUMENT: MissionDocument,
}


# --- Milestone Database Model ---
class MissionMilestone(SQLModel, table=True):
    """Named funding target of a mission. Replaced wholesale on every update."""
    __tablename__ = "mission_milestones"

    id: Optional[int] = SQLModelField(default=None, primary_key=True)
    mission_id: int = SQLModelField(foreign_key="missions.id", index=True)
    milestone_name: str
    target_amount: float
