"""
Mission Service

Read paths (public, owner, admin review), submission, owner visibility toggle
and admin status transitions over a mission and its child collections.
"""
import logging
import math
import re
from datetime import datetime, timezone
from itertools import zip_longest
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_
from sqlmodel import Session as SQLModelSession
from sqlmodel import select, update

from ..core.error_types import (
    InvalidStatusTransition,
    LaunchDateInPast,
    MissionAccessDenied,
    MissionNotFound,
)
from ..core.models import (
    ATTACHMENT_MODELS,
    AttachmentKindEnum,
    MilestoneEntry,
    MilestoneRead,
    Mission,
    MissionFields,
    MissionMilestone,
    MissionRead,
    MissionReviewRead,
    MissionStatusEnum,
)

logger = logging.getLogger(__name__)
user_activity_logger = logging.getLogger("user_activity")

NUMERIC_TARGET = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# MissionRead field for each attachment kind
COLLECTION_FIELDS = {
    AttachmentKindEnum.IMAGE: "images",
    AttachmentKindEnum.VIDEO: "videos",
    AttachmentKindEnum.DOCUMENT: "documents",
}


def milestone_entries_from_form(
    names: Optional[Sequence[str]], targets: Optional[Sequence[str]]
) -> List[MilestoneEntry]:
    """Pairs the parallel milestoneName[] / milestoneTarget[] arrays. A missing partner is None."""
    return [
        MilestoneEntry(name=name, target=target)
        for name, target in zip_longest(names or [], targets or [])
    ]


def parse_milestones(entries: Iterable[MilestoneEntry]) -> List[Tuple[str, float]]:
    """
    Keeps entries with a non-empty name and a numeric target, silently dropping the rest.

    Targets must be plain decimal numerals (optional sign, fraction and exponent).
    Anything else, including NaN, infinities and digit separators, is non-numeric.
    """
    parsed = []
    for entry in entries:
        name = (entry.name or "").strip()
        if not name:
            continue
        raw_target = (entry.target or "").strip()
        if not NUMERIC_TARGET.fullmatch(raw_target):
            continue
        target = float(raw_target)
        if not math.isfinite(target):
            continue
        parsed.append((name, target))
    return parsed


def public_visibility_clause():
    """The one public-visibility rule: approved by an admin and not hidden by the owner."""
    return and_(Mission.status == MissionStatusEnum.APPROVED, Mission.user_approved == True)  # noqa: E712


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class MissionService:
    """Queries and simple mutations over missions and their child collections."""

    @staticmethod
    def _collect_children(session: SQLModelSession, mission_ids: List[int]) -> Dict[int, dict]:
        """
        Fetch the four child collections for the given missions.

        One keyed query per kind for a single mission, one batched IN (...) query
        per kind for a listing.
        """
        children: Dict[int, dict] = {
            mission_id: {"images": [], "videos": [], "documents": [], "milestones": []}
            for mission_id in mission_ids
        }
        if not mission_ids:
            return children

        def keyed(column):
            return column == mission_ids[0] if len(mission_ids) == 1 else column.in_(mission_ids)

        for kind, model in ATTACHMENT_MODELS.items():
            statement = select(model).where(keyed(model.mission_id)).order_by(model.id)
            for row in session.exec(statement).all():
                children[row.mission_id][COLLECTION_FIELDS[kind]].append(row.url)

        statement = (
            select(MissionMilestone)
            .where(keyed(MissionMilestone.mission_id))
            .order_by(MissionMilestone.target_amount.asc(), MissionMilestone.id.asc())
        )
        for row in session.exec(statement).all():
            children[row.mission_id]["milestones"].append(MilestoneRead.model_validate(row))
        return children

    @staticmethod
    def _to_read(missions: Sequence[Mission], session: SQLModelSession, read_model=MissionRead) -> list:
        children = MissionService._collect_children(session, [m.id for m in missions])
        return [
            read_model.model_validate({**mission.model_dump(), **children[mission.id]})
            for mission in missions
        ]

    @staticmethod
    def list_public_missions(
        session: SQLModelSession,
        limit: Optional[int] = None,
        exclude_id: Optional[int] = None,
    ) -> List[MissionRead]:
        """Publicly visible missions, newest first."""
        statement = select(Mission).where(public_visibility_clause())
        if exclude_id is not None:
            statement = statement.where(Mission.id != exclude_id)
        statement = statement.order_by(Mission.id.desc())
        if limit is not None:
            statement = statement.limit(limit)
        missions = session.exec(statement).all()
        logger.info(f"Retrieved {len(missions)} approved missions.")
        return MissionService._to_read(missions, session)

    @staticmethod
    def list_user_missions(session: SQLModelSession, owner_id: int) -> List[MissionRead]:
        statement = (
            select(Mission)
            .where(Mission.user_id == owner_id)
            .order_by(Mission.end_time.desc(), Mission.id.desc())
        )
        missions = session.exec(statement).all()
        logger.info(f"User {owner_id} retrieved {len(missions)} missions.")
        return MissionService._to_read(missions, session)

    @staticmethod
    def get_public_mission(
        session: SQLModelSession, mission_id: int, viewer_id: Optional[int] = None
    ) -> MissionRead:
        """A single mission that is publicly visible or owned by the viewer."""
        visible = public_visibility_clause()
        if viewer_id is not None:
            visible = or_(visible, Mission.user_id == viewer_id)
        statement = select(Mission).where(Mission.id == mission_id, visible)
        mission = session.exec(statement).first()
        if mission is None:
            raise MissionNotFound(mission_id)
        return MissionService._to_read([mission], session)[0]

    @staticmethod
    def get_owned_mission(session: SQLModelSession, mission_id: int, owner_id: int) -> MissionRead:
        statement = select(Mission).where(Mission.id == mission_id, Mission.user_id == owner_id)
        mission = session.exec(statement).first()
        if mission is None:
            raise MissionNotFound(mission_id)
        return MissionService._to_read([mission], session)[0]

    @staticmethod
    def get_mission_for_review(session: SQLModelSession, mission_id: int) -> MissionReviewRead:
        mission = session.get(Mission, mission_id)
        if mission is None:
            raise MissionNotFound(mission_id)
        return MissionService._to_read([mission], session, read_model=MissionReviewRead)[0]

    @staticmethod
    def list_pending_ids(session: SQLModelSession) -> List[int]:
        statement = (
            select(Mission.id)
            .where(Mission.status == MissionStatusEnum.PENDING)
            .order_by(Mission.id.desc())
        )
        return list(session.exec(statement).all())

    @staticmethod
    def submit_mission(
        session: SQLModelSession,
        owner_id: int,
        fields: MissionFields,
        attachment_urls: Dict[AttachmentKindEnum, List[str]],
        milestones: Iterable[MilestoneEntry],
    ) -> Mission:
        """
        Insert a mission with its attachment and milestone rows in one transaction.

        Files are already in storage; only their URLs are recorded here.
        """
        try:
            mission = Mission(user_id=owner_id, **fields.model_dump())
            session.add(mission)
            session.flush()

            for kind, urls in attachment_urls.items():
                model = ATTACHMENT_MODELS[kind]
                for url in urls:
                    session.add(model(mission_id=mission.id, url=url))
                if urls:
                    logger.info(f"Stored {len(urls)} {kind.value} URLs for mission {mission.id}.")

            for name, target in parse_milestones(milestones):
                session.add(MissionMilestone(mission_id=mission.id, milestone_name=name, target_amount=target))

            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(mission)
        user_activity_logger.info(f"user={owner_id} submitted mission={mission.id} title='{mission.title or 'N/A'}'")
        return mission

    @staticmethod
    def toggle_user_approval(session: SQLModelSession, mission_id: int, owner_id: int) -> Tuple[bool, bool]:
        """
        Flip the owner visibility flag.

        Returns:
            (user_approved, is_public) after the flip
        """
        statement = select(Mission).where(Mission.id == mission_id, Mission.user_id == owner_id)
        mission = session.exec(statement).first()
        if mission is None:
            raise MissionAccessDenied(mission_id, owner_id)

        new_value = not mission.user_approved
        if new_value and mission.launch_date and _as_utc(mission.launch_date) < datetime.now(timezone.utc):
            raise LaunchDateInPast(f"Mission {mission_id} launch date {mission.launch_date} is in the past")

        mission.user_approved = new_value
        mission.last_updated = datetime.now(timezone.utc)
        session.add(mission)
        session.commit()
        session.refresh(mission)
        is_public = mission.status == MissionStatusEnum.APPROVED and mission.user_approved
        user_activity_logger.info(f"user={owner_id} toggled visibility of mission={mission_id} to {new_value}")
        return mission.user_approved, is_public

    @staticmethod
    def update_status(
        session: SQLModelSession,
        mission_id: int,
        new_status: MissionStatusEnum,
        admin_notes: Optional[str] = None,
    ) -> None:
        """Move a Pending mission to a review outcome. Only Pending missions transition."""
        statement = (
            update(Mission)
            .where(Mission.id == mission_id, Mission.status == MissionStatusEnum.PENDING)
            .values(status=new_status, admin_notes=admin_notes, last_updated=datetime.now(timezone.utc))
        )
        result = session.exec(statement)
        if result.rowcount == 0:
            session.rollback()
            raise InvalidStatusTransition(mission_id, new_status.value)
        session.commit()
