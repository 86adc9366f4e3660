"""
Mission Update Workflow

Applies an owner's edit to a mission as one database transaction:

    1. open a session (one connection, held for the whole workflow)
    2. update scalar fields WHERE id AND owner; zero rows => MissionAccessDenied
    3. delete requested attachments (storage object, then row)
    4. upload new files and record their rows
    5. replace milestones wholesale
    6. commit; any earlier exception rolls back and re-raises

Object storage is not transactional. Objects deleted in step 3 stay deleted
and objects uploaded in step 4 stay uploaded if a later step fails; both cases
are logged and accepted.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy.engine import Engine
from sqlmodel import Session as SQLModelSession
from sqlmodel import delete, select, update

from ..core.error_types import MissionAccessDenied
from ..core.models import (
    ATTACHMENT_MODELS,
    AttachmentKindEnum,
    MilestoneEntry,
    Mission,
    MissionFields,
    MissionMilestone,
)
from ..core.storage import StorageClient, UploadedFile
from .mission_service import parse_milestones

logger = logging.getLogger(__name__)
user_activity_logger = logging.getLogger("user_activity")


@dataclass
class MissionUpdateRequest:
    mission_id: int
    owner_id: int
    fields: MissionFields
    deletions: Dict[AttachmentKindEnum, List[str]] = field(default_factory=dict)
    uploads: Dict[AttachmentKindEnum, List[UploadedFile]] = field(default_factory=dict)
    milestones: List[MilestoneEntry] = field(default_factory=list)


@dataclass
class MissionUpdateResult:
    mission_id: int
    uploaded: Dict[AttachmentKindEnum, List[str]] = field(default_factory=dict)
    deleted: Dict[AttachmentKindEnum, List[str]] = field(default_factory=dict)
    milestone_count: int = 0


class MissionUpdateWorkflow:
    """Runs one owner edit of a mission against an injected engine and storage client."""

    def __init__(self, engine: Engine, storage: StorageClient):
        self.engine = engine
        self.storage = storage

    def run(self, request: MissionUpdateRequest) -> MissionUpdateResult:
        result = MissionUpdateResult(mission_id=request.mission_id)
        with SQLModelSession(self.engine) as session:
            try:
                self._update_fields(session, request)
                for kind, urls in request.deletions.items():
                    result.deleted[kind] = self._delete_attachments(session, request.mission_id, kind, urls)
                for kind, files in request.uploads.items():
                    result.uploaded[kind] = self._upload_attachments(session, request.mission_id, kind, files)
                result.milestone_count = self._replace_milestones(session, request.mission_id, request.milestones)
                session.commit()
            except MissionAccessDenied:
                session.rollback()
                raise
            except Exception:
                session.rollback()
                logger.error(f"Update of mission {request.mission_id} rolled back.", exc_info=True)
                uploaded = [url for urls in result.uploaded.values() for url in urls]
                if uploaded:
                    logger.warning(f"Uploaded objects left unreferenced after rollback: {uploaded}")
                raise

        user_activity_logger.info(
            f"user={request.owner_id} updated mission={request.mission_id} "
            f"uploaded={sum(len(u) for u in result.uploaded.values())} "
            f"deleted={sum(len(d) for d in result.deleted.values())} "
            f"milestones={result.milestone_count}"
        )
        return result

    def _update_fields(self, session: SQLModelSession, request: MissionUpdateRequest) -> None:
        values = request.fields.model_dump(exclude_unset=True)
        values["last_updated"] = datetime.now(timezone.utc)
        statement = (
            update(Mission)
            .where(Mission.id == request.mission_id, Mission.user_id == request.owner_id)
            .values(**values)
        )
        if session.exec(statement).rowcount == 0:
            logger.warning(
                f"Update refused: mission {request.mission_id} not found or not owned by user {request.owner_id}."
            )
            raise MissionAccessDenied(request.mission_id, request.owner_id)

    def _delete_attachments(
        self, session: SQLModelSession, mission_id: int, kind: AttachmentKindEnum, urls: List[str]
    ) -> List[str]:
        model = ATTACHMENT_MODELS[kind]
        deleted = []
        for url in urls:
            statement = select(model).where(model.mission_id == mission_id, model.url == url)
            if session.exec(statement).first() is None:
                logger.warning(f"Skipping delete of {kind.value} '{url}': not attached to mission {mission_id}.")
                continue
            self.storage.delete(url)
            session.exec(delete(model).where(model.mission_id == mission_id, model.url == url))
            deleted.append(url)
        if deleted:
            logger.info(f"Deleted {len(deleted)} {kind.value} attachments from mission {mission_id}.")
        return deleted

    def _upload_attachments(
        self, session: SQLModelSession, mission_id: int, kind: AttachmentKindEnum, files: List[UploadedFile]
    ) -> List[str]:
        model = ATTACHMENT_MODELS[kind]
        urls = []
        for upload in files:
            url = self.storage.put(upload.data, upload.content_type, kind.storage_folder, upload.filename)
            if url is None:
                continue
            session.add(model(mission_id=mission_id, url=url))
            session.flush()
            urls.append(url)
        if urls:
            logger.info(f"Uploaded {len(urls)} {kind.value} attachments to mission {mission_id}.")
        return urls

    def _replace_milestones(self, session: SQLModelSession, mission_id: int, entries: List[MilestoneEntry]) -> int:
        session.exec(delete(MissionMilestone).where(MissionMilestone.mission_id == mission_id))
        milestones = parse_milestones(entries)
        for name, target in milestones:
            session.add(MissionMilestone(mission_id=mission_id, milestone_name=name, target_amount=target))
        session.flush()
        return len(milestones)
