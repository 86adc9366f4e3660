"""
Mission submission and the public (unauthenticated) read paths.
"""
import logging
from typing import Annotated, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as SQLModelSession

from ..core import models
from ..core.auth import get_current_identity, get_optional_identity
from ..core.dependencies import get_storage_client
from ..core.error_handlers import ErrorContext, handle_domain_error, handle_processing_error
from ..core.error_types import MissionNotFound, StorageError
from ..core.storage import StorageClient, UploadedFile
from ..db import get_db_session
from ..services.mission_service import MissionService
from .mission_forms import files_form, milestones_form, mission_fields_form, read_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/missions", tags=["Missions"])


def _store_uploads(
    storage: StorageClient,
    uploads: Dict[models.AttachmentKindEnum, List[UploadedFile]],
    user_id: int,
) -> Tuple[Dict[models.AttachmentKindEnum, List[str]], bool]:
    """Uploads every file, skipping the ones storage rejects. Returns the URLs per kind and whether all succeeded."""
    attachment_urls: Dict[models.AttachmentKindEnum, List[str]] = {}
    uploads_succeeded = True
    for kind, kind_uploads in uploads.items():
        attachment_urls[kind] = []
        for upload in kind_uploads:
            try:
                url = storage.put(upload.data, upload.content_type, kind.storage_folder, upload.filename)
            except StorageError as e:
                logger.error(f"Upload of '{upload.filename}' for user {user_id} failed: {e}")
                uploads_succeeded = False
                continue
            if url:
                attachment_urls[kind].append(url)
    return attachment_urls, uploads_succeeded


@router.post("", response_model=models.MissionSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_mission(
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    fields: Annotated[models.MissionFields, Depends(mission_fields_form)],
    milestones: Annotated[List[models.MilestoneEntry], Depends(milestones_form)],
    files: Annotated[Dict[models.AttachmentKindEnum, List[UploadFile]], Depends(files_form)],
):
    """
    Uploads the attached files, then records the mission with its URLs and milestones.

    Individual upload failures do not fail the submission; the response message says so.
    Storage and database calls block, so they run in the threadpool.
    """
    uploads = await read_uploads(files)
    attachment_urls, uploads_succeeded = await run_in_threadpool(_store_uploads, storage, uploads, identity.id)

    try:
        mission = await run_in_threadpool(
            MissionService.submit_mission, session, identity.id, fields, attachment_urls, milestones
        )
    except SQLAlchemyError as e:
        stored = [url for urls in attachment_urls.values() for url in urls]
        if stored:
            logger.warning(f"Uploaded objects left unreferenced after failed submission: {stored}")
        raise handle_processing_error("submitting mission", e, user_id=identity.id)

    message = "Mission submitted successfully"
    if not uploads_succeeded:
        message += " (some files failed to upload)"
    return models.MissionSubmissionResponse(
        message=message,
        missionId=mission.id,
        imageUrls=attachment_urls.get(models.AttachmentKindEnum.IMAGE, []),
        videoUrls=attachment_urls.get(models.AttachmentKindEnum.VIDEO, []),
        docUrls=attachment_urls.get(models.AttachmentKindEnum.DOCUMENT, []),
    )


@router.get("", response_model=List[models.MissionRead])
async def list_public_missions(
    session: Annotated[SQLModelSession, Depends(get_db_session)],
    max_missions: Annotated[Optional[int], Query(alias="maxMissions", ge=1)] = None,
    exclude_id: Annotated[Optional[int], Query(alias="excludeId")] = None,
):
    """Approved missions their owners have not hidden, newest first."""
    try:
        return MissionService.list_public_missions(session, limit=max_missions, exclude_id=exclude_id)
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving missions", e)


@router.get("/{mission_id}", response_model=models.MissionRead)
async def get_mission(
    mission_id: int,
    session: Annotated[SQLModelSession, Depends(get_db_session)],
    identity: Annotated[Optional[models.CallerIdentity], Depends(get_optional_identity)],
):
    """A public mission, or one of the caller's own missions whatever its status."""
    viewer_id = identity.id if identity else None
    try:
        return MissionService.get_public_mission(session, mission_id, viewer_id=viewer_id)
    except MissionNotFound as e:
        raise handle_domain_error(e, ErrorContext("retrieving mission", resource=str(mission_id), user_id=viewer_id))
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving mission", e, resource=str(mission_id))
