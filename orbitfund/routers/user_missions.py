"""
Owner-scoped mission routes: the caller's own list and detail, the edit
workflow and the public-visibility toggle.
"""
import logging
from typing import Annotated, Dict, List

from fastapi import APIRouter, Depends, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as SQLModelSession

from ..core import models
from ..core.auth import get_current_identity
from ..core.dependencies import get_storage_client
from ..core.error_handlers import (
    ErrorContext,
    handle_domain_error,
    handle_not_found,
    handle_processing_error,
)
from ..core.error_types import MissionNotFound, OrbitFundError
from ..core.storage import StorageClient
from ..db import get_db_session, get_engine
from ..services.mission_service import MissionService
from ..services.mission_update_workflow import MissionUpdateRequest, MissionUpdateWorkflow
from .mission_forms import deletions_form, files_form, milestones_form, mission_fields_form, read_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user-missions", tags=["User Missions"])


@router.get("", response_model=List[models.MissionRead])
async def list_my_missions(
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    try:
        return MissionService.list_user_missions(session, identity.id)
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving user missions", e, user_id=identity.id)


@router.get("/{mission_id}", response_model=models.MissionRead)
async def get_my_mission(
    mission_id: int,
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    try:
        return MissionService.get_owned_mission(session, mission_id, identity.id)
    except MissionNotFound:
        raise handle_not_found(
            "mission",
            str(mission_id),
            ErrorContext("retrieving user mission", user_id=identity.id),
            detail="Mission not found or access denied.",
        )
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving user mission", e, resource=str(mission_id), user_id=identity.id)


@router.put("/toggle-approval/{mission_id}", response_model=models.ToggleApprovalResponse)
async def toggle_mission_visibility(
    mission_id: int,
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    """Flips the owner's visibility flag. The mission is public only if it is also Approved."""
    context = ErrorContext("toggling mission visibility", resource=str(mission_id), user_id=identity.id)
    try:
        user_approved, is_public = MissionService.toggle_user_approval(session, mission_id, identity.id)
    except OrbitFundError as e:
        raise handle_domain_error(e, context)
    except SQLAlchemyError as e:
        session.rollback()
        raise handle_processing_error("toggling mission visibility", e, resource=str(mission_id), user_id=identity.id)

    return models.ToggleApprovalResponse(
        message=f"Mission is now {'public' if is_public else 'hidden'}.",
        user_approved=user_approved,
        is_public=is_public,
    )


@router.put("/{mission_id}", response_model=models.MissionUpdateResponse)
async def update_my_mission(
    mission_id: int,
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    engine: Annotated[Engine, Depends(get_engine)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    fields: Annotated[models.MissionFields, Depends(mission_fields_form)],
    milestones: Annotated[List[models.MilestoneEntry], Depends(milestones_form)],
    deletions: Annotated[Dict[models.AttachmentKindEnum, List[str]], Depends(deletions_form)],
    files: Annotated[Dict[models.AttachmentKindEnum, List[UploadFile]], Depends(files_form)],
):
    """
    Applies an owner edit as one transaction: fields, attachment deletions,
    new uploads and a full milestone replacement. Nothing is written unless
    the caller owns the mission. The workflow blocks on storage and the
    database, so it runs in the threadpool.
    """
    request = MissionUpdateRequest(
        mission_id=mission_id,
        owner_id=identity.id,
        fields=fields,
        deletions=deletions,
        uploads=await read_uploads(files),
        milestones=milestones,
    )
    context = ErrorContext("updating mission", resource=str(mission_id), user_id=identity.id)
    try:
        result = await run_in_threadpool(MissionUpdateWorkflow(engine, storage).run, request)
    except OrbitFundError as e:
        raise handle_domain_error(e, context)
    except SQLAlchemyError as e:
        raise handle_processing_error("updating mission", e, resource=str(mission_id), user_id=identity.id)

    return models.MissionUpdateResponse(
        message="Mission updated successfully",
        missionId=result.mission_id,
        uploaded={kind.value: urls for kind, urls in result.uploaded.items()},
        deleted={kind.value: urls for kind, urls in result.deleted.items()},
        milestoneCount=result.milestone_count,
    )
