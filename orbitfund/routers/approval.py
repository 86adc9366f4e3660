"""
Admin review of submitted missions. Every route requires the Admin role.
"""
import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as SQLModelSession

from ..core import models
from ..core.auth import get_current_admin
from ..core.error_handlers import (
    ErrorContext,
    handle_domain_error,
    handle_processing_error,
    handle_validation_error,
)
from ..core.error_types import OrbitFundError
from ..db import get_db_session
from ..services.mission_service import MissionService

logger = logging.getLogger(__name__)
user_activity_logger = logging.getLogger("user_activity")

router = APIRouter(prefix="/Approval", tags=["Approval"])


@router.get("/pending-ids", response_model=List[int])
async def list_pending_submission_ids(
    admin: Annotated[models.CallerIdentity, Depends(get_current_admin)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    try:
        ids = MissionService.list_pending_ids(session)
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving pending submissions", e, user_id=admin.id)
    logger.info(f"Admin '{admin.username}' retrieved {len(ids)} pending submission ids.")
    return ids


@router.get("/{mission_id}", response_model=models.MissionReviewRead)
async def get_submission(
    mission_id: int,
    admin: Annotated[models.CallerIdentity, Depends(get_current_admin)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    """Full submission details regardless of status."""
    try:
        return MissionService.get_mission_for_review(session, mission_id)
    except OrbitFundError as e:
        raise handle_domain_error(e, ErrorContext("retrieving submission", resource=str(mission_id), user_id=admin.id))
    except SQLAlchemyError as e:
        raise handle_processing_error("retrieving submission", e, resource=str(mission_id), user_id=admin.id)


@router.put("/update-status", response_model=models.MessageResponse)
async def update_submission_status(
    body: models.StatusUpdateRequest,
    admin: Annotated[models.CallerIdentity, Depends(get_current_admin)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    """Moves a Pending submission to Approved, Rejected or Archived."""
    if body.id is None or body.newStatus not in [outcome.value for outcome in models.REVIEW_OUTCOMES]:
        raise handle_validation_error(
            "Invalid request: id, newStatus ('Approved', 'Rejected', or 'Archived') are required."
        )
    new_status = models.MissionStatusEnum(body.newStatus)
    try:
        MissionService.update_status(session, body.id, new_status, body.adminNotes)
    except OrbitFundError as e:
        raise handle_domain_error(e, ErrorContext("updating submission status", resource=str(body.id), user_id=admin.id))
    except SQLAlchemyError as e:
        session.rollback()
        raise handle_processing_error("updating submission status", e, resource=str(body.id), user_id=admin.id)

    user_activity_logger.info(f"admin={admin.id} set mission={body.id} status={new_status.value}")
    return models.MessageResponse(message=f"Submission {body.id} status updated to {new_status.value}")
