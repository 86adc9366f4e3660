"""
Multipart form parsing shared by the mission submission and update routes.
"""
import json
import logging
from typing import Dict, List, Optional

from fastapi import File, Form, UploadFile
from pydantic import ValidationError

from ..config import settings
from ..core.error_handlers import handle_validation_error
from ..core.models import AttachmentKindEnum, MilestoneEntry, MissionFields
from ..core.storage import UploadedFile
from ..services.mission_service import milestone_entries_from_form

logger = logging.getLogger(__name__)


def mission_fields_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    goals: Optional[str] = Form(None),
    mission_type: Optional[str] = Form(None, alias="type"),
    launch_date: Optional[str] = Form(None, alias="launchDate"),
    end_time: Optional[str] = Form(None, alias="endTime"),
    team_info: Optional[str] = Form(None, alias="teamInfo"),
    funding_goal: Optional[str] = Form(None, alias="fundingGoal"),
    duration: Optional[str] = Form(None),
    budget_breakdown: Optional[str] = Form(None, alias="budgetBreakdown"),
    rewards: Optional[str] = Form(None),
) -> MissionFields:
    """Scalar mission fields. Only fields the client actually sent are marked as set."""
    raw = {
        "title": title,
        "description": description,
        "goals": goals,
        "type": mission_type,
        "launch_date": launch_date,
        "end_time": end_time,
        "team_info": team_info,
        "funding_goal": funding_goal,
        "duration": duration,
        "budget_breakdown": budget_breakdown,
        "rewards": rewards,
    }
    provided = {key: value for key, value in raw.items() if value is not None}
    try:
        return MissionFields(**provided)
    except ValidationError as e:
        first = e.errors()[0]
        field_name = str(first["loc"][0]) if first.get("loc") else None
        raise handle_validation_error(first["msg"], field=field_name)


def milestones_form(
    milestone_names: Optional[List[str]] = Form(None, alias="milestoneName[]"),
    milestone_targets: Optional[List[str]] = Form(None, alias="milestoneTarget[]"),
) -> List[MilestoneEntry]:
    return milestone_entries_from_form(milestone_names, milestone_targets)


def deletions_form(
    delete_images: Optional[str] = Form(None, alias="deleteImages"),
    delete_videos: Optional[str] = Form(None, alias="deleteVideos"),
    delete_documents: Optional[str] = Form(None, alias="deleteDocuments"),
) -> Dict[AttachmentKindEnum, List[str]]:
    """JSON-encoded URL lists, one per attachment kind."""
    raw = {
        AttachmentKindEnum.IMAGE: ("deleteImages", delete_images),
        AttachmentKindEnum.VIDEO: ("deleteVideos", delete_videos),
        AttachmentKindEnum.DOCUMENT: ("deleteDocuments", delete_documents),
    }
    deletions: Dict[AttachmentKindEnum, List[str]] = {}
    for kind, (field_name, value) in raw.items():
        if not value:
            continue
        try:
            urls = json.loads(value)
        except json.JSONDecodeError:
            raise handle_validation_error("must be a JSON-encoded list of URLs", field=field_name)
        if not isinstance(urls, list) or not all(isinstance(url, str) for url in urls):
            raise handle_validation_error("must be a JSON-encoded list of URLs", field=field_name)
        if urls:
            deletions[kind] = urls
    return deletions


def files_form(
    images: Optional[List[UploadFile]] = File(None),
    video: Optional[List[UploadFile]] = File(None),
    documents: Optional[List[UploadFile]] = File(None),
) -> Dict[AttachmentKindEnum, List[UploadFile]]:
    """Incoming files per kind, with the per-field count limits enforced."""
    limits = {
        AttachmentKindEnum.IMAGE: ("images", images or [], settings.max_image_files),
        AttachmentKindEnum.VIDEO: ("video", video or [], settings.max_video_files),
        AttachmentKindEnum.DOCUMENT: ("documents", documents or [], settings.max_document_files),
    }
    files: Dict[AttachmentKindEnum, List[UploadFile]] = {}
    for kind, (field_name, uploads, limit) in limits.items():
        if len(uploads) > limit:
            raise handle_validation_error(f"at most {limit} files allowed", field=field_name)
        logger.info(f"{field_name} count: {len(uploads)}")
        if uploads:
            files[kind] = uploads
    return files


async def read_uploads(files: Dict[AttachmentKindEnum, List[UploadFile]]) -> Dict[AttachmentKindEnum, List[UploadedFile]]:
    """Reads every UploadFile into memory so services never touch the request stream."""
    read: Dict[AttachmentKindEnum, List[UploadedFile]] = {}
    for kind, uploads in files.items():
        read[kind] = []
        for upload in uploads:
            try:
                data = await upload.read()
            finally:
                await upload.close()
            read[kind].append(UploadedFile(filename=upload.filename, content_type=upload.content_type, data=data))
    return read
