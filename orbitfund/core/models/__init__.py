"""
Models package for the OrbitFund backend.

This package contains all data models organized by type:
- enums.py: Enum definitions
- database.py: SQLModel database tables
- schemas.py: Pydantic request/response models

All models are re-exported from this __init__.py, so you can import them as:
    from orbitfund.core.models import Mission, MissionRead, MissionStatusEnum
"""

from .enums import (
    UserRoleEnum,
    MissionStatusEnum,
    AttachmentKindEnum,
    REVIEW_OUTCOMES,
)

from .database import (
    UserInDB,
    Mission,
    MissionAttachmentBase,
    MissionImage,
    MissionVideo,
    MissionDocument,
    MissionMilestone,
    ATTACHMENT_MODELS,
)

from .schemas import (
    # User models
    UserRegister,
    UserLogin,
    RegisterResponse,
    LoginResponse,
    VerifyAdminResponse,
    CallerIdentity,

    # Mission models
    MissionFields,
    MilestoneEntry,
    MilestoneRead,
    MissionRead,
    MissionReviewRead,
    MissionSubmissionResponse,
    MissionUpdateResponse,
    ToggleApprovalResponse,

    # Approval models
    StatusUpdateRequest,
    MessageResponse,
)

__all__ = [
    "UserRoleEnum",
    "MissionStatusEnum",
    "AttachmentKindEnum",
    "REVIEW_OUTCOMES",
    "UserInDB",
    "Mission",
    "MissionAttachmentBase",
    "MissionImage",
    "MissionVideo",
    "MissionDocument",
    "MissionMilestone",
    "ATTACHMENT_MODELS",
    "UserRegister",
    "UserLogin",
    "RegisterResponse",
    "LoginResponse",
    "VerifyAdminResponse",
    "CallerIdentity",
    "MissionFields",
    "MilestoneEntry",
    "MilestoneRead",
    "MissionRead",
    "MissionReviewRead",
    "MissionSubmissionResponse",
    "MissionUpdateResponse",
    "ToggleApprovalResponse",
    "StatusUpdateRequest",
    "MessageResponse",
]
