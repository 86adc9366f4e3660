"""
Pydantic request/response model schemas for the OrbitFund backend.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .enums import MissionStatusEnum, UserRoleEnum


# ============================================================================
# User Models
# ============================================================================

class UserRegister(BaseModel):
    """Body of POST /users/register."""
    username: str = Field(min_length=3, description="Unique username, at least 3 characters.")
    email: EmailStr = Field(description="Email address, used to log in.")
    password: str = Field(min_length=6, description="Password, at least 6 characters (will be hashed).")


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterResponse(BaseModel):
    message: str
    userId: int


class LoginResponse(BaseModel):
    token: str
    username: str
    message: str


class VerifyAdminResponse(BaseModel):
    isAdmin: bool
    grantedAt: Optional[datetime] = None


class CallerIdentity(BaseModel):
    """
    Identity of the caller, resolved once by the auth gate from trusted token claims.
    Handlers receive this and never re-inspect the raw claims.
    """
    id: int
    username: Optional[str] = None
    email: Optional[str] = None
    role: UserRoleEnum = UserRoleEnum.user

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.admin


# ============================================================================
# Mission Models
# ============================================================================

class MissionFields(BaseModel):
    """Editable scalar fields of a mission. Unset fields are left untouched on update."""
    title: Optional[str] = None
    description: Optional[str] = None
    goals: Optional[str] = None
    type: Optional[str] = None
    launch_date: Optional[datetime] = None
    end_time: Optional[datetime] = None
    team_info: Optional[str] = None
    funding_goal: Optional[str] = None
    duration: Optional[str] = None
    budget_breakdown: Optional[str] = None
    rewards: Optional[str] = None


class MilestoneEntry(BaseModel):
    """One raw (name, target) pair as submitted by the client."""
    name: Optional[str] = None
    target: Optional[str] = None


class MilestoneRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    milestone_name: str
    target_amount: float


class MissionRead(BaseModel):
    """A mission with its four child collections."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: Optional[str] = None
    description: Optional[str] = None
    goals: Optional[str] = None
    type: Optional[str] = None
    launch_date: Optional[datetime] = None
    end_time: Optional[datetime] = None
    team_info: Optional[str] = None
    funding_goal: Optional[str] = None
    duration: Optional[str] = None
    budget_breakdown: Optional[str] = None
    rewards: Optional[str] = None
    status: MissionStatusEnum
    user_approved: bool
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    images: List[str] = []
    videos: List[str] = []
    documents: List[str] = []
    milestones: List[MilestoneRead] = []


class MissionReviewRead(MissionRead):
    """Admin review view; includes the reviewer notes."""
    admin_notes: Optional[str] = None


class MissionSubmissionResponse(BaseModel):
    message: str
    missionId: int
    imageUrls: List[str] = []
    videoUrls: List[str] = []
    docUrls: List[str] = []


class MissionUpdateResponse(BaseModel):
    message: str
    missionId: int
    uploaded: Dict[str, List[str]] = {}
    deleted: Dict[str, List[str]] = {}
    milestoneCount: int = 0


class ToggleApprovalResponse(BaseModel):
    message: str
    user_approved: bool
    is_public: bool


# ============================================================================
# Approval Models
# ============================================================================

class StatusUpdateRequest(BaseModel):
    """Body of PUT /Approval/update-status. Values are checked by the handler."""
    id: Optional[int] = None
    newStatus: Optional[str] = None
    adminNotes: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
