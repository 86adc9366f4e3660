"""
Enum definitions for the OrbitFund backend.
"""

from enum import Enum


class UserRoleEnum(str, Enum):
    user = "User"
    admin = "Admin"


class MissionStatusEnum(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ARCHIVED = "Archived"


class AttachmentKindEnum(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"

    @property
    def storage_folder(self) -> str:
        """Key prefix used for objects of this kind in the bucket."""
        return {
            AttachmentKindEnum.IMAGE: "images",
            AttachmentKindEnum.VIDEO: "videos",
            AttachmentKindEnum.DOCUMENT: "documents",
        }[self]


# Statuses an admin may move a Pending mission into
REVIEW_OUTCOMES = (
    MissionStatusEnum.APPROVED,
    MissionStatusEnum.REJECTED,
    MissionStatusEnum.ARCHIVED,
)
