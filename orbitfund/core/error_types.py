"""
Domain exceptions raised by services and translated to HTTP errors by routers.
"""

from enum import Enum
from typing import Optional


class OrbitFundError(Exception):
    """Base class for domain errors."""


class MissionAccessDenied(OrbitFundError):
    """Mission does not exist or is not owned by the caller. The two cases are not distinguished."""

    def __init__(self, mission_id: int, user_id: int):
        super().__init__(f"Mission {mission_id} not found or not owned by user {user_id}")
        self.mission_id = mission_id
        self.user_id = user_id


class MissionNotFound(OrbitFundError):
    def __init__(self, mission_id: int):
        super().__init__(f"Mission {mission_id} not found")
        self.mission_id = mission_id


class InvalidStatusTransition(OrbitFundError):
    """Status change requested for a mission that is missing or no longer Pending."""

    def __init__(self, mission_id: int, new_status: str):
        super().__init__(f"Mission {mission_id} not found or not in 'Pending' status (requested {new_status})")
        self.mission_id = mission_id
        self.new_status = new_status


class LaunchDateInPast(OrbitFundError):
    """A mission cannot be made visible once its launch date has passed."""


class StorageError(OrbitFundError):
    """Object storage upload failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class TokenErrorReason(str, Enum):
    MISSING = "missing"
    EXPIRED = "expired"
    INVALID = "invalid"


class TokenValidationError(OrbitFundError):
    """Bearer token could not be accepted."""

    def __init__(self, reason: TokenErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason
