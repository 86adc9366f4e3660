"""
Core package for the OrbitFund backend.

This package contains the data models, security (token and password
handling), the authentication gate, the object storage gateway and the
error handling helpers.
"""

from . import models
from . import error_types
from . import error_handlers
from . import security
from . import auth
from . import storage
# Note: dependencies is NOT imported here to avoid circular import issues
# Import it directly when needed: from orbitfund.core.dependencies import get_storage_client

__all__ = [
    "models",
    "error_types",
    "error_handlers",
    "security",
    "auth",
    "storage",
]
