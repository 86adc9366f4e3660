"""
Standardized dependency injection for routers.

The storage client is built by a provider here and injected with Depends,
so tests can swap it (and the engine, see orbitfund.db) through
app.dependency_overrides.

Usage:
    from orbitfund.core.dependencies import get_storage_client

    @router.post("/endpoint")
    async def my_endpoint(
        storage: Annotated[StorageClient, Depends(get_storage_client)],
    ):
        ...
"""

import logging
from functools import lru_cache

from orbitfund.config import settings

from .storage import B2StorageClient, InMemoryStorageClient, StorageClient

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_storage_client() -> StorageClient:
    """Return the process-wide storage client."""
    if settings.use_in_memory_storage or not settings.b2_configured:
        logger.warning("B2 storage is not configured; using in-memory storage.")
        return InMemoryStorageClient()
    return B2StorageClient(
        bucket=settings.b2_bucket_name,
        endpoint=settings.b2_service_url,
        access_key_id=settings.b2_access_key_id,
        secret_access_key=settings.b2_application_key,
        public_url_prefix=settings.b2_public_file_url_prefix,
        region=settings.b2_region,
    )
