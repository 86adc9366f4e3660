"""
Object storage gateway for Backblaze B2 (S3-compatible) and an in-memory test double.

Uploads return the public URL of the stored object. Deletes are best-effort:
failures are logged and never propagate, so a database edit is not blocked by
a storage hiccup (orphaned blobs are tolerated).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Protocol, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .error_types import StorageError

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """A file received from a client, already read into memory."""
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def put(self, data: bytes, content_type: Optional[str], key_prefix: str, filename: Optional[str]) -> Optional[str]:
        ...

    def delete(self, url: str) -> None:
        ...


def build_object_key(key_prefix: str, filename: str) -> str:
    """`{prefix}/{uuid4}{ext}`; the client's filename only contributes its extension."""
    return f"{key_prefix}/{uuid.uuid4()}{PurePosixPath(filename).suffix}"


def _public_base(public_url_prefix: str, bucket: str) -> str:
    return f"{public_url_prefix.rstrip('/')}/{bucket}/"


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    public_url_prefix: str = "https://storage.example.test/file"
    bucket: str = "orbitfund-test"
    objects: Dict[str, Tuple[bytes, Optional[str]]] = field(default_factory=dict)
    delete_calls: List[str] = field(default_factory=list)

    def url_for(self, key: str) -> str:
        return _public_base(self.public_url_prefix, self.bucket) + key

    def put(self, data: bytes, content_type: Optional[str], key_prefix: str, filename: Optional[str]) -> Optional[str]:
        if not data or not filename:
            logger.warning(f"Skipping empty or null-named file in folder: {key_prefix}")
            return None
        key = build_object_key(key_prefix, filename)
        self.objects[key] = (data, content_type)
        return self.url_for(key)

    def delete(self, url: str) -> None:
        self.delete_calls.append(url)
        base = _public_base(self.public_url_prefix, self.bucket)
        if not url.startswith(base):
            logger.warning(f"Not deleting '{url}': not an object of bucket '{self.bucket}'.")
            return
        self.objects.pop(url[len(base):], None)


@dataclass
class B2StorageClient:
    """
    S3-compatible storage client for Backblaze B2.
    """

    bucket: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_url_prefix: str
    region: Optional[str] = None

    def __post_init__(self):
        # B2 requires path-style addressing on its S3 endpoint.
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )
        logger.info(f"B2 storage client initialized for bucket '{self.bucket}'.")

    def url_for(self, key: str) -> str:
        return _public_base(self.public_url_prefix, self.bucket) + key

    def key_for(self, url: str) -> Optional[str]:
        base = _public_base(self.public_url_prefix, self.bucket)
        if not url.startswith(base):
            return None
        return url[len(base):] or None

    def put(self, data: bytes, content_type: Optional[str], key_prefix: str, filename: Optional[str]) -> Optional[str]:
        if not data or not filename:
            logger.warning(f"Skipping empty or null-named file in folder: {key_prefix}")
            return None
        key = build_object_key(key_prefix, filename)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"B2 upload failed for '{filename}' (key {key}): {e}")
            raise StorageError(f"Upload of '{filename}' failed", key=key) from e
        url = self.url_for(key)
        logger.info(f"Uploaded '{filename}' to B2: {url}")
        return url

    def delete(self, url: str) -> None:
        key = self.key_for(url)
        if key is None:
            logger.warning(f"Not deleting '{url}': not an object of bucket '{self.bucket}'.")
            return
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Deleted B2 object {key}.")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"B2 delete failed for key {key}; object may be orphaned: {e}")
