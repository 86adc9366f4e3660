import pytest
from botocore.stub import Stubber

from orbitfund.core.error_types import StorageError
from orbitfund.core.storage import B2StorageClient, InMemoryStorageClient, build_object_key


def test_build_object_key_keeps_only_extension():
    key = build_object_key("videos", "../../etc/launch clip.MP4")
    folder, name = key.split("/")
    assert folder == "videos"
    assert name.endswith(".MP4")
    assert "launch" not in name


def test_in_memory_put_returns_public_url():
    storage = InMemoryStorageClient()
    url = storage.put(b"data", "image/png", "images", "cover.png")
    assert url.startswith("https://storage.example.test/file/orbitfund-test/images/")
    assert len(storage.objects) == 1


def test_in_memory_put_skips_empty_or_unnamed_files():
    storage = InMemoryStorageClient()
    assert storage.put(b"", "image/png", "images", "cover.png") is None
    assert storage.put(b"data", "image/png", "images", None) is None
    assert storage.objects == {}


def test_in_memory_delete_ignores_foreign_urls():
    storage = InMemoryStorageClient()
    url = storage.put(b"data", "image/png", "images", "cover.png")
    storage.delete("https://elsewhere.test/bucket/images/cover.png")
    assert len(storage.objects) == 1
    storage.delete(url)
    assert storage.objects == {}
    assert storage.delete_calls == ["https://elsewhere.test/bucket/images/cover.png", url]


@pytest.fixture
def b2_client():
    return B2StorageClient(
        bucket="orbitfund-media",
        endpoint="https://s3.us-west-004.backblazeb2.com",
        access_key_id="key-id",
        secret_access_key="app-key",
        public_url_prefix="https://f004.backblazeb2.com/file",
        region="us-west-004",
    )


def test_b2_put_uploads_public_object(b2_client):
    with Stubber(b2_client._client) as stubber:
        stubber.add_response("put_object", {"ETag": '"abc"'})
        url = b2_client.put(b"pdf", "application/pdf", "documents", "plan.pdf")
        stubber.assert_no_pending_responses()
    assert url.startswith("https://f004.backblazeb2.com/file/orbitfund-media/documents/")
    assert url.endswith(".pdf")


def test_b2_put_failure_raises_storage_error(b2_client):
    with Stubber(b2_client._client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageError):
            b2_client.put(b"pdf", "application/pdf", "documents", "plan.pdf")


def test_b2_delete_failure_is_swallowed(b2_client):
    url = b2_client.url_for("images/abc.png")
    with Stubber(b2_client._client) as stubber:
        stubber.add_client_error("delete_object", service_error_code="InternalError", http_status_code=500)
        b2_client.delete(url)
        stubber.assert_no_pending_responses()


def test_b2_delete_sends_object_key(b2_client):
    url = b2_client.url_for("images/abc.png")
    with Stubber(b2_client._client) as stubber:
        stubber.add_response("delete_object", {}, {"Bucket": "orbitfund-media", "Key": "images/abc.png"})
        b2_client.delete(url)
        stubber.assert_no_pending_responses()


def test_b2_delete_ignores_urls_outside_bucket(b2_client):
    with Stubber(b2_client._client) as stubber:
        b2_client.delete("https://elsewhere.test/file/other/images/abc.png")
        stubber.assert_no_pending_responses()
