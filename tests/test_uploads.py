import asyncio
import io
import os

import pytest
from bson import ObjectId
from starlette.datastructures import Headers, UploadFile

from pymongo.errors import AutoReconnect

from app.core.exceptions import MissingFileError, PersistenceError, UserNotFoundError, ValidationError
from app.schemas.auth import IdentityClaim
from app.services import upload_service
from app.services.upload_service import UploadPipeline, stage_upload
from conftest import auth_header, login_token, signup


def receipt_file(content=b"\x89PNG receipt bytes", filename="receipt.png"):
    return {"file": (filename, content, "image/png")}


@pytest.fixture
def token(client):
    signup(client)
    return login_token(client)


def test_upload_appends_url_to_receipts(client, token, user_store):
    before = user_store.receipts_for("a@x.com")

    response = client.post("/api/upload", files=receipt_file(), headers=auth_header(token))
    assert response.status_code == 200
    url = response.json()["url"]

    after = user_store.receipts_for("a@x.com")
    assert len(after) == len(before) + 1
    assert after[-1] == url

    receipts = client.get("/api/user/receipts", headers=auth_header(token))
    assert receipts.json() == {"receiptUrls": [url]}


def test_uploads_preserve_order(client, token):
    first = client.post("/api/upload", files=receipt_file(), headers=auth_header(token)).json()["url"]
    second = client.post("/api/upload", files=receipt_file(), headers=auth_header(token)).json()["url"]

    receipts = client.get("/api/user/receipts", headers=auth_header(token)).json()
    assert receipts["receiptUrls"] == [first, second]


def test_upload_sends_file_bytes_and_removes_staged_copy(client, token, object_store, upload_dir):
    client.post("/api/upload", files=receipt_file(b"receipt-123", "../../evil name.png"), headers=auth_header(token))

    assert object_store.calls[0]["content"] == b"receipt-123"
    staged = os.path.basename(object_store.calls[0]["path"])
    assert staged.endswith("-evil_name.png")
    assert os.listdir(upload_dir) == []


def test_upload_without_file_is_rejected_without_mutation(client, token, user_store, object_store):
    response = client.post("/api/upload", headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_FILE"
    assert object_store.calls == []
    assert user_store.receipts_for("a@x.com") == []


def test_upload_empty_file_is_rejected(client, token, object_store):
    response = client.post("/api/upload", files=receipt_file(b""), headers=auth_header(token))
    assert response.status_code == 400
    assert object_store.calls == []


def test_storage_failure_leaves_user_untouched(client, token, user_store, object_store, upload_dir):
    object_store.fail = True
    response = client.post("/api/upload", files=receipt_file(), headers=auth_header(token))
    assert response.status_code == 500
    assert response.json()["code"] == "STORAGE_UNAVAILABLE"
    assert user_store.receipts_for("a@x.com") == []
    assert os.listdir(upload_dir) == []


def test_upload_for_unknown_user_is_404(client, token_service):
    token = token_service.issue(str(ObjectId()))
    response = client.post("/api/upload", files=receipt_file(), headers=auth_header(token))
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def make_upload(content=b"receipt", filename="r.png"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": "image/png"}),
    )


def identity_for(user_id):
    claim_time = "2026-01-01T00:00:00+00:00"
    return IdentityClaim(user_id=user_id, issued_at=claim_time, expires_at=claim_time)


def test_concurrent_uploads_keep_both_urls(client, user_store, object_store, upload_dir):
    user_id = signup(client).json()["_id"]
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir))
    identity = identity_for(user_id)

    async def upload_twice():
        return await asyncio.gather(
            pipeline.handle_upload(identity, make_upload(b"one", "one.png")),
            pipeline.handle_upload(identity, make_upload(b"two", "two.png")),
        )

    urls = asyncio.run(upload_twice())

    receipts = user_store.receipts_for("a@x.com")
    assert len(receipts) == 2
    assert set(receipts) == set(urls)


def test_pipeline_rejects_missing_file(user_store, object_store, upload_dir):
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir))
    with pytest.raises(MissingFileError):
        asyncio.run(pipeline.handle_upload(identity_for(str(ObjectId())), None))
    assert object_store.calls == []


def test_pipeline_rejects_oversized_file(client, user_store, object_store, upload_dir):
    user_id = signup(client).json()["_id"]
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir), max_bytes=4)

    with pytest.raises(ValidationError):
        asyncio.run(pipeline.handle_upload(identity_for(user_id), make_upload(b"too large")))

    assert object_store.calls == []
    assert os.listdir(upload_dir) == []


def test_pipeline_unknown_user_after_store(user_store, object_store, upload_dir):
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir))
    with pytest.raises(UserNotFoundError):
        asyncio.run(pipeline.handle_upload(identity_for(str(ObjectId())), make_upload()))
    # Stored object is not rolled back
    assert len(object_store.calls) == 1


async def lost_connection(*args, **kwargs):
    raise AutoReconnect("connection reset")


def test_pipeline_lookup_failure_is_persistence_error(client, user_store, object_store, upload_dir, monkeypatch):
    user_id = signup(client).json()["_id"]
    monkeypatch.setattr(user_store, "find_by_id", lost_connection)
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir))

    with pytest.raises(PersistenceError):
        asyncio.run(pipeline.handle_upload(identity_for(user_id), make_upload()))

    assert len(object_store.calls) == 1
    assert user_store.receipts_for("a@x.com") == []


def test_pipeline_append_failure_is_persistence_error(client, user_store, object_store, upload_dir, monkeypatch):
    user_id = signup(client).json()["_id"]
    monkeypatch.setattr(user_store, "append_receipt_url", lost_connection)
    pipeline = UploadPipeline(user_store, object_store, upload_dir=str(upload_dir))

    with pytest.raises(PersistenceError):
        asyncio.run(pipeline.handle_upload(identity_for(user_id), make_upload()))

    assert len(object_store.calls) == 1
    assert os.listdir(upload_dir) == []


def test_append_failure_returns_persistence_error(client, token, user_store, object_store, monkeypatch):
    monkeypatch.setattr(user_store, "append_receipt_url", lost_connection)

    response = client.post("/api/upload", files=receipt_file(), headers=auth_header(token))

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "PERSISTENCE_ERROR"
    assert body["error"] == "Failed to save user record"
    assert len(object_store.calls) == 1


def test_staging_writes_run_in_worker_threads(upload_dir, monkeypatch):
    offloaded = []
    real_run_in_threadpool = upload_service.run_in_threadpool

    async def recording_run_in_threadpool(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", repr(func)))
        return await real_run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr(upload_service, "run_in_threadpool", recording_run_in_threadpool)

    async def stage():
        async with stage_upload(make_upload(b"receipt-bytes"), str(upload_dir), 1024) as path:
            with open(path, "rb") as fh:
                return fh.read()

    assert asyncio.run(stage()) == b"receipt-bytes"
    assert "open" in offloaded
    assert "write" in offloaded
    assert "close" in offloaded
    assert os.listdir(upload_dir) == []
