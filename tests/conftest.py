import os

# Must be set before the app (and its settings) are imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "development")

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.api.deps import (
    get_email_rate_limiter,
    get_email_relay,
    get_object_store,
    get_settings,
    get_token_service,
    get_user_store,
)
from app.core.config import settings
from app.core.exceptions import StorageUnavailableError, TransportFailureError, ValidationError
from app.main import app
from app.models.user import User
from app.services.rate_limiter import RateLimiter


class InMemoryUserStore:
    """Test double for UserStore backed by a dict."""

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}

    async def create(self, document: Dict[str, Any]) -> User:
        if any(d["email"] == document["email"] for d in self.documents.values()):
            raise ValidationError("An account with this email already exists")
        document = dict(document, _id=ObjectId())
        document["receiptUrls"] = list(document["receiptUrls"])
        self.documents[str(document["_id"])] = document
        return User.from_document(document)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        document = self.documents.get(user_id)
        return User.from_document(document) if document else None

    async def find_by_email(self, email: str) -> Optional[User]:
        for document in self.documents.values():
            if document["email"] == email:
                return User.from_document(document)
        return None

    async def append_receipt_url(self, user_id: str, url: str) -> bool:
        document = self.documents.get(user_id)
        if document is None:
            return False
        document["receiptUrls"].append(url)
        return True

    def receipts_for(self, email: str) -> List[str]:
        for document in self.documents.values():
            if document["email"] == email:
                return list(document["receiptUrls"])
        return []


class FakeObjectStore:
    """Records staged uploads and hands out predictable URLs."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.fail = False

    async def store(self, local_path: str) -> str:
        with open(local_path, "rb") as fh:
            content = fh.read()
        self.calls.append({"path": local_path, "content": content})
        # Yield so concurrent uploads interleave
        await asyncio.sleep(0)
        if self.fail:
            raise StorageUnavailableError("Object storage error: 500")
        return f"https://res.cloudinary.test/receipts/{len(self.calls)}.png"


class FakeEmailRelay:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.fail = False

    async def send(self, to_email, attachment, filename=None, content_type=None):
        if self.fail:
            raise TransportFailureError()
        self.sent.append({
            "to": to_email,
            "attachment": attachment,
            "filename": filename,
            "content_type": content_type,
        })


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def email_relay():
    return FakeEmailRelay()


@pytest.fixture
def rate_limiter():
    return RateLimiter(max_requests=3, window_seconds=3600)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def test_settings(upload_dir):
    return settings.model_copy(update={"UPLOAD_DIR": str(upload_dir)})


@pytest.fixture
def token_service():
    return get_token_service()


@pytest.fixture
def client(user_store, object_store, email_relay, rate_limiter, test_settings):
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_email_relay] = lambda: email_relay
    app.dependency_overrides[get_email_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_settings] = lambda: test_settings

    yield TestClient(app)

    app.dependency_overrides.clear()


SIGNUP_PAYLOAD = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "a@x.com",
    "password": "p",
    "companyName": "Engines Ltd",
    "companySlogan": "We compute",
}


def signup(client, **overrides):
    payload = dict(SIGNUP_PAYLOAD, **overrides)
    return client.post("/api/signup", json=payload)


def login_token(client, email="a@x.com", password="p"):
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
