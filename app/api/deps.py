"""
app/api/deps.py

Purpose: Request dependencies

- Auth gate: bearer token extraction and verification
- Service construction from process-wide settings
- Overridable in tests via app.dependency_overrides
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from app.core.config import Settings, settings
from app.core.exceptions import InvalidCredentialError, MissingCredentialError, TokenError
from app.core.logging import get_logger
from app.db.mongo import get_users_collection
from app.schemas.auth import IdentityClaim
from app.services.account_service import AccountService
from app.services.email_service import EmailRelay
from app.services.rate_limiter import RateLimiter
from app.services.storage_service import CloudinaryStorage, ObjectStore
from app.services.token_service import TokenService
from app.services.upload_service import UploadPipeline
from app.services.user_store import UserStore

logger = get_logger(__name__)

BEARER_SCHEME = "bearer"


# ============================================================================
# AUTH GATE
# ============================================================================

def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pulls the token out of an "Authorization: Bearer <token>" header.

    Raises:
        MissingCredentialError: Header absent, not a Bearer scheme, or empty token
    """
    if not authorization:
        raise MissingCredentialError()

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise MissingCredentialError("Authorization header must be 'Bearer <token>'")

    return parts[1]


def authenticate(authorization: Optional[str], token_service: TokenService) -> IdentityClaim:
    """
    Decides whether a request carries a valid credential.

    Raises:
        MissingCredentialError: No usable bearer credential (401)
        InvalidCredentialError: Credential present but invalid or expired (403)
    """
    token = extract_bearer_token(authorization)
    try:
        return token_service.verify(token)
    except TokenError as e:
        logger.info(f"Token rejected: {type(e).__name__}")
        raise InvalidCredentialError() from e


# ============================================================================
# SERVICES
# ============================================================================

def get_settings() -> Settings:
    return settings


@lru_cache()
def get_token_service() -> TokenService:
    return TokenService(settings.SECRET_KEY, settings.TOKEN_EXPIRE_HOURS)


async def get_current_identity(
    request: Request,
    token_service: TokenService = Depends(get_token_service)
) -> IdentityClaim:
    """Auth gate dependency; attaches the claim to request.state.identity."""
    identity = authenticate(request.headers.get("Authorization"), token_service)
    request.state.identity = identity
    return identity


def get_user_store() -> UserStore:
    return UserStore(get_users_collection())


@lru_cache()
def get_object_store() -> ObjectStore:
    api_secret = settings.CLOUDINARY_API_SECRET
    return CloudinaryStorage(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=api_secret.get_secret_value() if api_secret else None,
        base_url=settings.CLOUDINARY_BASE_URL,
        timeout=settings.STORAGE_TIMEOUT,
        folder=settings.CLOUDINARY_FOLDER,
    )


@lru_cache()
def get_email_relay() -> EmailRelay:
    smtp_password = settings.SMTP_PASSWORD
    return EmailRelay(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=smtp_password.get_secret_value() if smtp_password else None,
        from_email=settings.SMTP_FROM_EMAIL,
        starttls=settings.SMTP_STARTTLS,
        timeout=settings.SMTP_TIMEOUT,
    )


@lru_cache()
def get_email_rate_limiter() -> RateLimiter:
    return RateLimiter(max_requests=settings.EMAIL_RATE_LIMIT_PER_HOUR, window_seconds=3600)


def get_account_service(
    user_store: UserStore = Depends(get_user_store),
    token_service: TokenService = Depends(get_token_service),
    app_settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(user_store, token_service, password_rounds=app_settings.BCRYPT_ROUNDS)


def get_upload_pipeline(
    user_store: UserStore = Depends(get_user_store),
    object_store: ObjectStore = Depends(get_object_store),
    app_settings: Settings = Depends(get_settings),
) -> UploadPipeline:
    return UploadPipeline(
        user_store,
        object_store,
        upload_dir=app_settings.UPLOAD_DIR,
        max_bytes=app_settings.MAX_UPLOAD_BYTES,
    )
