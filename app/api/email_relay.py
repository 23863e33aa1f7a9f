"""
app/api/email_relay.py

Purpose: Receipt email endpoint

- POST /send-email: multipart "receipt" file + form field "email"
- Public by default ("share a receipt"), rate limited per client
- EMAIL_RELAY_REQUIRE_AUTH puts it behind the bearer-token gate
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import PlainTextResponse

from app.api.deps import (
    authenticate,
    get_email_rate_limiter,
    get_email_relay,
    get_settings,
    get_token_service,
)
from app.core.config import Settings
from app.core.exceptions import MissingFieldsError, ValidationError
from app.core.logging import get_logger
from app.schemas.auth import IdentityClaim
from app.services.email_service import EmailRelay
from app.services.rate_limiter import RateLimiter
from app.services.token_service import TokenService
from utils.constants import EMAIL_SENT_MESSAGE
from utils.validation_utils import is_valid_email, normalize_email

logger = get_logger(__name__)
router = APIRouter()


async def get_relay_identity(
    request: Request,
    app_settings: Settings = Depends(get_settings),
    token_service: TokenService = Depends(get_token_service)
) -> Optional[IdentityClaim]:
    """
    Applies the auth gate only when the relay is configured to require it.
    """
    if not app_settings.EMAIL_RELAY_REQUIRE_AUTH:
        return None
    identity = authenticate(request.headers.get("Authorization"), token_service)
    request.state.identity = identity
    return identity


@router.post("/send-email", response_class=PlainTextResponse)
async def send_email(
    request: Request,
    email: Optional[str] = Form(None),
    receipt: Optional[UploadFile] = File(None),
    identity: Optional[IdentityClaim] = Depends(get_relay_identity),
    relay: EmailRelay = Depends(get_email_relay),
    limiter: RateLimiter = Depends(get_email_rate_limiter)
) -> PlainTextResponse:
    if not email or receipt is None:
        raise MissingFieldsError()

    address = normalize_email(email)
    if not is_valid_email(address):
        raise ValidationError("Invalid email address")

    if identity is not None:
        client_key = f"user:{identity.user_id}"
    else:
        client_key = f"ip:{request.client.host if request.client else 'unknown'}"
    limiter.hit(client_key)
    logger.info(f"Receipt email requested by {client_key}")

    attachment = await receipt.read()
    if not attachment:
        raise MissingFieldsError("Receipt file is empty")

    await relay.send(address, attachment, receipt.filename, receipt.content_type)
    return PlainTextResponse(EMAIL_SENT_MESSAGE)
