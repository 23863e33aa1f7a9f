"""
app/services/token_service.py

Purpose: Bearer token issuance and verification

- HS256 JWTs signed with the process-wide secret
- The user identifier is the only identity claim
- Stateless: tokens are never persisted or revoked server-side
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from app.core.exceptions import InvalidSignatureError, TokenExpiredError
from app.schemas.auth import IdentityClaim
from utils.time_utils import utc_now


class TokenService:
    """
    Issues and verifies signed, time-bound identity tokens.

    Usage:
        service = TokenService(secret_key="s3cret", expire_hours=1)
        token = service.issue("65f0c0ffee...")
        claim = service.verify(token)
        claim.user_id
    """

    ALGORITHM = "HS256"
    DEFAULT_EXPIRE_HOURS = 1

    def __init__(self, secret_key: str, expire_hours: int = DEFAULT_EXPIRE_HOURS):
        if not secret_key:
            raise ValueError("Token signing secret cannot be empty")

        self._secret_key = secret_key
        self._expire = timedelta(hours=expire_hours)

    def issue(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Creates a signed token for user_id.

        Args:
            user_id: Store-assigned user identifier
            expires_delta: Custom lifetime (defaults to the configured window)

        Returns:
            Encoded JWT string
        """
        now = utc_now()
        payload = {
            "id": str(user_id),
            "sub": str(user_id),
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self._expire),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def verify(self, token: str) -> IdentityClaim:
        """
        Checks signature and expiry and returns the embedded claim.

        Raises:
            TokenExpiredError: Signature is valid but the token has expired
            InvalidSignatureError: Token is malformed or signed with another secret
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidSignatureError(f"Invalid token: {e}") from e

        user_id = payload.get("id")
        if not user_id or not isinstance(user_id, str):
            raise InvalidSignatureError("Token carries no identity claim")

        return IdentityClaim(
            user_id=user_id,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
