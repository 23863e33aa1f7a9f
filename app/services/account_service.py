"""
app/services/account_service.py

Purpose: Account management

- Signup with bcrypt-hashed credentials
- Login: credential check and token issuance
- Profile and receipt-list reads for an authenticated identity
"""

from functools import lru_cache
from typing import List

from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import InvalidCredentialsError, UserNotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.security import BCRYPT_ROUNDS, hash_password, verify_password
from app.models.user import User, new_user_document
from app.schemas.account import SignupRequest, UserProfile
from app.schemas.auth import IdentityClaim
from app.services.token_service import TokenService
from app.services.user_store import UserStore
from utils.validation_utils import normalize_email

logger = get_logger(__name__)

# bcrypt only considers the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


@lru_cache()
def _dummy_hash(rounds: int) -> str:
    # Compared against when the email is unknown so both failure paths cost one bcrypt check
    return hash_password("receiptify-dummy-password", rounds=rounds)


class AccountService:
    """Signup, login and profile reads."""

    def __init__(self, user_store: UserStore, token_service: TokenService, password_rounds: int = BCRYPT_ROUNDS):
        self.user_store = user_store
        self.token_service = token_service
        self.password_rounds = password_rounds

    async def signup(self, request: SignupRequest) -> User:
        """
        Creates a user with an empty receipt list.

        Raises:
            ValidationError: Password too long or record rejected by the store
        """
        if len(request.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")

        document = new_user_document(
            first_name=request.first_name,
            last_name=request.last_name,
            email=normalize_email(request.email),
            password_hash=await run_in_threadpool(hash_password, request.password, self.password_rounds),
            company_name=request.company_name,
            company_slogan=request.company_slogan,
        )

        user = await self.user_store.create(document)
        logger.info("New user created", extra={"user_id": user.id})
        return user

    async def login(self, email: str, password: str) -> str:
        """
        Verifies credentials and issues a token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password (indistinguishable)
        """
        user = await self.user_store.find_by_email(normalize_email(email))

        if user is None:
            await run_in_threadpool(verify_password, password, _dummy_hash(self.password_rounds))
            raise InvalidCredentialsError()

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Login rejected: password mismatch", extra={"user_id": user.id})
            raise InvalidCredentialsError()

        logger.info("User logged in", extra={"user_id": user.id})
        return self.token_service.issue(user.id)

    async def _resolve(self, identity: IdentityClaim) -> User:
        user = await self.user_store.find_by_id(identity.user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def get_profile(self, identity: IdentityClaim) -> UserProfile:
        user = await self._resolve(identity)
        return UserProfile.from_user(user)

    async def get_receipts(self, identity: IdentityClaim) -> List[str]:
        user = await self._resolve(identity)
        return list(user.receipt_urls)
