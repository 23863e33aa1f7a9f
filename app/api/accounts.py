"""
app/api/accounts.py

Purpose: Account endpoints

- POST /signup: create an account
- POST /login: exchange credentials for a bearer token
- GET /user: profile of the authenticated user
- GET /user/receipts: receipt URLs of the authenticated user
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_account_service, get_current_identity
from app.schemas.account import (
    CreatedUser,
    LoginRequest,
    ReceiptsResponse,
    SignupRequest,
    TokenResponse,
    UserProfile,
)
from app.schemas.auth import IdentityClaim
from app.services.account_service import AccountService

router = APIRouter()


@router.post("/signup", response_model=CreatedUser, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    accounts: AccountService = Depends(get_account_service)
) -> CreatedUser:
    """
    Creates a user. The response never includes the password hash.
    """
    user = await accounts.signup(request)
    return CreatedUser.from_user(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    accounts: AccountService = Depends(get_account_service)
) -> TokenResponse:
    token = await accounts.login(request.email, request.password)
    return TokenResponse(token=token)


@router.get("/user", response_model=UserProfile)
async def get_user(
    identity: IdentityClaim = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service)
) -> UserProfile:
    return await accounts.get_profile(identity)


@router.get("/user/receipts", response_model=ReceiptsResponse)
async def get_user_receipts(
    identity: IdentityClaim = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service)
) -> ReceiptsResponse:
    receipt_urls = await accounts.get_receipts(identity)
    return ReceiptsResponse(receipt_urls=receipt_urls)
