"""
app/schemas/account.py

Purpose: Account request/response schemas

- Signup and login payloads (camelCase on the wire)
- Profile projections that never carry credential data
"""

from pydantic import BaseModel, Field, field_validator
from typing import List

from app.models.user import User
from utils.validation_utils import is_valid_email, normalize_email


class SignupRequest(BaseModel):
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=72)
    company_name: str = Field(default="", alias="companyName", max_length=200)
    company_slogan: str = Field(default="", alias="companySlogan", max_length=300)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and check email shape."""
        v = normalize_email(v)
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": "analytical-engine",
                "companyName": "Engines Ltd",
                "companySlogan": "We compute"
            }
        }


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str


class UserProfile(BaseModel):
    """
    Read-only profile projection. Excludes the password hash.
    """
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    company_name: str = Field(default="", alias="companyName")
    company_slogan: str = Field(default="", alias="companySlogan")

    class Config:
        populate_by_name = True

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            company_name=user.company_name,
            company_slogan=user.company_slogan,
        )


class CreatedUser(UserProfile):
    """Signup response: profile plus identifier and (empty) receipt list."""
    id: str = Field(..., alias="_id")
    receipt_urls: List[str] = Field(default_factory=list, alias="receiptUrls")

    @classmethod
    def from_user(cls, user: User) -> "CreatedUser":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            company_name=user.company_name,
            company_slogan=user.company_slogan,
            receipt_urls=list(user.receipt_urls),
        )


class ReceiptsResponse(BaseModel):
    receipt_urls: List[str] = Field(default_factory=list, alias="receiptUrls")

    class Config:
        populate_by_name = True
