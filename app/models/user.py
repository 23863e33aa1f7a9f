"""
app/models/user.py

Purpose: User document model

- Identity and company profile fields
- bcrypt password hash (never the plaintext)
- Append-only list of receipt URLs
- Field names match the stored MongoDB document (camelCase)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from utils.time_utils import utc_now


class User(BaseModel):
    """
    A user record as held in the users collection.
    """
    id: str = Field(..., alias="_id")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    password_hash: str = Field(..., alias="passwordHash")
    company_name: str = Field(default="", alias="companyName")
    company_slogan: str = Field(default="", alias="companySlogan")
    receipt_urls: List[str] = Field(default_factory=list, alias="receiptUrls")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "User":
        """Builds a User from a raw MongoDB document (ObjectId ids become strings)."""
        data = dict(document)
        data["_id"] = str(data["_id"])
        return cls.model_validate(data)


def new_user_document(
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    company_name: str = "",
    company_slogan: str = "",
) -> Dict[str, Any]:
    """
    Builds the insert payload for a new user.
    Every user starts with an empty receipt list.
    """
    return {
        "firstName": first_name,
        "lastName": last_name,
        "email": email,
        "passwordHash": password_hash,
        "companyName": company_name,
        "companySlogan": company_slogan,
        "receiptUrls": [],
        "createdAt": utc_now(),
    }
