"""
app/schemas/auth.py

Purpose: Identity claim carried by verified bearer tokens
"""

from datetime import datetime
from pydantic import BaseModel, Field


class IdentityClaim(BaseModel):
    """
    Decoded payload of a verified token.
    """
    user_id: str = Field(..., description="Identifier of the authenticated user")
    issued_at: datetime
    expires_at: datetime
