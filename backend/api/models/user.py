"""
Session token models.

The authenticated user itself lives in shared.models; this is the raw claim
set we accept from the auth provider's session tokens.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    model_config = ConfigDict(extra="ignore")  # Ignore extra claims

    sub: str  # Auth provider user ID
    email: Optional[str] = None
    name: Optional[str] = None
    email_verified: Optional[bool] = None
    email_confirmed_at: Optional[str] = None
    role: Optional[str] = None
    aud: Optional[str] = None  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
