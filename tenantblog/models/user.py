from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime, timezone

UTC = timezone.utc


class User(BaseModel):
    name: str
    email: EmailStr
    password: str
    is_admin: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Identity(BaseModel):
    """The authenticated caller, passed explicitly into every service call."""

    id: str
    name: str
    email: Optional[str] = None
    is_admin: bool = False
