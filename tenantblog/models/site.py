from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone

UTC = timezone.utc


class Site(BaseModel):
    site_id: str
    name: str
    domain: str
    description: Optional[str] = None
    api_key: str
    is_active: bool = True
    owner: str
    allowed_origins: List[str] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
