from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone
from ..config import settings

UTC = timezone.utc


class Blog(BaseModel):
    title: str
    content: str
    excerpt: str
    featured_image: str = settings.DEFAULT_FEATURED_IMAGE
    author: str
    tags: List[str] = []
    category: str = settings.DEFAULT_CATEGORY
    published: bool = False
    published_at: Optional[datetime] = None
    view_count: int = 0
    slug: str
    shareable_link: Optional[str] = None
    site_id: Optional[str] = None
    sites: List[str] = []
    is_global: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
