"""Row-store records."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ArticleRecord(BaseModel):
    """Stored article metadata. Full content lives in ArticleContentRecord."""
    id: Optional[int] = None
    title: str
    slug: str
    snippet: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ArticleContentRecord(BaseModel):
    """Full article body, kept apart from metadata to stay under row-size limits."""
    id: Optional[int] = None
    article_id: int
    content: str
