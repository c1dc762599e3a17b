from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
from ..models import ArticleCategory
from .user import UserSummary

class ArticleSummary(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    cover_image: Optional[str] = None
    category: ArticleCategory
    tags: List[str] = []
    target_ages: List[Dict] = []
    read_time_minutes: int
    is_featured: bool
    published_at: Optional[datetime] = None
    view_count: int
    author: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ArticleRead(ArticleSummary):
    content: str
    created_at: datetime
    updated_at: datetime
