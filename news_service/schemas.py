from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NewsInfo(BaseModel):
    """Create / update payload"""
    title: str = ""
    content: str = ""
    category: str = ""
    published_at: Optional[datetime] = None


class NewsItem(NewsInfo):
    """Stored news item; published_at stays empty until confirmed"""
    id: str
