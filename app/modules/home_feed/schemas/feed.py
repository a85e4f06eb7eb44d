from typing import Optional
from decimal import Decimal

from app.core.responses import CamelModel
from app.modules.posts.schemas.post import PostOut


class SearchFilters(CamelModel):
    """Search query parameters beyond pagination"""
    query: str
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    location: Optional[str] = None


class TrendingPost(PostOut):
    """Feed item for the trending list, with the views counted in the window"""
    recent_views: int
