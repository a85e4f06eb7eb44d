from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.responses import ApiResponse, PaginatedResponse, ok, paginated
from app.db.session import get_db
from app.deps import CurrentUser, PageParams, get_page_params, get_settings, get_storage, optional_auth
from app.middleware.rate_limit import read_limiter
from app.modules.home_feed.schemas.feed import SearchFilters, TrendingPost
from app.modules.home_feed.services.feed import FeedService
from app.modules.posts.schemas.post import PostOut

# Mounted under /posts ahead of the posts router so these paths win over /posts/{post_id}
router = APIRouter()


def get_feed_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    storage=Depends(get_storage),
) -> FeedService:
    return FeedService(db, settings, storage)


def _viewer_id(current_user: Optional[CurrentUser]) -> Optional[int]:
    return current_user.user_id if current_user else None


@router.get("/feed", response_model=PaginatedResponse[PostOut], dependencies=[Depends(read_limiter)])
def read_feed(
    *,
    page: PageParams = Depends(get_page_params),
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    user_id: Optional[int] = Query(None, alias="userId", gt=0),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    feed_service: FeedService = Depends(get_feed_service),
):
    """Published, unexpired posts, newest first"""
    items, total = feed_service.get_feed(
        _viewer_id(current_user), page.offset, page.limit, category_id=category_id, user_id=user_id
    )
    return paginated(items, total, page.page, page.limit)


@router.get("/search", response_model=PaginatedResponse[PostOut], dependencies=[Depends(read_limiter)])
def search_posts(
    *,
    query: str = Query(..., min_length=1, max_length=255),
    page: PageParams = Depends(get_page_params),
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", gt=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", gt=0),
    location: Optional[str] = Query(None, max_length=255),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    feed_service: FeedService = Depends(get_feed_service),
):
    """Case-insensitive match on title, description and brand"""
    filters = SearchFilters(
        query=query,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        location=location,
    )
    items, total = feed_service.search(_viewer_id(current_user), filters, page.offset, page.limit)
    return paginated(items, total, page.page, page.limit)


@router.get("/trending", response_model=ApiResponse[List[TrendingPost]], dependencies=[Depends(read_limiter)])
def read_trending(
    *,
    hours: int = Query(24, ge=1, le=24 * 30),
    limit: int = Query(10, ge=1, le=100),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    feed_service: FeedService = Depends(get_feed_service),
):
    """Most viewed posts over the last `hours`"""
    return ok(feed_service.trending(_viewer_id(current_user), hours, limit))


@router.get("/user/{user_id}", response_model=PaginatedResponse[PostOut], dependencies=[Depends(read_limiter)])
def read_user_posts(
    *,
    user_id: int = Path(..., gt=0),
    page: PageParams = Depends(get_page_params),
    current_user: Optional[CurrentUser] = Depends(optional_auth),
    feed_service: FeedService = Depends(get_feed_service),
):
    items, total = feed_service.user_posts(user_id, _viewer_id(current_user), page.offset, page.limit)
    return paginated(items, total, page.page, page.limit)
