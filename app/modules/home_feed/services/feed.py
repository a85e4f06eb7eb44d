from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.errors import ValidationFailedError
from app.modules.home_feed.schemas.feed import SearchFilters, TrendingPost
from app.modules.posts.likes.repositories.like import LikeRepository
from app.modules.posts.models.post import Post
from app.modules.posts.repositories.post import PostRepository
from app.modules.posts.schemas.post import PostOut
from app.modules.posts.services.post import to_post_out
from app.modules.posts.views.repositories.view import ViewRepository


class FeedService:
    """Read-side listings of published posts: feed, search, trending and per-user lists"""

    def __init__(self, db: Session, settings: Settings, storage):
        self.settings = settings
        self.storage = storage
        self.posts = PostRepository(db)
        self.likes = LikeRepository(db)
        self.views = ViewRepository(db)

    def _present(self, posts: List[Post], viewer_id: Optional[int]) -> List[PostOut]:
        """Transform database results to response objects, marking the viewer's likes"""
        if viewer_id is None:
            return [to_post_out(post, self.storage) for post in posts]
        liked = self.likes.liked_post_ids(viewer_id, [post.id for post in posts])
        return [to_post_out(post, self.storage, is_liked=post.id in liked) for post in posts]

    def get_feed(
        self,
        viewer_id: Optional[int],
        offset: int,
        limit: int,
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[PostOut], int]:
        posts, total = self.posts.find_published(
            utcnow(), offset, limit, category_id=category_id, user_id=user_id
        )
        return self._present(posts, viewer_id), total

    def search(
        self, viewer_id: Optional[int], filters: SearchFilters, offset: int, limit: int
    ) -> Tuple[List[PostOut], int]:
        if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
            raise ValidationFailedError(
                details=[{"field": "minPrice", "message": "minPrice must not exceed maxPrice"}]
            )
        posts, total = self.posts.search(
            utcnow(),
            filters.query.strip(),
            offset,
            limit,
            category_id=filters.category_id,
            min_price=filters.min_price,
            max_price=filters.max_price,
            location=filters.location,
        )
        return self._present(posts, viewer_id), total

    def trending(self, viewer_id: Optional[int], hours: int, limit: int) -> List[TrendingPost]:
        now = utcnow()
        ranked = self.views.trending(now - timedelta(hours=hours), now, limit)
        posts = {post.id: post for post in self.posts.find_by_ids([post_id for post_id, _ in ranked])}
        liked = self.likes.liked_post_ids(viewer_id, list(posts)) if viewer_id is not None else set()

        return [
            to_post_out(
                posts[post_id],
                self.storage,
                is_liked=(post_id in liked) if viewer_id is not None else None,
                out_cls=TrendingPost,
                recent_views=view_count,
            )
            for post_id, view_count in ranked
            if post_id in posts
        ]

    def user_posts(
        self, user_id: int, viewer_id: Optional[int], offset: int, limit: int
    ) -> Tuple[List[PostOut], int]:
        """All of a user's posts for the user themselves; only visible ones for everybody else"""
        posts, total = self.posts.find_by_user(
            user_id, offset, limit, published_only=(viewer_id != user_id), now=utcnow()
        )
        return self._present(posts, viewer_id), total
