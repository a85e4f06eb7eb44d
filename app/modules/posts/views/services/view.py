import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import Settings
from app.modules.posts.repositories.post import PostRepository
from app.modules.posts.views.models.view import View
from app.modules.posts.views.repositories.view import ViewRepository

logger = logging.getLogger("app")


@dataclass
class ViewContext:
    """Request details stored alongside a view"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer_url: Optional[str] = None
    session_id: Optional[str] = None


def _clip(value: Optional[str], length: int) -> Optional[str]:
    return value[:length] if value else value


class ViewService:
    def __init__(self, db: Session, settings: Settings):
        self.settings = settings
        self.views = ViewRepository(db)
        self.posts = PostRepository(db)

    def record_view(
        self,
        post_id: int,
        user_id: Optional[int],
        context: ViewContext,
        now: Optional[datetime] = None,
    ) -> View:
        """
        Store a view and bump the post's view counter.

        The view is unique unless the same user, IP or session already viewed
        the post inside the trailing window; the flag is fixed at insert time.
        """
        now = now or utcnow()
        # Match on the values as stored
        ip_address = _clip(context.ip_address, 45)
        session_id = _clip(context.session_id, 100)

        since = now - timedelta(hours=self.settings.UNIQUE_VIEW_WINDOW_HOURS)
        is_unique = not self.views.seen_since(
            post_id,
            since,
            user_id=user_id,
            ip_address=ip_address,
            session_id=session_id,
        )

        view = self.views.create(
            post_id=post_id,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=_clip(context.user_agent, 500),
            referrer_url=_clip(context.referrer_url, 500),
            session_id=session_id,
            is_unique=is_unique,
            created_at=now,
        )
        self.posts.increment_view_count(post_id)
        logger.debug(f"Recorded {'unique' if is_unique else 'repeat'} view {view.id} of post {post_id}")
        return view
