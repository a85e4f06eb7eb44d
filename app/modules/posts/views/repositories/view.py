from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.repository import CrudHelper
from app.modules.posts.models.post import Post
from app.modules.posts.repositories.post import visible_criteria
from app.modules.posts.views.models.view import View


class ViewRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(View, db)

    def seen_since(
        self,
        post_id: int,
        since: datetime,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> bool:
        """True if a view of the post by the same user, IP or session exists at or after ``since``."""
        matches = []
        if user_id is not None:
            matches.append(View.user_id == user_id)
        if ip_address:
            matches.append(View.ip_address == ip_address)
        if session_id:
            matches.append(View.session_id == session_id)
        if not matches:
            return False
        return self.crud.exists(View.post_id == post_id, View.created_at >= since, or_(*matches))

    def create(self, **data) -> View:
        return self.crud.create(**data)

    def count_for_post(self, post_id: int, unique_only: bool = False) -> int:
        criteria = [View.post_id == post_id]
        if unique_only:
            criteria.append(View.is_unique.is_(True))
        return self.crud.count(*criteria)

    def trending(self, since: datetime, now: datetime, limit: int) -> List[Tuple[int, int]]:
        """(post id, view count) for visible posts viewed since ``since``, busiest first."""
        view_count = func.count(View.id).label("view_count")
        return (
            self.db.query(View.post_id, view_count)
            .join(Post, Post.id == View.post_id)
            .filter(View.created_at >= since, *visible_criteria(now))
            .group_by(View.post_id)
            .order_by(view_count.desc(), View.post_id.desc())
            .limit(limit)
            .all()
        )
