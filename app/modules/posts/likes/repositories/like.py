from typing import List, Sequence, Set, Tuple

from sqlalchemy.orm import Session

from app.db.repository import CrudHelper
from app.modules.posts.likes.models.like import Like
from app.modules.user_management.models.user import User


class LikeRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(Like, db)

    def exists(self, post_id: int, user_id: int) -> bool:
        return self.crud.exists(Like.post_id == post_id, Like.user_id == user_id)

    def create(self, post_id: int, user_id: int) -> Like:
        return self.crud.create(post_id=post_id, user_id=user_id)

    def delete_for(self, post_id: int, user_id: int) -> int:
        """Delete the (post, user) like row; returns how many rows went away."""
        deleted = (
            self.db.query(Like)
            .filter(Like.post_id == post_id, Like.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def count_for_post(self, post_id: int) -> int:
        return self.crud.count(Like.post_id == post_id)

    def liked_post_ids(self, user_id: int, post_ids: Sequence[int]) -> Set[int]:
        if not post_ids:
            return set()
        rows = self.db.query(Like.post_id).filter(Like.user_id == user_id, Like.post_id.in_(post_ids)).all()
        return {post_id for (post_id,) in rows}

    def find_likers(self, post_id: int, offset: int, limit: int) -> List[Tuple[Like, User]]:
        return (
            self.db.query(Like, User)
            .join(User, User.id == Like.user_id)
            .filter(Like.post_id == post_id)
            .order_by(Like.created_at.desc(), Like.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
