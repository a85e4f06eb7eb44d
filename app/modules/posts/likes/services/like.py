import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.modules.posts.likes.repositories.like import LikeRepository
from app.modules.posts.repositories.post import PostRepository
from app.modules.posts.schemas.post import LikerOut, LikeToggleOut
from app.modules.posts.services.post import get_visible_post

logger = logging.getLogger("app")


class LikeService:
    def __init__(self, db: Session, storage):
        self.db = db
        self.storage = storage
        self.likes = LikeRepository(db)
        self.posts = PostRepository(db)

    def toggle_like(self, post_id: int, user_id: int) -> LikeToggleOut:
        """
        Flip the caller's like on a post.

        The (post, user) unique constraint decides races: a concurrent insert
        that loses counts as "already liked". The stored counter is then
        recomputed from the like rows so it always matches them.
        """
        get_visible_post(self.posts, post_id, user_id)

        if self.likes.delete_for(post_id, user_id):
            liked = False
        else:
            try:
                self.likes.create(post_id, user_id)
            except IntegrityError:
                self.db.rollback()
                logger.info(f"Concurrent like of post {post_id} by user {user_id}")
            liked = True

        like_count = self.likes.count_for_post(post_id)
        self.posts.set_like_count(post_id, like_count)
        return LikeToggleOut(liked=liked, like_count=like_count)

    def list_likers(self, post_id: int, viewer_id: Optional[int], offset: int, limit: int) -> Tuple[List[LikerOut], int]:
        get_visible_post(self.posts, post_id, viewer_id)
        likers = [
            LikerOut(
                user_id=user.id,
                full_name=user.full_name,
                profile_picture_url=self.storage.preview_url(user.profile_picture_url),
                liked_at=like.created_at,
            )
            for like, user in self.likes.find_likers(post_id, offset, limit)
        ]
        return likers, self.likes.count_for_post(post_id)
