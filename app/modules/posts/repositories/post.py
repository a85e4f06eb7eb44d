from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.db.repository import CrudHelper
from app.modules.payments.models.payment import Payment
from app.modules.posts.models.post import Post, PostImage, PostStatus


def post_relations() -> Tuple:
    """Loader options for the relations every post response needs"""
    return (
        joinedload(Post.user),
        joinedload(Post.category),
        selectinload(Post.images),
    )


def visible_criteria(now: datetime) -> Tuple:
    """Published posts that have not reached their expiry time."""
    return (
        Post.status == PostStatus.PUBLISHED,
        or_(Post.expires_at.is_(None), Post.expires_at > now),
    )


class PostRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(Post, db)
        self.images = CrudHelper(PostImage, db)

    def find_by_id(self, post_id: int, with_relations: bool = True) -> Optional[Post]:
        return self.crud.find_by_id(post_id, options=post_relations() if with_relations else ())

    def find_by_ids(self, post_ids: Sequence[int]) -> List[Post]:
        if not post_ids:
            return []
        return self.crud.find_all(Post.id.in_(post_ids), options=post_relations())

    def create_with_images(self, images: Iterable[dict], **data) -> Post:
        with self.crud.transaction():
            post = self.crud.create(**data)
            for image in images:
                self.images.create(post_id=post.id, **image)
        return self.find_by_id(post.id)

    def update(self, post: Post, **data) -> Post:
        return self.crud.update(post, **data)

    def replace_images(self, post: Post, images: Iterable[dict], **data) -> Post:
        with self.crud.transaction():
            self.db.query(PostImage).filter(PostImage.post_id == post.id).delete(synchronize_session=False)
            for image in images:
                self.images.create(post_id=post.id, **image)
            self.crud.update(post, **data)
        self.db.expire(post)
        return self.find_by_id(post.id)

    def delete(self, post: Post) -> None:
        self.crud.delete(post)

    def has_payments(self, post_id: int) -> bool:
        return self.db.query(self.db.query(Payment).filter(Payment.post_id == post_id).exists()).scalar()

    def _page(self, criteria: Sequence, order_by: Sequence, offset: int, limit: int) -> Tuple[List[Post], int]:
        total = self.crud.count(*criteria)
        items = self.crud.find_all(*criteria, order_by=order_by, offset=offset, limit=limit, options=post_relations())
        return items, total

    def find_published(
        self,
        now: datetime,
        offset: int,
        limit: int,
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[Post], int]:
        criteria = list(visible_criteria(now))
        if category_id is not None:
            criteria.append(Post.category_id == category_id)
        if user_id is not None:
            criteria.append(Post.user_id == user_id)
        return self._page(criteria, (Post.published_at.desc(), Post.id.desc()), offset, limit)

    def search(
        self,
        now: datetime,
        query: str,
        offset: int,
        limit: int,
        category_id: Optional[int] = None,
        min_price=None,
        max_price=None,
        location: Optional[str] = None,
    ) -> Tuple[List[Post], int]:
        pattern = f"%{query}%"
        criteria = list(visible_criteria(now))
        criteria.append(or_(Post.title.ilike(pattern), Post.description.ilike(pattern), Post.brand.ilike(pattern)))
        if category_id is not None:
            criteria.append(Post.category_id == category_id)
        if min_price is not None:
            criteria.append(Post.price >= min_price)
        if max_price is not None:
            criteria.append(Post.price <= max_price)
        if location:
            criteria.append(Post.location.ilike(f"%{location}%"))
        return self._page(criteria, (Post.published_at.desc(), Post.id.desc()), offset, limit)

    def find_by_user(
        self, user_id: int, offset: int, limit: int, published_only: bool, now: datetime
    ) -> Tuple[List[Post], int]:
        criteria = [Post.user_id == user_id]
        if published_only:
            criteria.extend(visible_criteria(now))
        return self._page(criteria, (Post.created_at.desc(), Post.id.desc()), offset, limit)

    def find_due_scheduled(self, now: datetime) -> List[Post]:
        return self.crud.find_all(
            Post.status == PostStatus.SCHEDULED,
            Post.scheduled_publish_time <= now,
        )

    def find_lapsed(self, now: datetime) -> List[Post]:
        return self.crud.find_all(
            Post.status == PostStatus.PUBLISHED,
            Post.expires_at.is_not(None),
            Post.expires_at <= now,
        )

    def increment_view_count(self, post_id: int) -> None:
        self.db.query(Post).filter(Post.id == post_id).update(
            {Post.view_count: Post.view_count + 1}, synchronize_session=False
        )
        self.db.commit()

    def set_like_count(self, post_id: int, like_count: int) -> None:
        self.db.query(Post).filter(Post.id == post_id).update(
            {Post.like_count: like_count}, synchronize_session=False
        )
        self.db.commit()
