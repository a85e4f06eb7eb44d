from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.db.repository import CrudHelper
from app.modules.messages.models.message import Message
from app.modules.posts.models.post import Post


def message_relations() -> Tuple:
    return (
        joinedload(Message.sender),
        joinedload(Message.recipient),
        joinedload(Message.post).selectinload(Post.images),
    )


def _between(user_id: int, other_user_id: int):
    return or_(
        and_(Message.sender_id == user_id, Message.recipient_id == other_user_id),
        and_(Message.sender_id == other_user_id, Message.recipient_id == user_id),
    )


class MessageRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(Message, db)

    def find_by_id(self, message_id: int, with_relations: bool = True) -> Optional[Message]:
        return self.crud.find_by_id(message_id, options=message_relations() if with_relations else ())

    def create(self, **data) -> Message:
        return self.crud.create(**data)

    def update(self, message: Message, **data) -> Message:
        return self.crud.update(message, **data)

    def find_thread(
        self,
        user_id: int,
        other_user_id: int,
        offset: int,
        limit: int,
        post_id: Optional[int] = None,
    ) -> List[Message]:
        """Non-deleted messages between two users, oldest first."""
        criteria = [_between(user_id, other_user_id), Message.is_deleted.is_(False)]
        if post_id is not None:
            criteria.append(Message.post_id == post_id)
        return self.crud.find_all(
            *criteria,
            order_by=(Message.created_at.asc(), Message.id.asc()),
            offset=offset,
            limit=limit,
            options=message_relations(),
        )

    def latest_per_counterpart(self, user_id: int, offset: int, limit: int) -> List[Message]:
        """The newest non-deleted message of each conversation the user takes part in."""
        counterpart = case((Message.sender_id == user_id, Message.recipient_id), else_=Message.sender_id)
        last_id = func.max(Message.id).label("last_id")
        latest = (
            self.db.query(last_id)
            .filter(
                or_(Message.sender_id == user_id, Message.recipient_id == user_id),
                Message.is_deleted.is_(False),
            )
            .group_by(counterpart)
            .order_by(last_id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        message_ids = [row.last_id for row in latest]
        if not message_ids:
            return []
        return self.crud.find_all(
            Message.id.in_(message_ids),
            order_by=(Message.id.desc(),),
            options=message_relations(),
        )

    def _unread_criteria(self, recipient_id: int) -> Tuple:
        return (
            Message.recipient_id == recipient_id,
            Message.is_read.is_(False),
            Message.is_deleted.is_(False),
        )

    def unread_counts_by_sender(self, recipient_id: int, sender_ids: Sequence[int]) -> Dict[int, int]:
        if not sender_ids:
            return {}
        rows = (
            self.db.query(Message.sender_id, func.count(Message.id))
            .filter(*self._unread_criteria(recipient_id), Message.sender_id.in_(sender_ids))
            .group_by(Message.sender_id)
            .all()
        )
        return {sender_id: count for sender_id, count in rows}

    def count_unread(self, recipient_id: int) -> int:
        return self.crud.count(*self._unread_criteria(recipient_id))

    def mark_read_from(self, recipient_id: int, sender_id: int, read_at: datetime) -> int:
        """Mark every unread message from ``sender_id`` to ``recipient_id`` as read."""
        updated = (
            self.db.query(Message)
            .filter(*self._unread_criteria(recipient_id), Message.sender_id == sender_id)
            .update({Message.is_read: True, Message.read_at: read_at}, synchronize_session=False)
        )
        self.db.commit()
        return updated
