import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.modules.messages.models.message import Message
from app.modules.messages.repositories.message import MessageRepository
from app.modules.messages.schemas.message import (
    ConversationPreview,
    DirectMessage,
    MessageCreate,
    MessageParty,
    MessagePost,
    UnreadCount,
)
from app.modules.posts.repositories.post import PostRepository
from app.modules.user_management.models.user import User
from app.modules.user_management.repositories.user import UserRepository

logger = logging.getLogger("app")


class MessageService:
    """Direct messages between two users, optionally about a post"""

    def __init__(self, db: Session, storage):
        self.storage = storage
        self.messages = MessageRepository(db)
        self.users = UserRepository(db)
        self.posts = PostRepository(db)

    def _party(self, user: Optional[User]) -> Optional[MessageParty]:
        if user is None:
            return None
        return MessageParty(
            id=user.id,
            full_name=user.full_name,
            profile_picture_url=self.storage.preview_url(user.profile_picture_url),
        )

    def _to_out(self, message: Message) -> DirectMessage:
        post = None
        if message.post is not None:
            first_image = message.post.images[0].image_url if message.post.images else None
            post = MessagePost(
                id=message.post.id,
                title=message.post.title,
                price=message.post.price,
                status=message.post.status,
                image_url=self.storage.preview_url(first_image),
            )
        out = DirectMessage.model_validate(message)
        return out.model_copy(
            update={"sender": self._party(message.sender), "recipient": self._party(message.recipient), "post": post}
        )

    def _get_user(self, user_id: int, message: str = "User not found") -> User:
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError(message)
        return user

    def _get_message(self, message_id: int) -> Message:
        message = self.messages.find_by_id(message_id)
        if not message:
            raise NotFoundError("Message not found")
        return message

    def send_message(self, sender_id: int, data: MessageCreate) -> DirectMessage:
        if data.recipient_id == sender_id:
            raise BadRequestError("Cannot send message to yourself")
        recipient = self._get_user(data.recipient_id, "Recipient not found")
        if not recipient.is_active:
            raise BadRequestError("Recipient account is deactivated")

        if data.post_id is not None and not self.posts.find_by_id(data.post_id, with_relations=False):
            raise NotFoundError("Post not found")

        if data.parent_message_id is not None:
            parent = self.messages.find_by_id(data.parent_message_id, with_relations=False)
            if not parent:
                raise NotFoundError("Parent message not found")
            if sender_id not in (parent.sender_id, parent.recipient_id):
                raise ForbiddenError("Cannot reply to this message")
            if {parent.sender_id, parent.recipient_id} != {sender_id, data.recipient_id}:
                raise BadRequestError("Parent message belongs to a different conversation")

        message = self.messages.create(
            sender_id=sender_id,
            recipient_id=data.recipient_id,
            content=data.content,
            message_type=data.message_type,
            post_id=data.post_id,
            attachment_url=data.attachment_url,
            parent_message_id=data.parent_message_id,
        )
        logger.info(f"User {sender_id} sent message {message.id} to user {data.recipient_id}")
        return self._to_out(self.messages.find_by_id(message.id))

    def get_conversations(self, user_id: int, offset: int, limit: int) -> List[ConversationPreview]:
        latest = self.messages.latest_per_counterpart(user_id, offset, limit)
        counterpart_ids = [m.recipient_id if m.sender_id == user_id else m.sender_id for m in latest]
        unread = self.messages.unread_counts_by_sender(user_id, counterpart_ids)

        previews = []
        for message, counterpart_id in zip(latest, counterpart_ids):
            counterpart = message.recipient if message.sender_id == user_id else message.sender
            previews.append(
                ConversationPreview(
                    user_id=counterpart_id,
                    full_name=counterpart.full_name,
                    profile_picture_url=self.storage.preview_url(counterpart.profile_picture_url),
                    last_message=message.content,
                    last_message_at=message.created_at,
                    last_message_sender_id=message.sender_id,
                    unread_count=unread.get(counterpart_id, 0),
                    post_id=message.post_id,
                    post_title=message.post.title if message.post is not None else None,
                )
            )
        return previews

    def get_thread(
        self,
        user_id: int,
        other_user_id: int,
        offset: int,
        limit: int,
        post_id: Optional[int] = None,
    ) -> List[DirectMessage]:
        self._get_user(other_user_id, "Other user not found")
        thread = self.messages.find_thread(user_id, other_user_id, offset, limit, post_id=post_id)
        return [self._to_out(message) for message in thread]

    def mark_as_read(self, message_id: int, user_id: int) -> DirectMessage:
        message = self._get_message(message_id)
        if message.recipient_id != user_id:
            raise ForbiddenError("Only the recipient can mark a message as read")
        if not message.is_read:
            self.messages.update(message, is_read=True, read_at=utcnow())
        return self._to_out(self.messages.find_by_id(message_id))

    def mark_conversation_as_read(self, user_id: int, other_user_id: int) -> UnreadCount:
        """Mark everything received from the other user as read; returns how many changed"""
        self._get_user(other_user_id)
        count = self.messages.mark_read_from(user_id, other_user_id, utcnow())
        logger.debug(f"User {user_id} marked {count} messages from user {other_user_id} as read")
        return UnreadCount(count=count)

    def edit_message(self, message_id: int, user_id: int, content: str) -> DirectMessage:
        message = self._get_message(message_id)
        if message.sender_id != user_id:
            raise ForbiddenError("You can only edit your own messages")
        if message.is_deleted:
            raise BadRequestError("Cannot edit deleted message")

        self.messages.update(message, content=content, is_edited=True, edited_at=utcnow())
        return self._to_out(self.messages.find_by_id(message_id))

    def delete_message(self, message_id: int, user_id: int) -> None:
        message = self._get_message(message_id)
        if user_id not in (message.sender_id, message.recipient_id):
            raise ForbiddenError("You can only delete messages from your conversations")
        if message.is_deleted:
            raise BadRequestError("Message is already deleted")

        self.messages.update(message, is_deleted=True, deleted_at=utcnow(), deleted_by=user_id)
        logger.info(f"User {user_id} deleted message {message_id}")

    def unread_count(self, user_id: int) -> UnreadCount:
        return UnreadCount(count=self.messages.count_unread(user_id))
