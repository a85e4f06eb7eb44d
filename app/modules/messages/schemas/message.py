from typing import Optional
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from app.core.responses import CamelModel
from app.modules.messages.models.message import MessageType
from app.modules.posts.models.post import PostStatus


class MessageCreate(CamelModel):
    recipient_id: int = Field(gt=0)
    content: str = Field(min_length=1, max_length=5000)
    message_type: MessageType = MessageType.TEXT
    post_id: Optional[int] = Field(default=None, gt=0)
    attachment_url: Optional[str] = Field(default=None, max_length=500)
    parent_message_id: Optional[int] = Field(default=None, gt=0)


class MessageEdit(CamelModel):
    content: str = Field(min_length=1, max_length=5000)


class MessageParty(CamelModel):
    id: int
    full_name: str
    profile_picture_url: Optional[str] = None


class MessagePost(CamelModel):
    id: int
    title: str
    price: Decimal
    status: PostStatus
    image_url: Optional[str] = None


class DirectMessage(CamelModel):
    id: int
    sender_id: int
    recipient_id: int
    post_id: Optional[int] = None
    content: str
    message_type: MessageType
    attachment_url: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    is_deleted: bool
    deleted_by: Optional[int] = None
    is_edited: bool
    edited_at: Optional[datetime] = None
    parent_message_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    sender: Optional[MessageParty] = None
    recipient: Optional[MessageParty] = None
    post: Optional[MessagePost] = None


class ConversationPreview(CamelModel):
    user_id: int
    full_name: str
    profile_picture_url: Optional[str] = None
    last_message: str
    last_message_at: datetime
    last_message_sender_id: int
    unread_count: int
    post_id: Optional[int] = None
    post_title: Optional[str] = None


class UnreadCount(CamelModel):
    count: int


class DeletedMessage(CamelModel):
    message_id: int
