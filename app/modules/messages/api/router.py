from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.core.responses import ApiResponse, ok
from app.db.session import get_db
from app.deps import CurrentUser, authenticate, get_storage
from app.middleware.rate_limit import read_limiter, write_limiter
from app.modules.messages.schemas.message import (
    ConversationPreview,
    DeletedMessage,
    DirectMessage,
    MessageCreate,
    MessageEdit,
    UnreadCount,
)
from app.modules.messages.services.message import MessageService

router = APIRouter()


def get_message_service(db: Session = Depends(get_db), storage=Depends(get_storage)) -> MessageService:
    return MessageService(db, storage)


@router.post(
    "",
    response_model=ApiResponse[DirectMessage],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter)],
)
def send_message(
    data: MessageCreate,
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    return ok(message_service.send_message(current_user.user_id, data))


@router.get(
    "/conversations",
    response_model=ApiResponse[List[ConversationPreview]],
    dependencies=[Depends(read_limiter)],
)
def read_conversations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    """
    One entry per counterpart with the latest message and the unread count, most recent first.
    """
    return ok(message_service.get_conversations(current_user.user_id, offset, limit))


@router.get("/unread-count", response_model=ApiResponse[UnreadCount], dependencies=[Depends(read_limiter)])
def read_unread_count(
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    return ok(message_service.unread_count(current_user.user_id))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[List[DirectMessage]],
    dependencies=[Depends(read_limiter)],
)
def read_thread(
    user_id: int = Path(..., gt=0),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    post_id: Optional[int] = Query(None, alias="postId", gt=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    """
    Messages exchanged with another user, oldest first.
    """
    return ok(message_service.get_thread(current_user.user_id, user_id, offset, limit, post_id=post_id))


@router.post(
    "/conversations/{user_id}/read",
    response_model=ApiResponse[UnreadCount],
    dependencies=[Depends(write_limiter)],
)
def mark_conversation_read(
    user_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    return ok(message_service.mark_conversation_as_read(current_user.user_id, user_id))


@router.post("/{message_id}/read", response_model=ApiResponse[DirectMessage], dependencies=[Depends(write_limiter)])
def mark_message_read(
    message_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    return ok(message_service.mark_as_read(message_id, current_user.user_id))


@router.put("/{message_id}", response_model=ApiResponse[DirectMessage], dependencies=[Depends(write_limiter)])
def edit_message(
    data: MessageEdit,
    message_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    return ok(message_service.edit_message(message_id, current_user.user_id, data.content))


@router.delete("/{message_id}", response_model=ApiResponse[DeletedMessage], dependencies=[Depends(write_limiter)])
def delete_message(
    message_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    message_service: MessageService = Depends(get_message_service),
):
    message_service.delete_message(message_id, current_user.user_id)
    return ok(DeletedMessage(message_id=message_id))
