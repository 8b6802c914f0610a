from fastapi import APIRouter, Depends, Header, Query
from typing import List, Optional

from dependencies import get_authority, unwrap
from logging_config import get_logger
from messages import MessageAuthority
from schemas.chat import MessageRequest, MessageResponse, StatusResponse

logger = get_logger(__name__)

messages_router = APIRouter(prefix="/messages", tags=["messages"])


@messages_router.post("", status_code=201, response_model=MessageResponse)
def post_message(
    message: MessageRequest,
    user: Optional[str] = Header(None),
    authority: MessageAuthority = Depends(get_authority),
):
    # POST /messages Header: User  Body: { "to": "Todos", "text": "hi", "type": "message" }
    logger.debug(f"Post message request from {user} to {message.to}")
    return unwrap(authority.post_message(user, message.to, message.text, message.type))


@messages_router.get("", response_model=List[MessageResponse])
def list_messages(
    user: Optional[str] = Header(None),
    limit: Optional[str] = Query(None, description="Return only the last N visible messages"),
    authority: MessageAuthority = Depends(get_authority),
):
    # limit stays a string here so a bad value is rejected with the same detail as other validation errors
    return unwrap(authority.list_messages(user, limit))


@messages_router.put("/{message_id}", response_model=MessageResponse)
def edit_message(
    message_id: str,
    message: MessageRequest,
    user: Optional[str] = Header(None),
    authority: MessageAuthority = Depends(get_authority),
):
    logger.debug(f"Edit request for message {message_id} from {user}")
    return unwrap(authority.edit_message(message_id, user, message.to, message.text, message.type))


@messages_router.delete("/{message_id}", response_model=StatusResponse)
def delete_message(
    message_id: str,
    user: Optional[str] = Header(None),
    authority: MessageAuthority = Depends(get_authority),
):
    logger.debug(f"Delete request for message {message_id} from {user}")
    unwrap(authority.delete_message(message_id, user))
    return StatusResponse(message="Message deleted")
