from fastapi import APIRouter, Depends, Header
from typing import List, Optional

from dependencies import get_presence, unwrap
from logging_config import get_logger
from presence import PresenceRegistry
from schemas.chat import JoinRequest, ParticipantResponse, StatusResponse

logger = get_logger(__name__)

participants_router = APIRouter(tags=["participants"])


@participants_router.post("/participants", status_code=201, response_model=ParticipantResponse)
def join(join_request: JoinRequest, presence: PresenceRegistry = Depends(get_presence)):
    # POST /participants Body: { "name": "alice" }
    # Response 201 | 409 name taken | 422 empty name
    logger.info(f"Join request for name: {join_request.name}")
    return unwrap(presence.join(join_request.name))


@participants_router.get("/participants", response_model=List[ParticipantResponse])
def list_participants(presence: PresenceRegistry = Depends(get_presence)):
    return unwrap(presence.list())


@participants_router.post("/status", response_model=StatusResponse)
def heartbeat(user: Optional[str] = Header(None), presence: PresenceRegistry = Depends(get_presence)):
    # POST /status Header: User
    # Clients call this every few seconds; silence longer than the stale threshold evicts them
    unwrap(presence.heartbeat(user))
    return StatusResponse(message="Status updated")
