from fastapi import HTTPException, Request

from messages import MessageAuthority
from presence import PresenceRegistry
from results import Result


# Components are built once in create_app and stored on app.state
def get_presence(request: Request) -> PresenceRegistry:
    return request.app.state.presence


def get_authority(request: Request) -> MessageAuthority:
    return request.app.state.authority


def unwrap(result: Result):
    """Return the result value, or raise the HTTP error its outcome maps to."""
    if not result.ok:
        raise HTTPException(status_code=result.status_code, detail=result.detail)
    return result.value
