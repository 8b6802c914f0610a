from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# Request fields are optional so the core reports missing values itself
class JoinRequest(BaseModel):
    name: Optional[str] = None

class MessageRequest(BaseModel):
    to: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = None

class ParticipantResponse(BaseModel):
    name: str
    lastStatus: int

class MessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    text: str
    type: str
    time: str
    id: str

class StatusResponse(BaseModel):
    message: str
