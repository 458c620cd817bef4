from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from typing import Annotated, Any, Literal, Optional, Union

from constants import WILDCARD


class Preferences(BaseModel):
    """Desired partner filter. Each axis is either the wildcard or a specific value."""

    model_config = ConfigDict(frozen=True)

    language: str = WILDCARD
    country: str = WILDCARD
    gender: str = WILDCARD

    @field_validator("language", "country", "gender", mode="before")
    @classmethod
    def default_to_wildcard(cls, value):
        if value is None or value == "":
            return WILDCARD
        return value


# Client -> server

class JoinQueueMessage(BaseModel):
    type: Literal["joinQueue"]
    prefs: Optional[Preferences] = None

class LeaveQueueMessage(BaseModel):
    type: Literal["leaveQueue"]

class NextMessage(BaseModel):
    type: Literal["next"]
    prefs: Optional[Preferences] = None

class SignalMessage(BaseModel):
    type: Literal["signal"]
    payload: Any = None

class ChatMessage(BaseModel):
    type: Literal["chat"]
    text: str


ClientMessage = Annotated[
    Union[JoinQueueMessage, LeaveQueueMessage, NextMessage, SignalMessage, ChatMessage],
    Field(discriminator="type"),
]

client_message_adapter = TypeAdapter(ClientMessage)


# Server -> client

class ServerMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

class MatchFoundMessage(ServerMessage):
    type: Literal["matchFound"] = "matchFound"
    room_id: str = Field(alias="roomId")
    partner_id: str = Field(alias="partnerId")

class PartnerLeftMessage(ServerMessage):
    type: Literal["partnerLeft"] = "partnerLeft"

class OnlineCountMessage(ServerMessage):
    type: Literal["onlineCount"] = "onlineCount"
    count: int

class RoomsCountMessage(ServerMessage):
    type: Literal["roomsCount"] = "roomsCount"
    rooms_count: int = Field(alias="roomsCount")

class SignalRelayMessage(ServerMessage):
    type: Literal["signal"] = "signal"
    from_id: str = Field(alias="from")
    payload: Any = None

class ChatRelayMessage(ServerMessage):
    type: Literal["chat"] = "chat"
    from_id: str = Field(alias="from")
    text: str
