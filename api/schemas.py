from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from engine.model import Intent


class MoveData(BaseModel):
    """Desired direction; each component in [-1, 1]."""
    dx: float = Field(ge=-1.0, le=1.0, allow_inf_nan=False)
    dy: float = Field(ge=-1.0, le=1.0, allow_inf_nan=False)
    boost: bool = False


class MoveMessage(BaseModel):
    type: Literal["move"]
    data: MoveData

    def to_intent(self, tank_id: str) -> Intent:
        return Intent("move", tank_id, dx=self.data.dx, dy=self.data.dy, boost=self.data.boost)


class ShootMessage(BaseModel):
    type: Literal["shoot"]

    def to_intent(self, tank_id: str) -> Intent:
        return Intent("shoot", tank_id)


class RepairMessage(BaseModel):
    type: Literal["repair"]

    def to_intent(self, tank_id: str) -> Intent:
        return Intent("repair", tank_id)


class PingMessage(BaseModel):
    type: Literal["ping"]


ClientMessage = Annotated[
    Union[MoveMessage, ShootMessage, RepairMessage, PingMessage],
    Field(discriminator="type"),
]
client_message = TypeAdapter(ClientMessage)


class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: list[dict]
