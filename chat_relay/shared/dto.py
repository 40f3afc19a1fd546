"""Shared data transfer objects and wire constants."""
from dataclasses import dataclass
from typing import Any, Dict

BROADCAST_TARGET = "Todos"

MESSAGE = "message"
PRIVATE_MESSAGE = "private_message"
STATUS = "status"

IDENTITY_HEADER = "user"


@dataclass
class ParticipantDTO:
    name: str
    last_status: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticipantDTO":
        return cls(name=data["name"], last_status=int(data["lastStatus"]))


@dataclass
class MessageDTO:
    sender: str
    to: str
    text: str
    type: str
    time: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageDTO":
        return cls(
            sender=data["from"],
            to=data["to"],
            text=data["text"],
            type=data["type"],
            time=data["time"],
        )

    @property
    def is_private(self) -> bool:
        return self.type == PRIVATE_MESSAGE
