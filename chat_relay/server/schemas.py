"""Pydantic schemas for request and response bodies."""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParticipantCreate(BaseModel):
    name: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class ParticipantOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    last_status: int = Field(..., alias="lastStatus", description="Epoch milliseconds")


class MessageCreate(BaseModel):
    to: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    # "status" is reserved for join/leave notices written by the server
    type: Literal["message", "private_message"]


class MessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    to: str
    text: str
    type: str
    time: str


class FetchQuery(BaseModel):
    limit: Optional[int] = Field(default=None, gt=0)
