"""Database models for the chat relay."""
from sqlalchemy import Column, Float, Integer, String, Text

from .database import Base


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    # epoch seconds of the last join or heartbeat
    last_status = Column(Float, nullable=False)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender = Column("from", String, index=True, nullable=False)
    to = Column(String, index=True, nullable=False)
    text = Column(Text, nullable=False)
    type = Column(String, nullable=False)
    time = Column(String(8), nullable=False)
    created_at = Column(Float, nullable=False)
