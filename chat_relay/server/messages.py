"""Message-related API routes and visibility rules."""
from typing import List, Optional

import pydantic
from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import schemas
from .clock import SystemClock, get_clock
from .database import get_db, storage_guard
from .errors import UnauthorizedSenderError, ValidationError, format_validation_errors
from .logging_config import configure_logging
from .models import Message, Participant
from ..shared.dto import BROADCAST_TARGET, STATUS
from ..shared.utils import clean_identity

router = APIRouter(prefix="/messages", tags=["messages"])
logger = configure_logging()

MAX_SQL_LIMIT = 2**63 - 1


def emit_status(db: Session, sender: str, text: str, clock: SystemClock) -> Message:
    """Stage a status notice in ``db``; the caller commits.

    No liveness check is made: departure notices are written for participants
    that are being evicted.
    """
    now = clock.now()
    message = Message(
        sender=sender,
        to=BROADCAST_TARGET,
        text=text,
        type=STATUS,
        time=clock.display(now),
        created_at=now,
    )
    db.add(message)
    return message


def visibility_filter(reader: Optional[str]):
    """SQL predicate for the messages ``reader`` may see.

    Status notices and broadcasts are visible to everyone, including
    anonymous readers. Addressed messages are visible to both ends.
    """
    clauses = [Message.type == STATUS, Message.to == BROADCAST_TARGET]
    if reader is not None:
        clauses.append(Message.to == reader)
        clauses.append(Message.sender == reader)
    return or_(*clauses)


def fetch_visible(db: Session, reader: Optional[str], limit: Optional[int] = None) -> List[Message]:
    query = db.query(Message).filter(visibility_filter(reader))
    if limit is None:
        return query.order_by(Message.id).all()
    # SQLite LIMIT is a signed 64-bit integer
    recent = query.order_by(Message.id.desc()).limit(min(limit, MAX_SQL_LIMIT)).all()
    recent.reverse()
    return recent


def _parse_fetch_query(limit: Optional[str]) -> schemas.FetchQuery:
    try:
        return schemas.FetchQuery.model_validate({"limit": limit})
    except pydantic.ValidationError as exc:
        raise ValidationError(format_validation_errors(exc.errors())) from exc


def _to_out(message: Message) -> schemas.MessageOut:
    return schemas.MessageOut(
        sender=message.sender,
        to=message.to,
        text=message.text,
        type=message.type,
        time=message.time,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def send_message(
    payload: schemas.MessageCreate,
    user: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    sender = clean_identity(user)
    if sender is None:
        logger.info("MESSAGE_REJECTED reason=missing_identity")
        raise UnauthorizedSenderError("Missing user header")

    with storage_guard(db, "send_message"):
        live = db.query(Participant.id).filter(Participant.name == sender).first()
        if live is None:
            logger.info("MESSAGE_REJECTED sender=%s reason=not_a_participant", sender)
            raise UnauthorizedSenderError(f"{sender} is not in the room")

        now = clock.now()
        message = Message(
            sender=sender,
            to=payload.to,
            text=payload.text,
            type=payload.type,
            time=clock.display(now),
            created_at=now,
        )
        db.add(message)
        db.commit()

    logger.info(
        "MESSAGE_SENT sender=%s to=%s type=%s message_id=%s",
        sender,
        payload.to,
        payload.type,
        message.id,
    )
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("", response_model=List[schemas.MessageOut])
def get_messages(
    limit: Optional[str] = None,
    user: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    query = _parse_fetch_query(limit)
    reader = clean_identity(user)
    with storage_guard(db, "get_messages"):
        messages = fetch_visible(db, reader, query.limit)
    return [_to_out(msg) for msg in messages]
