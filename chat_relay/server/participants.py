"""Participant registry: join, heartbeat, listing and eviction."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import schemas
from .clock import SystemClock, get_clock
from .config import JOIN_TEXT
from .database import get_db, storage_guard
from .errors import ConflictError, MissingIdentityError, NotFoundError
from .logging_config import configure_logging
from .messages import emit_status
from .models import Participant
from ..shared.utils import clean_identity, to_epoch_millis

router = APIRouter(prefix="/participants", tags=["participants"])
status_router = APIRouter(tags=["status"])
logger = configure_logging()


def find_participant(db: Session, name: str) -> Optional[Participant]:
    return db.query(Participant).filter(Participant.name == name).first()


def list_participants(db: Session) -> List[Participant]:
    return db.query(Participant).order_by(Participant.id).all()


def join_participant(db: Session, name: str, clock: SystemClock) -> Participant:
    """Create ``name`` and its join notice in a single commit."""
    with storage_guard(db, "join"):
        if find_participant(db, name) is not None:
            logger.info("PARTICIPANT_CONFLICT name=%s", name)
            raise ConflictError("Participant already exists")

        participant = Participant(name=name, last_status=clock.now())
        db.add(participant)
        emit_status(db, name, JOIN_TEXT, clock)
        try:
            db.commit()
        except IntegrityError as exc:
            # a concurrent join won the unique constraint on name
            db.rollback()
            logger.info("PARTICIPANT_CONFLICT name=%s reason=unique_constraint", name)
            raise ConflictError("Participant already exists") from exc

    logger.info("PARTICIPANT_JOINED name=%s", name)
    return participant


def refresh_participant(db: Session, name: str, clock: SystemClock) -> Participant:
    with storage_guard(db, "heartbeat"):
        participant = find_participant(db, name)
        if participant is None:
            logger.info("HEARTBEAT_UNKNOWN name=%s", name)
            raise NotFoundError(f"{name} is not in the room")
        # lastStatus never moves backwards
        participant.last_status = max(participant.last_status, clock.now())
        db.commit()
    logger.info("HEARTBEAT name=%s", name)
    return participant


def evict_participant(db: Session, participant: Participant, cutoff: float) -> bool:
    """Stage deletion of ``participant`` if it is still older than ``cutoff``.

    Returns False when a heartbeat refreshed the record after it was observed
    stale, or it is already gone. Messages are left untouched.
    """
    deleted = (
        db.query(Participant)
        .filter(Participant.id == participant.id, Participant.last_status < cutoff)
        .delete(synchronize_session=False)
    )
    return deleted > 0


@router.post("", status_code=status.HTTP_201_CREATED)
def join(
    payload: schemas.ParticipantCreate,
    db: Session = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    join_participant(db, payload.name, clock)
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("", response_model=List[schemas.ParticipantOut])
def get_participants(db: Session = Depends(get_db)):
    with storage_guard(db, "list_participants"):
        participants = list_participants(db)
    return [
        schemas.ParticipantOut(name=p.name, last_status=to_epoch_millis(p.last_status))
        for p in participants
    ]


@status_router.post("/status")
def heartbeat(
    user: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    clock: SystemClock = Depends(get_clock),
):
    name = clean_identity(user)
    if name is None:
        logger.info("HEARTBEAT_UNKNOWN reason=missing_identity")
        raise MissingIdentityError("Missing user header")
    refresh_participant(db, name, clock)
    return Response(status_code=status.HTTP_200_OK)
