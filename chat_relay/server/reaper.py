"""Background sweep evicting participants that stopped sending heartbeats."""
import threading
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from .clock import SYSTEM_CLOCK, SystemClock
from .config import LEAVE_TEXT, STALE_AFTER_SECONDS, SWEEP_INTERVAL_SECONDS
from .database import SessionLocal, storage_guard
from .logging_config import configure_logging
from .messages import emit_status
from .models import Participant
from .participants import evict_participant, list_participants

logger = configure_logging()


class Reaper:
    """Runs :meth:`sweep` every ``interval`` seconds on a daemon thread.

    Each sweep works from a snapshot of the participant table and evicts every
    stale participant in its own transaction (departure notice + delete), so a
    failure for one participant never stops the others. A participant whose
    eviction failed is simply seen again on the next sweep.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: SystemClock = SYSTEM_CLOCK,
        interval: float = SWEEP_INTERVAL_SECONDS,
        stale_after: float = STALE_AFTER_SECONDS,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.interval = interval
        self.stale_after = stale_after
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="chat-relay-reaper", daemon=True)
        self._thread.start()
        logger.info("REAPER_STARTED interval=%s stale_after=%s", self.interval, self.stale_after)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        logger.info("REAPER_STOPPED")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.sweep()

    def sweep(self) -> List[str]:
        """Evict every stale participant and return the names evicted."""
        now = self.clock.now()
        cutoff = now - self.stale_after

        try:
            snapshot = self._snapshot()
        except Exception:
            logger.exception("REAPER_SNAPSHOT_FAILED")
            return []

        evicted: List[str] = []
        for participant in snapshot:
            if now - participant.last_status <= self.stale_after:
                continue
            try:
                if self._evict(participant, cutoff):
                    evicted.append(participant.name)
            except Exception:
                logger.exception("EVICTION_FAILED name=%s", participant.name)
        return evicted

    def _snapshot(self) -> List[Participant]:
        db = self.session_factory()
        try:
            with storage_guard(db, "reaper_snapshot"):
                return list_participants(db)
        finally:
            db.close()

    def _evict(self, participant: Participant, cutoff: float) -> bool:
        db = self.session_factory()
        try:
            with storage_guard(db, "evict"):
                emit_status(db, participant.name, LEAVE_TEXT, self.clock)
                if not evict_participant(db, participant, cutoff):
                    db.rollback()
                    logger.info("EVICTION_SKIPPED name=%s reason=refreshed", participant.name)
                    return False
                db.commit()
        finally:
            db.close()
        logger.info("PARTICIPANT_EVICTED name=%s", participant.name)
        return True
