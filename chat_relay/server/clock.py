"""Time source used for presence timestamps and message stamps."""
import time

from ..shared.utils import format_clock_time


class SystemClock:
    """Wall-clock time as epoch seconds."""

    def now(self) -> float:
        return time.time()

    def display(self, timestamp: float) -> str:
        return format_clock_time(timestamp)


SYSTEM_CLOCK = SystemClock()


def get_clock() -> SystemClock:
    """FastAPI dependency returning the process clock."""
    return SYSTEM_CLOCK
