"""Shared utility functions."""
from datetime import datetime
from typing import Optional


def format_clock_time(timestamp: float) -> str:
    """Format epoch seconds as local ``HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")


def to_epoch_millis(timestamp: float) -> int:
    return int(timestamp * 1000)


def clean_identity(value: Optional[str]) -> Optional[str]:
    """Return the identity header value, or None when it is absent or blank."""
    if value is None or not value.strip():
        return None
    return value


def is_header_safe(value: str) -> bool:
    """HTTP header values travel as Latin-1; names outside it cannot be sent as identity."""
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True
