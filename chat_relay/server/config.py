"""Server configuration values."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'chat_relay.db'}")
LOG_FILE = Path(os.getenv("LOG_FILE", str(BASE_DIR / "server.log")))

JOIN_TEXT = os.getenv("JOIN_TEXT", "entra na sala...")
LEAVE_TEXT = os.getenv("LEAVE_TEXT", "sai da sala...")

# Seconds
STALE_AFTER_SECONDS = float(os.getenv("STALE_AFTER_SECONDS", "10"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", "15"))
REAPER_ENABLED = os.getenv("REAPER_ENABLED", "true").lower() in ("1", "true", "yes")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
