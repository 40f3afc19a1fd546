"""Local client storage for the last used server and name."""
import json
from pathlib import Path
from typing import Any, Dict, Optional


STORAGE_FILE = Path.home() / ".chat_relay_client.json"


def load_state() -> Dict[str, Any]:
    if STORAGE_FILE.exists():
        with STORAGE_FILE.open("r", encoding="utf-8") as f:
            return json.load(f)
    return {}


def save_state(data: Dict[str, Any]) -> None:
    STORAGE_FILE.parent.mkdir(parents=True, exist_ok=True)
    with STORAGE_FILE.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def store_session(server_url: str, name: str) -> None:
    state = load_state()
    state["server_url"] = server_url
    state["name"] = name
    save_state(state)


def get_server_url() -> Optional[str]:
    return load_state().get("server_url")


def get_name() -> Optional[str]:
    return load_state().get("name")
