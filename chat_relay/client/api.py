"""HTTP API client for interacting with the chat relay server."""
from typing import Any, Dict, List, Optional

import requests

from ..shared.dto import BROADCAST_TARGET, IDENTITY_HEADER, MESSAGE, PRIVATE_MESSAGE, MessageDTO, ParticipantDTO


class APIClient:
    def __init__(self, base_url: str, name: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.name = name

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.name:
            headers[IDENTITY_HEADER] = self.name
        return headers

    def join(self, name: str) -> None:
        resp = requests.post(f"{self.base_url}/participants", json={"name": name}, timeout=10)
        resp.raise_for_status()
        self.name = name

    def list_participants(self) -> List[ParticipantDTO]:
        resp = requests.get(f"{self.base_url}/participants", timeout=10)
        resp.raise_for_status()
        return [ParticipantDTO.from_dict(p) for p in resp.json()]

    def send_message(self, text: str, to: str = BROADCAST_TARGET) -> None:
        payload = {"to": to, "text": text, "type": MESSAGE if to == BROADCAST_TARGET else PRIVATE_MESSAGE}
        resp = requests.post(f"{self.base_url}/messages", json=payload, headers=self._headers(), timeout=10)
        resp.raise_for_status()

    def get_messages(self, limit: Optional[int] = None) -> List[MessageDTO]:
        params: Dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        resp = requests.get(f"{self.base_url}/messages", params=params, headers=self._headers(), timeout=10)
        resp.raise_for_status()
        return [MessageDTO.from_dict(m) for m in resp.json()]

    def heartbeat(self) -> None:
        resp = requests.post(f"{self.base_url}/status", headers=self._headers(), timeout=10)
        resp.raise_for_status()
