"""Console client for the chat relay."""
import sys
import threading
from typing import List, Optional

import requests

from . import api
from .storage import get_name, get_server_url, store_session
from ..shared.dto import BROADCAST_TARGET, STATUS, MessageDTO
from ..shared.utils import is_header_safe

HEARTBEAT_INTERVAL_SECONDS = 5


def format_message(msg: MessageDTO, me: Optional[str]) -> str:
    if msg.type == STATUS:
        return f"({msg.time}) {msg.sender} {msg.text}"
    if msg.is_private:
        target = "you" if msg.to == me else msg.to
        return f"({msg.time}) {msg.sender} privately to {target}: {msg.text}"
    return f"({msg.time}) {msg.sender} to {msg.to}: {msg.text}"


class ChatClient:
    """Interactive console client that keeps its participant alive while open."""

    def __init__(self, server_url: str):
        self.api = api.APIClient(server_url)
        self.server_url = server_url
        self.seen = 0
        self._stop = threading.Event()
        self._heartbeat_thread: Optional[threading.Thread] = None

    def join(self) -> bool:
        default = get_name() or ""
        prompt = f"Name [{default}]: " if default else "Name: "
        name = input(prompt).strip() or default
        if not is_header_safe(name):
            print("That name cannot be used: only Latin-1 characters can be sent in the identity header.")
            return False
        try:
            self.api.join(name)
        except requests.HTTPError as exc:
            code = exc.response.status_code if exc.response is not None else None
            if code == 409:
                print("That name is already in the room, pick another one.")
            elif code == 422:
                print(f"Invalid name: {exc.response.json()}")
            else:
                print(f"Join failed: {exc}")
            return False
        except requests.RequestException as exc:
            print(f"Join failed: {exc}")
            return False
        store_session(self.server_url, name)
        self.start_heartbeat()
        print(f"Welcome, {name}!")
        return True

    def start_heartbeat(self) -> None:
        self._stop.clear()
        self._heartbeat_thread = threading.Thread(target=self._heartbeat_loop, daemon=True)
        self._heartbeat_thread.start()

    def stop_heartbeat(self) -> None:
        self._stop.set()
        if self._heartbeat_thread:
            self._heartbeat_thread.join(timeout=1)
            self._heartbeat_thread = None

    def _heartbeat_loop(self) -> None:
        while not self._stop.wait(HEARTBEAT_INTERVAL_SECONDS):
            try:
                self.api.heartbeat()
            except requests.RequestException as exc:
                # 404 means the relay already evicted us; the user has to rejoin
                print(f"\nConnection to the room lost: {exc}")
                return

    def who(self) -> List[str]:
        try:
            participants = self.api.list_participants()
        except requests.RequestException as exc:
            print(f"Could not fetch participants: {exc}")
            return []
        names = [p.name for p in participants]
        for name in names:
            print(f"- {name}")
        return names

    def send(self, text: str, to: str = BROADCAST_TARGET) -> None:
        try:
            self.api.send_message(text, to=to)
        except requests.RequestException as exc:
            print(f"Failed to send message: {exc}")

    def refresh(self) -> List[MessageDTO]:
        try:
            messages = self.api.get_messages()
        except requests.RequestException as exc:
            print(f"Could not fetch messages: {exc}")
            return []
        # a reader's visible history only grows, so anything past ``seen`` is new
        new = messages[self.seen:]
        for msg in new:
            print(format_message(msg, self.api.name))
        self.seen = len(messages)
        return new


def main():
    print("Chat Relay Client")
    default_url = get_server_url() or "http://127.0.0.1:5000"
    server_url = input(f"Server URL [{default_url}]: ").strip() or default_url
    client = ChatClient(server_url)

    while not client.join():
        pass

    try:
        while True:
            client.refresh()
            print("\nMenu: [s]end, [p]rivate, [w]ho, [r]efresh, [q]uit")
            choice = input("> ").strip().lower()
            if choice == "q":
                break
            if choice == "s":
                client.send(input("Message: "))
            if choice == "p":
                to = input("To: ").strip()
                client.send(input("Message: "), to=to)
            if choice == "w":
                client.who()
    finally:
        client.stop_heartbeat()
    sys.exit(0)


if __name__ == "__main__":
    main()
