"""Python rendition of the embeddable widget's conversation logic.

The browser widget (``app/static/widget.js``) and ``ChatSession`` follow the
same rules:

- one continuation token is held per client and persisted as a plain string
  under ``TOKEN_KEY``;
- every send includes the held token, and a reply carrying a new
  ``response_id`` overwrites and persists it immediately;
- any failure shows the same generic message; the real error only goes to
  the log.

Token lifetime: the token is never cleared automatically. It lives as long as
the backing store does, so a returning client silently resumes its previous
conversation. ``reset()`` is the only way to start over.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

import httpx


logger = logging.getLogger(__name__)

TOKEN_KEY = "kf_prev_id"
FAILURE_MESSAGE = "Sorry, something went wrong. Please try again."


class TokenStore(Protocol):
    def load(self) -> Optional[str]: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Keeps the token in a small JSON file, like ``localStorage`` does in the browser."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable token file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Optional[str]:
        token = self._read().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        data = self._read()
        data[TOKEN_KEY] = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def clear(self) -> None:
        data = self._read()
        if data.pop(TOKEN_KEY, None) is not None:
            self.path.write_text(json.dumps(data), encoding="utf-8")


class RelayFailure(RuntimeError):
    pass


class ChatSession:
    """Talks to ``POST /chat`` one turn at a time, threading the continuation token."""

    def __init__(
        self,
        endpoint: str,
        store: Optional[TokenStore] = None,
        http: Optional[httpx.Client] = None,
        on_typing: Optional[Callable[[bool], None]] = None,
    ):
        self.endpoint = endpoint
        self.store = store or MemoryTokenStore()
        self._http = http
        self._on_typing = on_typing or (lambda _on: None)
        self.previous_response_id: Optional[str] = self.store.load()

    def reset(self) -> None:
        """Forget the held token and start a fresh conversation."""
        self.previous_response_id = None
        self.store.clear()

    def build_turn(self, text: str) -> dict:
        turn = {"message": text}
        if self.previous_response_id:
            turn["previous_response_id"] = self.previous_response_id
        return turn

    def _post(self, turn: dict) -> dict:
        if self._http is not None:
            response = self._http.post(self.endpoint, json=turn)
        else:
            with httpx.Client(timeout=None) as client:
                response = client.post(self.endpoint, json=turn)
        body = response.json()
        if not isinstance(body, dict) or not body.get("ok"):
            detail = body.get("error") if isinstance(body, dict) else body
            raise RelayFailure(detail or f"Request failed with HTTP {response.status_code}")
        return body

    def send(self, text: str) -> Optional[str]:
        """Send one user message and return the text to show, or ``None`` for blank input."""
        text = (text or "").strip()
        if not text:
            return None

        self._on_typing(True)
        try:
            body = self._post(self.build_turn(text))
            reply = body.get("assistant_message") or "[No text]"
            token = body.get("response_id")
            if token:
                self.previous_response_id = token
                self.store.save(token)
            return reply
        except (httpx.HTTPError, ValueError, OSError, RelayFailure) as exc:
            logger.error("Chat turn failed: %s", exc)
            return FAILURE_MESSAGE
        finally:
            self._on_typing(False)
