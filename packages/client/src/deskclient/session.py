# This project was developed with assistance from AI tools.
"""Signed-in session state shared by every request a client makes.

A ``SessionContext`` is created once and handed to ``ApiClient`` at
construction. Its lifecycle: ``sign_in()`` after login, ``clear()`` on
sign-out or an unrecoverable 401. An optional ``TokenStore`` persists it.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    def load(self) -> dict[str, Any] | None: ...

    def save(self, data: dict[str, Any]) -> None: ...

    def delete(self) -> None: ...


class MemoryTokenStore:
    """Keeps the session for the life of the process only."""

    def __init__(self) -> None:
        self._data: dict[str, Any] | None = None

    def load(self) -> dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None

    def save(self, data: dict[str, Any]) -> None:
        self._data = dict(data)

    def delete(self) -> None:
        self._data = None


class JsonFileTokenStore:
    """Persists the session as JSON so a CLI survives between invocations."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable token file %s", self.path)
            return None

    def save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # a file left by an older run may still carry wider permissions
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps(data, ensure_ascii=False))

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionContext:
    """Access/refresh tokens plus a snapshot of the signed-in user."""

    def __init__(self, store: TokenStore | None = None) -> None:
        self._store = store or MemoryTokenStore()
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self.user: dict[str, Any] | None = None
        self.remember_me = False
        saved = self._store.load()
        if saved:
            self.access_token = saved.get("access_token")
            self.refresh_token = saved.get("refresh_token")
            self.user = saved.get("user")
            self.remember_me = bool(saved.get("remember_me", False))

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def sign_in(
        self,
        access_token: str,
        refresh_token: str | None,
        user: dict[str, Any] | None = None,
        *,
        remember_me: bool = False,
    ) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.user = user
        self.remember_me = remember_me
        self._persist()

    def update_access_token(self, access_token: str) -> None:
        self.access_token = access_token
        self._persist()

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None
        self.remember_me = False
        self._store.delete()

    def _persist(self) -> None:
        self._store.save(
            {
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "user": self.user,
                "remember_me": self.remember_me,
            }
        )
