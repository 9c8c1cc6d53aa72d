from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional


logger = logging.getLogger("notes_client.storage")


class SessionStore:
    """
    Holds the current auth session (token + public user).

    When `path` is given and remember-me is on, the session is also written
    to that JSON file and reloaded by the next store opened on it.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.token: str = ""
        self.user: Dict[str, Any] = {}
        self.remember_me: bool = False
        self._load_persisted()

    def _load_persisted(self) -> None:
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, ValueError):
            # If store is corrupted/unreadable, fail closed (do not persist).
            logger.warning("session store unreadable: %s", self.path)
            return
        if not isinstance(data, dict):
            logger.warning("session store malformed: %s", self.path)
            return
        self.remember_me = bool(data.get("remember_me") or False)
        if self.remember_me:
            self.token = str(data.get("token") or "")
            self.user = dict(data.get("user") or {})

    def _write(self) -> None:
        if not self.path:
            return
        data = {"token": "", "user": {}, "remember_me": False}
        if self.remember_me:
            data = {"token": self.token, "user": self.user, "remember_me": True}
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f)
        except OSError as e:
            # The in-memory session still stands; only persistence is lost.
            logger.warning("session store not writable: %s (%s)", self.path, e)

    def set_session(self, *, token: str, user: Dict[str, Any], remember: bool = False) -> None:
        self.token = token or ""
        self.user = user or {}
        self.remember_me = bool(remember)
        self._write()

    def clear(self) -> None:
        self.token = ""
        self.user = {}
        self.remember_me = False
        self._write()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)
