from __future__ import annotations

import os
from typing import Any, Dict, Optional

import requests

from notes_client.storage import SessionStore


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _base_url() -> str:
    return os.getenv("BACKEND_URL", "http://localhost:5000").rstrip("/")


class ApiClient:
    """
    Consumer of the auth API.

    `http` is anything with requests-style `get`/`post` (a `requests.Session`
    by default). After `verify_otp` or `login` the returned token and user
    are kept in `store`; any 401 clears them.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        store: Optional[SessionStore] = None,
        http: Any = None,
        timeout: float = 20,
    ):
        self.base_url = (base_url or _base_url()).rstrip("/")
        self.store = store or SessionStore()
        self.http = http or requests.Session()
        self.timeout = timeout

    def _headers(self, auth: bool = False) -> Dict[str, str]:
        h = {"content-type": "application/json"}
        if auth and self.store.token:
            h["authorization"] = f"Bearer {self.store.token}"
        return h

    def _raise(self, resp) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 300:
            if resp.status_code == 401:
                self.store.clear()
            msg = None
            if isinstance(data, dict):
                msg = data.get("message") or data.get("detail")
            raise ApiError(msg or f"Request failed ({resp.status_code})", resp.status_code)
        return data if isinstance(data, dict) else {}

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.http.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._raise(r)

    def register(self, *, name: str, email: str, password: str) -> Dict[str, Any]:
        body = self._post("/api/auth/register", {"name": name, "email": email, "password": password})
        return body.get("data") or {}

    def verify_otp(self, *, email: str, otp: str, remember: bool = False) -> Dict[str, Any]:
        body = self._post("/api/auth/verify-otp", {"email": email, "otp": otp})
        data = body.get("data") or {}
        self.store.set_session(token=data.get("token", ""), user=data.get("user") or {}, remember=remember)
        return data

    def resend_otp(self, *, email: str) -> Dict[str, Any]:
        body = self._post("/api/auth/resend-otp", {"email": email})
        return body.get("data") or {}

    def login(self, *, email: str, password: str, remember: bool = False) -> Dict[str, Any]:
        body = self._post("/api/auth/login", {"email": email, "password": password})
        data = body.get("data") or {}
        self.store.set_session(token=data.get("token", ""), user=data.get("user") or {}, remember=remember)
        return data

    def me(self) -> Dict[str, Any]:
        if not self.store.token:
            raise ApiError("Not authenticated", 401)
        r = self.http.get(
            f"{self.base_url}/api/auth/me",
            headers=self._headers(auth=True),
            timeout=self.timeout,
        )
        body = self._raise(r)
        return (body.get("data") or {}).get("user") or {}

    def logout(self) -> None:
        self.store.clear()
