from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from utils.errors import Unauthenticated


BCRYPT_ROUNDS = 10
TOKEN_TTL = timedelta(hours=12)


def _bcrypt_input(secret: str) -> bytes:
    # Multi-byte safe truncation for bcrypt (max 72 bytes)
    safe = (secret or "").strip().encode("utf-8")[:72].decode("utf-8", errors="ignore")
    return safe.encode("utf-8")


def hash_secret(secret: str) -> str:
    """Slow salted one-way hash, shared by passwords and OTP codes."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_bcrypt_input(secret), salt).decode("utf-8")


def check_secret(candidate: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_bcrypt_input(candidate), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash.
        return False


def hash_password(password: str) -> str:
    return hash_secret(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    return check_secret(password, password_hash)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TokenSigner:
    """Issues and checks the 12-hour session tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = TOKEN_TTL
    clock: Callable[[], datetime] = _now

    def issue(self, *, subject_id: int, email: str) -> str:
        now = self.clock()
        payload = {
            "sub": str(subject_id),
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        # Tampering and expiry look the same to the caller.
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            raise Unauthenticated()
        if not payload.get("sub") or not payload.get("email"):
            raise Unauthenticated()
        return payload
