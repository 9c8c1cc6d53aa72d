from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from database import Base


def utc_now() -> datetime:
    # Naive UTC; SQLite drops tzinfo anyway.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Normalized (trimmed, lowercase). The unique index is the real guard
    # against two concurrent registrations for the same address.
    email = Column(String(320), unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    # Store password hash (bcrypt). Never store plaintext.
    password_hash = Column(String, nullable=False)

    # Outstanding OTP challenge; both NULL when nothing is pending.
    otp_hash = Column(String, nullable=True)
    otp_expiry = Column(DateTime, nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    @property
    def has_pending_otp(self) -> bool:
        return bool(self.otp_hash) and self.otp_expiry is not None

    def public(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}
