from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import User
from utils.errors import DuplicateIdentity
from utils.security import hash_password, verify_password


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    """
    Identity rows keyed by normalized email.

    Every mutation commits immediately; each operation touches one row, so
    per-row atomicity plus the unique index on `users.email` is all the
    consistency the auth flow needs.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        e = normalize_email(email)
        if not e:
            return None
        return self.db.query(User).filter(User.email == e).first()

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def create(self, *, email: str, name: str, password: str) -> User:
        e = normalize_email(email)
        if self.find_by_email(e):
            raise DuplicateIdentity(e)

        user = User(
            email=e,
            name=(name or "").strip(),
            password_hash=hash_password(password),
            is_verified=False,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent insert of the same email.
            self.db.rollback()
            raise DuplicateIdentity(e)
        self.db.refresh(user)
        return user

    def set_password(self, user: User, password: str) -> None:
        user.password_hash = hash_password(password)
        self._save(user)

    def verify_password(self, user: User, candidate: str) -> bool:
        return verify_password(candidate, user.password_hash)

    def set_otp_challenge(self, user: User, otp_hash: str, expiry: datetime) -> None:
        user.otp_hash = otp_hash
        user.otp_expiry = expiry
        self._save(user)

    def clear_otp_challenge(self, user: User) -> None:
        user.otp_hash = None
        user.otp_expiry = None
        self._save(user)

    def mark_verified(self, user: User) -> None:
        user.is_verified = True
        self._save(user)

    def complete_verification(self, user: User) -> None:
        """Consume the pending challenge and mark verified in one write."""
        user.otp_hash = None
        user.otp_expiry = None
        user.is_verified = True
        self._save(user)

    def _save(self, user: User) -> None:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
