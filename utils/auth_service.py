"""
Registration and session flow.

An identity moves NoIdentity -> Unverified (OTP challenge pending) ->
Verified. `register` and `resend_otp` issue challenges, `verify_otp`
consumes one, and `verify_otp`/`login` mint session tokens.

Every failure is raised as one of the `utils.errors.AuthError` variants;
turning them into HTTP responses is the router's job.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict

from models import User, utc_now
from utils.credential_store import CredentialStore, normalize_email
from utils.errors import (
    AlreadyExists,
    AlreadyVerified,
    DuplicateIdentity,
    Expired,
    InvalidCode,
    InvalidCredentials,
    MailDeliveryError,
    MailDeliveryFailed,
    NoChallengePending,
    NotFound,
    NotVerified,
    Unauthenticated,
    ValidationError,
)
from utils.mailer import Mailer
from utils.otp_service import generate_otp, hash_otp, otp_expiry, render_otp_email, verify_otp
from utils.security import TokenSigner


logger = logging.getLogger("notes.auth")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LEN = 6


def _iso(ts: datetime) -> str:
    return ts.isoformat() + "Z"


class AuthService:
    def __init__(
        self,
        store: CredentialStore,
        mailer: Mailer,
        signer: TokenSigner,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.mailer = mailer
        self.signer = signer
        self.clock = clock

    def register(self, *, name: str, email: str, password: str) -> Dict[str, Any]:
        name = (name or "").strip()
        e = normalize_email(email)
        if not name or not e or not password:
            raise ValidationError("Please fill all the fields")
        if len(e) > 320 or not _EMAIL_RE.match(e):
            raise ValidationError("Please enter a valid email address")
        if len(password.strip()) < MIN_PASSWORD_LEN:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LEN} characters long")

        try:
            user = self.store.create(email=e, name=name, password=password)
        except DuplicateIdentity:
            raise AlreadyExists()
        logger.info("registered user_id=%s email=%s", user.id, user.email)

        expires_at = self._issue_challenge(user)
        return {"email": user.email, "otpExpiresAt": _iso(expires_at)}

    def verify_otp(self, *, email: str, otp: str) -> Dict[str, Any]:
        if not normalize_email(email) or not (otp or "").strip():
            raise ValidationError("Please provide all the fields")

        user = self.store.find_by_email(email)
        if not user:
            raise NotFound()
        if not user.has_pending_otp:
            raise NoChallengePending()
        # Expiry first: a stale code is refused even when it matches.
        if user.otp_expiry < self.clock():
            raise Expired()
        if not verify_otp(otp, user.otp_hash):
            logger.info("otp mismatch user_id=%s", user.id)
            raise InvalidCode()

        self.store.complete_verification(user)
        logger.info("verified user_id=%s", user.id)
        return self._session(user)

    def resend_otp(self, *, email: str) -> Dict[str, Any]:
        if not normalize_email(email):
            raise ValidationError("Email is required")

        user = self.store.find_by_email(email)
        if not user:
            raise NotFound()
        if user.is_verified:
            raise AlreadyVerified()

        expires_at = self._issue_challenge(user)
        return {"email": user.email, "otpExpiresAt": _iso(expires_at)}

    def login(self, *, email: str, password: str) -> Dict[str, Any]:
        if not normalize_email(email) or not password:
            raise ValidationError("All fields are required")

        user = self.store.find_by_email(email)
        if not user:
            raise NotFound()
        if not self.store.verify_password(user, password):
            raise InvalidCredentials()
        if not user.is_verified:
            raise NotVerified()

        logger.info("login user_id=%s", user.id)
        return self._session(user)

    def current_user(self, token: str) -> User:
        payload = self.signer.verify(token)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise Unauthenticated()
        user = self.store.get(user_id)
        if not user or user.email != payload.get("email"):
            raise Unauthenticated()
        return user

    def _issue_challenge(self, user: User) -> datetime:
        code = generate_otp()
        expires_at = otp_expiry(self.clock())
        # Overwrites any earlier challenge; the old code is dead from here on.
        self.store.set_otp_challenge(user, hash_otp(code), expires_at)

        subject, html, text = render_otp_email(name=user.name, code=code)
        try:
            self.mailer.send(to_email=user.email, subject=subject, html=html, text=text)
        except MailDeliveryError:
            # The identity and its challenge stay; the caller retries via resend.
            logger.warning("otp email not delivered user_id=%s", user.id)
            raise MailDeliveryFailed()
        logger.info("otp sent user_id=%s expires_at=%s", user.id, _iso(expires_at))
        return expires_at

    def _session(self, user: User) -> Dict[str, Any]:
        token = self.signer.issue(subject_id=user.id, email=user.email)
        return {"token": token, "user": user.public()}
