"""
OTP challenges for email verification.

A challenge is a 6-digit code that only ever leaves the server inside the
verification email. At rest it exists as a bcrypt hash plus an absolute
expiry, stored on the user row (see `utils/credential_store.py`).
"""

from __future__ import annotations

import html as html_lib
import random
from datetime import datetime, timedelta
from typing import Optional, Tuple

from utils.security import check_secret, hash_secret


OTP_TTL = timedelta(minutes=10)
OTP_SUBJECT = "Your OTP for Account Verification - Notes App"


def generate_otp() -> str:
    return f"{random.randint(100000, 999999)}"


def hash_otp(code: str) -> str:
    return hash_secret(code)


def verify_otp(candidate: str, otp_hash: Optional[str]) -> bool:
    candidate = (candidate or "").strip()
    if not candidate:
        return False
    return check_secret(candidate, otp_hash)


def otp_expiry(now: datetime) -> datetime:
    # Hard expiry; there is no sliding window.
    return now + OTP_TTL


def render_otp_email(*, name: str, code: str) -> Tuple[str, str, str]:
    """Returns (subject, html, text) for the verification message."""
    minutes = int(OTP_TTL.total_seconds() // 60)
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">
      <h2 style="color:#333">Account Verification</h2>
      <p>Hello {html_lib.escape(name)},</p>
      <p>Your OTP for account verification is:</p>
      <div style="background-color:#f4f4f4;padding:20px;text-align:center;font-size:24px;font-weight:700;letter-spacing:2px;margin:20px 0">{code}</div>
      <p style="color:#666">This OTP is valid for {minutes} minutes only.</p>
      <p>If you didn't request this, please ignore this email.</p>
      <hr style="margin:20px 0">
      <p style="color:#999;font-size:12px">This is an automated email. Please do not reply.</p>
    </div>
    """
    text = (
        f"Hello {name},\n\n"
        f"Your OTP for account verification is: {code}\n\n"
        f"This OTP is valid for {minutes} minutes only.\n\n"
        "If you didn't request this, please ignore this email."
    )
    return OTP_SUBJECT, html, text
