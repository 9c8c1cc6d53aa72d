from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from utils.errors import ConfigError


_PROJECT_ROOT = Path(__file__).resolve().parent

SMTP_VARS = ("EMAIL_HOST", "EMAIL_PORT", "EMAIL_USER", "EMAIL_PASS")
BREVO_VARS = ("BREVO_API_KEY", "EMAIL_FROM")


def _database_url() -> str:
    # Prefer the platform-provided env var (Render sets DATABASE_URL).
    url = os.getenv("DATABASE_URL")
    if url:
        # Select psycopg (v3) when the URL names no driver.
        if "://" in url and "+" not in url.split("://", 1)[0]:
            if url.startswith("postgres://"):
                return url.replace("postgres://", "postgresql+psycopg://", 1)
            if url.startswith("postgresql://"):
                return url.replace("postgresql://", "postgresql+psycopg://", 1)
        return url
    # Local/dev fallback (keeps repo runnable without Postgres).
    return "sqlite:///./notes.db"


def _int_env(name: str) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: str) -> float:
    raw = (os.getenv(name) or default).strip()
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class MailSettings:
    transport: str = "smtp"  # "smtp" | "brevo"
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    from_email: str = ""
    from_name: str = "Notes App"
    brevo_api_key: str = ""
    timeout_seconds: float = 10.0

    @property
    def sender(self) -> str:
        return self.from_email or self.user


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    port: int
    mail: MailSettings
    database_url: str = "sqlite:///./notes.db"
    jwt_alg: str = "HS256"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def validate_env() -> None:
    """
    Fail fast when a variable the server cannot run without is absent.

    Always required: JWT_SECRET, PORT. Mail credentials depend on
    MAIL_TRANSPORT: SMTP needs EMAIL_HOST/EMAIL_PORT/EMAIL_USER/EMAIL_PASS,
    Brevo needs BREVO_API_KEY/EMAIL_FROM.
    """
    transport = (os.getenv("MAIL_TRANSPORT") or "smtp").strip().lower()
    if transport not in {"smtp", "brevo"}:
        raise ConfigError(f"MAIL_TRANSPORT must be smtp or brevo, got {transport!r}")

    required = ["JWT_SECRET", "PORT"]
    required.extend(BREVO_VARS if transport == "brevo" else SMTP_VARS)
    missing = [name for name in required if not (os.getenv(name) or "").strip()]
    if missing:
        raise ConfigError("Missing required environment variable(s): " + ", ".join(missing))


def load_settings(env_file: Optional[Path] = None) -> Settings:
    load_dotenv(env_file or (_PROJECT_ROOT / ".env"))
    validate_env()

    transport = (os.getenv("MAIL_TRANSPORT") or "smtp").strip().lower()
    mail = MailSettings(
        transport=transport,
        host=(os.getenv("EMAIL_HOST") or "").strip(),
        port=_int_env("EMAIL_PORT") if transport == "smtp" else 0,
        user=(os.getenv("EMAIL_USER") or "").strip(),
        # Gmail app passwords are displayed with spaces.
        password=(os.getenv("EMAIL_PASS") or "").strip().replace(" ", ""),
        from_email=(os.getenv("EMAIL_FROM") or "").strip(),
        from_name=(os.getenv("EMAIL_FROM_NAME") or "Notes App").strip(),
        brevo_api_key=(os.getenv("BREVO_API_KEY") or "").strip(),
        timeout_seconds=_float_env("MAIL_TIMEOUT_SECONDS", "10"),
    )
    origins = [o.strip() for o in (os.getenv("CORS_ORIGINS") or "*").split(",") if o.strip()]
    return Settings(
        jwt_secret=os.environ["JWT_SECRET"].strip(),
        port=_int_env("PORT"),
        mail=mail,
        database_url=_database_url(),
        jwt_alg=os.getenv("JWT_ALG", "HS256"),
        cors_origins=origins or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
