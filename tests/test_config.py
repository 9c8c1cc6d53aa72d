import pytest

from config import load_settings, validate_env
from utils.errors import ConfigError


ALL_VARS = [
    "JWT_SECRET",
    "PORT",
    "EMAIL_HOST",
    "EMAIL_PORT",
    "EMAIL_USER",
    "EMAIL_PASS",
    "EMAIL_FROM",
    "MAIL_TRANSPORT",
    "BREVO_API_KEY",
    "DATABASE_URL",
    "CORS_ORIGINS",
    "MAIL_TIMEOUT_SECONDS",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in ALL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("PORT", "5000")
    monkeypatch.setenv("EMAIL_HOST", "smtp.gmail.com")
    monkeypatch.setenv("EMAIL_PORT", "587")
    monkeypatch.setenv("EMAIL_USER", "bot@notes.test")
    monkeypatch.setenv("EMAIL_PASS", "abcd efgh ijkl mnop")
    # Point at an empty .env so a developer's local file is never read.
    empty = tmp_path / ".env"
    empty.write_text("")
    return empty


def test_load_settings(env):
    s = load_settings(env)
    assert s.jwt_secret == "s3cret"
    assert s.port == 5000
    assert s.mail.transport == "smtp"
    assert s.mail.host == "smtp.gmail.com"
    assert s.mail.port == 587
    assert s.mail.password == "abcdefghijklmnop"
    assert s.mail.sender == "bot@notes.test"
    assert s.database_url.startswith("sqlite")


@pytest.mark.parametrize("missing", ["JWT_SECRET", "PORT", "EMAIL_HOST", "EMAIL_PORT", "EMAIL_USER", "EMAIL_PASS"])
def test_missing_required_variable_is_fatal(env, monkeypatch, missing):
    monkeypatch.delenv(missing)
    with pytest.raises(ConfigError, match=missing):
        load_settings(env)


def test_all_missing_names_are_reported(env, monkeypatch):
    monkeypatch.delenv("JWT_SECRET")
    monkeypatch.delenv("EMAIL_PASS")
    with pytest.raises(ConfigError) as exc:
        validate_env()
    assert "JWT_SECRET" in str(exc.value) and "EMAIL_PASS" in str(exc.value)


def test_non_integer_port(env, monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ConfigError, match="PORT"):
        load_settings(env)


def test_brevo_transport_needs_api_key_not_smtp(env, monkeypatch):
    monkeypatch.setenv("MAIL_TRANSPORT", "brevo")
    for name in ["EMAIL_HOST", "EMAIL_PORT", "EMAIL_USER", "EMAIL_PASS"]:
        monkeypatch.delenv(name)
    with pytest.raises(ConfigError, match="BREVO_API_KEY"):
        load_settings(env)

    monkeypatch.setenv("BREVO_API_KEY", "key")
    monkeypatch.setenv("EMAIL_FROM", "no-reply@notes.test")
    s = load_settings(env)
    assert s.mail.transport == "brevo"
    assert s.mail.sender == "no-reply@notes.test"


def test_unknown_transport(env, monkeypatch):
    monkeypatch.setenv("MAIL_TRANSPORT", "pigeon")
    with pytest.raises(ConfigError):
        validate_env()


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg2://u:p@h/db", "postgresql+psycopg2://u:p@h/db"),
    ],
)
def test_database_url_driver_selection(env, monkeypatch, url, expected):
    monkeypatch.setenv("DATABASE_URL", url)
    assert load_settings(env).database_url == expected


def test_cors_origins(env, monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://notes.example.com")
    assert load_settings(env).cors_origins == ["http://localhost:5173", "https://notes.example.com"]


def test_mail_timeout(env, monkeypatch):
    assert load_settings(env).mail.timeout_seconds == 10.0
    monkeypatch.setenv("MAIL_TIMEOUT_SECONDS", "2.5")
    assert load_settings(env).mail.timeout_seconds == 2.5


def test_non_numeric_mail_timeout_is_config_error(env, monkeypatch):
    monkeypatch.setenv("MAIL_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ConfigError, match="MAIL_TIMEOUT_SECONDS"):
        load_settings(env)
