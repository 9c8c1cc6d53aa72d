from datetime import datetime, timedelta

from utils.otp_service import (
    OTP_SUBJECT,
    generate_otp,
    hash_otp,
    otp_expiry,
    render_otp_email,
    verify_otp,
)


def test_generated_codes_are_six_digits_in_range():
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_hash_then_verify():
    code = generate_otp()
    hashed = hash_otp(code)
    assert hashed != code
    assert verify_otp(code, hashed)


def test_different_code_does_not_verify():
    hashed = hash_otp("123456")
    assert not verify_otp("654321", hashed)


def test_blank_candidate_or_missing_hash_never_verifies():
    hashed = hash_otp("123456")
    assert not verify_otp("", hashed)
    assert not verify_otp("   ", hashed)
    assert not verify_otp("123456", None)


def test_candidate_whitespace_is_ignored():
    hashed = hash_otp("123456")
    assert verify_otp(" 123456 ", hashed)


def test_expiry_is_ten_minutes_after_issue():
    now = datetime(2026, 3, 1, 12, 0, 0)
    assert otp_expiry(now) == now + timedelta(minutes=10)


def test_email_contains_code_and_escapes_name():
    subject, html, text = render_otp_email(name="<Ann>", code="482913")
    assert subject == OTP_SUBJECT
    assert "482913" in html and "482913" in text
    assert "&lt;Ann&gt;" in html
    assert "10 minutes" in text
