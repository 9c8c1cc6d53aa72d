from __future__ import annotations


class AuthError(Exception):
    """Base for every error the auth core reports to a caller."""

    status_code = 500
    message = "Server error occurred. Please try again later."

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = 400
    message = "Please fill all the fields"


class AlreadyExists(AuthError):
    status_code = 400
    message = "User already exists. You can login directly."


class NotFound(AuthError):
    status_code = 404
    message = "Account not found."


class NoChallengePending(AuthError):
    status_code = 400
    message = "OTP not requested."


class Expired(AuthError):
    status_code = 400
    message = "OTP expired. Please request a new one."


class InvalidCode(AuthError):
    status_code = 400
    message = "Invalid OTP."


class AlreadyVerified(AuthError):
    status_code = 400
    message = "Account is already verified. Please login."


class InvalidCredentials(AuthError):
    status_code = 401
    message = "Invalid credentials."


class NotVerified(AuthError):
    status_code = 403
    message = "Please verify your email before logging in."


class Unauthenticated(AuthError):
    status_code = 401
    message = "Invalid or expired token."


class Internal(AuthError):
    status_code = 500


class MailDeliveryFailed(Internal):
    status_code = 502
    message = "We could not send the verification email. Please request a new code."


class DuplicateIdentity(Exception):
    """Raised by the credential store when the normalized email is taken."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"identity already exists: {email}")


class MailDeliveryError(Exception):
    """Raised by a mail transport when a message could not be handed off."""


class ConfigError(Exception):
    """Required configuration is missing or malformed."""
