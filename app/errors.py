"""User-facing error kinds raised by the account and view layers."""

from __future__ import annotations


class AuthError(ValueError):
    """Base class for errors shown inline next to the auth or admin forms."""

    code = "auth_error"
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"error": self.code, "description": self.message}


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    default_message = "Invalid credentials. Please try again."


class AccountSuspended(AuthError):
    code = "account_suspended"
    default_message = "Accesso account sospeso. Contattare l'amministratore."


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    default_message = "Email is already in use."


class WeakPassword(AuthError):
    code = "weak_password"
    default_message = "Password must be at least 4 characters."


class MissingRequiredField(AuthError):
    code = "missing_required_field"
    default_message = "Please fill in all required fields."


class ViewTransitionError(ValueError):
    """Raised when an action is not available from the current view."""
