from __future__ import annotations


class PitchdeskError(Exception):
    """Base class for every error raised by pitchdesk itself."""


class DuplicateUsername(PitchdeskError):
    def __init__(self, username: str):
        super().__init__("Username already exists.")
        self.username = username


class InvalidCredentials(PitchdeskError):
    def __init__(self) -> None:
        super().__init__("Invalid username or password.")


class NotLoggedIn(PitchdeskError):
    def __init__(self) -> None:
        super().__init__("No user is logged in.")


class ExternalServiceFailure(PitchdeskError):
    """The text-generation service failed or returned an unusable payload."""

    def __init__(self, operation: str, detail: str = ""):
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail


class ValidationError(PitchdeskError, ValueError):
    """A local invariant guard rejected the request."""


class ConfirmationRequired(PitchdeskError):
    """A destructive operation was requested without explicit confirmation.

    ``prompt`` is the question that must be put to the user before retrying
    with ``confirmed=True``.
    """

    def __init__(self, prompt: str):
        super().__init__(prompt)
        self.prompt = prompt


class AccountUnreadable(PitchdeskError):
    """A stored account record exists but no longer matches the account schema."""

    def __init__(self, username: str):
        super().__init__(f"Stored account '{username}' could not be read.")
        self.username = username
