"""
Error taxonomy for the conversation engine.

Each error carries the HTTP status the API layer renders it with; the
handlers in app.main turn them into {"error": message} responses.
"""

from __future__ import annotations


class ConversationServiceError(Exception):
    """Base class for errors raised by services and commands."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ConversationServiceError):
    """Bad input: missing fields, invalid config, illegal status transition."""

    status_code = 400


class AuthError(ConversationServiceError):
    """Missing or invalid credentials."""

    status_code = 401


class NotFoundError(ConversationServiceError):
    """Referenced conversation, message or account does not exist."""

    status_code = 404


class VendorError(ConversationServiceError):
    """Gateway returned a non-success status or a malformed payload."""

    status_code = 500


class StorageError(ConversationServiceError):
    """Datastore failure on insert or update."""

    status_code = 500


class GenerationError(ConversationServiceError):
    """Completion collaborator failed. Always downgraded to fallback text."""

    status_code = 500
