"""
Domain error taxonomy.

Every error raised by the store, repositories and AI gateway derives from
CRMError and carries the HTTP status the API boundary renders it with.
"""

from typing import Any


class CRMError(Exception):
    """Base exception for CRM domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(CRMError):
    """Malformed input, e.g. a bad email address or an unknown stage."""

    status_code = 400


class NotFoundError(CRMError):
    """No record with the requested id."""

    status_code = 404


class ConflictError(CRMError):
    """Uniqueness violation or stale write."""

    status_code = 409


class GatewayError(CRMError):
    """The AI provider failed, timed out or is not configured."""

    status_code = 500


class StoreError(CRMError):
    """The backing JSON document could not be read or written."""

    status_code = 500
