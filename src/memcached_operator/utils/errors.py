"""Operator exceptions and error sanitization utilities."""

from __future__ import annotations

import re

from kubernetes.client.exceptions import ApiException


class OperatorError(Exception):
    """Base class for errors raised by the operator."""


class ReconcileError(OperatorError):
    """Reconciling one owned resource failed."""

    def __init__(self, resource_kind: str, message: str):
        self.resource_kind = resource_kind
        super().__init__(f"reconciling {resource_kind}: {message}")


class ResourceConflictError(ReconcileError):
    """Conflict retries for one owned resource were exhausted."""

    def __init__(self, resource_kind: str, name: str, attempts: int):
        self.name = name
        self.attempts = attempts
        super().__init__(
            resource_kind,
            f"operation cannot be fulfilled on {resource_kind} {name!r}: "
            f"exceeded {attempts} conflict retries",
        )


class OwnershipError(OperatorError):
    """Object is already controlled by a different owner."""


def is_not_found(error: Exception) -> bool:
    """Return True for an API 404."""
    return isinstance(error, ApiException) and error.status == 404


def is_conflict(error: Exception) -> bool:
    """Return True for an API 409 (stale resourceVersion or racing create)."""
    return isinstance(error, ApiException) and error.status == 409


# PEM blocks (certificates, private keys)
PEM_PATTERN = r"-----BEGIN [A-Z ]+-----[^-]+-----END [A-Z ]+-----"

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
    "tls.key",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = re.sub(PEM_PATTERN, "[REDACTED]", message)

    # Redact common sensitive field names
    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{re.escape(field)}[:=\s]+([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    if isinstance(error, ApiException):
        return sanitize_error_message(f"({error.status}) {error.reason}")
    return sanitize_error_message(str(error))
