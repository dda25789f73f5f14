"""Utility functions for the Memcached Operator."""

from .conditions import find_condition, update_condition
from .errors import (
    OperatorError,
    OwnershipError,
    ReconcileError,
    ResourceConflictError,
    is_conflict,
    is_not_found,
    sanitize_exception,
)
from .events import EventRecorder, KopfEventRecorder, emit_event, emit_for_result
from .rate_limit import is_rate_limit_error, rate_limit_k8s
from .secrets import compute_secret_hash, fetch_referenced_secrets, referenced_secret_names

__all__ = [
    "update_condition",
    "find_condition",
    "OperatorError",
    "OwnershipError",
    "ReconcileError",
    "ResourceConflictError",
    "is_conflict",
    "is_not_found",
    "sanitize_exception",
    "EventRecorder",
    "KopfEventRecorder",
    "emit_event",
    "emit_for_result",
    "is_rate_limit_error",
    "rate_limit_k8s",
    "compute_secret_hash",
    "fetch_referenced_secrets",
    "referenced_secret_names",
]
