"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any, Protocol

import kopf

from ..constants import EVENT_REASON_CREATED, EVENT_REASON_UPDATED, RESULT_CREATED, RESULT_UPDATED


class EventRecorder(Protocol):
    """Sink for human-readable notifications attached to a resource."""

    def emit(self, obj: dict[str, Any], reason: str, message: str, type_: str = "Normal") -> None:
        """Record an event on obj."""
        ...


class KopfEventRecorder:
    """EventRecorder that posts through kopf's event queue."""

    def emit(self, obj: dict[str, Any], reason: str, message: str, type_: str = "Normal") -> None:
        emit_event(obj, reason, message, type_=type_)


def emit_event(
    obj: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        obj: Object reference (apiVersion, kind, metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        obj,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_for_result(
    recorder: EventRecorder | None,
    obj: dict[str, Any],
    resource_kind: str,
    resource_name: str,
    result: str,
) -> None:
    """Emit Created/Updated for a per-resource outcome; unchanged emits nothing."""
    if recorder is None:
        return
    if result == RESULT_CREATED:
        recorder.emit(obj, EVENT_REASON_CREATED, f"Created {resource_kind} {resource_name}")
    elif result == RESULT_UPDATED:
        recorder.emit(obj, EVENT_REASON_UPDATED, f"Updated {resource_kind} {resource_name}")
