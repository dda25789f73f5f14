"""Create-or-update and delete primitives for resources owned by a Memcached CR."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from kubernetes.client.exceptions import ApiException

from ..builders.labels import object_metadata
from ..constants import MAX_CONFLICT_RETRIES, OWNED_API_VERSIONS, RESULT_CREATED, RESULT_UNCHANGED, RESULT_UPDATED
from ..metrics import MetricsRecorder
from ..models import Memcached
from ..services.kubernetes.base import ObjectStore
from ..tracing import trace_span
from ..utils.errors import (
    OwnershipError,
    ReconcileError,
    ResourceConflictError,
    is_conflict,
    is_not_found,
    sanitize_exception,
)
from ..utils.events import EventRecorder, emit_for_result

logger = logging.getLogger(__name__)

MutateFn = Callable[[dict[str, Any]], None]


def new_object(kind: str, namespace: str, name: str) -> dict[str, Any]:
    """Return an empty object of kind, identified by namespace/name."""
    return {
        "apiVersion": OWNED_API_VERSIONS[kind],
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
    }


def owner_reference(owner: Memcached) -> dict[str, Any]:
    """Return the controller owner reference pointing at owner."""
    return {
        "apiVersion": owner.api_version,
        "kind": owner.kind,
        "name": owner.name,
        "uid": owner.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def set_controller_reference(owner: Memcached, obj: dict[str, Any]) -> None:
    """Stamp owner as the controlling owner of obj.

    An existing reference to the same owner is replaced in place, so stamping
    twice leaves the object unchanged.

    Raises:
        OwnershipError: If obj is already controlled by a different owner
    """
    metadata = object_metadata(obj)
    refs = list(metadata.get("ownerReferences") or [])

    for ref in refs:
        if ref.get("controller") and ref.get("uid") != owner.uid:
            raise OwnershipError(
                f"{obj.get('kind', 'object')} {metadata.get('name')!r} is already controlled by "
                f"{ref.get('kind')} {ref.get('name')!r}"
            )

    desired = owner_reference(owner)
    for i, ref in enumerate(refs):
        if ref.get("uid") == owner.uid:
            refs[i] = desired
            break
    else:
        refs.append(desired)
    metadata["ownerReferences"] = refs


def controller_owner(obj: dict[str, Any], kind: str) -> str | None:
    """Return the name of obj's controlling owner of the given kind, if any."""
    for ref in (obj.get("metadata") or {}).get("ownerReferences") or []:
        if ref.get("controller") and ref.get("kind") == kind:
            return ref.get("name")
    return None


def _create_or_update(
    store: ObjectStore,
    owner: Memcached,
    kind: str,
    name: str,
    mutate: MutateFn,
) -> tuple[dict[str, Any], str]:
    """Run one get-mutate-submit pass. Conflicts surface as ApiException(409)."""
    try:
        live = store.get(kind, owner.namespace, name)
    except ApiException as e:
        if not is_not_found(e):
            raise
        live = None

    if live is None:
        obj = new_object(kind, owner.namespace, name)
        mutate(obj)
        set_controller_reference(owner, obj)
        return store.create(kind, owner.namespace, obj), RESULT_CREATED

    obj = copy.deepcopy(live)
    mutate(obj)
    set_controller_reference(owner, obj)
    if obj == live:
        return live, RESULT_UNCHANGED
    return store.replace(kind, owner.namespace, name, obj), RESULT_UPDATED


def reconcile_resource(
    store: ObjectStore,
    owner: Memcached,
    kind: str,
    name: str,
    mutate: MutateFn,
    recorder: EventRecorder | None = None,
    metrics_recorder: MetricsRecorder | None = None,
    max_attempts: int = MAX_CONFLICT_RETRIES,
) -> tuple[dict[str, Any], str]:
    """Create or update one owned resource so it matches the builder output.

    Each attempt re-reads the live object and re-runs mutate on a fresh copy.
    A conflict discards the attempt and starts over; no event or counter is
    recorded for it. Any other failure aborts at once.

    Args:
        store: Cluster object store
        owner: Memcached CR that owns the resource
        kind: Resource kind
        name: Resource name, in the owner's namespace
        mutate: Builder that sets the desired fields on the object in place
        recorder: Event sink for Created/Updated events
        metrics_recorder: Sink for the per-kind outcome counter
        max_attempts: Attempts before giving up on conflicts

    Returns:
        Tuple of (object as stored, outcome)

    Raises:
        ReconcileError: On a non-conflict API error or a mutate failure
        ResourceConflictError: When every attempt hit a conflict
    """
    with trace_span(f"reconcile_{kind.lower()}", kind=kind, attributes={"resource.name": name}):
        for attempt in range(1, max_attempts + 1):
            try:
                obj, result = _create_or_update(store, owner, kind, name, mutate)
            except ApiException as e:
                if is_conflict(e):
                    logger.debug(f"Conflict on {kind} {owner.namespace}/{name}, attempt {attempt}/{max_attempts}")
                    continue
                raise ReconcileError(kind, sanitize_exception(e)) from e
            except Exception as e:
                raise ReconcileError(kind, sanitize_exception(e)) from e

            emit_for_result(recorder, owner.object_ref, kind, name, result)
            if metrics_recorder is not None:
                metrics_recorder.record_resource_result(kind, result)
            return obj, result

    raise ResourceConflictError(kind, name, max_attempts)


def delete_resource(store: ObjectStore, kind: str, namespace: str, name: str) -> bool:
    """Delete an owned resource if it exists.

    Args:
        store: Cluster object store
        kind: Resource kind
        namespace: Resource namespace
        name: Resource name

    Returns:
        True if an object was deleted, False if it was already absent

    Raises:
        ReconcileError: On any API error other than 404
    """
    try:
        store.get(kind, namespace, name)
        store.delete(kind, namespace, name)
    except ApiException as e:
        if is_not_found(e):
            return False
        raise ReconcileError(kind, sanitize_exception(e)) from e
    return True
