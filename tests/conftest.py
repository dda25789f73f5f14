"""Shared fixtures for the Memcached Operator tests."""

from __future__ import annotations

import base64
import copy
from typing import Any, Callable

import pytest
from kubernetes.client.exceptions import ApiException

from memcached_operator.constants import API_GROUP_VERSION, KIND_MEMCACHED


def not_found() -> ApiException:
    return ApiException(status=404, reason="Not Found")


def conflict() -> ApiException:
    return ApiException(status=409, reason="Conflict")


class FakeObjectStore:
    """In-memory object store with resourceVersion checks.

    ``conflicts[(verb, kind)] = n`` makes the next n calls of that verb fail
    with 409; ``errors[(verb, kind)]`` makes every call raise that exception.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.memcacheds: dict[tuple[str, str], dict[str, Any]] = {}
        self.conflicts: dict[tuple[str, str], int] = {}
        self.errors: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.status_updates: list[dict[str, Any]] = []
        self._version = 0
        self._uid = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _next_uid(self) -> str:
        self._uid += 1
        return f"uid-{self._uid}"

    def _check(self, verb: str, kind: str, name: str) -> None:
        self.calls.append((verb, kind, name))
        if (verb, kind) in self.errors:
            raise self.errors[(verb, kind)]
        remaining = self.conflicts.get((verb, kind), 0)
        if remaining:
            self.conflicts[(verb, kind)] = remaining - 1
            raise conflict()

    # seeding helpers

    def add(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Store obj as if it had been created by someone else."""
        obj = copy.deepcopy(obj)
        metadata = obj.setdefault("metadata", {})
        metadata.setdefault("namespace", "default")
        metadata.setdefault("uid", self._next_uid())
        metadata["resourceVersion"] = self._next_version()
        obj.setdefault("kind", kind)
        self.objects[(kind, metadata["namespace"], metadata["name"])] = obj
        return copy.deepcopy(obj)

    def add_memcached(self, body: dict[str, Any]) -> dict[str, Any]:
        body = copy.deepcopy(body)
        metadata = body["metadata"]
        metadata.setdefault("uid", self._next_uid())
        metadata["resourceVersion"] = self._next_version()
        self.memcacheds[(metadata["namespace"], metadata["name"])] = body
        return copy.deepcopy(body)

    def set_status(self, kind: str, namespace: str, name: str, status: dict[str, Any]) -> None:
        obj = self.objects[(kind, namespace, name)]
        obj["status"] = copy.deepcopy(status)
        obj["metadata"]["resourceVersion"] = self._next_version()

    def stored(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def writes(self) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[0] in ("create", "replace", "delete")]

    # ObjectStore

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        self._check("get", kind, name)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise not_found()
        return copy.deepcopy(obj)

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        name = body["metadata"]["name"]
        self._check("create", kind, name)
        if (kind, namespace, name) in self.objects:
            raise conflict()
        obj = copy.deepcopy(body)
        obj["metadata"]["uid"] = self._next_uid()
        obj["metadata"]["resourceVersion"] = self._next_version()
        self.objects[(kind, namespace, name)] = obj
        return copy.deepcopy(obj)

    def replace(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check("replace", kind, name)
        live = self.objects.get((kind, namespace, name))
        if live is None:
            raise not_found()
        if body["metadata"].get("resourceVersion") != live["metadata"]["resourceVersion"]:
            raise conflict()
        obj = copy.deepcopy(body)
        obj["metadata"]["resourceVersion"] = self._next_version()
        self.objects[(kind, namespace, name)] = obj
        return copy.deepcopy(obj)

    def delete(self, kind: str, namespace: str, name: str) -> None:
        self._check("delete", kind, name)
        if (kind, namespace, name) not in self.objects:
            raise not_found()
        del self.objects[(kind, namespace, name)]

    def get_memcached(self, namespace: str, name: str) -> dict[str, Any]:
        self._check("get", KIND_MEMCACHED, name)
        body = self.memcacheds.get((namespace, name))
        if body is None:
            raise not_found()
        return copy.deepcopy(body)

    def list_memcacheds(self, namespace: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(b) for (ns, _), b in sorted(self.memcacheds.items()) if ns == namespace]

    def patch_memcached_status(self, namespace: str, name: str, status: dict[str, Any]) -> dict[str, Any]:
        """Apply a JSON merge patch to the status; null values remove keys."""
        self._check("patch_status", KIND_MEMCACHED, name)
        live = self.memcacheds.get((namespace, name))
        if live is None:
            raise not_found()
        merged = live.get("status") or {}
        live["status"] = merged
        for key, value in status.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = copy.deepcopy(value)
        live["metadata"]["resourceVersion"] = self._next_version()
        self.status_updates.append(copy.deepcopy(status))
        return copy.deepcopy(live)


class RecordingEvents:
    """EventRecorder that keeps (reason, message, type) tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def emit(self, obj: dict[str, Any], reason: str, message: str, type_: str = "Normal") -> None:
        self.events.append((reason, message, type_))


class RecordingMetrics:
    """MetricsRecorder that keeps every call."""

    def __init__(self) -> None:
        self.resource_results: list[tuple[str, str]] = []
        self.reconciles: list[tuple[str, str, str]] = []
        self.instances: dict[tuple[str, str], tuple[str, int, int]] = {}
        self.resets: list[tuple[str, str]] = []

    def record_resource_result(self, resource_kind: str, result: str) -> None:
        self.resource_results.append((resource_kind, result))

    def record_reconcile(self, name: str, namespace: str, result: str, duration: float) -> None:
        self.reconciles.append((name, namespace, result))

    def record_instance(self, name: str, namespace: str, image: str, desired: int, ready: int) -> None:
        self.instances[(namespace, name)] = (image, desired, ready)

    def reset_instance_metrics(self, name: str, namespace: str) -> None:
        self.resets.append((name, namespace))
        self.instances.pop((namespace, name), None)


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def events() -> RecordingEvents:
    return RecordingEvents()


@pytest.fixture
def recording_metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def make_memcached() -> Callable[..., dict[str, Any]]:
    """Factory for Memcached CR bodies as served by the API."""

    def _make(
        name: str = "cache",
        namespace: str = "default",
        spec: dict[str, Any] | None = None,
        annotations: dict[str, str] | None = None,
        generation: int = 1,
        uid: str = "mc-uid",
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "uid": uid,
            "generation": generation,
        }
        if annotations:
            metadata["annotations"] = dict(annotations)
        return {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_MEMCACHED,
            "metadata": metadata,
            "spec": copy.deepcopy(spec) if spec is not None else {},
        }

    return _make


@pytest.fixture
def secret() -> Callable[..., dict[str, Any]]:
    """Factory for Secret objects with base64 data."""

    def _make(name: str, data: dict[str, str], namespace: str = "default") -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": name, "namespace": namespace},
            "data": {k: base64.b64encode(v.encode()).decode() for k, v in data.items()},
        }

    return _make
