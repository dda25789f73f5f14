"""Reconciler for the Memcached CR."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from kubernetes.client.exceptions import ApiException

from ..builders import (
    construct_deployment,
    construct_hpa,
    construct_network_policy,
    construct_pdb,
    construct_service,
    construct_service_monitor,
    hpa_enabled,
    network_policy_enabled,
    pdb_enabled,
    service_monitor_enabled,
)
from ..constants import (
    ANNOTATION_RESTART_TRIGGER,
    DEFAULT_IMAGE,
    EVENT_REASON_RECONCILE_FAILED,
    KIND_DEPLOYMENT,
    KIND_HPA,
    KIND_MEMCACHED,
    KIND_NETWORK_POLICY,
    KIND_PDB,
    KIND_SERVICE,
    KIND_SERVICE_MONITOR,
    RECONCILE_ERROR,
    RECONCILE_SUCCESS,
    RESULT_DELETED,
)
from ..metrics import MetricsRecorder
from ..models import Memcached
from ..services.kubernetes.base import ObjectStore
from ..status import ObservedReplicas, build_status, resolve_desired_replicas
from ..tracing import add_span_attribute, trace_span
from ..utils.errors import is_not_found, sanitize_exception
from ..utils.events import EventRecorder
from ..utils.secrets import compute_secret_hash, fetch_referenced_secrets, referenced_secret_names
from .base import BaseHandler
from .resource import delete_resource, reconcile_resource

# Feature-gated resources, in reconcile order
_OPTIONAL_RESOURCES: list[tuple[str, Callable[[Memcached], bool], Callable[[Memcached, dict[str, Any]], None]]] = [
    (KIND_PDB, pdb_enabled, construct_pdb),
    (KIND_SERVICE_MONITOR, service_monitor_enabled, construct_service_monitor),
    (KIND_NETWORK_POLICY, network_policy_enabled, construct_network_policy),
    (KIND_HPA, hpa_enabled, construct_hpa),
]


@dataclass
class ReconcileResult:
    """Outcome of one reconcile of a Memcached CR."""

    found: bool = True
    # kind -> created/updated/unchanged/deleted; absent when nothing was done
    resources: dict[str, str] = field(default_factory=dict)
    status: dict[str, Any] | None = None


class MemcachedReconciler(BaseHandler):
    """Drives owned resources and status of a Memcached CR toward its spec."""

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder | None = None,
        metrics_recorder: MetricsRecorder | None = None,
    ):
        """Initialize the reconciler.

        Args:
            store: Cluster object store
            recorder: Event sink, events are skipped when None
            metrics_recorder: Metrics sink, metrics are skipped when None
        """
        super().__init__(KIND_MEMCACHED)
        self.store = store
        self.recorder = recorder
        self.metrics = metrics_recorder
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Bring every owned resource and the status of one CR up to date.

        Args:
            namespace: CR namespace
            name: CR name

        Returns:
            ReconcileResult; found is False when the CR no longer exists

        Raises:
            ApiException: When the CR cannot be read for a reason other than 404
            ReconcileError: When an owned resource cannot be reconciled
        """
        # kopf handlers, timers and watch events for one CR run on separate workers
        with self._lock_for(namespace, name):
            return self._reconcile_serialized(namespace, name)

    def _lock_for(self, namespace: str, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault((namespace, name), threading.Lock())

    def _reconcile_serialized(self, namespace: str, name: str) -> ReconcileResult:
        meta = {"name": name, "namespace": namespace}
        with trace_span("reconcile_memcached", kind=KIND_MEMCACHED, attributes={"memcached.name": name, "memcached.namespace": namespace}):
            try:
                body = self.store.get_memcached(namespace, name)
            except ApiException as e:
                if not is_not_found(e):
                    raise
                self.log_info(meta, "Memcached not found, clearing instance metrics", reason="NotFound")
                if self.metrics is not None:
                    self.metrics.reset_instance_metrics(name, namespace)
                return ReconcileResult(found=False)

            mc = Memcached.from_dict(body)
            start_time = time.time()
            try:
                result = self._reconcile(mc, body)
            except Exception as e:
                self._record_reconcile(mc, RECONCILE_ERROR, time.time() - start_time)
                self.log_error(body.get("metadata") or meta, "Reconciliation failed", error=e, reason="ReconcileFailed")
                if self.recorder is not None:
                    self.recorder.emit(
                        mc.object_ref,
                        EVENT_REASON_RECONCILE_FAILED,
                        f"Reconciliation failed: {sanitize_exception(e)}",
                        type_="Warning",
                    )
                raise

            self._record_reconcile(mc, RECONCILE_SUCCESS, time.time() - start_time)
            return result

    def reconcile_for_secret(self, namespace: str, secret_name: str) -> list[str]:
        """Reconcile every CR in namespace that references secret_name.

        Args:
            namespace: Namespace of the Secret
            secret_name: Name of the changed Secret

        Returns:
            Names of the CRs that were reconciled successfully

        Raises:
            Exception: The first failure, once every referencing CR has been tried
        """
        reconciled = []
        failures: list[Exception] = []
        for item in self.store.list_memcacheds(namespace):
            mc = Memcached.from_dict(item)
            if secret_name not in referenced_secret_names(mc):
                continue
            meta = item.get("metadata") or {}
            self.log_info(meta, f"Referenced Secret {secret_name} changed", reason="SecretChanged")
            try:
                self.reconcile(namespace, mc.name)
            except Exception as e:
                self.log_warning(
                    meta,
                    f"Reconcile after Secret {secret_name} changed failed, continuing with the rest",
                    reason="SecretFanOutFailed",
                    error=sanitize_exception(e),
                )
                failures.append(e)
                continue
            reconciled.append(mc.name)
        if failures:
            raise failures[0]
        return reconciled

    def _reconcile(self, mc: Memcached, body: dict[str, Any]) -> ReconcileResult:
        result = ReconcileResult()
        meta = body.get("metadata") or {}

        found_secrets, missing_secrets = fetch_referenced_secrets(self.store, mc)
        if missing_secrets:
            self.log_warning(
                meta,
                f"Referenced Secrets not found: {', '.join(missing_secrets)}",
                reason="SecretNotFound",
            )
        secret_hash = compute_secret_hash(*found_secrets)
        restart_trigger = mc.annotations.get(ANNOTATION_RESTART_TRIGGER, "")

        result.resources[KIND_DEPLOYMENT] = self._apply(
            mc,
            KIND_DEPLOYMENT,
            lambda obj: construct_deployment(mc, obj, secret_hash, restart_trigger),
        )
        result.resources[KIND_SERVICE] = self._apply(mc, KIND_SERVICE, lambda obj: construct_service(mc, obj))

        for kind, enabled, construct in _OPTIONAL_RESOURCES:
            if enabled(mc):
                result.resources[kind] = self._apply(mc, kind, lambda obj, construct=construct: construct(mc, obj))
            elif delete_resource(self.store, kind, mc.namespace, mc.name):
                self.log_info(meta, f"Deleted {kind} {mc.name}", reason="Deleted")
                result.resources[kind] = RESULT_DELETED

        try:
            deployment = self.store.get(KIND_DEPLOYMENT, mc.namespace, mc.name)
        except ApiException as e:
            if not is_not_found(e):
                raise
            deployment = None

        hpa_managed = hpa_enabled(mc)
        status = build_status(mc, deployment, hpa_managed, missing_secrets)
        self._persist_status(mc, status)
        result.status = status

        if self.metrics is not None:
            observed = ObservedReplicas.from_deployment(deployment)
            self.metrics.record_instance(
                mc.name,
                mc.namespace,
                mc.spec.image or DEFAULT_IMAGE,
                resolve_desired_replicas(mc, observed, hpa_managed),
                status["readyReplicas"],
            )

        self.log_info(meta, "Reconciliation complete", reason="Reconciled", resources=result.resources)
        return result

    def _apply(self, mc: Memcached, kind: str, mutate: Callable[[dict[str, Any]], None]) -> str:
        _, outcome = reconcile_resource(
            self.store,
            mc,
            kind,
            mc.name,
            mutate,
            recorder=self.recorder,
            metrics_recorder=self.metrics,
        )
        add_span_attribute(f"memcached.{kind.lower()}", outcome)
        return outcome

    def _persist_status(self, mc: Memcached, status: dict[str, Any]) -> None:
        self.store.patch_memcached_status(mc.namespace, mc.name, status)

    def _record_reconcile(self, mc: Memcached, result: str, duration: float) -> None:
        if self.metrics is not None:
            self.metrics.record_reconcile(mc.name, mc.namespace, result, duration)
