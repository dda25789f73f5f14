"""Main entry point for the Memcached Operator."""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .constants import API_GROUP_VERSION, KIND_MEMCACHED, LABEL_MANAGED_BY, MANAGED_BY
from .handlers.memcached import MemcachedReconciler
from .handlers.resource import controller_owner
from .metrics import PrometheusMetrics
from .services.kubernetes import KubernetesObjectStore, load_kube_config
from .tracing import initialize_tracing
from .utils.events import KopfEventRecorder

logger = logging.getLogger(__name__)

DRIFT_CHECK_INTERVAL_SECONDS = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))

_reconciler: MemcachedReconciler | None = None


def get_reconciler() -> MemcachedReconciler:
    """Return the process-wide reconciler, creating it on first use."""
    global _reconciler
    if _reconciler is None:
        load_kube_config()
        _reconciler = MemcachedReconciler(
            KubernetesObjectStore(),
            recorder=KopfEventRecorder(),
            metrics_recorder=PrometheusMetrics(),
        )
    return _reconciler


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    # Exponential backoff: 1s, 2s, 4s, 8s, 16s, 32s, 60s (max)
    settings.execution.min_retry_delay = 1.0
    settings.execution.max_retry_delay = 60.0
    settings.execution.retry_backoff = 2.0
    settings.execution.backoff_jitter = 0.1

    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    health.start_metrics_server(metrics_port)

    get_reconciler()
    health.mark_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop reporting ready while the operator shuts down."""
    health.mark_not_ready()


@kopf.on.create(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.on.update(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.on.resume(API_GROUP_VERSION, KIND_MEMCACHED)
@kopf.timer(API_GROUP_VERSION, KIND_MEMCACHED, interval=DRIFT_CHECK_INTERVAL_SECONDS)
def handle_memcached(meta: dict[str, Any], **kwargs: Any) -> None:
    """Handle Memcached resource reconciliation."""
    get_reconciler().reconcile(meta.get("namespace", "default"), meta["name"])


@kopf.on.delete(API_GROUP_VERSION, KIND_MEMCACHED, optional=True)
def handle_memcached_delete(meta: dict[str, Any], **kwargs: Any) -> None:
    """Clear instance metrics; owned resources are garbage collected through owner references."""
    name = meta["name"]
    namespace = meta.get("namespace", "default")
    logger.info(f"Memcached {namespace}/{name} is being deleted")
    reconciler = get_reconciler()
    if reconciler.metrics is not None:
        reconciler.metrics.reset_instance_metrics(name, namespace)


@kopf.on.event("", "v1", "secrets")
def handle_secret_event(type: str | None, meta: dict[str, Any], **kwargs: Any) -> None:
    """Re-reconcile every Memcached that references a changed Secret."""
    # Initial listing carries no type; resume handlers cover startup
    if type is None:
        return
    get_reconciler().reconcile_for_secret(meta.get("namespace", "default"), meta["name"])


@kopf.on.event("apps", "v1", "deployments", labels={LABEL_MANAGED_BY: MANAGED_BY})
def handle_owned_deployment_event(type: str | None, body: dict[str, Any], **kwargs: Any) -> None:
    """Re-reconcile the owning Memcached when its Deployment changes."""
    if type is None:
        return
    owner = controller_owner(body, KIND_MEMCACHED)
    if owner is None:
        return
    get_reconciler().reconcile((body.get("metadata") or {}).get("namespace", "default"), owner)
