"""Prometheus metrics for the Memcached Operator."""

from __future__ import annotations

import contextlib
import threading
from typing import Protocol

from prometheus_client import Counter, Gauge, Histogram

from .constants import RECONCILE_ERROR, RECONCILE_SUCCESS

# Per-resource reconcile outcomes
reconcile_resource_total = Counter(
    "memcached_operator_reconcile_resource_total",
    "Total number of owned resource reconciliations by outcome",
    ["resource_kind", "result"],
)

# Per-instance reconcile metrics
reconcile_total = Counter(
    "memcached_operator_reconcile_total",
    "Total number of Memcached reconciliations",
    ["name", "namespace", "result"],
)

reconcile_duration_seconds = Histogram(
    "memcached_operator_reconcile_duration_seconds",
    "Duration of Memcached reconciliations in seconds",
    ["name", "namespace"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Instance state metrics
instance_info = Gauge(
    "memcached_operator_instance_info",
    "Information about a managed Memcached instance",
    ["name", "namespace", "image"],
)

instance_replicas_desired = Gauge(
    "memcached_operator_instance_replicas_desired",
    "Desired number of memcached replicas",
    ["name", "namespace"],
)

instance_replicas_ready = Gauge(
    "memcached_operator_instance_replicas_ready",
    "Number of ready memcached replicas",
    ["name", "namespace"],
)

# API call metrics
api_call_total = Counter(
    "memcached_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "memcached_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "memcached_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)


class MetricsRecorder(Protocol):
    """Sink for reconcile metrics."""

    def record_resource_result(self, resource_kind: str, result: str) -> None:
        ...

    def record_reconcile(self, name: str, namespace: str, result: str, duration: float) -> None:
        ...

    def record_instance(self, name: str, namespace: str, image: str, desired: int, ready: int) -> None:
        ...

    def reset_instance_metrics(self, name: str, namespace: str) -> None:
        ...


class PrometheusMetrics:
    """MetricsRecorder backed by the module-level Prometheus collectors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # (namespace, name) -> image currently exported on instance_info
        self._images: dict[tuple[str, str], str] = {}

    def record_resource_result(self, resource_kind: str, result: str) -> None:
        reconcile_resource_total.labels(resource_kind=resource_kind, result=result).inc()

    def record_reconcile(self, name: str, namespace: str, result: str, duration: float) -> None:
        reconcile_total.labels(name=name, namespace=namespace, result=result).inc()
        reconcile_duration_seconds.labels(name=name, namespace=namespace).observe(duration)

    def record_instance(self, name: str, namespace: str, image: str, desired: int, ready: int) -> None:
        """Export the instance gauges.

        The info series is keyed by image, so the previous image's series is
        removed when it changes.
        """
        with self._lock:
            previous = self._images.get((namespace, name))
            if previous is not None and previous != image:
                with contextlib.suppress(KeyError):
                    instance_info.remove(name, namespace, previous)
            self._images[(namespace, name)] = image
            instance_info.labels(name=name, namespace=namespace, image=image).set(1)

        instance_replicas_desired.labels(name=name, namespace=namespace).set(desired)
        instance_replicas_ready.labels(name=name, namespace=namespace).set(ready)

    def reset_instance_metrics(self, name: str, namespace: str) -> None:
        """Drop every instance series for a deleted CR."""
        with self._lock:
            image = self._images.pop((namespace, name), None)
            if image is not None:
                with contextlib.suppress(KeyError):
                    instance_info.remove(name, namespace, image)

        with contextlib.suppress(KeyError):
            instance_replicas_desired.remove(name, namespace)
        with contextlib.suppress(KeyError):
            instance_replicas_ready.remove(name, namespace)
        for result in (RECONCILE_SUCCESS, RECONCILE_ERROR):
            with contextlib.suppress(KeyError):
                reconcile_total.remove(name, namespace, result)
        with contextlib.suppress(KeyError):
            reconcile_duration_seconds.remove(name, namespace)
