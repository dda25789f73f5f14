"""Builder for the HorizontalPodAutoscaler."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import (
    DEFAULT_CPU_UTILIZATION,
    DEFAULT_SCALE_DOWN_STABILIZATION_SECONDS,
    KIND_DEPLOYMENT,
    OWNED_API_VERSIONS,
)
from ..models import Memcached
from .labels import labels_for_memcached, object_metadata, object_spec


def hpa_enabled(mc: Memcached) -> bool:
    """Return True only when autoscaling is explicitly enabled."""
    return mc.spec.autoscaling is not None and mc.spec.autoscaling.enabled


def default_metrics() -> list[dict[str, Any]]:
    """Single CPU utilization target used when no metric is configured."""
    return [
        {
            "type": "Resource",
            "resource": {
                "name": "cpu",
                "target": {
                    "type": "Utilization",
                    "averageUtilization": DEFAULT_CPU_UTILIZATION,
                },
            },
        },
    ]


def build_behavior(behavior: dict[str, Any] | None) -> dict[str, Any]:
    """Return scaling behavior with a scale-down stabilization window filled in."""
    result = copy.deepcopy(behavior) if behavior else {}
    if not result.get("scaleDown"):
        result["scaleDown"] = {
            "stabilizationWindowSeconds": DEFAULT_SCALE_DOWN_STABILIZATION_SECONDS,
        }
    return result


def construct_hpa(mc: Memcached, hpa: dict[str, Any]) -> None:
    """Set the desired state of the HorizontalPodAutoscaler in place.

    Callers must guard with hpa_enabled.
    """
    autoscaling = mc.spec.autoscaling
    object_metadata(hpa)["labels"] = labels_for_memcached(mc.name)

    spec = object_spec(hpa)
    spec["scaleTargetRef"] = {
        "apiVersion": OWNED_API_VERSIONS[KIND_DEPLOYMENT],
        "kind": KIND_DEPLOYMENT,
        "name": mc.name,
    }
    if autoscaling.min_replicas is not None:
        spec["minReplicas"] = autoscaling.min_replicas
    else:
        spec.pop("minReplicas", None)
    spec["maxReplicas"] = autoscaling.max_replicas
    spec["metrics"] = copy.deepcopy(autoscaling.metrics) if autoscaling.metrics else default_metrics()
    spec["behavior"] = build_behavior(autoscaling.behavior)
