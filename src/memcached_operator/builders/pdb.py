"""Builder for the PodDisruptionBudget."""

from __future__ import annotations

from typing import Any

from ..models import Memcached
from .labels import labels_for_memcached, object_metadata, object_spec


def pdb_enabled(mc: Memcached) -> bool:
    """Return True only when the disruption budget is explicitly enabled."""
    ha = mc.spec.high_availability
    return ha is not None and ha.pod_disruption_budget is not None and ha.pod_disruption_budget.enabled


def construct_pdb(mc: Memcached, pdb: dict[str, Any]) -> None:
    """Set the desired state of the PodDisruptionBudget in place.

    minAvailable and maxUnavailable are mutually exclusive: an explicit
    minAvailable wins, and when neither is set minAvailable defaults to 1.
    """
    labels = labels_for_memcached(mc.name)
    object_metadata(pdb)["labels"] = labels

    spec = object_spec(pdb)
    spec["selector"] = {"matchLabels": dict(labels)}

    pdb_spec = mc.spec.high_availability.pod_disruption_budget
    if pdb_spec.min_available is not None:
        spec["minAvailable"] = pdb_spec.min_available
        spec.pop("maxUnavailable", None)
    elif pdb_spec.max_unavailable is not None:
        spec["maxUnavailable"] = pdb_spec.max_unavailable
        spec.pop("minAvailable", None)
    else:
        spec["minAvailable"] = 1
        spec.pop("maxUnavailable", None)
