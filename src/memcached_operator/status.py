"""Health conditions derived from the Deployment's observed replica counts."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from .constants import (
    COND_AVAILABLE,
    COND_DEGRADED,
    COND_PROGRESSING,
    DEFAULT_REPLICAS,
    REASON_AVAILABLE,
    REASON_DEGRADED,
    REASON_NOT_DEGRADED,
    REASON_PROGRESSING,
    REASON_PROGRESSING_COMPLETE,
    REASON_SECRET_NOT_FOUND,
    REASON_UNAVAILABLE,
)
from .models import Memcached
from .utils.conditions import update_condition


@dataclass(frozen=True)
class ObservedReplicas:
    """Replica counts reported in a Deployment's status."""

    ready: int = 0
    updated: int = 0
    total: int = 0

    @classmethod
    def from_deployment(cls, deployment: dict[str, Any] | None) -> ObservedReplicas | None:
        """Read counts from a Deployment object; None when there is no Deployment."""
        if deployment is None:
            return None
        status = deployment.get("status") or {}
        return cls(
            ready=int(status.get("readyReplicas") or 0),
            updated=int(status.get("updatedReplicas") or 0),
            total=int(status.get("replicas") or 0),
        )


def resolve_desired_replicas(
    mc: Memcached,
    observed: ObservedReplicas | None,
    hpa_managed: bool,
) -> int:
    """Return the replica count health is measured against.

    In autoscaling mode the autoscaler owns the target, so the Deployment's
    observed total is used instead of the spec.
    """
    if hpa_managed and observed is not None:
        return observed.total
    if mc.spec.replicas is None:
        return DEFAULT_REPLICAS
    return mc.spec.replicas


def _condition(condition_type: str, status: bool, reason: str, message: str, generation: int) -> dict[str, Any]:
    return {
        "type": condition_type,
        "status": "True" if status else "False",
        "reason": reason,
        "message": message,
        "observedGeneration": generation,
    }


def compute_conditions(
    desired_replicas: int,
    observed: ObservedReplicas | None,
    hpa_managed: bool,
    generation: int,
    missing_secrets: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Compute the Available, Progressing and Degraded conditions.

    Pure: no timestamps are set here, see apply_conditions.

    Args:
        desired_replicas: Target replica count
        observed: Deployment replica counts, None when the Deployment is absent
        hpa_managed: Whether the autoscaler owns the replica count
        generation: CR generation stamped on every condition
        missing_secrets: Referenced Secrets that could not be found

    Returns:
        The three conditions in the order Available, Progressing, Degraded
    """
    if observed is None:
        available = False
        progressing = True
        degraded = True
        ready = 0
    else:
        ready = observed.ready
        available = ready > 0 or desired_replicas == 0
        progressing = observed.updated != observed.total or observed.total != desired_replicas
        degraded = ready != desired_replicas

    available_msg = f"{ready}/{desired_replicas} replicas are ready"
    if hpa_managed:
        available_msg += " (HPA-managed)"
    available_cond = _condition(
        COND_AVAILABLE,
        available,
        REASON_AVAILABLE if available else REASON_UNAVAILABLE,
        available_msg,
        generation,
    )

    if not progressing:
        progressing_msg = f"All {desired_replicas} replicas are updated"
    elif observed is None:
        progressing_msg = "Waiting for deployment to be created"
    else:
        progressing_msg = (
            f"Rollout in progress: {observed.updated}/{observed.total} replicas updated, "
            f"{observed.total}/{desired_replicas} replicas exist"
        )
    progressing_cond = _condition(
        COND_PROGRESSING,
        progressing,
        REASON_PROGRESSING if progressing else REASON_PROGRESSING_COMPLETE,
        progressing_msg,
        generation,
    )

    # Missing Secrets take precedence over replica-based degradation
    if missing_secrets:
        degraded_cond = _condition(
            COND_DEGRADED,
            True,
            REASON_SECRET_NOT_FOUND,
            f"Referenced Secrets not found: {', '.join(missing_secrets)}",
            generation,
        )
    elif degraded:
        if observed is None:
            degraded_msg = "Waiting for deployment to be created"
        else:
            degraded_msg = f"{ready}/{desired_replicas} replicas are ready"
        degraded_cond = _condition(COND_DEGRADED, True, REASON_DEGRADED, degraded_msg, generation)
    else:
        degraded_cond = _condition(
            COND_DEGRADED,
            False,
            REASON_NOT_DEGRADED,
            f"All {desired_replicas} desired replicas are ready",
            generation,
        )

    return [available_cond, progressing_cond, degraded_cond]


def apply_conditions(
    existing: list[dict[str, Any]] | None,
    computed: list[dict[str, Any]],
    now: str | None = None,
) -> list[dict[str, Any]]:
    """Merge computed conditions into existing ones.

    lastTransitionTime only moves when a condition's status changes.
    """
    conditions = copy.deepcopy(existing or [])
    for cond in computed:
        conditions = update_condition(
            conditions,
            cond["type"],
            cond["status"],
            cond["reason"],
            cond["message"],
            observed_generation=cond["observedGeneration"],
            now=now,
        )
    return conditions


def build_status(
    mc: Memcached,
    deployment: dict[str, Any] | None,
    hpa_managed: bool,
    missing_secrets: list[str] | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    """Return the full status block for the CR.

    Args:
        mc: Memcached CR
        deployment: Live Deployment, None when absent
        hpa_managed: Whether the autoscaler owns the replica count
        missing_secrets: Referenced Secrets that could not be found
        now: Timestamp for conditions whose status changes

    Returns:
        Status dict with observedGeneration, readyReplicas and conditions
    """
    observed = ObservedReplicas.from_deployment(deployment)
    desired = resolve_desired_replicas(mc, observed, hpa_managed)
    computed = compute_conditions(desired, observed, hpa_managed, mc.generation, missing_secrets)

    return {
        "observedGeneration": mc.generation,
        "readyReplicas": observed.ready if observed is not None else 0,
        "conditions": apply_conditions(mc.status.get("conditions"), computed, now=now),
    }
