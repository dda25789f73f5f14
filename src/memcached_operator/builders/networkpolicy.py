"""Builder for the ingress NetworkPolicy."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import MEMCACHED_PORT, METRICS_PORT, TLS_PORT
from ..models import Memcached
from .labels import labels_for_memcached, object_metadata, object_spec


def network_policy_enabled(mc: Memcached) -> bool:
    """Return True only when the network policy is explicitly enabled."""
    security = mc.spec.security
    return security is not None and security.network_policy is not None and security.network_policy.enabled


def construct_network_policy(mc: Memcached, np: dict[str, Any]) -> None:
    """Set the desired state of the NetworkPolicy in place."""
    labels = labels_for_memcached(mc.name)
    object_metadata(np)["labels"] = labels

    spec = object_spec(np)
    spec["podSelector"] = {"matchLabels": dict(labels)}
    spec["policyTypes"] = ["Ingress"]

    ports = [{"protocol": "TCP", "port": MEMCACHED_PORT}]
    security = mc.spec.security
    if security is not None and security.tls is not None and security.tls.enabled:
        ports.append({"protocol": "TCP", "port": TLS_PORT})
    if mc.spec.monitoring is not None and mc.spec.monitoring.enabled:
        ports.append({"protocol": "TCP", "port": METRICS_PORT})

    rule: dict[str, Any] = {"ports": ports}
    if security is not None and security.network_policy is not None and security.network_policy.allowed_sources:
        rule["from"] = copy.deepcopy(security.network_policy.allowed_sources)

    spec["ingress"] = [rule]
