"""Desired-state builders for resources owned by a Memcached CR."""

from .deployment import construct_deployment
from .hpa import construct_hpa, hpa_enabled
from .labels import labels_for_memcached
from .networkpolicy import construct_network_policy, network_policy_enabled
from .pdb import construct_pdb, pdb_enabled
from .service import construct_service
from .servicemonitor import construct_service_monitor, service_monitor_enabled

__all__ = [
    "construct_deployment",
    "construct_hpa",
    "construct_network_policy",
    "construct_pdb",
    "construct_service",
    "construct_service_monitor",
    "hpa_enabled",
    "labels_for_memcached",
    "network_policy_enabled",
    "pdb_enabled",
    "service_monitor_enabled",
]
