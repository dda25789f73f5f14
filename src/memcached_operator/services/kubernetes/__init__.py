"""Cluster API access."""

from .base import ObjectStore
from .client import KubernetesObjectStore, load_kube_config

__all__ = ["ObjectStore", "KubernetesObjectStore", "load_kube_config"]
