"""Kubernetes-backed implementation of the object store."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client, config

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    FIELD_MANAGER,
    KIND_DEPLOYMENT,
    KIND_HPA,
    KIND_NETWORK_POLICY,
    KIND_PDB,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_MONITOR,
    PLURAL_MEMCACHED,
)
from ...utils.rate_limit import is_rate_limit_error, rate_limit_k8s

# kind -> (typed API attribute, method suffix)
_TYPED_KINDS = {
    KIND_DEPLOYMENT: ("apps", "deployment"),
    KIND_SERVICE: ("core", "service"),
    KIND_SECRET: ("core", "secret"),
    KIND_PDB: ("policy", "pod_disruption_budget"),
    KIND_NETWORK_POLICY: ("networking", "network_policy"),
    KIND_HPA: ("autoscaling", "horizontal_pod_autoscaler"),
}

# kind -> (group, version, plural)
_CUSTOM_KINDS = {
    KIND_SERVICE_MONITOR: ("monitoring.coreos.com", "v1", "servicemonitors"),
}


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


class KubernetesObjectStore:
    """ObjectStore on top of the typed kubernetes client APIs."""

    def __init__(self, api_client: client.ApiClient | None = None):
        """Initialize the store.

        Args:
            api_client: Configured ApiClient, the default configuration is used when None
        """
        self.api_client = api_client or client.ApiClient()
        self.apps = client.AppsV1Api(self.api_client)
        self.core = client.CoreV1Api(self.api_client)
        self.policy = client.PolicyV1Api(self.api_client)
        self.networking = client.NetworkingV1Api(self.api_client)
        self.autoscaling = client.AutoscalingV2Api(self.api_client)
        self.custom = client.CustomObjectsApi(self.api_client)

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = rate_limit_k8s(func)(**kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except Exception as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            if is_rate_limit_error(e):
                metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _typed(self, kind: str, verb: str) -> Callable[..., Any]:
        api_attr, suffix = _TYPED_KINDS[kind]
        return getattr(getattr(self, api_attr), f"{verb}_namespaced_{suffix}")

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        operation = f"get_{kind.lower()}"
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            return self._call(
                operation,
                self.custom.get_namespaced_custom_object,
                group=group, version=version, namespace=namespace, plural=plural, name=name,
            )
        obj = self._call(operation, self._typed(kind, "read"), name=name, namespace=namespace)
        return self._to_dict(obj)

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        operation = f"create_{kind.lower()}"
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            return self._call(
                operation,
                self.custom.create_namespaced_custom_object,
                group=group, version=version, namespace=namespace, plural=plural,
                body=body, field_manager=FIELD_MANAGER,
            )
        obj = self._call(
            operation, self._typed(kind, "create"),
            namespace=namespace, body=body, field_manager=FIELD_MANAGER,
        )
        return self._to_dict(obj)

    def replace(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        operation = f"replace_{kind.lower()}"
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            return self._call(
                operation,
                self.custom.replace_namespaced_custom_object,
                group=group, version=version, namespace=namespace, plural=plural,
                name=name, body=body, field_manager=FIELD_MANAGER,
            )
        obj = self._call(
            operation, self._typed(kind, "replace"),
            name=name, namespace=namespace, body=body, field_manager=FIELD_MANAGER,
        )
        return self._to_dict(obj)

    def delete(self, kind: str, namespace: str, name: str) -> None:
        operation = f"delete_{kind.lower()}"
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            self._call(
                operation,
                self.custom.delete_namespaced_custom_object,
                group=group, version=version, namespace=namespace, plural=plural, name=name,
            )
            return
        self._call(operation, self._typed(kind, "delete"), name=name, namespace=namespace)

    def get_memcached(self, namespace: str, name: str) -> dict[str, Any]:
        return self._call(
            "get_memcached",
            self.custom.get_namespaced_custom_object,
            group=API_GROUP, version=API_VERSION, namespace=namespace,
            plural=PLURAL_MEMCACHED, name=name,
        )

    def list_memcacheds(self, namespace: str) -> list[dict[str, Any]]:
        result = self._call(
            "list_memcached",
            self.custom.list_namespaced_custom_object,
            group=API_GROUP, version=API_VERSION, namespace=namespace, plural=PLURAL_MEMCACHED,
        )
        return list(result.get("items", []))

    def patch_memcached_status(self, namespace: str, name: str, status: dict[str, Any]) -> dict[str, Any]:
        # Merge patch without a resourceVersion precondition
        return self._call(
            "patch_memcached_status",
            self.custom.patch_namespaced_custom_object_status,
            group=API_GROUP, version=API_VERSION, namespace=namespace,
            plural=PLURAL_MEMCACHED, name=name, body={"status": status}, field_manager=FIELD_MANAGER,
            _content_type="application/merge-patch+json",
        )
