"""Tests for the Kubernetes-backed object store."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes import config
from kubernetes.client.exceptions import ApiException
from prometheus_client import REGISTRY

from memcached_operator.constants import FIELD_MANAGER
from memcached_operator.services.kubernetes.client import KubernetesObjectStore, load_kube_config


@pytest.fixture(autouse=True)
def no_throttle():
    with patch("memcached_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1_000_000.0):
        yield


@pytest.fixture
def k8s():
    api_client = MagicMock()
    api_client.sanitize_for_serialization.side_effect = lambda obj: {"serialized": obj}
    store = KubernetesObjectStore(api_client=api_client)
    for attr in ("apps", "core", "policy", "networking", "autoscaling", "custom"):
        setattr(store, attr, MagicMock())
    return store


class TestTypedKinds:
    """Test cases for kinds served by typed APIs."""

    def test_get_deployment(self, k8s):
        """Test reads go to AppsV1Api and come back as dicts."""
        k8s.apps.read_namespaced_deployment.return_value = "dep"

        result = k8s.get("Deployment", "default", "cache")

        k8s.apps.read_namespaced_deployment.assert_called_once_with(name="cache", namespace="default")
        assert result == {"serialized": "dep"}

    def test_create_service(self, k8s):
        """Test creates pass the body and field manager."""
        body = {"metadata": {"name": "cache"}}

        k8s.create("Service", "default", body)

        k8s.core.create_namespaced_service.assert_called_once_with(
            namespace="default", body=body, field_manager=FIELD_MANAGER
        )

    def test_get_secret(self, k8s):
        k8s.get("Secret", "default", "sasl")

        k8s.core.read_namespaced_secret.assert_called_once_with(name="sasl", namespace="default")

    def test_replace_hpa(self, k8s):
        """Test replaces go to AutoscalingV2Api."""
        body = {"metadata": {"name": "cache", "resourceVersion": "3"}}

        k8s.replace("HorizontalPodAutoscaler", "default", "cache", body)

        k8s.autoscaling.replace_namespaced_horizontal_pod_autoscaler.assert_called_once_with(
            name="cache", namespace="default", body=body, field_manager=FIELD_MANAGER
        )

    def test_delete_pdb_and_network_policy(self, k8s):
        k8s.delete("PodDisruptionBudget", "default", "cache")
        k8s.delete("NetworkPolicy", "default", "cache")

        k8s.policy.delete_namespaced_pod_disruption_budget.assert_called_once_with(name="cache", namespace="default")
        k8s.networking.delete_namespaced_network_policy.assert_called_once_with(name="cache", namespace="default")

    def test_dict_results_not_reserialized(self, k8s):
        """Test plain dict responses are returned as they are."""
        k8s.apps.read_namespaced_deployment.return_value = {"kind": "Deployment"}

        assert k8s.get("Deployment", "default", "cache") == {"kind": "Deployment"}

    def test_errors_propagate_and_are_counted(self, k8s):
        """Test API errors are raised and recorded."""
        labels = {"api_type": "k8s", "operation": "get_deployment", "result": "error"}
        before = REGISTRY.get_sample_value("memcached_operator_api_call_total", labels) or 0.0
        k8s.apps.read_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ApiException):
            k8s.get("Deployment", "default", "cache")

        assert REGISTRY.get_sample_value("memcached_operator_api_call_total", labels) == before + 1

    def test_throttle_counted(self, k8s):
        """Test 429 responses increment the rate limit counter."""
        before = REGISTRY.get_sample_value("memcached_operator_rate_limit_hits_total", {"api_type": "k8s"}) or 0.0
        k8s.core.read_namespaced_service.side_effect = ApiException(status=429, reason="Too Many Requests")

        with pytest.raises(ApiException):
            k8s.get("Service", "default", "cache")

        assert REGISTRY.get_sample_value("memcached_operator_rate_limit_hits_total", {"api_type": "k8s"}) == before + 1


class TestCustomKinds:
    """Test cases for custom resources."""

    def test_get_service_monitor(self, k8s):
        """Test ServiceMonitors use the custom objects API."""
        k8s.custom.get_namespaced_custom_object.return_value = {"kind": "ServiceMonitor"}

        assert k8s.get("ServiceMonitor", "default", "cache") == {"kind": "ServiceMonitor"}
        k8s.custom.get_namespaced_custom_object.assert_called_once_with(
            group="monitoring.coreos.com", version="v1", namespace="default", plural="servicemonitors", name="cache"
        )

    def test_create_service_monitor(self, k8s):
        body = {"metadata": {"name": "cache"}}

        k8s.create("ServiceMonitor", "default", body)

        k8s.custom.create_namespaced_custom_object.assert_called_once_with(
            group="monitoring.coreos.com", version="v1", namespace="default", plural="servicemonitors",
            body=body, field_manager=FIELD_MANAGER,
        )

    def test_get_memcached(self, k8s):
        k8s.get_memcached("default", "cache")

        k8s.custom.get_namespaced_custom_object.assert_called_once_with(
            group="memcached.c5c3.io", version="v1beta1", namespace="default", plural="memcacheds", name="cache"
        )

    def test_list_memcacheds(self, k8s):
        k8s.custom.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "a"}}]}

        assert k8s.list_memcacheds("default") == [{"metadata": {"name": "a"}}]

    def test_patch_memcached_status(self, k8s):
        """Test status is merge-patched through the status subresource."""
        status = {"readyReplicas": 1, "conditions": []}

        k8s.patch_memcached_status("default", "cache", status)

        k8s.custom.replace_namespaced_custom_object_status.assert_not_called()
        k8s.custom.patch_namespaced_custom_object_status.assert_called_once_with(
            group="memcached.c5c3.io", version="v1beta1", namespace="default", plural="memcacheds",
            name="cache", body={"status": status}, field_manager=FIELD_MANAGER,
            _content_type="application/merge-patch+json",
        )

    def test_status_patch_has_no_resource_version(self, k8s):
        """Test the status body carries no metadata, so no version precondition."""
        k8s.patch_memcached_status("default", "cache", {"readyReplicas": 0})

        body = k8s.custom.patch_namespaced_custom_object_status.call_args.kwargs["body"]
        assert "metadata" not in body


class TestLoadKubeConfig:
    """Test cases for load_kube_config."""

    @patch("memcached_operator.services.kubernetes.client.config.load_kube_config")
    @patch("memcached_operator.services.kubernetes.client.config.load_incluster_config")
    def test_in_cluster(self, mock_incluster, mock_kubeconfig):
        load_kube_config()

        mock_incluster.assert_called_once()
        mock_kubeconfig.assert_not_called()

    @patch("memcached_operator.services.kubernetes.client.config.load_kube_config")
    @patch("memcached_operator.services.kubernetes.client.config.load_incluster_config")
    def test_fallback(self, mock_incluster, mock_kubeconfig):
        """Test the local kubeconfig is used outside a cluster."""
        mock_incluster.side_effect = config.ConfigException("not in cluster")

        load_kube_config()

        mock_kubeconfig.assert_called_once()
