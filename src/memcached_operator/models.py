"""Typed model of the Memcached custom resource.

The API delivers the CR as a camelCase dict. These dataclasses parse it once so
the builders can tell an unset field (``None``) from an explicit value.
Kubernetes sub-objects that are passed through verbatim (resource requirements,
security contexts, topology spread constraints, metric specs, network policy
peers) stay as dicts and are deep-copied on the way in.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from .constants import API_GROUP_VERSION, KIND_MEMCACHED


def _copy(value: Any) -> Any:
    return copy.deepcopy(value) if value is not None else None


@dataclass
class MemcachedConfig:
    """Engine tuning flags."""

    max_memory_mb: int = 0
    max_connections: int = 0
    threads: int = 0
    max_item_size: str = ""
    verbosity: int = 0
    extra_args: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MemcachedConfig | None:
        if data is None:
            return None
        return cls(
            max_memory_mb=int(data.get("maxMemoryMB") or 0),
            max_connections=int(data.get("maxConnections") or 0),
            threads=int(data.get("threads") or 0),
            max_item_size=data.get("maxItemSize") or "",
            verbosity=int(data.get("verbosity") or 0),
            extra_args=list(data.get("extraArgs") or []),
        )


@dataclass
class PDBSpec:
    """Disruption budget settings. Values are ints or percentage strings."""

    enabled: bool = False
    min_available: int | str | None = None
    max_unavailable: int | str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PDBSpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            min_available=data.get("minAvailable"),
            max_unavailable=data.get("maxUnavailable"),
        )


@dataclass
class GracefulShutdownSpec:
    """Pre-stop delay and termination grace period."""

    enabled: bool = False
    pre_stop_delay_seconds: int = 0
    termination_grace_period_seconds: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GracefulShutdownSpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            pre_stop_delay_seconds=int(data.get("preStopDelaySeconds") or 0),
            termination_grace_period_seconds=int(data.get("terminationGracePeriodSeconds") or 0),
        )


@dataclass
class HighAvailabilitySpec:
    """Scheduling and disruption settings."""

    anti_affinity_preset: str | None = None
    topology_spread_constraints: list[dict[str, Any]] | None = None
    pod_disruption_budget: PDBSpec | None = None
    graceful_shutdown: GracefulShutdownSpec | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> HighAvailabilitySpec | None:
        if data is None:
            return None
        return cls(
            anti_affinity_preset=data.get("antiAffinityPreset"),
            topology_spread_constraints=_copy(data.get("topologySpreadConstraints")),
            pod_disruption_budget=PDBSpec.from_dict(data.get("podDisruptionBudget")),
            graceful_shutdown=GracefulShutdownSpec.from_dict(data.get("gracefulShutdown")),
        )


@dataclass
class ServiceMonitorSpec:
    """Scrape-target settings."""

    additional_labels: dict[str, str] | None = None
    interval: str = ""
    scrape_timeout: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ServiceMonitorSpec | None:
        if data is None:
            return None
        return cls(
            additional_labels=_copy(data.get("additionalLabels")),
            interval=data.get("interval") or "",
            scrape_timeout=data.get("scrapeTimeout") or "",
        )


@dataclass
class MonitoringSpec:
    """Metrics exporter sidecar and scrape-target settings."""

    enabled: bool = False
    exporter_image: str | None = None
    exporter_resources: dict[str, Any] | None = None
    service_monitor: ServiceMonitorSpec | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MonitoringSpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            exporter_image=data.get("exporterImage"),
            exporter_resources=_copy(data.get("exporterResources")),
            service_monitor=ServiceMonitorSpec.from_dict(data.get("serviceMonitor")),
        )


@dataclass
class SASLSpec:
    """SASL authentication backed by a Secret holding ``password-file``."""

    enabled: bool = False
    credentials_secret_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SASLSpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            credentials_secret_name=(data.get("credentialsSecretRef") or {}).get("name", ""),
        )


@dataclass
class TLSSpec:
    """TLS listener backed by a Secret holding ``tls.crt``/``tls.key``/``ca.crt``."""

    enabled: bool = False
    certificate_secret_name: str = ""
    enable_client_cert: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TLSSpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            certificate_secret_name=(data.get("certificateSecretRef") or {}).get("name", ""),
            enable_client_cert=bool(data.get("enableClientCert", False)),
        )


@dataclass
class NetworkPolicySpec:
    """Ingress policy settings."""

    enabled: bool = False
    allowed_sources: list[dict[str, Any]] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> NetworkPolicySpec | None:
        if data is None:
            return None
        return cls(
            enabled=bool(data.get("enabled", False)),
            allowed_sources=_copy(data.get("allowedSources")),
        )


@dataclass
class SecuritySpec:
    """Pod/container security and credential references."""

    pod_security_context: dict[str, Any] | None = None
    container_security_context: dict[str, Any] | None = None
    sasl: SASLSpec | None = None
    tls: TLSSpec | None = None
    network_policy: NetworkPolicySpec | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SecuritySpec | None:
        if data is None:
            return None
        return cls(
            pod_security_context=_copy(data.get("podSecurityContext")),
            container_security_context=_copy(data.get("containerSecurityContext")),
            sasl=SASLSpec.from_dict(data.get("sasl")),
            tls=TLSSpec.from_dict(data.get("tls")),
            network_policy=NetworkPolicySpec.from_dict(data.get("networkPolicy")),
        )


@dataclass
class ServiceSpec:
    """Extra settings for the headless Service."""

    annotations: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ServiceSpec | None:
        if data is None:
            return None
        return cls(annotations=_copy(data.get("annotations")))


@dataclass
class AutoscalingSpec:
    """HorizontalPodAutoscaler settings."""

    enabled: bool = False
    min_replicas: int | None = None
    max_replicas: int = 0
    metrics: list[dict[str, Any]] | None = None
    behavior: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AutoscalingSpec | None:
        if data is None:
            return None
        min_replicas = data.get("minReplicas")
        return cls(
            enabled=bool(data.get("enabled", False)),
            min_replicas=int(min_replicas) if min_replicas is not None else None,
            max_replicas=int(data.get("maxReplicas") or 0),
            metrics=_copy(data.get("metrics")),
            behavior=_copy(data.get("behavior")),
        )


@dataclass
class MemcachedSpec:
    """Desired state of a Memcached instance."""

    replicas: int | None = None
    image: str | None = None
    resources: dict[str, Any] | None = None
    memcached: MemcachedConfig | None = None
    high_availability: HighAvailabilitySpec | None = None
    monitoring: MonitoringSpec | None = None
    security: SecuritySpec | None = None
    service: ServiceSpec | None = None
    autoscaling: AutoscalingSpec | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MemcachedSpec:
        data = data or {}
        replicas = data.get("replicas")
        return cls(
            replicas=int(replicas) if replicas is not None else None,
            image=data.get("image"),
            resources=_copy(data.get("resources")),
            memcached=MemcachedConfig.from_dict(data.get("memcached")),
            high_availability=HighAvailabilitySpec.from_dict(data.get("highAvailability")),
            monitoring=MonitoringSpec.from_dict(data.get("monitoring")),
            security=SecuritySpec.from_dict(data.get("security")),
            service=ServiceSpec.from_dict(data.get("service")),
            autoscaling=AutoscalingSpec.from_dict(data.get("autoscaling")),
        )


@dataclass
class Memcached:
    """A Memcached custom resource as seen by one reconcile."""

    name: str
    namespace: str
    uid: str = ""
    generation: int = 0
    resource_version: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    spec: MemcachedSpec = field(default_factory=MemcachedSpec)
    status: dict[str, Any] = field(default_factory=dict)
    api_version: str = ""
    kind: str = ""

    @classmethod
    def from_dict(cls, body: dict[str, Any]) -> Memcached:
        """Parse a Memcached object as returned by the API server."""
        meta = body.get("metadata") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", ""),
            generation=int(meta.get("generation") or 0),
            resource_version=meta.get("resourceVersion", ""),
            annotations=dict(meta.get("annotations") or {}),
            spec=MemcachedSpec.from_dict(body.get("spec")),
            status=copy.deepcopy(body.get("status") or {}),
            api_version=body.get("apiVersion") or API_GROUP_VERSION,
            kind=body.get("kind") or KIND_MEMCACHED,
        )

    @property
    def object_ref(self) -> dict[str, Any]:
        """Minimal object reference, enough for events and logging."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {"name": self.name, "namespace": self.namespace, "uid": self.uid},
        }
