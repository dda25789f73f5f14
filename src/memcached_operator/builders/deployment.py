"""Builder for the memcached Deployment."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import (
    ANNOTATION_RESTART_TRIGGER,
    ANNOTATION_SECRET_HASH,
    ANTI_AFFINITY_HARD,
    ANTI_AFFINITY_SOFT,
    APP_NAME,
    DEFAULT_EXPORTER_IMAGE,
    DEFAULT_IMAGE,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_ITEM_SIZE,
    DEFAULT_MAX_MEMORY_MB,
    DEFAULT_PRE_STOP_DELAY_SECONDS,
    DEFAULT_REPLICAS,
    DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS,
    DEFAULT_THREADS,
    HOSTNAME_TOPOLOGY_KEY,
    LABEL_INSTANCE,
    LABEL_NAME,
    MEMCACHED_PORT,
    MEMCACHED_PORT_NAME,
    METRICS_PORT,
    METRICS_PORT_NAME,
    SASL_MOUNT_PATH,
    SASL_PASSWORD_FILE,
    SASL_VOLUME_NAME,
    TLS_MOUNT_PATH,
    TLS_PORT,
    TLS_PORT_NAME,
    TLS_VOLUME_NAME,
)
from ..models import Memcached, MemcachedConfig, SASLSpec, TLSSpec
from .hpa import hpa_enabled
from .labels import labels_for_memcached, object_metadata, object_spec


def build_memcached_args(
    config: MemcachedConfig | None,
    sasl: SASLSpec | None = None,
    tls: TLSSpec | None = None,
) -> list[str]:
    """Build the memcached command line.

    Flag order is fixed: memory, connections, threads, item size, verbosity,
    SASL, TLS, then extra args in declaration order.

    Args:
        config: Engine configuration, defaults are used when None
        sasl: SASL settings
        tls: TLS settings

    Returns:
        Argument list for the memcached container
    """
    if config is None:
        config = MemcachedConfig()

    args = [
        "-m", str(config.max_memory_mb or DEFAULT_MAX_MEMORY_MB),
        "-c", str(config.max_connections or DEFAULT_MAX_CONNECTIONS),
        "-t", str(config.threads or DEFAULT_THREADS),
        "-I", config.max_item_size or DEFAULT_MAX_ITEM_SIZE,
    ]

    if config.verbosity == 1:
        args.append("-v")
    elif config.verbosity == 2:
        args.append("-vv")

    if sasl is not None and sasl.enabled:
        args.extend(["-Y", f"{SASL_MOUNT_PATH}/{SASL_PASSWORD_FILE}"])

    if tls is not None and tls.enabled:
        args.extend([
            "-Z",
            "-o", f"ssl_chain_cert={TLS_MOUNT_PATH}/tls.crt",
            "-o", f"ssl_key={TLS_MOUNT_PATH}/tls.key",
        ])
        if tls.enable_client_cert:
            args.extend(["-o", f"ssl_ca_cert={TLS_MOUNT_PATH}/ca.crt"])

    args.extend(config.extra_args)
    return args


def desired_replicas(mc: Memcached) -> int | None:
    """Return the replica count to write, or None when the autoscaler owns it."""
    if hpa_enabled(mc):
        return None
    if mc.spec.replicas is None:
        return DEFAULT_REPLICAS
    return mc.spec.replicas


def build_anti_affinity(mc: Memcached) -> dict[str, Any] | None:
    """Return the pod anti-affinity for the configured preset, or None."""
    ha = mc.spec.high_availability
    if ha is None or ha.anti_affinity_preset is None:
        return None

    term = {
        "topologyKey": HOSTNAME_TOPOLOGY_KEY,
        "labelSelector": {
            "matchLabels": {
                LABEL_NAME: APP_NAME,
                LABEL_INSTANCE: mc.name,
            },
        },
    }

    if ha.anti_affinity_preset == ANTI_AFFINITY_SOFT:
        return {
            "podAntiAffinity": {
                "preferredDuringSchedulingIgnoredDuringExecution": [
                    {"weight": 100, "podAffinityTerm": term},
                ],
            },
        }
    if ha.anti_affinity_preset == ANTI_AFFINITY_HARD:
        return {
            "podAntiAffinity": {
                "requiredDuringSchedulingIgnoredDuringExecution": [term],
            },
        }
    return None


def build_topology_spread_constraints(mc: Memcached) -> list[dict[str, Any]] | None:
    """Return topology spread constraints verbatim, or None when unset."""
    ha = mc.spec.high_availability
    if ha is None or not ha.topology_spread_constraints:
        return None
    return copy.deepcopy(ha.topology_spread_constraints)


def build_graceful_shutdown(mc: Memcached) -> tuple[dict[str, Any] | None, int | None]:
    """Return (lifecycle, terminationGracePeriodSeconds) or (None, None) when disabled."""
    ha = mc.spec.high_availability
    if ha is None or ha.graceful_shutdown is None or not ha.graceful_shutdown.enabled:
        return None, None

    gs = ha.graceful_shutdown
    pre_stop_delay = gs.pre_stop_delay_seconds or DEFAULT_PRE_STOP_DELAY_SECONDS
    grace_period = gs.termination_grace_period_seconds or DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS

    lifecycle = {
        "preStop": {
            "exec": {"command": ["sleep", str(pre_stop_delay)]},
        },
    }
    return lifecycle, grace_period


def build_exporter_container(mc: Memcached) -> dict[str, Any] | None:
    """Return the metrics exporter sidecar, or None when monitoring is off."""
    monitoring = mc.spec.monitoring
    if monitoring is None or not monitoring.enabled:
        return None

    return {
        "name": "exporter",
        "image": monitoring.exporter_image or DEFAULT_EXPORTER_IMAGE,
        "resources": copy.deepcopy(monitoring.exporter_resources) or {},
        "ports": [
            {
                "name": METRICS_PORT_NAME,
                "containerPort": METRICS_PORT,
                "protocol": "TCP",
            },
        ],
    }


def _sasl(mc: Memcached) -> SASLSpec | None:
    security = mc.spec.security
    if security is None or security.sasl is None or not security.sasl.enabled:
        return None
    return security.sasl


def _tls(mc: Memcached) -> TLSSpec | None:
    security = mc.spec.security
    if security is None or security.tls is None or not security.tls.enabled:
        return None
    return security.tls


def build_volumes(mc: Memcached) -> list[dict[str, Any]]:
    """Return the secret volumes for SASL and TLS, in that order."""
    volumes = []

    sasl = _sasl(mc)
    if sasl is not None:
        volumes.append({
            "name": SASL_VOLUME_NAME,
            "secret": {
                "secretName": sasl.credentials_secret_name,
                "items": [{"key": SASL_PASSWORD_FILE, "path": SASL_PASSWORD_FILE}],
            },
        })

    tls = _tls(mc)
    if tls is not None:
        items = [
            {"key": "tls.crt", "path": "tls.crt"},
            {"key": "tls.key", "path": "tls.key"},
        ]
        if tls.enable_client_cert:
            items.append({"key": "ca.crt", "path": "ca.crt"})
        volumes.append({
            "name": TLS_VOLUME_NAME,
            "secret": {
                "secretName": tls.certificate_secret_name,
                "items": items,
            },
        })

    return volumes


def build_volume_mounts(mc: Memcached) -> list[dict[str, Any]]:
    """Return the read-only mounts matching build_volumes."""
    mounts = []
    if _sasl(mc) is not None:
        mounts.append({"name": SASL_VOLUME_NAME, "mountPath": SASL_MOUNT_PATH, "readOnly": True})
    if _tls(mc) is not None:
        mounts.append({"name": TLS_VOLUME_NAME, "mountPath": TLS_MOUNT_PATH, "readOnly": True})
    return mounts


def build_pod_annotations(secret_hash: str, restart_trigger: str) -> dict[str, str] | None:
    """Return pod template annotations, or None when both values are empty."""
    if not secret_hash and not restart_trigger:
        return None
    annotations = {}
    if secret_hash:
        annotations[ANNOTATION_SECRET_HASH] = secret_hash
    if restart_trigger:
        annotations[ANNOTATION_RESTART_TRIGGER] = restart_trigger
    return annotations


def _tcp_probe(initial_delay: int, period: int) -> dict[str, Any]:
    return {
        "tcpSocket": {"port": MEMCACHED_PORT_NAME},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
    }


def construct_deployment(
    mc: Memcached,
    dep: dict[str, Any],
    secret_hash: str = "",
    restart_trigger: str = "",
) -> None:
    """Set the desired state of the Deployment in place.

    The whole spec is rewritten on every call. When the autoscaler owns the
    replica count, whatever value is already on dep is kept untouched.

    Args:
        mc: Memcached CR
        dep: Deployment object to mutate
        secret_hash: Fingerprint of the referenced Secrets
        restart_trigger: Manual restart marker copied from the CR
    """
    labels = labels_for_memcached(mc.name)
    security = mc.spec.security
    sasl = security.sasl if security is not None else None
    tls = security.tls if security is not None else None
    container_security_context = (
        copy.deepcopy(security.container_security_context) if security is not None else None
    )

    ports = [
        {"name": MEMCACHED_PORT_NAME, "containerPort": MEMCACHED_PORT, "protocol": "TCP"},
    ]
    if _tls(mc) is not None:
        ports.append({"name": TLS_PORT_NAME, "containerPort": TLS_PORT, "protocol": "TCP"})

    lifecycle, termination_grace_period = build_graceful_shutdown(mc)

    container: dict[str, Any] = {
        "name": "memcached",
        "image": mc.spec.image or DEFAULT_IMAGE,
        "args": build_memcached_args(mc.spec.memcached, sasl, tls),
        "resources": copy.deepcopy(mc.spec.resources) or {},
        "ports": ports,
        "livenessProbe": _tcp_probe(10, 10),
        "readinessProbe": _tcp_probe(5, 5),
    }
    if lifecycle is not None:
        container["lifecycle"] = lifecycle
    if container_security_context is not None:
        container["securityContext"] = container_security_context
    volume_mounts = build_volume_mounts(mc)
    if volume_mounts:
        container["volumeMounts"] = volume_mounts

    containers = [container]
    exporter = build_exporter_container(mc)
    if exporter is not None:
        if container_security_context is not None:
            exporter["securityContext"] = copy.deepcopy(container_security_context)
        containers.append(exporter)

    pod_spec: dict[str, Any] = {"containers": containers}
    affinity = build_anti_affinity(mc)
    if affinity is not None:
        pod_spec["affinity"] = affinity
    topology_spread_constraints = build_topology_spread_constraints(mc)
    if topology_spread_constraints is not None:
        pod_spec["topologySpreadConstraints"] = topology_spread_constraints
    if termination_grace_period is not None:
        pod_spec["terminationGracePeriodSeconds"] = termination_grace_period
    if security is not None and security.pod_security_context is not None:
        pod_spec["securityContext"] = copy.deepcopy(security.pod_security_context)
    volumes = build_volumes(mc)
    if volumes:
        pod_spec["volumes"] = volumes

    template_meta: dict[str, Any] = {"labels": dict(labels)}
    pod_annotations = build_pod_annotations(secret_hash, restart_trigger)
    if pod_annotations is not None:
        template_meta["annotations"] = pod_annotations

    spec: dict[str, Any] = {
        "selector": {"matchLabels": dict(labels)},
        "strategy": {
            "type": "RollingUpdate",
            "rollingUpdate": {"maxSurge": 1, "maxUnavailable": 0},
        },
        "template": {"metadata": template_meta, "spec": pod_spec},
    }

    replicas = desired_replicas(mc)
    if replicas is not None:
        spec["replicas"] = replicas
    else:
        live_replicas = object_spec(dep).get("replicas")
        if live_replicas is not None:
            spec["replicas"] = live_replicas

    object_metadata(dep)["labels"] = labels
    dep["spec"] = spec
