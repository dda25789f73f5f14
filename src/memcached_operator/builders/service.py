"""Builder for the headless Service."""

from __future__ import annotations

from typing import Any

from ..constants import (
    MEMCACHED_PORT,
    MEMCACHED_PORT_NAME,
    METRICS_PORT,
    METRICS_PORT_NAME,
    TLS_PORT,
    TLS_PORT_NAME,
)
from ..models import Memcached
from .labels import labels_for_memcached, object_metadata, object_spec


def _port(name: str, port: int) -> dict[str, Any]:
    return {"name": name, "port": port, "targetPort": name, "protocol": "TCP"}


def construct_service(mc: Memcached, svc: dict[str, Any]) -> None:
    """Set the desired state of the headless Service in place."""
    labels = labels_for_memcached(mc.name)
    metadata = object_metadata(svc)
    metadata["labels"] = labels

    if mc.spec.service is not None and mc.spec.service.annotations:
        metadata["annotations"] = dict(mc.spec.service.annotations)
    else:
        metadata.pop("annotations", None)

    spec = object_spec(svc)
    spec["clusterIP"] = "None"
    spec["selector"] = dict(labels)

    ports = [_port(MEMCACHED_PORT_NAME, MEMCACHED_PORT)]
    security = mc.spec.security
    if security is not None and security.tls is not None and security.tls.enabled:
        ports.append(_port(TLS_PORT_NAME, TLS_PORT))
    if mc.spec.monitoring is not None and mc.spec.monitoring.enabled:
        ports.append(_port(METRICS_PORT_NAME, METRICS_PORT))
    spec["ports"] = ports
