"""Builder for the Prometheus Operator ServiceMonitor."""

from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_SCRAPE_INTERVAL, DEFAULT_SCRAPE_TIMEOUT, METRICS_PORT_NAME
from ..models import Memcached
from .labels import labels_for_memcached, object_metadata, object_spec


def service_monitor_enabled(mc: Memcached) -> bool:
    """Return True when monitoring is enabled and a serviceMonitor block is present."""
    monitoring = mc.spec.monitoring
    return monitoring is not None and monitoring.enabled and monitoring.service_monitor is not None


def construct_service_monitor(mc: Memcached, sm: dict[str, Any]) -> None:
    """Set the desired state of the ServiceMonitor in place.

    Additional labels land on metadata only, and the standard labels are
    applied last so they always win on conflict.
    """
    sm_spec = mc.spec.monitoring.service_monitor if mc.spec.monitoring is not None else None

    labels: dict[str, str] = {}
    if sm_spec is not None and sm_spec.additional_labels:
        for key in sorted(sm_spec.additional_labels):
            labels[key] = sm_spec.additional_labels[key]
    labels.update(labels_for_memcached(mc.name))
    object_metadata(sm)["labels"] = labels

    interval = DEFAULT_SCRAPE_INTERVAL
    scrape_timeout = DEFAULT_SCRAPE_TIMEOUT
    if sm_spec is not None:
        interval = sm_spec.interval or interval
        scrape_timeout = sm_spec.scrape_timeout or scrape_timeout

    spec = object_spec(sm)
    spec["selector"] = {"matchLabels": labels_for_memcached(mc.name)}
    spec["namespaceSelector"] = {"matchNames": [mc.namespace]}
    spec["endpoints"] = [
        {
            "port": METRICS_PORT_NAME,
            "interval": interval,
            "scrapeTimeout": scrape_timeout,
        },
    ]
