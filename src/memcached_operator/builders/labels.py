"""Standard labels shared by every owned resource."""

from __future__ import annotations

from typing import Any

from ..constants import APP_NAME, LABEL_INSTANCE, LABEL_MANAGED_BY, LABEL_NAME, MANAGED_BY


def labels_for_memcached(name: str) -> dict[str, str]:
    """Return the recommended label set scoping selection to one Memcached CR."""
    return {
        LABEL_NAME: APP_NAME,
        LABEL_INSTANCE: name,
        LABEL_MANAGED_BY: MANAGED_BY,
    }


def object_metadata(obj: dict[str, Any]) -> dict[str, Any]:
    """Return the metadata dict of obj, creating it when absent."""
    return obj.setdefault("metadata", {})


def object_spec(obj: dict[str, Any]) -> dict[str, Any]:
    """Return the spec dict of obj, creating it when absent."""
    spec = obj.get("spec")
    if spec is None:
        spec = obj["spec"] = {}
    return spec
