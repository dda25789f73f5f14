"""Cluster object store interface."""

from __future__ import annotations

from typing import Any, Protocol


class ObjectStore(Protocol):
    """Protocol defining the cluster API operations the reconciler needs.

    Objects are plain camelCase dicts as served by the API. Failures raise
    kubernetes.client.exceptions.ApiException; status 404 means not found and
    409 means a stale resourceVersion or a racing create.
    """

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Read one namespaced object."""
        ...

    def create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create an object and return it as stored."""
        ...

    def replace(self, kind: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """Replace an object; body carries the resourceVersion it was read at."""
        ...

    def delete(self, kind: str, namespace: str, name: str) -> None:
        """Delete an object."""
        ...

    def get_memcached(self, namespace: str, name: str) -> dict[str, Any]:
        """Read a Memcached custom resource."""
        ...

    def list_memcacheds(self, namespace: str) -> list[dict[str, Any]]:
        """List Memcached custom resources in a namespace."""
        ...

    def patch_memcached_status(self, namespace: str, name: str, status: dict[str, Any]) -> dict[str, Any]:
        """Merge-patch the status subresource of a Memcached custom resource."""
        ...
