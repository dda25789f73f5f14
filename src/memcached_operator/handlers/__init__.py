"""Handlers for the Memcached CR."""

from .base import BaseHandler
from .memcached import MemcachedReconciler, ReconcileResult
from .resource import delete_resource, reconcile_resource, set_controller_reference

__all__ = [
    "BaseHandler",
    "MemcachedReconciler",
    "ReconcileResult",
    "delete_resource",
    "reconcile_resource",
    "set_controller_reference",
]
