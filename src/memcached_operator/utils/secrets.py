"""Utilities for Secrets referenced by a Memcached CR."""

from __future__ import annotations

import base64
import hashlib
from typing import TYPE_CHECKING, Any

from ..constants import KIND_SECRET
from ..models import Memcached
from .errors import is_not_found

if TYPE_CHECKING:
    from ..services.kubernetes.base import ObjectStore


def decode_secret_value(value: str | bytes) -> bytes:
    """Return the raw bytes of one Secret data entry.

    The API serves data values base64 encoded; some client paths already hand
    back bytes.
    """
    if isinstance(value, bytes):
        return value
    return base64.b64decode(value)


def referenced_secret_names(mc: Memcached) -> list[str]:
    """Return the sorted, de-duplicated Secret names referenced by enabled SASL/TLS."""
    security = mc.spec.security
    if security is None:
        return []

    names = set()
    if security.sasl is not None and security.sasl.enabled and security.sasl.credentials_secret_name:
        names.add(security.sasl.credentials_secret_name)
    if security.tls is not None and security.tls.enabled and security.tls.certificate_secret_name:
        names.add(security.tls.certificate_secret_name)
    return sorted(names)


def fetch_referenced_secrets(
    store: ObjectStore,
    mc: Memcached,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Fetch the Secrets referenced by the CR.

    Args:
        store: Cluster object store
        mc: Memcached CR

    Returns:
        Tuple of (found Secrets, names of Secrets that do not exist)

    Raises:
        ApiException: For any read error other than 404
    """
    found = []
    missing = []
    for name in referenced_secret_names(mc):
        try:
            found.append(store.get(KIND_SECRET, mc.namespace, name))
        except Exception as e:
            if not is_not_found(e):
                raise
            missing.append(name)
    return found, missing


def compute_secret_hash(*secrets: dict[str, Any]) -> str:
    """Return a deterministic SHA-256 hex digest over the Secrets' data.

    Secrets are ordered by name and keys within each Secret are sorted, so the
    digest depends only on names, keys and bytes. Returns "" when there is no
    data at all.

    Args:
        *secrets: Secret objects as returned by the API

    Returns:
        Hex digest, or empty string
    """
    if not any((s.get("data") or {}) for s in secrets):
        return ""

    ordered = sorted(secrets, key=lambda s: (s.get("metadata") or {}).get("name", ""))

    h = hashlib.sha256()
    for secret in ordered:
        name = (secret.get("metadata") or {}).get("name", "")
        data = secret.get("data") or {}
        for key in sorted(data):
            h.update(name.encode("utf-8"))
            h.update(b"\x00")
            h.update(key.encode("utf-8"))
            h.update(b"\x00")
            h.update(decode_secret_value(data[key]))

    return h.hexdigest()
