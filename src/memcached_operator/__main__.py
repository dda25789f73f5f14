"""Run the operator: ``python -m memcached_operator``."""

from __future__ import annotations

import os

import kopf

from . import main as _handlers  # noqa: F401  registers the kopf handlers


def main() -> None:
    """Run the kopf operator loop for the configured namespace, or cluster-wide."""
    namespace = os.getenv("WATCH_NAMESPACE")
    kopf.run(
        clusterwide=not namespace,
        namespaces=[namespace] if namespace else (),
        standalone=True,
    )


if __name__ == "__main__":
    main()
