"""Kubernetes operator that runs memcached instances from Memcached custom resources."""

__version__ = "0.1.0"
