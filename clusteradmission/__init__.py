"""Admission hooks that mutate and validate ManagedCluster and ManagedClusterSetBinding requests."""

__version__ = "0.1.0"
__all__ = [
    "admission",
    "objects",
    "cluster_mutating",
    "cluster_validating",
    "clustersetbinding",
]