"""
Cluster object store abstraction and its in-memory implementation.
"""

from .base import ObjectStore
from .memory import InMemoryObjectStore

__all__ = ["InMemoryObjectStore", "ObjectStore"]
