"""Common type definitions for cdstage.

This module provides type aliases for commonly used types across the package.
"""

from typing import TypeAlias

# Object metadata maps
Labels: TypeAlias = dict[str, str]
Annotations: TypeAlias = dict[str, str]

# CI job configuration passed to the job provisioner
JobConfig: TypeAlias = dict[str, str]

# (kind, namespace, name) key of a stored object
ObjectKey: TypeAlias = tuple[str, str, str]
