"""
Base models for cdstage cluster objects.

This module provides the object metadata shared by every record kept in the
cluster object store, and the base class all resource models derive from.
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from cdstage.types import Annotations, Labels


class OwnerReference(BaseModel):
    """Reference from a dependent object to its owner."""

    kind: str
    name: str
    controller: bool = True
    block_owner_deletion: bool = True


class ObjectMeta(BaseModel):
    """Metadata common to all cluster objects.

    Args:
        name: Object name, unique per kind and namespace.
        namespace: Owning namespace; empty for cluster-scoped kinds.
        labels: Indexed key-value pairs.
        annotations: Free-form key-value pairs.
        finalizers: Markers that block final removal.
        owner_references: Owners of this object.
        resource_version: Store-assigned version used for optimistic concurrency.
        deletion_timestamp: Set by the store when deletion has been requested.
    """

    name: str
    namespace: str = ""
    labels: Labels = Field(default_factory=dict)
    annotations: Annotations = Field(default_factory=dict)
    finalizers: list[str] = Field(default_factory=list)
    owner_references: list[OwnerReference] = Field(default_factory=list)
    resource_version: int = 0
    deletion_timestamp: datetime | None = None


class Resource(BaseModel):
    """Base model for all objects kept in the cluster object store."""

    kind: ClassVar[str] = ""
    namespaced: ClassVar[bool] = True

    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.metadata.finalizers

    def add_finalizer(self, finalizer: str) -> None:
        if finalizer not in self.metadata.finalizers:
            self.metadata.finalizers.append(finalizer)

    def remove_finalizer(self, finalizer: str) -> None:
        self.metadata.finalizers = [f for f in self.metadata.finalizers if f != finalizer]

    @property
    def is_being_deleted(self) -> bool:
        return self.metadata.deletion_timestamp is not None
