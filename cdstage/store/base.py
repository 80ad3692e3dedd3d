"""
Cluster object store contract.

The provisioning core talks to the cluster only through this protocol. Every
call is a single read or write of one object; writes are guarded by
``metadata.resource_version`` (optimistic concurrency).
"""

from collections.abc import Sequence
from typing import Protocol, TypeVar

from cdstage.models.base import Resource
from cdstage.types import Labels

ResourceT = TypeVar("ResourceT", bound=Resource)


class ObjectStore(Protocol):
    """Minimal per-object cluster API.

    Implementations raise ``ResourceNotFoundError``,
    ``ResourceAlreadyExistsError`` and ``ResourceConflictError`` from
    ``cdstage.exceptions``.
    """

    async def get(
        self, model: type[ResourceT], namespace: str, name: str
    ) -> ResourceT:
        """Get an object by kind, namespace and name."""
        ...

    async def list(
        self, model: type[ResourceT], namespace: str | None = None, labels: Labels | None = None
    ) -> Sequence[ResourceT]:
        """List objects of a kind, optionally filtered by namespace and labels."""
        ...

    async def create(self, obj: Resource) -> None:
        """Create an object; its resource version is updated in place."""
        ...

    async def update(self, obj: Resource) -> None:
        """Replace an object; its resource version is updated in place."""
        ...

    async def delete(self, obj: Resource) -> None:
        """Request deletion; objects with finalizers are only marked."""
        ...
