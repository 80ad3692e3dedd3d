"""Base repository with common object store operations."""

from collections.abc import Sequence
from typing import Generic, TypeVar

from cdstage.exceptions import ResourceNotFoundError
from cdstage.models.base import Resource
from cdstage.store import ObjectStore
from cdstage.types import Labels

ModelT = TypeVar("ModelT", bound=Resource)


class BaseRepository(Generic[ModelT]):
    """Base repository providing typed access to one kind of cluster object."""

    def __init__(self, store: ObjectStore, model_class: type[ModelT]):
        """Initialize repository with store and model class.

        Args:
            store: Cluster object store
            model_class: Resource class this repository operates on
        """
        self.store = store
        self.model_class = model_class

    async def get(self, name: str, namespace: str = "") -> ModelT:
        """Get object by name or raise.

        Args:
            name: Object name
            namespace: Object namespace (ignored for cluster-scoped kinds)

        Returns:
            Found object

        Raises:
            ResourceNotFoundError: If the object doesn't exist
        """
        return await self.store.get(self.model_class, namespace, name)

    async def get_optional(self, name: str, namespace: str = "") -> ModelT | None:
        """Get object by name or return None.

        Args:
            name: Object name
            namespace: Object namespace

        Returns:
            Found object or None
        """
        try:
            return await self.store.get(self.model_class, namespace, name)
        except ResourceNotFoundError:
            return None

    async def list_all(
        self, namespace: str | None = None, labels: Labels | None = None
    ) -> Sequence[ModelT]:
        """List all objects matching namespace and labels.

        Args:
            namespace: Namespace to list in, or None for all
            labels: Labels every returned object must carry

        Returns:
            List of objects
        """
        return await self.store.list(self.model_class, namespace, labels)

    async def create(self, obj: ModelT) -> ModelT:
        """Create a new object.

        Args:
            obj: Object to create

        Returns:
            Created object with its resource version set
        """
        await self.store.create(obj)
        return obj

    async def update(self, obj: ModelT) -> ModelT:
        """Update an existing object.

        Args:
            obj: Object with modified fields

        Returns:
            Updated object with its new resource version
        """
        await self.store.update(obj)
        return obj

    async def delete(self, obj: ModelT) -> None:
        """Request deletion of an object."""
        await self.store.delete(obj)
