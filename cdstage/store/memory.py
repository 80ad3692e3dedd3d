"""
In-memory implementation of the cluster object store.

Mirrors the semantics the provisioning core relies on: resource versions with
conflict detection on update, finalizer-aware deletion, and removal of an
object once its last finalizer is cleared after deletion was requested.
Used by the test suite and for local dry runs.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from itertools import count
from typing import TypeVar

from cdstage.exceptions import (
    ResourceAlreadyExistsError,
    ResourceConflictError,
    ResourceNotFoundError,
)
from cdstage.models.base import Resource
from cdstage.types import Labels, ObjectKey
from cdstage.utils.logger import logger

ResourceT = TypeVar("ResourceT", bound=Resource)


def _key(kind: str, namespaced: bool, namespace: str, name: str) -> ObjectKey:
    return (kind, namespace if namespaced else "", name)


class InMemoryObjectStore:
    """Dictionary-backed object store.

    Objects are deep-copied on the way in and out, so callers never share
    state with the store or with each other.

    Example:
        store = InMemoryObjectStore([pipeline, stage])
        stage = await store.get(Stage, "edp", "dev")
    """

    def __init__(self, objects: Iterable[Resource] = ()):
        self._objects: dict[ObjectKey, Resource] = {}
        self._versions = count(1)
        for obj in objects:
            self._put(obj)

    def _put(self, obj: Resource) -> None:
        key = _key(obj.kind, obj.namespaced, obj.metadata.namespace, obj.metadata.name)
        obj.metadata.resource_version = next(self._versions)
        self._objects[key] = obj.model_copy(deep=True)

    def __contains__(self, obj: object) -> bool:
        if not isinstance(obj, Resource):
            return False
        return _key(obj.kind, obj.namespaced, obj.metadata.namespace, obj.metadata.name) in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    async def get(
        self, model: type[ResourceT], namespace: str, name: str
    ) -> ResourceT:
        stored = self._objects.get(_key(model.kind, model.namespaced, namespace, name))
        if stored is None:
            raise ResourceNotFoundError(model.kind, namespace if model.namespaced else "", name)
        return stored.model_copy(deep=True)  # type: ignore[return-value]

    async def list(
        self, model: type[ResourceT], namespace: str | None = None, labels: Labels | None = None
    ) -> Sequence[ResourceT]:
        result: list[ResourceT] = []
        for (kind, obj_namespace, _), stored in self._objects.items():
            if kind != model.kind:
                continue
            if namespace is not None and model.namespaced and obj_namespace != namespace:
                continue
            if labels and any(stored.metadata.labels.get(k) != v for k, v in labels.items()):
                continue
            result.append(stored.model_copy(deep=True))  # type: ignore[arg-type]
        return sorted(result, key=lambda o: o.metadata.name)

    async def create(self, obj: Resource) -> None:
        key = _key(obj.kind, obj.namespaced, obj.metadata.namespace, obj.metadata.name)
        if key in self._objects:
            raise ResourceAlreadyExistsError(*key)
        self._put(obj)
        logger.debug(f"Created {obj.kind} '{obj.metadata.name}' (version={obj.metadata.resource_version})")

    async def update(self, obj: Resource) -> None:
        key = _key(obj.kind, obj.namespaced, obj.metadata.namespace, obj.metadata.name)
        stored = self._objects.get(key)
        if stored is None:
            raise ResourceNotFoundError(*key)
        if stored.metadata.resource_version != obj.metadata.resource_version:
            raise ResourceConflictError(*key)

        # Deletion cannot be revoked by a client write
        obj.metadata.deletion_timestamp = stored.metadata.deletion_timestamp
        if obj.is_being_deleted and not obj.metadata.finalizers:
            del self._objects[key]
            logger.debug(f"Removed {obj.kind} '{obj.metadata.name}' after last finalizer")
            return
        self._put(obj)

    async def delete(self, obj: Resource) -> None:
        key = _key(obj.kind, obj.namespaced, obj.metadata.namespace, obj.metadata.name)
        stored = self._objects.get(key)
        if stored is None:
            raise ResourceNotFoundError(*key)
        if not stored.metadata.finalizers:
            del self._objects[key]
            return
        if stored.metadata.deletion_timestamp is None:
            stored.metadata.deletion_timestamp = datetime.now(UTC)
            stored.metadata.resource_version = next(self._versions)
        obj.metadata.deletion_timestamp = stored.metadata.deletion_timestamp
        obj.metadata.resource_version = stored.metadata.resource_version
