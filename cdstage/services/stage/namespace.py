"""
Namespace provisioning steps.

One variant per platform decision: an existence check when namespaces are not
managed, and creation of a Namespace, Space or Project otherwise. Creating an
object that already exists counts as success, so every variant is safe to
repeat.
"""

from abc import ABC, abstractmethod

from cdstage.exceptions import (
    CdStageError,
    ProvisioningError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from cdstage.models import Namespace, ObjectMeta, Project, Resource, Space, SpaceSpec, Stage
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .handler import target_namespace_name


class CheckNamespaceExists:
    """Verify that an externally managed namespace exists."""

    def __init__(self, store: ObjectStore):
        self.store = store

    async def serve_request(self, stage: Stage) -> None:
        name = target_namespace_name(stage)
        logger.info(f"Namespace is not managed by the operator, checking '{name}' exists")
        try:
            await self.store.get(Namespace, "", name)
        except ResourceNotFoundError as e:
            raise e.with_context(
                f"{e}; it is required by stage '{stage.name}' and namespace management is disabled"
            )
        logger.info(f"Namespace '{name}' exists")


class _PutTenancyUnit(ABC):
    """Create the tenancy unit of a stage unless it already exists."""

    def __init__(self, store: ObjectStore):
        self.store = store

    @abstractmethod
    def build(self, stage: Stage, name: str) -> Resource:
        """Build the object backing the stage's namespace."""

    async def serve_request(self, stage: Stage) -> None:
        name = target_namespace_name(stage)
        obj = self.build(stage, name)
        logger.info(f"Creating {obj.kind} '{name}' for stage '{stage.name}'")
        try:
            await self.store.create(obj)
        except ResourceAlreadyExistsError:
            logger.info(f"{obj.kind} '{name}' already exists")
            return
        except CdStageError as e:
            raise ProvisioningError(f"failed to create {obj.kind} '{name}': {e}") from e
        logger.info(f"{obj.kind} '{name}' has been created")


class PutNamespace(_PutTenancyUnit):
    """Create a kubernetes namespace."""

    def build(self, stage: Stage, name: str) -> Resource:
        return Namespace(metadata=ObjectMeta(name=name))


class PutSpace(_PutTenancyUnit):
    """Create a multi-tenant space owned by the stage's source namespace account."""

    def build(self, stage: Stage, name: str) -> Resource:
        return Space(metadata=ObjectMeta(name=name), spec=SpaceSpec(account=stage.namespace))


class PutProject(_PutTenancyUnit):
    """Create an OpenShift project."""

    def build(self, stage: Stage, name: str) -> Resource:
        return Project(metadata=ObjectMeta(name=name))
