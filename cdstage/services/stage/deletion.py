"""
Stage deletion protocol.

A stage carries a finalizer from its first reconciliation. When deletion is
requested the finalizer is kept until every later stage of the pipeline is
gone, because their verified streams derive from this stage's output. Then
the stage's consumption labels are moved into the history annotation of the
streams it consumed, its namespace is released, and the finalizer is cleared.

States:
    ACTIVE -> PENDING_DEPENDENTS -> FINALIZING -> GONE
"""

import enum

from pydantic import BaseModel

from cdstage.exceptions import CdStageError, ProvisioningError, ResourceNotFoundError
from cdstage.models import (
    LAST_DELETED_ENVS_ANNOTATION,
    CodebaseImageStream,
    Namespace,
    Project,
    Resource,
    Space,
    Stage,
    environment_label,
)
from cdstage.repositories import BaseRepository, CDPipelineRepository, StageRepository
from cdstage.settings import PlatformConfig
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .handler import target_namespace_name
from .image_stream import ConsumedStreamResolver
from .ordering import StageOrderingService

ENV_LABEL_DELETION_FINALIZER = "envLabelDeletion"


class DeletionState(str, enum.Enum):
    ACTIVE = "active"
    PENDING_DEPENDENTS = "pending_dependents"
    FINALIZING = "finalizing"
    GONE = "gone"


class DeletionOutcome(BaseModel):
    """Where a stage stands in the deletion protocol after one pass.

    Args:
        state: Reached state.
        requeue_after: Seconds after which the caller should re-check,
            set only while later stages still exist.
    """

    state: DeletionState
    requeue_after: float | None = None


def build_annotation_value(envs: str, value: str) -> str:
    """Append ``value`` to a comma-joined history unless already present."""
    if not envs:
        return value
    if value in envs.split(","):
        return envs
    return f"{envs},{value}"


def tenancy_unit_kind(config: PlatformConfig) -> type[Resource]:
    """Kind of the object backing a stage's namespace on this platform."""
    if config.is_kubernetes:
        return Space if config.space_mode_enabled else Namespace
    return Project


class DeletionProtocol:
    """Drives a stage through the deletion protocol.

    Args:
        store: Cluster object store.
        config: Immutable platform configuration.
        backoff_seconds: Fixed delay before re-checking blocked deletions.
    """

    def __init__(self, store: ObjectStore, config: PlatformConfig, backoff_seconds: float):
        self.config = config
        self.backoff_seconds = backoff_seconds
        self.stages = StageRepository(store)
        self.pipelines = CDPipelineRepository(store)
        self.streams = BaseRepository(store, CodebaseImageStream)
        self.tenancy_units = BaseRepository(store, tenancy_unit_kind(config))
        self.ordering = StageOrderingService(store)
        self.resolver = ConsumedStreamResolver(store)

    async def current_state(self, stage: Stage) -> DeletionState:
        """Classify a stage within the deletion protocol."""
        if not stage.is_being_deleted:
            return DeletionState.ACTIVE
        if not stage.has_finalizer(ENV_LABEL_DELETION_FINALIZER):
            return DeletionState.GONE
        if not await self.ordering.is_last_stage(stage):
            return DeletionState.PENDING_DEPENDENTS
        return DeletionState.FINALIZING

    async def handle(self, stage: Stage) -> DeletionOutcome:
        """Advance the deletion protocol for a stage by one pass.

        Args:
            stage: Stage as last read from the store; updated in place

        Returns:
            The state reached by this pass

        Raises:
            CdStageError: If cleanup fails; the finalizer is left in place
        """
        state = await self.current_state(stage)

        match state:
            case DeletionState.ACTIVE:
                await self.ensure_finalizer(stage)
                return DeletionOutcome(state=state)
            case DeletionState.GONE:
                return DeletionOutcome(state=state)
            case DeletionState.PENDING_DEPENDENTS:
                logger.info(
                    f"Postponing deletion of stage '{stage.name}' until later stages "
                    f"of pipeline '{stage.spec.cd_pipeline}' are deleted"
                )
                return DeletionOutcome(state=state, requeue_after=self.backoff_seconds)

        await self.finalize(stage)
        return DeletionOutcome(state=DeletionState.GONE)

    async def finalize(self, stage: Stage) -> None:
        """Clean up after a stage and clear its finalizer."""
        logger.info(f"Finalizing stage '{stage.name}'")
        await self.delete_environment_labels(stage)
        if self.config.manage_namespace:
            await self.delete_target_namespace(stage)

        stage.remove_finalizer(ENV_LABEL_DELETION_FINALIZER)
        await self.stages.update(stage)
        logger.info(f"Finalizer has been removed from stage '{stage.name}'")

    async def ensure_finalizer(self, stage: Stage) -> None:
        if stage.has_finalizer(ENV_LABEL_DELETION_FINALIZER):
            return
        stage.add_finalizer(ENV_LABEL_DELETION_FINALIZER)
        await self.stages.update(stage)
        logger.debug(f"Finalizer '{ENV_LABEL_DELETION_FINALIZER}' added to stage '{stage.name}'")

    async def delete_environment_labels(self, stage: Stage) -> None:
        """Move the stage's consumption label into each consumed stream's history.

        Streams that no longer carry the label are left untouched, so a retried
        cleanup records each stage at most once.
        """
        pipeline = await self.pipelines.get_with_streams(stage)
        env = environment_label(pipeline.spec.name, stage.spec.name)

        for input_stream in pipeline.spec.input_docker_streams:
            stream = await self.resolver.resolve(stage, pipeline, input_stream)
            if env not in stream.metadata.labels:
                logger.debug(f"Codebase image stream '{stream.name}' has no label '{env}'")
                continue

            del stream.metadata.labels[env]
            annotations = stream.metadata.annotations
            annotations[LAST_DELETED_ENVS_ANNOTATION] = build_annotation_value(
                annotations.get(LAST_DELETED_ENVS_ANNOTATION, ""), env
            )
            try:
                await self.streams.update(stream)
            except CdStageError as e:
                raise ProvisioningError(f"couldn't update {stream.name} codebase image stream") from e
            logger.info(f"Label '{env}' has been deleted from codebase image stream '{stream.name}'")

    async def delete_target_namespace(self, stage: Stage) -> None:
        model = self.tenancy_units.model_class
        name = target_namespace_name(stage)
        try:
            obj = await self.tenancy_units.get(name)
            await self.tenancy_units.delete(obj)
        except ResourceNotFoundError:
            logger.debug(f"{model.kind} '{name}' is already deleted")
            return
        except CdStageError as e:
            raise ProvisioningError(f"failed to delete {model.kind} '{name}'") from e
        logger.info(f"{model.kind} '{name}' has been deleted")
