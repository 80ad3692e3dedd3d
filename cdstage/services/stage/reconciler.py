"""
Stage reconciliation entry point.

Called by the watch loop with the namespace and name of a changed Stage.
Runs the deletion protocol, links the stage to its pipeline, runs the
provisioning chain and records the outcome on the stage status.
"""

from datetime import UTC, datetime

from pydantic import BaseModel

from cdstage.exceptions import CdStageError, ResourceNotFoundError, is_retryable
from cdstage.models import (
    STAGE_PIPELINE_LABEL,
    ActionResult,
    CDPipeline,
    OwnerReference,
    Stage,
    StageStatusValue,
)
from cdstage.repositories import CDPipelineRepository, StageRepository
from cdstage.settings import PlatformConfig, Settings
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .chain import ProvisioningChain
from .deletion import DeletionProtocol, DeletionState

SETUP_ACTION = "setup_stage"


class ReconcileResult(BaseModel):
    """What the watch loop should do after a reconciliation.

    Args:
        requeue: Reconcile again soon, e.g. after a write conflict.
        requeue_after: Reconcile again after this many seconds.
    """

    requeue: bool = False
    requeue_after: float | None = None


class StageReconciler:
    """Reconciles one Stage object against the cluster.

    Args:
        store: Cluster object store.
        config: Immutable platform configuration.
        deletion_backoff_seconds: Delay before re-checking blocked deletions.

    Example:
        reconciler = StageReconciler.from_settings(store, settings)
        result = await reconciler.reconcile("edp", "dev")
    """

    def __init__(self, store: ObjectStore, config: PlatformConfig, deletion_backoff_seconds: float):
        self.stages = StageRepository(store)
        self.pipelines = CDPipelineRepository(store)
        self.chain = ProvisioningChain(store, config)
        self.deletion = DeletionProtocol(store, config, deletion_backoff_seconds)

    @classmethod
    def from_settings(cls, store: ObjectStore, settings: Settings) -> "StageReconciler":
        return cls(store, settings.platform_config, settings.deletion_backoff_seconds)

    async def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Reconcile a stage.

        Args:
            namespace: Stage namespace
            name: Stage name

        Returns:
            Requeue instructions for the watch loop

        Raises:
            CdStageError: Non-retryable provisioning or cleanup failures,
                after they have been recorded on the stage status
        """
        stage = await self.stages.get_optional(name, namespace)
        if stage is None:
            logger.info(f"Stage '{name}' in '{namespace}' not found, skipping")
            return ReconcileResult()

        # Records from every step carry the stage name
        with logger.contextualize(stage=name):
            try:
                return await self._reconcile(stage)
            except CdStageError as e:
                if is_retryable(e):
                    logger.warning(f"Conflict while reconciling stage '{name}', requeueing: {e}")
                    return ReconcileResult(requeue=True)
                raise

    async def _reconcile(self, stage: Stage) -> ReconcileResult:
        outcome = await self.deletion.handle(stage)
        if outcome.state == DeletionState.PENDING_DEPENDENTS:
            return ReconcileResult(requeue_after=outcome.requeue_after)
        if outcome.state != DeletionState.ACTIVE:
            return ReconcileResult()

        try:
            await self.set_owner_reference(stage)
            await self.chain.provision(stage)
        except CdStageError as e:
            if is_retryable(e):
                raise
            logger.error(f"Provisioning of stage '{stage.name}' failed: {e}")
            await self.set_failed_status(stage, e)
            raise

        await self.set_finished_status(stage)
        return ReconcileResult()

    async def set_owner_reference(self, stage: Stage) -> None:
        """Link a stage to its pipeline by owner reference and label.

        Raises:
            PipelineConfigError: If the pipeline doesn't exist
        """
        pipeline = await self.pipelines.get_for_stage(stage)

        changed = False
        if not any(
            ref.kind == CDPipeline.kind and ref.name == pipeline.name
            for ref in stage.metadata.owner_references
        ):
            stage.metadata.owner_references.append(
                OwnerReference(kind=CDPipeline.kind, name=pipeline.name)
            )
            changed = True
        if stage.metadata.labels.get(STAGE_PIPELINE_LABEL) != pipeline.name:
            stage.metadata.labels[STAGE_PIPELINE_LABEL] = pipeline.name
            changed = True

        if changed:
            await self.stages.update(stage)
            logger.debug(f"Stage '{stage.name}' has been linked to pipeline '{pipeline.name}'")

    async def set_finished_status(self, stage: Stage) -> None:
        status = stage.status
        status.available = True
        status.status = StageStatusValue.FINISHED
        status.result = ActionResult.SUCCESS
        status.value = "active"
        status.detailed_message = ""
        status.action = SETUP_ACTION
        status.last_time_updated = datetime.now(UTC)
        await self.stages.update(stage)
        logger.info(f"Status of stage '{stage.name}' has been set to '{status.status.value}'")

    async def set_failed_status(self, stage: Stage, error: Exception) -> None:
        status = stage.status
        status.available = False
        status.status = StageStatusValue.FAILED
        status.result = ActionResult.ERROR
        status.value = "failed"
        status.detailed_message = str(error)
        status.action = SETUP_ACTION
        status.last_time_updated = datetime.now(UTC)
        try:
            await self.stages.update(stage)
        except ResourceNotFoundError:
            logger.warning(f"Stage '{stage.name}' disappeared before its status was recorded")
