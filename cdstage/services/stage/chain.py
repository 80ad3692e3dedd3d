"""
Stage provisioning chain.

Runs namespace, RBAC, image stream and CI job provisioning for a stage in a
fixed order. The namespace variant is chosen by ``next_step`` from the
platform configuration. The first failure aborts the chain; resources created
by earlier steps stay in place and are picked up idempotently on the next run.

Example:
    chain = ProvisioningChain(store, settings.platform_config)
    await chain.provision(stage)
"""

from cdstage.models import Stage
from cdstage.settings import PlatformConfig
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .handler import StageHandler, StepKind, next_step
from .image_stream import PutCodebaseImageStream
from .jenkins_job import PutJenkinsJob
from .namespace import CheckNamespaceExists, PutNamespace, PutProject, PutSpace
from .rbac import ConfigureRbac


def build_handlers(store: ObjectStore, config: PlatformConfig) -> dict[StepKind, StageHandler]:
    """Create one handler per step kind.

    Args:
        store: Cluster object store
        config: Platform configuration

    Returns:
        Mapping from step kind to its handler
    """
    return {
        StepKind.CHECK_NAMESPACE: CheckNamespaceExists(store),
        StepKind.PUT_NAMESPACE: PutNamespace(store),
        StepKind.PUT_SPACE: PutSpace(store),
        StepKind.PUT_PROJECT: PutProject(store),
        StepKind.CONFIGURE_RBAC: ConfigureRbac(store, config),
        StepKind.PUT_IMAGE_STREAMS: PutCodebaseImageStream(store),
        StepKind.PUT_JENKINS_JOB: PutJenkinsJob(store),
    }


class ProvisioningChain:
    """Ordered, fail-fast provisioning of a stage's cluster resources.

    Args:
        store: Cluster object store.
        config: Immutable platform configuration.
        handlers: Optional handler overrides per step kind.
    """

    def __init__(
        self,
        store: ObjectStore,
        config: PlatformConfig,
        handlers: dict[StepKind, StageHandler] | None = None,
    ):
        self.config = config
        self.handlers = build_handlers(store, config)
        if handlers:
            self.handlers.update(handlers)

    async def provision(self, stage: Stage) -> None:
        """Run every provisioning step for a stage.

        Args:
            stage: Stage to provision

        Raises:
            CdStageError: The error of the first failing step
        """
        log = logger.bind(stage=stage.name)
        log.info(f"Provisioning stage '{stage.name}' in '{stage.namespace}'")

        step = next_step(None, self.config)
        while step is not None:
            log.debug(f"Running step '{step.value}'")
            await self.handlers[step].serve_request(stage)
            step = next_step(step, self.config)

        log.info(f"Stage '{stage.name}' has been provisioned")
