"""
CI job provisioning for a stage.

Builds the job configuration consumed by the CD job template and creates or
updates the stage's JenkinsJob resource. Running the job is up to the
job-execution operator watching those resources.
"""

import json

from cdstage.exceptions import (
    CdStageError,
    ProvisioningError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from cdstage.models import (
    Codebase,
    GitServer,
    JenkinsJob,
    JenkinsJobSpec,
    JobSpec,
    ObjectMeta,
    SourceType,
    Stage,
    TriggerType,
)
from cdstage.repositories import BaseRepository, CDPipelineRepository
from cdstage.store import ObjectStore
from cdstage.types import JobConfig
from cdstage.utils.logger import logger

from .quality_gates import serialize_quality_gates

JOB_PROVISIONER_PATH = "job-provisions/job/cd/job"
IMPORT_STRATEGY = "import"


def job_name(stage: Stage) -> str:
    """Path of the provisioner job creating the stage's CD job."""
    return f"{JOB_PROVISIONER_PATH}/{stage.spec.job_provisioning}"


def repository_path(codebase: Codebase) -> str:
    """Repository path of a library codebase on its git server."""
    if codebase.spec.strategy == IMPORT_STRATEGY and codebase.spec.git_url_path:
        return codebase.spec.git_url_path
    return f"/{codebase.name}"


class PutJenkinsJob:
    """Provisioning step creating or updating the stage's CI job description."""

    def __init__(self, store: ObjectStore):
        self.pipelines = CDPipelineRepository(store)
        self.jobs = BaseRepository(store, JenkinsJob)
        self.codebases = BaseRepository(store, Codebase)
        self.git_servers = BaseRepository(store, GitServer)

    async def serve_request(self, stage: Stage) -> None:
        logger.info(f"Putting jenkins job for stage '{stage.name}'")

        config = json.dumps(await self.create_job_config(stage))
        existing = await self.jobs.get_optional(stage.name, stage.namespace)
        if existing is None:
            await self.create_job(stage, config)
        else:
            await self.update_job(existing, config)

    async def create_job_config(self, stage: Stage) -> JobConfig:
        """Build the key/value configuration of the stage's CD job.

        Args:
            stage: Stage to describe

        Returns:
            Job parameters; ``QG_STAGES`` is omitted when the stage has no
            quality gates and ``LIBRARY_URL`` unless a library source is used
        """
        pipeline = await self.pipelines.get_for_stage(stage)
        source = stage.spec.source

        config: JobConfig = {
            "PIPELINE_NAME": stage.spec.cd_pipeline,
            "STAGE_NAME": stage.spec.name,
            "SOURCE_TYPE": source.type.value,
            "LIBRARY_BRANCH": source.library.branch,
            "AUTODEPLOY": str(stage.spec.trigger_type == TriggerType.AUTO).lower(),
            "DEPLOYMENT_TYPE": pipeline.spec.deployment_type,
        }

        qg_stages = serialize_quality_gates(stage.spec.quality_gates)
        if qg_stages is not None:
            config["QG_STAGES"] = qg_stages

        if source.type == SourceType.LIBRARY:
            config["LIBRARY_URL"] = await self.get_library_url(source.library.name, stage.namespace)

        return config

    async def get_library_url(self, library: str, namespace: str) -> str:
        try:
            codebase = await self.codebases.get(library, namespace)
            git_server = await self.git_servers.get(codebase.spec.git_server, namespace)
        except ResourceNotFoundError as e:
            raise ProvisioningError(f"unable to resolve url of pipeline library '{library}'") from e

        spec = git_server.spec
        return f"ssh://{spec.git_user}@{spec.git_host}:{spec.ssh_port}{repository_path(codebase)}"

    async def create_job(self, stage: Stage, config: str) -> None:
        job = JenkinsJob(
            metadata=ObjectMeta(name=stage.name, namespace=stage.namespace),
            spec=JenkinsJobSpec(
                stage_name=stage.name,
                job=JobSpec(name=job_name(stage), config=config),
            ),
        )
        try:
            await self.jobs.create(job)
        except ResourceAlreadyExistsError:
            logger.info(f"Jenkins job '{stage.name}' has been created concurrently")
            await self.update_job(await self.jobs.get(stage.name, stage.namespace), config)
            return
        except CdStageError as e:
            raise ProvisioningError(f"failed to create jenkins job '{stage.name}'") from e
        logger.info(f"Jenkins job '{stage.name}' has been created")

    async def update_job(self, job: JenkinsJob, config: str) -> None:
        if job.spec.job.config == config:
            logger.debug(f"Jenkins job '{job.name}' is up to date")
            return

        job.spec.job.config = config
        try:
            await self.jobs.update(job)
        except CdStageError as e:
            raise ProvisioningError(f"failed to update jenkins job '{job.name}'") from e
        logger.info(f"Jenkins job '{job.name}' has been updated")
