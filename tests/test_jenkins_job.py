"""Tests for CI job provisioning."""

import json

import pytest

from cdstage.exceptions import PipelineConfigError, ProvisioningError
from cdstage.models import (
    Codebase,
    CodebaseSpec,
    GitServer,
    GitServerSpec,
    JenkinsJob,
    JenkinsJobSpec,
    JobSpec,
    Library,
    ObjectMeta,
    Source,
    SourceType,
    TriggerType,
)
from cdstage.services.stage import PutJenkinsJob
from cdstage.store import InMemoryObjectStore
from tests.conftest import NAMESPACE, RacingObjectStore, make_pipeline, make_stage


def library_stage():
    stage = make_stage("dev")
    stage.spec.source = Source(type=SourceType.LIBRARY, library=Library(name="mylib", branch="release"))
    stage.spec.trigger_type = TriggerType.AUTO
    return stage


def library_objects(strategy: str = "create", git_url_path: str | None = None):
    return [
        Codebase(
            metadata=ObjectMeta(name="mylib", namespace=NAMESPACE),
            spec=CodebaseSpec(git_server="gerrit", strategy=strategy, git_url_path=git_url_path),
        ),
        GitServer(
            metadata=ObjectMeta(name="gerrit", namespace=NAMESPACE),
            spec=GitServerSpec(git_host="gerrit.example.com", ssh_port=29418),
        ),
    ]


class TestCreateJobConfig:
    """Tests for PutJenkinsJob.create_job_config."""

    @pytest.mark.asyncio
    async def test_default_source(self):
        stage = make_stage("dev")
        store = InMemoryObjectStore([make_pipeline(), stage])

        config = await PutJenkinsJob(store).create_job_config(stage)

        assert config == {
            "PIPELINE_NAME": "mypipe",
            "STAGE_NAME": "dev",
            "SOURCE_TYPE": "default",
            "LIBRARY_BRANCH": "",
            "AUTODEPLOY": "false",
            "DEPLOYMENT_TYPE": "container",
            "QG_STAGES": '{"name":"manual","step_name":"approve"}',
        }

    @pytest.mark.asyncio
    async def test_library_source(self):
        stage = library_stage()
        store = InMemoryObjectStore([make_pipeline(), stage, *library_objects()])

        config = await PutJenkinsJob(store).create_job_config(stage)

        assert config["SOURCE_TYPE"] == "library"
        assert config["LIBRARY_BRANCH"] == "release"
        assert config["LIBRARY_URL"] == "ssh://git@gerrit.example.com:29418/mylib"
        assert config["AUTODEPLOY"] == "true"

    @pytest.mark.asyncio
    async def test_imported_library_uses_repository_path(self):
        stage = library_stage()
        store = InMemoryObjectStore(
            [make_pipeline(), stage, *library_objects("import", "/group/mylib")]
        )

        config = await PutJenkinsJob(store).create_job_config(stage)

        assert config["LIBRARY_URL"] == "ssh://git@gerrit.example.com:29418/group/mylib"

    @pytest.mark.asyncio
    async def test_missing_library_codebase(self):
        stage = library_stage()
        store = InMemoryObjectStore([make_pipeline(), stage])

        with pytest.raises(ProvisioningError, match="mylib"):
            await PutJenkinsJob(store).create_job_config(stage)

    @pytest.mark.asyncio
    async def test_missing_pipeline(self):
        stage = make_stage("dev")
        with pytest.raises(PipelineConfigError, match="mypipe"):
            await PutJenkinsJob(InMemoryObjectStore([stage])).create_job_config(stage)


class TestServeRequest:
    """Tests for creating and updating the JenkinsJob object."""

    @pytest.mark.asyncio
    async def test_creates_job(self):
        stage = make_stage("dev")
        store = InMemoryObjectStore([make_pipeline(), stage])

        await PutJenkinsJob(store).serve_request(stage)

        job = await store.get(JenkinsJob, NAMESPACE, "dev")
        assert job.spec.stage_name == "dev"
        assert job.spec.job.name == "job-provisions/job/cd/job/default"
        assert json.loads(job.spec.job.config)["STAGE_NAME"] == "dev"

    @pytest.mark.asyncio
    async def test_updates_changed_config(self):
        stage = make_stage("dev")
        store = InMemoryObjectStore([make_pipeline(), stage])
        handler = PutJenkinsJob(store)
        await handler.serve_request(stage)

        stage.spec.trigger_type = TriggerType.AUTO
        await handler.serve_request(stage)

        job = await store.get(JenkinsJob, NAMESPACE, "dev")
        assert json.loads(job.spec.job.config)["AUTODEPLOY"] == "true"

    @pytest.mark.asyncio
    async def test_unchanged_config_is_not_written(self):
        stage = make_stage("dev")
        store = InMemoryObjectStore([make_pipeline(), stage])
        handler = PutJenkinsJob(store)
        await handler.serve_request(stage)
        version = (await store.get(JenkinsJob, NAMESPACE, "dev")).metadata.resource_version

        await handler.serve_request(stage)

        assert (await store.get(JenkinsJob, NAMESPACE, "dev")).metadata.resource_version == version

    @pytest.mark.asyncio
    async def test_concurrently_created_job_is_updated(self):
        stage = make_stage("dev")
        competing = JenkinsJob(
            metadata=ObjectMeta(name="dev", namespace=NAMESPACE),
            spec=JenkinsJobSpec(stage_name="dev", job=JobSpec(name="other", config="{}")),
        )
        store = RacingObjectStore([make_pipeline(), stage], competing)

        await PutJenkinsJob(store).serve_request(stage)

        job = await store.get(JenkinsJob, NAMESPACE, "dev")
        assert json.loads(job.spec.job.config)["STAGE_NAME"] == "dev"
