"""Tests for stage reconciliation."""

import asyncio

import pytest

from cdstage.exceptions import (
    PipelineConfigError,
    ProvisioningError,
    ResourceConflictError,
)
from cdstage.models import (
    STAGE_PIPELINE_LABEL,
    ActionResult,
    CodebaseImageStream,
    JenkinsJob,
    Stage,
    StageStatusValue,
)
from cdstage.services.stage import (
    ENV_LABEL_DELETION_FINALIZER,
    ReconcileResult,
    StageReconciler,
    StepKind,
)
from cdstage.settings import Platform, Settings
from cdstage.store import InMemoryObjectStore
from tests.conftest import NAMESPACE, make_pipeline, make_registry, make_stage, make_stream

BACKOFF = 0.5


class ConflictingHandler:
    """Handler failing with a wrapped write conflict."""

    async def serve_request(self, stage: Stage) -> None:
        cause = ResourceConflictError("RoleBinding", "edp-dev", "jenkins-admin")
        raise ProvisioningError("unable to create RoleBinding 'jenkins-admin'") from cause


@pytest.fixture
def reconciler(store, openshift_config) -> StageReconciler:
    return StageReconciler(store, openshift_config, BACKOFF)


async def get_stage(store: InMemoryObjectStore, name: str = "dev") -> Stage:
    return await store.get(Stage, NAMESPACE, name)


class TestReconcileProvisioning:
    """Tests for provisioning an active stage."""

    @pytest.mark.asyncio
    async def test_provisions_and_reports_success(self, store, reconciler):
        result = await reconciler.reconcile(NAMESPACE, "dev")

        assert result == ReconcileResult()
        stage = await get_stage(store)
        assert stage.status.available is True
        assert stage.status.status == StageStatusValue.FINISHED
        assert stage.status.result == ActionResult.SUCCESS
        assert stage.status.action == "setup_stage"
        assert stage.status.last_time_updated is not None
        assert await store.get(JenkinsJob, NAMESPACE, "dev")

    @pytest.mark.asyncio
    async def test_links_stage_to_pipeline(self, store, reconciler):
        await reconciler.reconcile(NAMESPACE, "dev")

        stage = await get_stage(store)
        assert stage.metadata.labels[STAGE_PIPELINE_LABEL] == "mypipe"
        assert [(r.kind, r.name) for r in stage.metadata.owner_references] == [("CDPipeline", "mypipe")]

    @pytest.mark.asyncio
    async def test_adds_finalizer(self, openshift_config):
        store = InMemoryObjectStore([make_pipeline(), make_stage("dev"), make_stream(), make_registry()])

        await StageReconciler(store, openshift_config, BACKOFF).reconcile(NAMESPACE, "dev")

        assert (await get_stage(store)).metadata.finalizers == [ENV_LABEL_DELETION_FINALIZER]

    @pytest.mark.asyncio
    async def test_repeated_reconcile_keeps_single_owner_reference(self, store, reconciler):
        await reconciler.reconcile(NAMESPACE, "dev")
        await reconciler.reconcile(NAMESPACE, "dev")

        assert len((await get_stage(store)).metadata.owner_references) == 1

    @pytest.mark.asyncio
    async def test_missing_stage_is_skipped(self, reconciler):
        assert await reconciler.reconcile(NAMESPACE, "missing") == ReconcileResult()


class TestReconcileFailures:
    """Tests for failure reporting."""

    @pytest.mark.asyncio
    async def test_step_failure_is_recorded_and_raised(self, first_stage, openshift_config):
        store = InMemoryObjectStore([make_pipeline(), first_stage, make_stream()])

        with pytest.raises(ProvisioningError, match="docker-registry"):
            await StageReconciler(store, openshift_config, BACKOFF).reconcile(NAMESPACE, "dev")

        stage = await get_stage(store)
        assert stage.status.available is False
        assert stage.status.status == StageStatusValue.FAILED
        assert stage.status.result == ActionResult.ERROR
        assert "docker-registry" in stage.status.detailed_message

    @pytest.mark.asyncio
    async def test_missing_pipeline_is_recorded(self, first_stage, openshift_config):
        store = InMemoryObjectStore([first_stage])

        with pytest.raises(PipelineConfigError, match="mypipe"):
            await StageReconciler(store, openshift_config, BACKOFF).reconcile(NAMESPACE, "dev")

        assert (await get_stage(store)).status.status == StageStatusValue.FAILED

    @pytest.mark.asyncio
    async def test_conflict_requeues_without_failing(self, store, reconciler):
        reconciler.chain.handlers[StepKind.CONFIGURE_RBAC] = ConflictingHandler()

        result = await reconciler.reconcile(NAMESPACE, "dev")

        assert result == ReconcileResult(requeue=True)
        assert (await get_stage(store)).status.status == StageStatusValue.INITIALIZED


class TestReconcileDeletion:
    """Tests for reconciling stages being deleted."""

    @pytest.mark.asyncio
    async def test_blocked_deletion_requeues_after_backoff(self, store, reconciler):
        await store.create(make_stage("qa", order=1, finalizers=[ENV_LABEL_DELETION_FINALIZER]))
        await store.delete(await get_stage(store))

        result = await reconciler.reconcile(NAMESPACE, "dev")

        assert result == ReconcileResult(requeue_after=BACKOFF)
        assert await store.list(JenkinsJob) == []

    @pytest.mark.asyncio
    async def test_last_stage_is_finalized(self, store, reconciler):
        await reconciler.reconcile(NAMESPACE, "dev")
        await store.delete(await get_stage(store))

        result = await reconciler.reconcile(NAMESPACE, "dev")

        assert result == ReconcileResult()
        assert await store.list(Stage, NAMESPACE) == []
        stream = await store.get(CodebaseImageStream, NAMESPACE, "payments-master")
        assert stream.metadata.labels == {}


class TestReconcilerConstruction:
    """Tests for building a reconciler from settings."""

    def test_from_settings(self, store, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = Settings(platform_type=Platform.KUBERNETES, deletion_backoff_seconds=7.0)

        reconciler = StageReconciler.from_settings(store, settings)

        assert reconciler.deletion.backoff_seconds == 7.0
        assert reconciler.deletion.config.is_kubernetes


class TestConcurrentReconcile:
    """Tests for reconciling distinct stages concurrently."""

    @pytest.mark.asyncio
    async def test_distinct_stages(self, openshift_config):
        store = InMemoryObjectStore(
            [
                make_pipeline("p1", streams=["s1"]),
                make_pipeline("p2", streams=["s2"]),
                make_stage("dev", pipeline="p1"),
                make_stage("build", pipeline="p2"),
                make_stream("s1"),
                make_stream("s2"),
                make_registry(),
            ]
        )
        reconciler = StageReconciler(store, openshift_config, BACKOFF)

        results = await asyncio.gather(
            reconciler.reconcile(NAMESPACE, "dev"), reconciler.reconcile(NAMESPACE, "build")
        )

        assert results == [ReconcileResult(), ReconcileResult()]
        for name in ("dev", "build"):
            assert (await get_stage(store, name)).status.status == StageStatusValue.FINISHED
        assert await store.get(CodebaseImageStream, NAMESPACE, "p1-dev-payments-verified")
        assert await store.get(CodebaseImageStream, NAMESPACE, "p2-build-payments-verified")
