"""Shared fixtures for stage provisioning tests.

Every test works against an InMemoryObjectStore seeded with pydantic models.
"""

from datetime import UTC, datetime

import pytest

from cdstage.models import (
    CDPipeline,
    CDPipelineSpec,
    CodebaseImageStream,
    CodebaseImageStreamSpec,
    EDPComponent,
    EDPComponentSpec,
    ObjectMeta,
    QualityGate,
    Resource,
    Stage,
    StageSpec,
)
from cdstage.services.stage import ENV_LABEL_DELETION_FINALIZER
from cdstage.settings import Platform, PlatformConfig
from cdstage.store import InMemoryObjectStore

NAMESPACE = "edp"
PIPELINE = "mypipe"
CODEBASE = "payments"
INPUT_STREAM = "payments-master"
REGISTRY_URL = "registry.example.com"


def make_pipeline(
    name: str = PIPELINE, streams: list[str] | None = None, namespace: str = NAMESPACE
) -> CDPipeline:
    return CDPipeline(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=CDPipelineSpec(
            name=name,
            input_docker_streams=[INPUT_STREAM] if streams is None else streams,
            deployment_type="container",
        ),
    )


def make_stage(
    name: str,
    order: int = 0,
    pipeline: str = PIPELINE,
    namespace: str = NAMESPACE,
    quality_gates: list[QualityGate] | None = None,
    finalizers: list[str] | None = None,
    deleting: bool = False,
) -> Stage:
    return Stage(
        metadata=ObjectMeta(
            name=name,
            namespace=namespace,
            finalizers=finalizers or [],
            deletion_timestamp=datetime.now(UTC) if deleting else None,
        ),
        spec=StageSpec(
            name=name,
            cd_pipeline=pipeline,
            order=order,
            quality_gates=quality_gates
            or [QualityGate(quality_gate_type="manual", step_name="approve")],
        ),
    )


def make_stream(
    name: str = INPUT_STREAM,
    codebase: str = CODEBASE,
    namespace: str = NAMESPACE,
    labels: dict[str, str] | None = None,
) -> CodebaseImageStream:
    return CodebaseImageStream(
        metadata=ObjectMeta(name=name, namespace=namespace, labels=labels or {}),
        spec=CodebaseImageStreamSpec(codebase=codebase),
    )


class RacingObjectStore(InMemoryObjectStore):
    """Store where another writer creates ``competing`` just before our own create."""

    def __init__(self, objects, competing: Resource):
        super().__init__(objects)
        self.competing: Resource | None = competing

    async def create(self, obj: Resource) -> None:
        competing = self.competing
        if competing is not None and competing.kind == obj.kind and competing.name == obj.name:
            self.competing = None
            await super().create(competing)
        await super().create(obj)


def make_registry(namespace: str = NAMESPACE, url: str = REGISTRY_URL) -> EDPComponent:
    return EDPComponent(
        metadata=ObjectMeta(name="docker-registry", namespace=namespace),
        spec=EDPComponentSpec(type="registry", url=url),
    )


@pytest.fixture
def openshift_config() -> PlatformConfig:
    return PlatformConfig(platform=Platform.OPENSHIFT)


@pytest.fixture
def kubernetes_config() -> PlatformConfig:
    return PlatformConfig(platform=Platform.KUBERNETES)


@pytest.fixture
def first_stage() -> Stage:
    return make_stage("dev", order=0, finalizers=[ENV_LABEL_DELETION_FINALIZER])


@pytest.fixture
def store(first_stage) -> InMemoryObjectStore:
    """Store with a pipeline, its first stage, the input stream and the registry."""
    return InMemoryObjectStore([make_pipeline(), first_stage, make_stream(), make_registry()])
