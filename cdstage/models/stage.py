"""
Stage and CD pipeline models.

A CDPipeline is an ordered set of Stages sharing input image streams; each
Stage is one step of promoting those images toward production.
"""

import enum
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from .base import Resource

STAGE_PIPELINE_LABEL = "app.edp.epam.com/cdPipelineName"


class TriggerType(str, enum.Enum):
    """How a stage deployment is triggered."""

    AUTO = "Auto"
    MANUAL = "Manual"


class SourceType(str, enum.Enum):
    """Where the pipeline library running the stage comes from."""

    DEFAULT = "default"
    LIBRARY = "library"


class StageStatusValue(str, enum.Enum):
    """Coarse provisioning state reported on a stage."""

    INITIALIZED = "initialized"
    IN_PROGRESS = "in progress"
    FINISHED = "created"
    FAILED = "failed"


class ActionResult(str, enum.Enum):
    """Result of the last action performed on a stage."""

    SUCCESS = "success"
    ERROR = "error"


class QualityGate(BaseModel):
    """A named check an artifact must pass before promotion."""

    quality_gate_type: str
    step_name: str
    autotest_name: str | None = None
    branch_name: str | None = None


class Library(BaseModel):
    """A non-default pipeline library."""

    name: str = ""
    branch: str = ""


class Source(BaseModel):
    """Pipeline library source of a stage."""

    type: SourceType = SourceType.DEFAULT
    library: Library = Field(default_factory=Library)


class StageSpec(BaseModel):
    name: str
    cd_pipeline: str
    order: int = 0
    description: str = ""
    trigger_type: TriggerType = TriggerType.MANUAL
    quality_gates: list[QualityGate] = Field(default_factory=list)
    source: Source = Field(default_factory=Source)
    job_provisioning: str = "default"


class StageStatus(BaseModel):
    available: bool = False
    status: StageStatusValue = StageStatusValue.INITIALIZED
    result: ActionResult | None = None
    last_time_updated: datetime | None = None
    detailed_message: str = ""
    value: str = ""
    action: str = ""
    username: str = ""
    should_be_handled: bool = False


class Stage(Resource):
    """A single step of a CD pipeline promotion sequence."""

    kind: ClassVar[str] = "Stage"

    spec: StageSpec
    status: StageStatus = Field(default_factory=StageStatus)

    @property
    def is_first(self) -> bool:
        """The entry stage of a pipeline never looks up a previous stage."""
        return self.spec.order == 0


class CDPipelineSpec(BaseModel):
    name: str
    input_docker_streams: list[str] = Field(default_factory=list)
    deployment_type: str = "container"


class CDPipeline(Resource):
    """Ordered collection of stages sharing input image streams."""

    kind: ClassVar[str] = "CDPipeline"

    spec: CDPipelineSpec
