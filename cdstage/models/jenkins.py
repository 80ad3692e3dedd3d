"""
CI job description model consumed by the job-execution operator.
"""

from typing import ClassVar

from pydantic import BaseModel

from .base import Resource


class JobSpec(BaseModel):
    name: str
    config: str
    auto_trigger_period: int | None = None


class JenkinsJobSpec(BaseModel):
    owner_name: str | None = None
    stage_name: str
    job: JobSpec


class JenkinsJob(Resource):
    kind: ClassVar[str] = "JenkinsJob"

    spec: JenkinsJobSpec
