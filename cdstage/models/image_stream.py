"""
Codebase image stream model.

An image stream points at one build artifact. Each non-first stage produces a
derived *verified* stream per pipeline input stream; consumption bookkeeping
lives in labels and annotations on the stream a stage consumes.
"""

from typing import ClassVar

from pydantic import BaseModel, Field

from .base import Resource

LAST_DELETED_ENVS_ANNOTATION = "deploy.edp.epam.com/last-deleted-envs"


class ImageTag(BaseModel):
    name: str
    created: str = ""


class CodebaseImageStreamSpec(BaseModel):
    codebase: str
    image_name: str = ""
    tags: list[ImageTag] = Field(default_factory=list)


class CodebaseImageStream(Resource):
    kind: ClassVar[str] = "CodebaseImageStream"

    spec: CodebaseImageStreamSpec


def verified_stream_name(pipeline: str, stage: str, codebase: str) -> str:
    """Build the deterministic name of a stage's verified image stream.

    Args:
        pipeline: CD pipeline object name
        stage: Stage name (``spec.name``)
        codebase: Codebase the stream belongs to

    Returns:
        ``{pipeline}-{stage}-{codebase}-verified``
    """
    return f"{pipeline}-{stage}-{codebase}-verified"


def environment_label(pipeline: str, stage: str) -> str:
    """Consumption label key set by a stage on the stream it consumes."""
    return f"{pipeline}/{stage}"
