"""
Models for cdstage.

All cluster records are pydantic models derived from ``Resource``.
"""

from .base import ObjectMeta, OwnerReference, Resource
from .image_stream import (
    LAST_DELETED_ENVS_ANNOTATION,
    CodebaseImageStream,
    CodebaseImageStreamSpec,
    ImageTag,
    environment_label,
    verified_stream_name,
)
from .jenkins import JenkinsJob, JenkinsJobSpec, JobSpec
from .platform import (
    Codebase,
    CodebaseSpec,
    EDPComponent,
    EDPComponentSpec,
    GitServer,
    GitServerSpec,
    Namespace,
    Project,
    Space,
    SpaceSpec,
)
from .rbac import PolicyRule, Role, RoleBinding, RoleRef, RoleRefKind, Subject, SubjectKind
from .stage import (
    STAGE_PIPELINE_LABEL,
    ActionResult,
    CDPipeline,
    CDPipelineSpec,
    Library,
    QualityGate,
    Source,
    SourceType,
    Stage,
    StageSpec,
    StageStatus,
    StageStatusValue,
    TriggerType,
)

__all__ = [
    "LAST_DELETED_ENVS_ANNOTATION",
    "STAGE_PIPELINE_LABEL",
    "ActionResult",
    "CDPipeline",
    "CDPipelineSpec",
    "Codebase",
    "CodebaseImageStream",
    "CodebaseImageStreamSpec",
    "CodebaseSpec",
    "EDPComponent",
    "EDPComponentSpec",
    "GitServer",
    "GitServerSpec",
    "ImageTag",
    "JenkinsJob",
    "JenkinsJobSpec",
    "JobSpec",
    "Library",
    "Namespace",
    "ObjectMeta",
    "OwnerReference",
    "PolicyRule",
    "Project",
    "QualityGate",
    "Resource",
    "Role",
    "RoleBinding",
    "RoleRef",
    "RoleRefKind",
    "Source",
    "SourceType",
    "Space",
    "SpaceSpec",
    "Stage",
    "StageSpec",
    "StageStatus",
    "StageStatusValue",
    "Subject",
    "SubjectKind",
    "TriggerType",
    "environment_label",
    "verified_stream_name",
]
