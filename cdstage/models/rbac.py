"""
RBAC models scoped to a stage's target namespace.
"""

import enum
from typing import ClassVar

from pydantic import BaseModel, Field

from .base import Resource

RBAC_API_GROUP = "rbac.authorization.k8s.io"


class SubjectKind(str, enum.Enum):
    SERVICE_ACCOUNT = "ServiceAccount"
    GROUP = "Group"
    USER = "User"


class RoleRefKind(str, enum.Enum):
    ROLE = "Role"
    CLUSTER_ROLE = "ClusterRole"


class Subject(BaseModel):
    kind: SubjectKind
    name: str
    namespace: str | None = None


class RoleRef(BaseModel):
    kind: RoleRefKind
    name: str
    api_group: str = RBAC_API_GROUP


class PolicyRule(BaseModel):
    verbs: list[str]
    api_groups: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)


class Role(Resource):
    kind: ClassVar[str] = "Role"

    rules: list[PolicyRule] = Field(default_factory=list)


class RoleBinding(Resource):
    kind: ClassVar[str] = "RoleBinding"

    subjects: list[Subject] = Field(default_factory=list)
    role_ref: RoleRef
