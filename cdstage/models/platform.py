"""
Platform models: tenancy units, codebase records and platform components.
"""

from typing import ClassVar

from pydantic import BaseModel, Field

from .base import Resource


class Namespace(Resource):
    """Kubernetes namespace."""

    kind: ClassVar[str] = "Namespace"
    namespaced: ClassVar[bool] = False


class Project(Resource):
    """OpenShift project."""

    kind: ClassVar[str] = "Project"
    namespaced: ClassVar[bool] = False


class SpaceSpec(BaseModel):
    account: str = ""


class Space(Resource):
    """Multi-tenant space; the platform creates the backing namespace."""

    kind: ClassVar[str] = "Space"
    namespaced: ClassVar[bool] = False

    spec: SpaceSpec = Field(default_factory=SpaceSpec)


class EDPComponentSpec(BaseModel):
    type: str = ""
    url: str = ""
    visible: bool = True


class EDPComponent(Resource):
    """Platform component record, e.g. the docker registry."""

    kind: ClassVar[str] = "EDPComponent"

    spec: EDPComponentSpec = Field(default_factory=EDPComponentSpec)


class CodebaseSpec(BaseModel):
    git_server: str = ""
    strategy: str = "create"
    git_url_path: str | None = None


class Codebase(Resource):
    """Source repository record; used here for pipeline libraries."""

    kind: ClassVar[str] = "Codebase"

    spec: CodebaseSpec = Field(default_factory=CodebaseSpec)


class GitServerSpec(BaseModel):
    git_host: str = ""
    git_user: str = "git"
    ssh_port: int = 22


class GitServer(Resource):
    kind: ClassVar[str] = "GitServer"

    spec: GitServerSpec = Field(default_factory=GitServerSpec)
