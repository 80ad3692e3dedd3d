"""
RBAC provisioning for a stage's target namespace.

Grants the admin console read access to deployments and the CI principal
admin access. On OpenShift, platform groups derived from the source namespace
are bound as well. Objects that already exist are left untouched.
"""

from cdstage.exceptions import (
    CdStageError,
    ProvisioningError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from cdstage.models import (
    ObjectMeta,
    PolicyRule,
    Resource,
    Role,
    RoleBinding,
    RoleRef,
    RoleRefKind,
    Stage,
    Subject,
    SubjectKind,
)
from cdstage.settings import PlatformConfig
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .handler import target_namespace_name

ADMIN_CONSOLE_SERVICE_ACCOUNT = "edp-admin-console"
JENKINS_SERVICE_ACCOUNT = "jenkins"
ADMIN_CLUSTER_ROLE = "admin"
VIEW_CLUSTER_ROLE = "view"
AC_VIEW_ROLE_NAME = "admin-console-view-deployments"
AC_VIEW_ROLE_BINDING_NAME = "ac-deployments-viewer"
JENKINS_ADMIN_ROLE_BINDING_NAME = "jenkins-admin"


def admin_console_view_role(namespace: str) -> Role:
    return Role(
        metadata=ObjectMeta(name=AC_VIEW_ROLE_NAME, namespace=namespace),
        rules=[PolicyRule(verbs=["get", "list"], api_groups=["apps"], resources=["deployments"])],
    )


def admin_console_view_binding(namespace: str, source_namespace: str) -> RoleBinding:
    return RoleBinding(
        metadata=ObjectMeta(name=AC_VIEW_ROLE_BINDING_NAME, namespace=namespace),
        subjects=[
            Subject(
                kind=SubjectKind.SERVICE_ACCOUNT,
                name=ADMIN_CONSOLE_SERVICE_ACCOUNT,
                namespace=source_namespace,
            )
        ],
        role_ref=RoleRef(kind=RoleRefKind.ROLE, name=AC_VIEW_ROLE_NAME),
    )


def jenkins_admin_subjects(source_namespace: str, config: PlatformConfig) -> list[Subject]:
    """Subjects granted admin access to a stage namespace.

    On OpenShift the platform admin groups precede the CI service account.
    """
    service_account = Subject(
        kind=SubjectKind.SERVICE_ACCOUNT, name=JENKINS_SERVICE_ACCOUNT, namespace=source_namespace
    )
    if not config.is_openshift:
        return [service_account]
    return [
        Subject(kind=SubjectKind.GROUP, name=f"{source_namespace}-edp-super-admin"),
        Subject(kind=SubjectKind.GROUP, name=f"{source_namespace}-edp-admin"),
        service_account,
    ]


def jenkins_admin_binding(
    namespace: str, source_namespace: str, config: PlatformConfig
) -> RoleBinding:
    return RoleBinding(
        metadata=ObjectMeta(name=JENKINS_ADMIN_ROLE_BINDING_NAME, namespace=namespace),
        subjects=jenkins_admin_subjects(source_namespace, config),
        role_ref=RoleRef(kind=RoleRefKind.CLUSTER_ROLE, name=ADMIN_CLUSTER_ROLE),
    )


def view_group_binding(namespace: str, source_namespace: str) -> RoleBinding:
    return RoleBinding(
        metadata=ObjectMeta(name=f"{source_namespace}-view", namespace=namespace),
        subjects=[Subject(kind=SubjectKind.GROUP, name=f"{source_namespace}-edp-view")],
        role_ref=RoleRef(kind=RoleRefKind.CLUSTER_ROLE, name=VIEW_CLUSTER_ROLE),
    )


class ConfigureRbac:
    """Provisioning step creating the stage's roles and role bindings."""

    def __init__(self, store: ObjectStore, config: PlatformConfig):
        self.store = store
        self.config = config

    def desired_objects(self, stage: Stage) -> list[Role | RoleBinding]:
        """Roles and bindings a stage needs, in creation order."""
        namespace = target_namespace_name(stage)
        source_namespace = stage.namespace

        objects: list[Role | RoleBinding] = [
            admin_console_view_role(namespace),
            admin_console_view_binding(namespace, source_namespace),
            jenkins_admin_binding(namespace, source_namespace, self.config),
        ]
        if self.config.is_openshift:
            objects.append(view_group_binding(namespace, source_namespace))
        return objects

    async def serve_request(self, stage: Stage) -> None:
        namespace = target_namespace_name(stage)
        logger.info(f"Configuring rbac for namespace '{namespace}'")

        for obj in self.desired_objects(stage):
            await self.create_if_missing(obj)

        logger.info(f"Rbac has been configured for namespace '{namespace}'")

    async def create_if_missing(self, obj: Resource) -> None:
        """Create an RBAC object unless one with the same name exists.

        Args:
            obj: Role or RoleBinding to create

        Raises:
            ProvisioningError: If the existence check or the creation fails
        """
        name, namespace = obj.metadata.name, obj.metadata.namespace
        try:
            await self.store.get(type(obj), namespace, name)
        except ResourceNotFoundError:
            logger.debug(f"{obj.kind} '{name}' doesn't exist in '{namespace}'")
        except CdStageError as e:
            raise ProvisioningError(
                f"unable to check existence of {obj.kind} '{name}' in '{namespace}'"
            ) from e
        else:
            logger.info(f"Skip creating {obj.kind} '{name}' in '{namespace}' as it does exist")
            return

        try:
            await self.store.create(obj)
        except ResourceAlreadyExistsError:
            logger.info(f"{obj.kind} '{name}' has been created concurrently in '{namespace}'")
            return
        except CdStageError as e:
            raise ProvisioningError(f"unable to create {obj.kind} '{name}' in '{namespace}'") from e
        logger.info(f"{obj.kind} '{name}' has been created in '{namespace}'")
