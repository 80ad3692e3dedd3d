"""
Stage Service: provisioning and deletion of CD pipeline stages.

Example:
    from cdstage.services.stage import StageReconciler
    from cdstage.settings import settings
    from cdstage.store import InMemoryObjectStore

    store = InMemoryObjectStore([pipeline, stage, registry, stream])
    reconciler = StageReconciler.from_settings(store, settings)
    await reconciler.reconcile("edp", "dev")
"""

from .chain import ProvisioningChain, build_handlers
from .deletion import (
    ENV_LABEL_DELETION_FINALIZER,
    DeletionOutcome,
    DeletionProtocol,
    DeletionState,
    build_annotation_value,
)
from .handler import (
    StageHandler,
    StepKind,
    next_step,
    plan_steps,
    select_namespace_step,
    target_namespace_name,
)
from .image_stream import DOCKER_REGISTRY_COMPONENT, ConsumedStreamResolver, PutCodebaseImageStream
from .jenkins_job import PutJenkinsJob
from .namespace import CheckNamespaceExists, PutNamespace, PutProject, PutSpace
from .ordering import StageOrderingService
from .quality_gates import serialize_quality_gates
from .rbac import ConfigureRbac
from .reconciler import ReconcileResult, StageReconciler

__all__ = [
    "DOCKER_REGISTRY_COMPONENT",
    "ENV_LABEL_DELETION_FINALIZER",
    "CheckNamespaceExists",
    "ConfigureRbac",
    "ConsumedStreamResolver",
    "DeletionOutcome",
    "DeletionProtocol",
    "DeletionState",
    "ProvisioningChain",
    "PutCodebaseImageStream",
    "PutJenkinsJob",
    "PutNamespace",
    "PutProject",
    "PutSpace",
    "ReconcileResult",
    "StageHandler",
    "StageOrderingService",
    "StageReconciler",
    "StepKind",
    "build_annotation_value",
    "build_handlers",
    "next_step",
    "plan_steps",
    "select_namespace_step",
    "serialize_quality_gates",
    "target_namespace_name",
]
