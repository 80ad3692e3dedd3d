"""
Step variants of the stage provisioning chain and the routing between them.

The chain is a closed set of tagged steps. ``next_step`` returns the tag of the
step to run after the current one, so the namespace variant is chosen from the
platform configuration at dispatch time without reshaping the chain.
"""

import enum
from typing import Protocol

from cdstage.models import Stage
from cdstage.settings import PlatformConfig


class StepKind(str, enum.Enum):
    """Steps a stage can pass through during provisioning."""

    CHECK_NAMESPACE = "check_namespace"
    PUT_NAMESPACE = "put_namespace"
    PUT_SPACE = "put_space"
    PUT_PROJECT = "put_project"
    CONFIGURE_RBAC = "configure_rbac"
    PUT_IMAGE_STREAMS = "put_image_streams"
    PUT_JENKINS_JOB = "put_jenkins_job"


NAMESPACE_STEPS = frozenset(
    {StepKind.CHECK_NAMESPACE, StepKind.PUT_NAMESPACE, StepKind.PUT_SPACE, StepKind.PUT_PROJECT}
)


class StageHandler(Protocol):
    """A single provisioning step."""

    async def serve_request(self, stage: Stage) -> None: ...


def select_namespace_step(config: PlatformConfig) -> StepKind:
    """Pick the namespace step for the configured platform.

    Args:
        config: Platform configuration

    Returns:
        Existence check when namespaces are not managed, otherwise the
        creation step of the platform's tenancy unit
    """
    if not config.manage_namespace:
        return StepKind.CHECK_NAMESPACE
    if config.is_kubernetes:
        return StepKind.PUT_SPACE if config.space_mode_enabled else StepKind.PUT_NAMESPACE
    return StepKind.PUT_PROJECT


def next_step(current: StepKind | None, config: PlatformConfig) -> StepKind | None:
    """Route to the step following ``current``.

    Args:
        current: Step that just finished, or None before the first step
        config: Platform configuration

    Returns:
        The next step, or None when the chain is complete
    """
    if current is None:
        return select_namespace_step(config)
    if current in NAMESPACE_STEPS:
        return StepKind.CONFIGURE_RBAC

    match current:
        case StepKind.CONFIGURE_RBAC:
            return StepKind.PUT_IMAGE_STREAMS
        case StepKind.PUT_IMAGE_STREAMS:
            return StepKind.PUT_JENKINS_JOB
        case _:
            return None


def plan_steps(config: PlatformConfig) -> list[StepKind]:
    """List the steps the chain will run for a configuration."""
    steps: list[StepKind] = []
    step = next_step(None, config)
    while step is not None:
        steps.append(step)
        step = next_step(step, config)
    return steps


def target_namespace_name(stage: Stage) -> str:
    """Name of the namespace-equivalent a stage deploys into."""
    return f"{stage.namespace}-{stage.name}"
