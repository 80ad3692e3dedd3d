"""
Stage ordering within a CD pipeline.

Siblings are found by a linear scan over the stages of the same pipeline in
the same namespace; pipelines are short, so no index is kept.
"""

from collections.abc import Sequence

from cdstage.exceptions import PreviousStageNotFoundError
from cdstage.models import Stage
from cdstage.repositories import StageRepository
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger


def previous_of(order: int, siblings: Sequence[Stage]) -> Stage | None:
    """Pick the sibling with the largest order strictly lower than ``order``."""
    previous: Stage | None = None
    for sibling in siblings:
        if sibling.spec.order < order and (previous is None or sibling.spec.order > previous.spec.order):
            previous = sibling
    return previous


def blocking_siblings(stage: Stage, siblings: Sequence[Stage]) -> list[Stage]:
    """Siblings whose promoted streams may depend on ``stage``.

    Every other stage with an order greater than or equal to the stage's own
    order blocks its deletion.
    """
    return [
        s for s in siblings if s.name != stage.name and s.spec.order >= stage.spec.order
    ]


class StageOrderingService:
    """Answers ordering questions about a stage and its siblings."""

    def __init__(self, store: ObjectStore):
        self.stage_repo = StageRepository(store)

    async def find_previous_stage(self, stage: Stage) -> Stage:
        """Find the stage that precedes ``stage`` in its pipeline.

        Args:
            stage: A non-first stage

        Returns:
            The sibling with the largest order lower than the stage's order

        Raises:
            PreviousStageNotFoundError: If no such sibling exists
        """
        siblings = await self.stage_repo.list_siblings(stage.spec.cd_pipeline, stage.namespace)
        previous = previous_of(stage.spec.order, siblings)
        if previous is None:
            raise PreviousStageNotFoundError(stage.spec.cd_pipeline, stage.spec.order, stage.namespace)

        logger.debug(
            f"Previous stage of '{stage.name}' (order={stage.spec.order}) "
            f"is '{previous.name}' (order={previous.spec.order})"
        )
        return previous

    async def is_last_stage(self, stage: Stage) -> bool:
        """Check that no sibling depends on the stage.

        Returns:
            True when no other stage of the pipeline has an order greater
            than or equal to the stage's order
        """
        siblings = await self.stage_repo.list_siblings(stage.spec.cd_pipeline, stage.namespace)
        blocking = blocking_siblings(stage, siblings)
        if blocking:
            logger.debug(
                f"Stage '{stage.name}' is blocked by "
                f"{[s.name for s in blocking]} of pipeline '{stage.spec.cd_pipeline}'"
            )
        return not blocking
