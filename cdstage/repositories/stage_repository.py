"""Repositories for stages and the CD pipelines that own them."""

from collections.abc import Sequence

from cdstage.exceptions import PipelineConfigError, ResourceNotFoundError
from cdstage.models import CDPipeline, Stage
from cdstage.store import ObjectStore

from .base import BaseRepository


class StageRepository(BaseRepository[Stage]):
    """Repository for Stage objects."""

    def __init__(self, store: ObjectStore):
        super().__init__(store, Stage)

    async def list_siblings(self, pipeline: str, namespace: str) -> Sequence[Stage]:
        """List all stages of a pipeline in a namespace.

        Siblings are matched by the pipeline reference in the stage spec,
        so stages that have not been labelled yet are included.

        Args:
            pipeline: CD pipeline name
            namespace: Namespace the stages live in

        Returns:
            Stages of the pipeline, including the caller's own stage
        """
        stages = await self.list_all(namespace=namespace)
        return [s for s in stages if s.spec.cd_pipeline == pipeline]


class CDPipelineRepository(BaseRepository[CDPipeline]):
    """Repository for CDPipeline objects."""

    def __init__(self, store: ObjectStore):
        super().__init__(store, CDPipeline)

    async def get_for_stage(self, stage: Stage) -> CDPipeline:
        """Get the pipeline a stage belongs to.

        Raises:
            PipelineConfigError: If the referenced pipeline doesn't exist
        """
        try:
            return await self.get(stage.spec.cd_pipeline, stage.namespace)
        except ResourceNotFoundError as e:
            raise PipelineConfigError(
                f"failed to get cd pipeline '{stage.spec.cd_pipeline}' "
                f"of stage '{stage.name}'"
            ) from e

    async def get_with_streams(self, stage: Stage) -> CDPipeline:
        """Get the pipeline of a stage and make sure it declares input streams.

        Raises:
            PipelineConfigError: If the pipeline is missing or has no input streams
        """
        pipeline = await self.get_for_stage(stage)
        if not pipeline.spec.input_docker_streams:
            raise PipelineConfigError(
                f"pipeline '{pipeline.spec.name}' doesn't contain codebase image streams"
            )
        return pipeline
