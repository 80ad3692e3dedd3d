"""
Image stream promotion for a stage.

For every input stream of the pipeline a stage consumes either the raw input
stream (first stage) or the verified stream of the previous stage, and
publishes its own verified stream for the next stage to consume.
"""

from cdstage.exceptions import (
    CdStageError,
    ProvisioningError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from cdstage.models import (
    CDPipeline,
    CodebaseImageStream,
    CodebaseImageStreamSpec,
    EDPComponent,
    ObjectMeta,
    Stage,
    environment_label,
    verified_stream_name,
)
from cdstage.repositories import BaseRepository, CDPipelineRepository
from cdstage.store import ObjectStore
from cdstage.utils.logger import logger

from .ordering import StageOrderingService

DOCKER_REGISTRY_COMPONENT = "docker-registry"


class ConsumedStreamResolver:
    """Resolves the image stream a stage consumes for one pipeline input."""

    def __init__(self, store: ObjectStore):
        self.streams = BaseRepository(store, CodebaseImageStream)
        self.ordering = StageOrderingService(store)

    async def get_stream(self, name: str, namespace: str) -> CodebaseImageStream:
        try:
            return await self.streams.get(name, namespace)
        except ResourceNotFoundError as e:
            raise ProvisioningError(f"failed to get {name} codebase image stream") from e

    async def resolve(
        self, stage: Stage, pipeline: CDPipeline, input_stream: str
    ) -> CodebaseImageStream:
        """Get the stream a stage consumes for a pipeline input stream.

        Args:
            stage: Stage being provisioned or deleted
            pipeline: Pipeline owning the stage
            input_stream: Name of the pipeline input stream

        Returns:
            The input stream itself for the first stage, otherwise the
            verified stream published by the previous stage

        Raises:
            ProvisioningError: If either stream is missing
            PreviousStageNotFoundError: If a non-first stage has no predecessor
        """
        stream = await self.get_stream(input_stream, stage.namespace)
        if stage.is_first:
            return stream

        previous = await self.ordering.find_previous_stage(stage)
        name = verified_stream_name(pipeline.name, previous.spec.name, stream.spec.codebase)
        return await self.get_stream(name, stage.namespace)


class PutCodebaseImageStream:
    """Provisioning step publishing a stage's verified image streams."""

    def __init__(self, store: ObjectStore):
        self.pipelines = CDPipelineRepository(store)
        self.streams = BaseRepository(store, CodebaseImageStream)
        self.components = BaseRepository(store, EDPComponent)
        self.resolver = ConsumedStreamResolver(store)

    async def serve_request(self, stage: Stage) -> None:
        logger.info(f"Creating codebase image streams for stage '{stage.name}'")

        pipeline = await self.pipelines.get_with_streams(stage)
        registry_url = await self.get_docker_registry_url(stage.namespace)

        for input_stream in pipeline.spec.input_docker_streams:
            consumed = await self.resolver.resolve(stage, pipeline, input_stream)
            codebase = consumed.spec.codebase

            name = verified_stream_name(pipeline.name, stage.spec.name, codebase)
            image = f"{registry_url}/{stage.namespace}/{codebase}"
            await self.put_verified_stream(name, stage.namespace, codebase, image)

            await self.set_environment_label(
                consumed, environment_label(pipeline.spec.name, stage.spec.name)
            )

        logger.info(f"Codebase image streams have been created for stage '{stage.name}'")

    async def get_docker_registry_url(self, namespace: str) -> str:
        try:
            component = await self.components.get(DOCKER_REGISTRY_COMPONENT, namespace)
        except ResourceNotFoundError as e:
            raise ProvisioningError(
                f"failed to get {DOCKER_REGISTRY_COMPONENT} EDP component"
            ) from e
        return component.spec.url

    async def put_verified_stream(self, name: str, namespace: str, codebase: str, image: str) -> None:
        """Create the verified stream or point the existing one at ``image``."""
        existing = await self.streams.get_optional(name, namespace)
        if existing is None:
            stream = CodebaseImageStream(
                metadata=ObjectMeta(name=name, namespace=namespace),
                spec=CodebaseImageStreamSpec(codebase=codebase, image_name=image),
            )
            try:
                await self.streams.create(stream)
            except ResourceAlreadyExistsError:
                logger.info(f"Codebase image stream '{name}' has been created concurrently")
                existing = await self.streams.get(name, namespace)
            except CdStageError as e:
                raise ProvisioningError(f"failed to create {name} codebase image stream") from e
            else:
                logger.info(f"Codebase image stream '{name}' has been created")
                return

        if existing.spec.image_name == image and existing.spec.codebase == codebase:
            logger.debug(f"Codebase image stream '{name}' is up to date")
            return

        existing.spec.codebase = codebase
        existing.spec.image_name = image
        try:
            await self.streams.update(existing)
        except CdStageError as e:
            raise ProvisioningError(f"failed to update {name} codebase image stream") from e
        logger.info(f"Codebase image stream '{name}' has been updated")

    async def set_environment_label(self, stream: CodebaseImageStream, label: str) -> None:
        """Mark a consumed stream as used by a stage."""
        if label in stream.metadata.labels:
            return
        stream.metadata.labels[label] = ""
        try:
            await self.streams.update(stream)
        except CdStageError as e:
            raise ProvisioningError(
                f"failed to set label {label} on {stream.name} codebase image stream"
            ) from e
        logger.debug(f"Label '{label}' has been set on codebase image stream '{stream.name}'")
