"""Repository layer for cluster object access."""

from cdstage.repositories.base import BaseRepository
from cdstage.repositories.stage_repository import CDPipelineRepository, StageRepository

__all__ = ["BaseRepository", "CDPipelineRepository", "StageRepository"]
