"""
Exceptions for cdstage.

All exceptions inherit from CdStageError.
"""

from .domain import (
    CdStageError,
    PipelineConfigError,
    PreviousStageNotFoundError,
    ProvisioningError,
    ResourceAlreadyExistsError,
    ResourceConflictError,
    ResourceNotFoundError,
    find_cause,
    is_not_found,
    is_retryable,
)

__all__ = [
    "CdStageError",
    "PipelineConfigError",
    "PreviousStageNotFoundError",
    "ProvisioningError",
    "ResourceAlreadyExistsError",
    "ResourceConflictError",
    "ResourceNotFoundError",
    "find_cause",
    "is_not_found",
    "is_retryable",
]
