"""
Domain exceptions for the stage provisioning core.

These exceptions are raised by the object store, repositories and chain steps
to represent cluster and business errors without coupling to any transport.
"""

from typing import Self, TypeVar

ErrorT = TypeVar("ErrorT", bound=BaseException)


class CdStageError(Exception):
    """Base exception for all cdstage-specific errors."""

    def with_context(self, detail: str) -> Self:
        """Add context information to the exception.

        Args:
            detail: Additional details about the error

        Returns:
            Self with updated message
        """
        self.args = (detail,)
        return self


def _describe(kind: str, namespace: str, name: str) -> str:
    if namespace:
        return f"{kind} '{name}' in namespace '{namespace}'"
    return f"{kind} '{name}'"


# Object store exceptions
class ResourceNotFoundError(CdStageError):
    """Raised when a cluster object does not exist."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{_describe(kind, namespace, name)} not found")


class ResourceAlreadyExistsError(CdStageError):
    """Raised when trying to create a cluster object that already exists."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{_describe(kind, namespace, name)} already exists")


class ResourceConflictError(CdStageError):
    """Raised when a write is based on a stale resource version.

    Conflicts are retryable: the caller re-reads the object on the next
    reconciliation.
    """

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(
            f"{_describe(kind, namespace, name)} has been modified; "
            "please apply your changes to the latest version"
        )


# Configuration exceptions
class PipelineConfigError(CdStageError):
    """Raised when a CD pipeline definition cannot be provisioned."""

    pass


# Provisioning exceptions
class ProvisioningError(CdStageError):
    """Raised when a downstream resource cannot be created or updated."""

    pass


class PreviousStageNotFoundError(CdStageError):
    """Raised when a non-first stage has no sibling with a lower order."""

    def __init__(self, pipeline: str, order: int, namespace: str):
        super().__init__(
            f"previous stage for order {order} of pipeline '{pipeline}' "
            f"not found in namespace '{namespace}'"
        )


def find_cause(error: BaseException, error_type: type[ErrorT]) -> ErrorT | None:
    """Find the first exception of a given type in a ``__cause__`` chain.

    Args:
        error: Outermost exception
        error_type: Exception class to look for

    Returns:
        The matching exception or None
    """
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, error_type):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def is_not_found(error: BaseException) -> bool:
    """Check whether an error was caused by a missing object."""
    return find_cause(error, ResourceNotFoundError) is not None


def is_retryable(error: BaseException) -> bool:
    """Check whether an error was caused by an optimistic concurrency conflict."""
    return find_cause(error, ResourceConflictError) is not None
