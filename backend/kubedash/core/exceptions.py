"""
Exception classes for cluster reads and overview builds.

Read errors are raised by the cluster read port and say why a single
collection could not be fetched. OverviewBuildError is raised by the overview
builder when a required collection is missing and the whole build fails.
"""

from typing import Optional


class KubedashError(Exception):
    """Base class for all errors raised by kubedash."""


class ClusterReadError(KubedashError):
    """
    Raised when a collection could not be read from the cluster.

    Attributes:
        source: Collection being read (e.g., "nodes", "events")
    """

    reason = "unexpected"

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        self.source = source
        super().__init__(message)


class ClusterUnreachableError(ClusterReadError):
    """Control plane could not be reached or did not answer in time."""

    reason = "unreachable"


class ClusterApiError(ClusterReadError):
    """
    Control plane answered with an error status.

    Attributes:
        status: HTTP status returned by the API server
    """

    reason = "api_error"

    def __init__(self, message: str, source: Optional[str] = None, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message, source=source)


class MalformedResponseError(ClusterReadError):
    """Response arrived but did not have the expected shape."""

    reason = "malformed"


class OverviewBuildError(KubedashError):
    """
    Raised when a required collection failed and the overview cannot be built.

    Attributes:
        source: Required collection that failed
        cause: Underlying exception
        reason: "unreachable", "api_error", "malformed" or "unexpected"
    """

    def __init__(self, source: str, cause: BaseException) -> None:
        self.source = source
        self.cause = cause
        self.reason = getattr(cause, "reason", "unexpected")
        super().__init__(f"Failed to read {source}: {cause}")
