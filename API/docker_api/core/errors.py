# docker_api/core/errors.py
from typing import Any, Dict, Optional


class ContainerApiError(Exception):
    """Base class for every error the API turns into an HTTP response."""

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(self, message: str, *, container: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.container = container

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.title, "detail": self.message}
        if self.container:
            body["container"] = self.container
        return body


class ValidationError(ContainerApiError):
    status_code = 400
    title = "Bad Request"


class NotFoundError(ContainerApiError):
    status_code = 404
    title = "Not Found"


class OperationCancelledError(ContainerApiError):
    # nginx's "client closed request"
    status_code = 499
    title = "Operation Cancelled"


class EngineError(ContainerApiError):
    """The Docker engine rejected or failed an operation."""

    status_code = 500
    title = "Docker API Error"


class PartialFailure(ContainerApiError):
    """
    A recreate entered its destructive steps and a later step failed.

    The original container may be gone; `container_removed` tells the
    operator whether manual intervention is needed to bring the name back.
    """

    status_code = 500
    title = "Partial Failure"

    def __init__(
        self,
        message: str,
        *,
        container: str,
        failed_step: str,
        last_completed_step: str,
        container_removed: bool,
    ):
        super().__init__(message, container=container)
        self.failed_step = failed_step
        self.last_completed_step = last_completed_step
        self.container_removed = container_removed

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body.update(
            partial_failure=True,
            container_removed=self.container_removed,
            failed_step=self.failed_step,
            last_completed_step=self.last_completed_step,
        )
        return body
