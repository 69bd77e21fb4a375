"""
Stream Domain Exceptions.

Every failure the engine surfaces carries the HTTP status it maps to, so the
API layer can translate them with a single handler.
"""

from typing import Any, Dict, Optional, Union


class StreamDeliveryError(Exception):
    """Base exception for the stream delivery engine"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class BadRequest(StreamDeliveryError):
    """Missing or malformed request input (e.g. no Range header)"""

    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="BAD_REQUEST",
            details=details,
        )


class RangeNotSatisfiable(BadRequest):
    """Requested start byte lies outside the file"""

    def __init__(self, start: int, file_size: int):
        super().__init__(
            message=f"Range start {start} not satisfiable for {file_size} bytes",
            details={"start": start, "file_size": file_size},
        )
        self.status_code = 416
        self.error_code = "RANGE_NOT_SATISFIABLE"
        self.file_size = file_size


class NotFound(StreamDeliveryError):
    """Unknown stream, missing recording or missing preview source"""

    def __init__(
        self,
        resource: str,
        resource_id: Union[str, int],
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        default_details = {"resource": resource, "resource_id": str(resource_id)}
        if details:
            default_details.update(details)
        super().__init__(
            message=message or f"{resource} '{resource_id}' not found",
            status_code=404,
            error_code="NOT_FOUND",
            details=default_details,
        )


class ExternalToolFailure(StreamDeliveryError):
    """The transcoder exited nonzero, timed out or produced no output"""

    def __init__(self, tool: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{tool}: {message}",
            status_code=500,
            error_code="EXTERNAL_TOOL_FAILURE",
            details=details,
        )
        self.tool = tool


class StoreFailure(StreamDeliveryError):
    """The stream store could not answer a query"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="STORE_FAILURE",
            details=details,
        )


class KeyIssueFailure(StreamDeliveryError):
    """No unused stream key could be issued within max_issue_attempts tries"""

    def __init__(self, attempts: int):
        super().__init__(
            message=f"Could not issue an unused stream key after {attempts} attempts",
            status_code=500,
            error_code="KEY_ISSUE_FAILURE",
            details={"attempts": attempts},
        )
