from typing import Any, Dict, Optional


class ReconForgeError(Exception):
    """Base exception for all ReconForge errors."""


# ---------------------------------------------------------------------------
# Worker side
# ---------------------------------------------------------------------------

class RequestValidationError(ReconForgeError):
    """Raised when a request envelope is malformed or incomplete.

    Detected before any external command runs; the worker answers right away
    and stays ready.
    """


class ToolLaunchError(ReconForgeError):
    """Raised when the external binary could not be started at all."""
    def __init__(self, message: str, tool: str, cause: Optional[OSError] = None):
        super().__init__(message)
        self.tool = tool
        self.cause = cause


class ToolExecutionError(ReconForgeError):
    """Raised when the external binary ran but did not succeed."""
    def __init__(
        self,
        message: str,
        tool: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr


class ToolTimeoutError(ToolExecutionError):
    """Raised when the external binary exceeded its wall-clock ceiling."""


class OutputLimitError(ToolExecutionError):
    """Raised when stdout+stderr grew past the configured ceiling."""


class OutputParseError(ToolExecutionError):
    """Raised when required output is missing or entirely unreadable."""


# ---------------------------------------------------------------------------
# Supervisor side
# ---------------------------------------------------------------------------

class SupervisorError(ReconForgeError):
    """Base class for failures seen by the parent process."""


class WorkerStartError(SupervisorError):
    """Raised when a worker could not be spawned or never signalled ready."""


class WorkerCrashedError(SupervisorError):
    """Raised when a worker exits before sending its response."""
    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class ProtocolError(SupervisorError):
    """Raised when a worker sends something the protocol does not allow."""


class WorkerTimeoutError(SupervisorError):
    """Raised when a worker does not answer a request in time."""


class WorkerFailure(SupervisorError):
    """An error envelope returned by a worker, re-raised in the parent."""
    def __init__(self, message: str, error_type: str = "Error", stack: str = "", request_id: str = "unknown"):
        super().__init__(message)
        self.error_type = error_type
        self.stack = stack
        self.request_id = request_id

    @classmethod
    def from_envelope(cls, envelope: Dict[str, Any]) -> "WorkerFailure":
        error = envelope.get("error") or {}
        return cls(
            error.get("message") or "Unknown worker error",
            error_type=error.get("type") or "Error",
            stack=error.get("stack") or "",
            request_id=envelope.get("requestId") or "unknown",
        )
