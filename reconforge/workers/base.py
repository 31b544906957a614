"""
reconforge/workers/base.py

Purpose:
    The lifecycle shared by every tool worker.

Semantics:
    STARTING -> READY -> PROCESSING -> READY ...       (long-lived)
    STARTING -> READY -> PROCESSING -> TERMINATED      (one-shot)

    - The ready signal goes out only after signal handlers are installed.
    - Requests are served strictly one at a time, in arrival order. A request
      sent while another is in flight waits in the pipe until the worker
      reads it.
    - handle() turns every Exception into an error envelope, so exactly one
      response leaves per request and a failed request never takes the
      worker down.
    - SIGTERM/SIGINT exit with 0 (SystemExit unwinds staging and kills the
      running tool); a closed parent channel exits with 1.
"""

from __future__ import annotations

import logging
import os
import signal
import time
from pathlib import Path
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Type, Union

from reconforge.base.config import WorkerConfig, get_config
from reconforge.base.context import RequestLogger
from reconforge.base.exceptions import ReconForgeError, RequestValidationError
from reconforge.ipc.channel import Channel, ChannelClosed, MalformedMessage
from reconforge.ipc.envelope import (
    REQUEST_ID_PATTERN,
    UNKNOWN_REQUEST_ID,
    ErrorResponse,
    ReadySignal,
    SuccessResponse,
)
from reconforge.toolkit import executor
from reconforge.toolkit.executor import ExternalCommandResult, check_result
from reconforge.toolkit.staging import StagingArea
from reconforge.workers.requests import ToolRequest, parse_request

Response = Union[SuccessResponse, ErrorResponse]

EXIT_OK = 0
EXIT_FAILURE = 1


class WorkerState(str, Enum):
    STARTING = "starting"
    READY = "ready"
    PROCESSING = "processing"
    TERMINATED = "terminated"


def claimed_request_id(message: Any) -> str:
    """Best-effort id for responses to messages that fail validation."""
    if isinstance(message, dict):
        raw = message.get("requestId")
        if isinstance(raw, str) and REQUEST_ID_PATTERN.match(raw):
            return raw
    return UNKNOWN_REQUEST_ID


class Worker:
    """
    Base class for tool workers.

    Subclasses set ``kind`` and ``request_model`` and implement process().
    """

    kind: ClassVar[str] = ""
    request_model: ClassVar[Type[ToolRequest]]
    one_shot: ClassVar[bool] = False

    def __init__(self, channel: Channel, config: Optional[WorkerConfig] = None):
        self.channel = channel
        self.config = config or get_config()
        self.tool_config = self.config.tool(self.kind)
        self.logger = logging.getLogger(f"reconforge.workers.{self.kind}")
        self.state = WorkerState.STARTING
        self._previous_handlers: Dict[int, Any] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def serve(self, install_signal_handlers: bool = True) -> int:
        """Run until shutdown; returns the process exit code."""
        if install_signal_handlers:
            self._install_signal_handlers()
        try:
            self.state = WorkerState.READY
            self.logger.info(f"[{self.kind}] Worker initialized and ready (pid {os.getpid()})")
            self.channel.send(ReadySignal())

            while True:
                try:
                    message = self.channel.receive()
                except MalformedMessage as exc:
                    self.logger.warning(f"[{self.kind}] Discarding malformed message: {exc}")
                    response: Response = ErrorResponse.from_exception(RequestValidationError(str(exc)))
                else:
                    response = self.handle(message)

                self.channel.send(response)

                if self.one_shot:
                    return EXIT_OK if isinstance(response, SuccessResponse) else EXIT_FAILURE
        except ChannelClosed:
            self.logger.info(f"[{self.kind}] Disconnected from parent process. Exiting.")
            return EXIT_FAILURE
        finally:
            self.state = WorkerState.TERMINATED
            if install_signal_handlers:
                self._restore_signal_handlers()

    def _install_signal_handlers(self) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _on_signal(self, signum: int, frame: Any) -> None:
        self.logger.info(f"[{self.kind}] Received {signal.Signals(signum).name}. Shutting down gracefully.")
        raise SystemExit(EXIT_OK)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def handle(self, message: Dict[str, Any]) -> Response:
        """Validate, stage, execute, parse, clean up. Never raises Exception."""
        self.state = WorkerState.PROCESSING
        start = time.monotonic()
        request_id = claimed_request_id(message)
        try:
            request = parse_request(self.request_model, message)
            request_id = request.request_id
            log = RequestLogger(self.logger, self.kind, request_id)
            log.info(f"Processing {self.kind} request")

            with StagingArea(self.kind, request_id, self.config.storage.temp_dir, log=log) as staging:
                payload = self.process(request, staging, log)

            execution_time = time.monotonic() - start
            log.info(f"Request processing complete in {execution_time:.2f}s")
            return SuccessResponse.build(request_id, execution_time, payload)
        except Exception as exc:
            self.logger.error(
                f"[{self.kind}] [{request_id}] {type(exc).__name__}: {exc}",
                exc_info=not isinstance(exc, ReconForgeError),
            )
            return ErrorResponse.from_exception(exc, request_id)
        finally:
            self.state = WorkerState.READY

    def process(self, request: ToolRequest, staging: StagingArea, log: RequestLogger) -> Dict[str, Any]:
        """Tool-specific work; returns the success payload (wire key names)."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def execute(
        self,
        argv: Sequence[str],
        log: RequestLogger,
        redact: Sequence[int] = (),
        cwd: Optional[str] = None,
    ) -> ExternalCommandResult:
        """Run the tool under this worker's ceilings; raise on any failure."""
        result = executor.run_command(
            argv,
            timeout=self.tool_config.timeout_seconds,
            max_output_bytes=self.tool_config.max_output_bytes,
            cwd=cwd,
            redact=redact,
            log=log,
        )
        if result.stderr and not result.ok:
            log.error(f"stderr: {result.stderr[:1000]}")
        return check_result(self.kind, result)

    def retain_output(self, request: ToolRequest) -> bool:
        override = getattr(request, "retain_output", None)
        return self.tool_config.retain_output if override is None else override

    @property
    def work_dir(self) -> Path:
        return self.config.storage.work_dir
