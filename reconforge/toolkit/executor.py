"""
reconforge/toolkit/executor.py
Runs exactly one external command, synchronously, with bounded resources.

The worker does nothing else while the command runs. stdout and stderr are
captured into anonymous temporary files; the child is polled so that the
wall-clock ceiling and the combined output ceiling can both be enforced
without threads. The child leads its own process group. Whatever happens,
that group is sent SIGTERM (so wrappers such as sudo can pass it on), then
SIGKILL after a grace period, and the child is reaped before run_command
returns or propagates.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from typing import IO, Dict, List, Optional, Sequence

from reconforge.base.exceptions import (
    OutputLimitError,
    ToolExecutionError,
    ToolLaunchError,
    ToolTimeoutError,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1

# How much stderr an error response carries
STDERR_EXCERPT = 4000

# Seconds between SIGTERM and SIGKILL when stopping a command. Shorter than
# the supervisor's grace for the worker, so the worker outlives its tool.
TERMINATE_GRACE = 1.0


@dataclass
class ExternalCommandResult:
    """Raw outcome of one invocation. Never sent to the parent as-is."""
    command: List[str]
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    output_exceeded: bool = False
    spawn_error: Optional[OSError] = None
    duration: float = 0.0
    limits: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return (
            self.spawn_error is None
            and not self.timed_out
            and not self.output_exceeded
            and self.exit_code == 0
        )


def redacted(argv: Sequence[str], redact: Sequence[int] = ()) -> str:
    return " ".join("***" if i in redact else part for i, part in enumerate(argv))


def _size(handle: IO[bytes]) -> int:
    return os.fstat(handle.fileno()).st_size


def _read(handle: IO[bytes], limit: Optional[int]) -> str:
    handle.seek(0)
    data = handle.read(limit) if limit else handle.read()
    return data.decode("utf-8", errors="replace")


def run_command(
    argv: Sequence[str],
    *,
    timeout: Optional[float] = None,
    max_output_bytes: Optional[int] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    redact: Sequence[int] = (),
    log: Optional[logging.LoggerAdapter] = None,
) -> ExternalCommandResult:
    """
    Execute ``argv`` (no shell) and wait for it.

    Args:
        argv: Binary followed by its arguments
        timeout: Wall-clock ceiling in seconds (None = unbounded)
        max_output_bytes: Ceiling on stdout+stderr combined (None = unbounded)
        cwd: Working directory for the child
        env: Environment for the child (default: inherited)
        redact: argv positions masked when the command line is logged
        log: Logger to use (request-scoped adapter in workers)

    Returns:
        ExternalCommandResult. Launch failures, timeouts and output overruns
        are reported in the result, not raised.
    """
    log = log or logger
    command = list(argv)
    result = ExternalCommandResult(
        command=command,
        limits={"timeout": timeout, "max_output_bytes": max_output_bytes},
    )
    log.info(f"Executing: {redacted(command, redact)}")

    start = time.monotonic()
    with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
        try:
            proc = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=err,
                cwd=cwd,
                env=env,
                start_new_session=True,
            )
        except OSError as exc:
            result.spawn_error = exc
            result.duration = time.monotonic() - start
            log.error(f"Could not start {command[0]}: {exc}")
            return result

        deadline = start + timeout if timeout else None
        try:
            while True:
                try:
                    proc.wait(timeout=POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    pass
                if max_output_bytes and _size(out) + _size(err) > max_output_bytes:
                    result.output_exceeded = True
                    log.warning(f"{command[0]} output exceeded {max_output_bytes} bytes; stopping")
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    result.timed_out = True
                    log.warning(f"{command[0]} exceeded {timeout}s; stopping")
                    break
        finally:
            _stop(proc, log)

        result.exit_code = proc.returncode
        result.duration = time.monotonic() - start

        # A command can finish on its own after writing past the ceiling
        if max_output_bytes and _size(out) + _size(err) > max_output_bytes:
            result.output_exceeded = True

        result.stdout = _read(out, max_output_bytes)
        result.stderr = _read(err, max_output_bytes)

    log.info(f"{command[0]} finished in {result.duration:.2f}s (exit {result.exit_code})")
    return result


def _signal_group(proc: subprocess.Popen, signum: int) -> None:
    try:
        os.killpg(proc.pid, signum)
    except ProcessLookupError:
        pass
    except PermissionError:
        # Group members now run as another user (sudo); signal the wrapper
        proc.send_signal(signum)


def _stop(proc: subprocess.Popen, log) -> None:
    """SIGTERM the command's process group, SIGKILL it after TERMINATE_GRACE."""
    if proc.poll() is not None:
        return
    _signal_group(proc, signal.SIGTERM)
    try:
        proc.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        log.warning(f"pid {proc.pid} ignored SIGTERM for {TERMINATE_GRACE}s; killing")
        _signal_group(proc, signal.SIGKILL)
        proc.wait()
    # Descendants that outlived the leader
    _signal_group(proc, signal.SIGKILL)


def _signal_name(code: int) -> str:
    try:
        return signal.Signals(-code).name
    except ValueError:
        return str(-code)


def check_result(tool: str, result: ExternalCommandResult) -> ExternalCommandResult:
    """
    Translate a failed invocation into the error taxonomy.

    Launch failures, timeouts, output overruns and nonzero exits all end up
    as the same error-response shape; only the exception type and message
    differ.
    """
    if result.spawn_error is not None:
        exc = result.spawn_error
        reason = exc.strerror or str(exc)
        raise ToolLaunchError(f"Error executing {tool}: {reason}", tool=tool, cause=exc)

    stderr_excerpt = result.stderr[:STDERR_EXCERPT]

    if result.timed_out:
        raise ToolTimeoutError(
            f"{tool} timed out after {result.limits.get('timeout')}s",
            tool=tool,
            exit_code=result.exit_code,
            stderr=stderr_excerpt,
        )

    if result.output_exceeded:
        raise OutputLimitError(
            f"{tool} output exceeded {result.limits.get('max_output_bytes')} bytes",
            tool=tool,
            exit_code=result.exit_code,
            stderr=stderr_excerpt,
        )

    if result.exit_code != 0:
        code = result.exit_code if result.exit_code is not None else -1
        status = f"status {code}"
        if code < 0:
            status = f"status {code} (signal: {_signal_name(code)})"
        raise ToolExecutionError(
            f"{tool} exited with {status}: {stderr_excerpt}",
            tool=tool,
            exit_code=result.exit_code,
            stderr=stderr_excerpt,
        )

    return result
