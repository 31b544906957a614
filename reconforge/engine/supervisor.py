"""
reconforge/engine/supervisor.py

Purpose:
    The parent side of the worker protocol: spawn a worker process, wait for
    it to become ready, send one request, collect the correlated response,
    shut the worker down.

Semantics:
    - One worker per request. A crashed or hung worker never affects the
      next request.
    - A success envelope resolves to its metadata; an error envelope is
      re-raised as WorkerFailure carrying the worker's message/stack/type.
    - A worker that exits before answering raises WorkerCrashedError with
      its exit code.
    - Nothing is retried here. Callers decide.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Mapping, Optional

from reconforge.base.config import MB, WorkerConfig, get_config
from reconforge.base.exceptions import (
    ProtocolError,
    WorkerCrashedError,
    WorkerFailure,
    WorkerStartError,
    WorkerTimeoutError,
)
from reconforge.ipc.channel import MalformedMessage, decode_message, encode_message
from reconforge.ipc.envelope import UNKNOWN_REQUEST_ID, generate_request_id

logger = logging.getLogger(__name__)

# Largest single response line accepted from a worker (inlined screenshots
# and crawl indexes can be large)
READ_LIMIT = 512 * MB

# Seconds between SIGTERM and SIGKILL when closing a worker
TERMINATE_GRACE = 2.0


class WorkerHandle:
    """A running worker process and its stdio channel."""

    def __init__(self, kind: str, proc: asyncio.subprocess.Process):
        self.kind = kind
        self._proc = proc
        self.ready = False

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    async def _read_message(self) -> Optional[Dict[str, Any]]:
        """Next message from the worker, or None once its stdout is closed."""
        assert self._proc.stdout is not None
        while True:
            line = await self._proc.stdout.readline()
            if not line:
                return None
            if not line.strip():
                continue
            try:
                return decode_message(line)
            except MalformedMessage as exc:
                raise ProtocolError(f"[{self.kind}] unreadable message from worker: {exc}") from exc

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        try:
            message = await asyncio.wait_for(self._read_message(), timeout=timeout)
        except asyncio.TimeoutError:
            raise WorkerStartError(f"{self.kind} worker not ready after {timeout}s") from None

        if message is None:
            code = await self._proc.wait()
            raise WorkerStartError(f"{self.kind} worker exited with code {code} before becoming ready")
        if message.get("status") != "ready":
            raise ProtocolError(f"{self.kind} worker sent {message.get('status')!r} instead of 'ready'")

        self.ready = True
        logger.debug(f"[supervisor] {self.kind} worker {self.pid} ready")

    async def request(self, params: Mapping[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Send one request and return the raw response envelope.

        A ``requestId`` is generated when the caller supplies none.

        Raises:
            WorkerCrashedError: worker exited (or closed stdout) before answering
            ProtocolError: response not correlated with this request
            WorkerTimeoutError: no response within ``timeout``
        """
        if not self.ready:
            raise ProtocolError(f"{self.kind} worker has not signalled ready")

        message = dict(params)
        if not message.get("requestId"):
            message["requestId"] = generate_request_id()
        request_id = message["requestId"]

        assert self._proc.stdin is not None
        try:
            self._proc.stdin.write(encode_message(message))
            await self._proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            code = await self._proc.wait()
            raise WorkerCrashedError(
                f"{self.kind} worker exited with code {code} before accepting request {request_id}",
                exit_code=code,
            ) from None

        try:
            response = await asyncio.wait_for(self._read_message(), timeout=timeout)
        except asyncio.TimeoutError:
            raise WorkerTimeoutError(
                f"{self.kind} worker did not answer request {request_id} within {timeout}s"
            ) from None
        if response is None:
            code = await self._proc.wait()
            raise WorkerCrashedError(
                f"{self.kind} worker exited with code {code} before answering request {request_id}",
                exit_code=code,
            )

        status = response.get("status")
        if status == "success":
            answered = (response.get("metadata") or {}).get("requestId")
        elif status == "error":
            answered = response.get("requestId")
            # A request id the worker refused to accept is echoed as "unknown"
            if answered == UNKNOWN_REQUEST_ID:
                answered = request_id
        else:
            raise ProtocolError(f"{self.kind} worker sent unexpected status {status!r}")

        if answered != request_id:
            raise ProtocolError(f"{self.kind} worker answered {answered!r}, expected {request_id!r}")
        return response

    async def close(self, grace: float = TERMINATE_GRACE) -> Optional[int]:
        """Terminate the worker (SIGKILL after ``grace``) and return its exit code."""
        if self._proc.returncode is None:
            try:
                self._proc.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(self._proc.wait(), timeout=grace)
            except asyncio.TimeoutError:
                try:
                    self._proc.kill()
                except ProcessLookupError:
                    pass
                await self._proc.wait()
        logger.debug(f"[supervisor] {self.kind} worker {self.pid} exited with {self._proc.returncode}")
        return self._proc.returncode


async def spawn_worker(
    kind: str,
    config: Optional[WorkerConfig] = None,
    env: Optional[Mapping[str, str]] = None,
) -> WorkerHandle:
    """
    Start ``python -m reconforge.workers <kind>`` and wait until it is ready.

    The worker's stderr (its logs) is inherited from this process.
    """
    cfg = config or get_config()
    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    try:
        proc = await asyncio.create_subprocess_exec(
            sys.executable, "-m", "reconforge.workers", kind,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env=child_env,
            limit=READ_LIMIT,
        )
    except OSError as exc:
        raise WorkerStartError(f"Could not start {kind} worker: {exc}") from exc

    handle = WorkerHandle(kind, proc)
    try:
        await handle.wait_ready(cfg.scan.ready_timeout_seconds)
    except BaseException:
        await handle.close()
        raise
    return handle


class Supervisor:
    """Runs tool requests in freshly spawned workers."""

    def __init__(self, config: Optional[WorkerConfig] = None, env: Optional[Mapping[str, str]] = None):
        self.config = config or get_config()
        self.env = dict(env) if env else None

    async def request(
        self,
        kind: str,
        params: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Full lifecycle for one request; returns the raw response envelope."""
        handle = await spawn_worker(kind, self.config, self.env)
        try:
            return await handle.request(params, timeout=timeout)
        finally:
            await handle.close()

    async def run(self, kind: str, params: Mapping[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Run one request and return the success metadata.

        Raises:
            WorkerFailure: the worker answered with an error envelope
        """
        response = await self.request(kind, params, timeout=timeout)
        if response["status"] == "error":
            failure = WorkerFailure.from_envelope(response)
            logger.warning(f"[supervisor] {kind} request {failure.request_id} failed: {failure}")
            raise failure
        return response["metadata"]

    async def scan_ports(self, hosts: List[str], batch_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Port-scan ``hosts`` with one one-shot nmap worker each.

        Batches of ``batch_size`` hosts run concurrently; a host whose scan
        fails is reported with an ``error`` entry instead of ports.
        """
        size = max(1, batch_size or self.config.scan.nmap_batch_size)
        results: List[Dict[str, Any]] = []

        for start in range(0, len(hosts), size):
            batch = hosts[start:start + size]
            logger.info(f"[supervisor] nmap batch {start // size + 1}: {', '.join(batch)}")
            outcomes = await asyncio.gather(
                *(self.run("nmap", {"host": host}) for host in batch),
                return_exceptions=True,
            )
            for host, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                    raise outcome
                if isinstance(outcome, Exception):
                    logger.error(f"[supervisor] nmap scan of {host} failed: {outcome}")
                    results.append({"host": host, "ports": [], "error": str(outcome)})
                else:
                    results.append({"host": outcome["host"], "ports": outcome["ports"]})

        return results
