"""End-to-end tests: real worker processes driven by the supervisor."""
import asyncio
import logging
import os
from pathlib import Path

import pytest

from reconforge import cli
from reconforge.base.exceptions import WorkerFailure, WorkerTimeoutError
from reconforge.engine.supervisor import Supervisor, spawn_worker

pytestmark = pytest.mark.integration


def staged(env):
    path = Path(env["RECONFORGE_TEMP_DIR"])
    return sorted(os.listdir(path)) if path.exists() else []


class TestHttpxEndToEnd:

    @pytest.mark.asyncio
    async def test_live_hosts(self, tool_env):
        supervisor = Supervisor(env=tool_env)
        metadata = await supervisor.run("httpx", {"hosts": ["a.example.com", "b.example.com"], "requestId": "e2e-1"})

        assert metadata["results"] == ["http://a.example.com"]
        assert metadata["requestId"] == "e2e-1"
        assert metadata["executionTime"] >= 0
        assert staged(tool_env) == []

    @pytest.mark.asyncio
    async def test_missing_hosts(self, tool_env):
        supervisor = Supervisor(env=tool_env)
        with pytest.raises(WorkerFailure) as excinfo:
            await supervisor.run("httpx", {"requestId": "e2e-2"})

        assert str(excinfo.value) == "No hosts received"
        assert excinfo.value.error_type == "RequestValidationError"
        assert excinfo.value.request_id == "e2e-2"
        assert staged(tool_env) == []

    @pytest.mark.asyncio
    async def test_tool_failure(self, tool_env):
        supervisor = Supervisor(env={**tool_env, "FAKE_HTTPX_MODE": "fail"})
        with pytest.raises(WorkerFailure) as excinfo:
            await supervisor.run("httpx", {"hosts": ["a.example.com"]})

        assert "exited with status 2" in str(excinfo.value)
        assert "could not resolve input file" in str(excinfo.value)
        assert excinfo.value.stack
        assert staged(tool_env) == []

    @pytest.mark.asyncio
    async def test_timeout(self, tool_env):
        env = {**tool_env, "FAKE_HTTPX_MODE": "hang", "RECONFORGE_HTTPX_TIMEOUT": "1"}
        supervisor = Supervisor(env=env)
        loop = asyncio.get_running_loop()
        start = loop.time()
        with pytest.raises(WorkerFailure) as excinfo:
            await supervisor.run("httpx", {"hosts": ["a.example.com"]})

        assert "timed out" in str(excinfo.value)
        assert excinfo.value.error_type == "ToolTimeoutError"
        assert loop.time() - start < 20
        assert staged(tool_env) == []

    @pytest.mark.asyncio
    async def test_unanswered_request_times_out(self, tool_env):
        supervisor = Supervisor(env={**tool_env, "FAKE_HTTPX_MODE": "hang"})
        with pytest.raises(WorkerTimeoutError):
            await supervisor.run("httpx", {"hosts": ["a.example.com"]}, timeout=1)
        assert staged(tool_env) == []

    @pytest.mark.asyncio
    async def test_worker_serves_several_requests(self, tool_env):
        handle = await spawn_worker("httpx", env=tool_env)
        try:
            first = await handle.request({"hosts": ["one.example.com"]})
            second = await handle.request({"hosts": ["two.example.com"]})
        finally:
            await handle.close()

        assert first["metadata"]["results"] == ["http://one.example.com"]
        assert second["metadata"]["results"] == ["http://two.example.com"]


class TestNmapEndToEnd:

    @pytest.mark.asyncio
    async def test_scan_ports_in_batches(self, tool_env):
        supervisor = Supervisor(env=tool_env)
        results = await supervisor.scan_ports(["10.0.0.1", "unreachable.example", "10.0.0.3"], batch_size=2)

        assert results[0] == {"host": "10.0.0.1", "ports": [22, 443]}
        assert results[1]["host"] == "unreachable.example"
        assert results[1]["ports"] == []
        assert "exited with status 1" in results[1]["error"]
        assert results[2] == {"host": "10.0.0.3", "ports": [22, 443]}

    @pytest.mark.asyncio
    async def test_one_shot_worker_exits_after_answering(self, tool_env):
        handle = await spawn_worker("nmap", env=tool_env)
        response = await handle.request({"host": "10.0.0.1"})
        code = await asyncio.wait_for(handle._proc.wait(), timeout=10)

        assert response["metadata"]["ports"] == [22, 443]
        assert code == 0


class TestShutdown:

    @pytest.mark.asyncio
    async def test_sigterm_exits_zero(self, tool_env):
        handle = await spawn_worker("uro", env=tool_env)
        assert await handle.close() == 0

    @pytest.mark.asyncio
    async def test_parent_disconnect_exits_one(self, tool_env):
        handle = await spawn_worker("katana", env=tool_env)
        handle._proc.stdin.close()
        code = await asyncio.wait_for(handle._proc.wait(), timeout=10)
        assert code == 1


class TestCommandLine:

    def test_run_with_timeout_reports_instead_of_crashing(self, tool_env, monkeypatch, capsys):
        for name, value in {**tool_env, "FAKE_HTTPX_MODE": "hang"}.items():
            monkeypatch.setenv(name, value)
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", list(root.handlers))
        monkeypatch.setattr(root, "level", root.level)

        code = cli.main(["run", "httpx", "--params", '{"hosts": ["a.example.com"]}', "--timeout", "1"])

        assert code == 1
        err = capsys.readouterr().err
        assert "WorkerTimeoutError" in err
        assert "did not answer request" in err
