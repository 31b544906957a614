"""Fixtures for worker unit tests."""
import pytest

from reconforge.base.config import ScanConfig, StorageConfig, WorkerConfig
from reconforge.toolkit import executor

from worker_helpers import FakeTool


@pytest.fixture
def worker_config(tmp_path):
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    return WorkerConfig(
        storage=StorageConfig(work_dir=work_dir, temp_dir=tmp_path / "staging"),
        scan=ScanConfig(nmap_use_sudo=False),
    )


@pytest.fixture
def fake_tool(monkeypatch, worker_config):
    tool = FakeTool(worker_config.storage.temp_dir)
    monkeypatch.setattr(executor, "run_command", tool)
    return tool
