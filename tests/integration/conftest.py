"""Fixtures for tests that spawn real worker processes against fake tool binaries."""
import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]

FAKE_TOOLS = {
    "httpx": """
        import json, os, sys, time
        mode = os.environ.get("FAKE_HTTPX_MODE", "ok")
        if mode == "fail":
            sys.stderr.write("could not resolve input file")
            sys.exit(2)
        if mode == "hang":
            time.sleep(60)
        hosts = open(sys.argv[sys.argv.index("-l") + 1]).read().split()
        print(json.dumps({"url": "http://" + hosts[0]}))
        print("<<garbage>>")
    """,
    "nmap": """
        import sys
        host = sys.argv[-1]
        if host == "unreachable.example":
            sys.stderr.write("Failed to resolve")
            sys.exit(1)
        print("# Nmap 7.94 scan initiated")
        print("Host: %s ()\\tPorts: 22/open/tcp//ssh///, 443/open/tcp//https///" % host)
    """,
}


def _write_tool(bin_dir: Path, name: str, body: str) -> None:
    path = bin_dir / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def tool_env(tmp_path):
    """Environment for spawned workers: fake tools first on PATH, private dirs."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    for name, body in FAKE_TOOLS.items():
        _write_tool(bin_dir, name, body)

    staging = tmp_path / "staging"
    work = tmp_path / "work"
    work.mkdir()

    pythonpath = os.pathsep.join(filter(None, [str(REPO_ROOT), os.environ.get("PYTHONPATH")]))
    return {
        "PATH": os.pathsep.join([str(bin_dir), os.environ.get("PATH", "")]),
        "PYTHONPATH": pythonpath,
        "RECONFORGE_TEMP_DIR": str(staging),
        "RECONFORGE_WORK_DIR": str(work),
        "RECONFORGE_NMAP_SUDO": "false",
        "RECONFORGE_LOG_LEVEL": "DEBUG",
    }
