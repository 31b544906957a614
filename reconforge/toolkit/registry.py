"""
reconforge/toolkit/registry.py
Catalogue of the external tools the workers invoke.

Each tool is defined as a dictionary with:
- label: Human-readable description
- cmd: Fixed command-line arguments with {placeholder} slots
- binary: (optional) Override for the executable name checked on PATH
- one_shot: Whether the worker exits after a single request

The command lines are external contracts of the tools themselves; workers
only fill in the placeholders and append optional flags.
"""

import logging
import shutil
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


TOOLS: Dict[str, Dict[str, Any]] = {
    "httpx": {
        "label": "httpx (HTTP/HTTPS probing)",
        "cmd": [
            "httpx", "-l", "{input_file}", "-json", "-silent",
            "-timeout", "10", "-threads", "500", "-retries", "1",
        ],
        "one_shot": False,
    },
    "nmap": {
        "label": "Nmap (SYN+UDP open port scan)",
        "cmd": [
            "nmap", "-sS", "-sU", "-T4",
            "-p", "T:1-10000,U:1-1000",
            "--min-parallelism", "100", "--max-retries", "2",
            "-Pn", "--open", "-oG", "-", "{target}",
        ],
        "one_shot": True,
    },
    "katana": {
        "label": "katana (web crawler)",
        "cmd": ["katana", "-list", "{input_file}", "-store-response-dir", "{response_dir}"],
        "one_shot": False,
    },
    "gowitness": {
        "label": "gowitness (web screenshots)",
        "cmd": [
            "gowitness", "scan", "file", "-f", "{input_file}",
            "--threads", "50", "--delay", "5",
            "--no-http", "--no-https",
            "--write-jsonl", "--write-jsonl-file", "{jsonl_file}",
            "--screenshot-path", "{screenshot_dir}",
            "-T", "15", "--skip-html",
        ],
        "one_shot": False,
    },
    "cloudlist": {
        "label": "cloudlist (cloud asset inventory)",
        "cmd": ["cloudlist", "-pc", "{config_file}", "-silent"],
        "one_shot": True,
    },
    "steampipe": {
        "label": "steampipe_export_aws (AWS resource export)",
        "cmd": ["steampipe_export_aws", "--config", "{config}", "{resource_type}", "--output", "json"],
        "binary": "steampipe_export_aws",
        "one_shot": False,
    },
    "uro": {
        "label": "uro (URL de-duplication)",
        "cmd": ["uro", "-i", "{input_file}", "-o", "{output_file}"],
        "one_shot": False,
    },
}


def get_tool_command(name: str, **values: Any) -> List[str]:
    """
    Generate the full command-line arguments for a tool.

    Args:
        name: Tool name (KeyError if unknown)
        **values: Placeholder values, e.g. input_file="/tmp/httpx-hosts-ab12cd34.txt"

    Returns:
        Command list ready for execution (no shell involved). A placeholder
        without a value raises KeyError.
    """
    tdef = TOOLS[name]
    cmd: List[str] = []
    for part in tdef["cmd"]:
        if "{" in part:
            cmd.append(part.format(**{k: str(v) for k, v in values.items()}))
        else:
            cmd.append(part)
    return cmd


def get_installed_tools() -> Dict[str, Dict[str, Any]]:
    """
    Detect which tools from the registry are installed on the system.
    Returns a dictionary of installed tools and their metadata.
    """
    installed = {}
    for name, config in TOOLS.items():
        binary = config.get("binary") or config["cmd"][0]
        if shutil.which(binary):
            installed[name] = config
    return installed
