"""
reconforge/cli.py
ReconForge command deck.

    reconforge worker httpx                       serve a worker on stdio
    reconforge run httpx --params '{"hosts": ["example.com"]}'
    reconforge run steampipe --params @creds.json
    reconforge scan-ports 10.0.0.1 10.0.0.2       batched one-shot nmap workers
    reconforge tools                              which tool binaries are installed
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from reconforge.base.config import get_config, setup_logging
from reconforge.base.exceptions import ReconForgeError, WorkerFailure
from reconforge.engine.supervisor import Supervisor
from reconforge.toolkit.registry import TOOLS, get_installed_tools
from reconforge.workers import WORKERS
from reconforge.workers.__main__ import main as worker_main


def _load_params(raw: str) -> Dict[str, Any]:
    """JSON text, or @path to a JSON file."""
    text = Path(raw[1:]).read_text(encoding="utf-8") if raw.startswith("@") else raw
    params = json.loads(text)
    if not isinstance(params, dict):
        raise ValueError("--params must be a JSON object")
    return params


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def run_worker(args) -> int:
    return worker_main([args.kind])


def run_request(args) -> int:
    try:
        params = _load_params(args.params)
    except (OSError, ValueError) as exc:
        print(f"Invalid --params: {exc}", file=sys.stderr)
        return 2

    supervisor = Supervisor()
    try:
        metadata = asyncio.run(supervisor.run(args.kind, params, timeout=args.timeout))
    except WorkerFailure as exc:
        _print({"status": "error", "error": {"message": str(exc), "type": exc.error_type}, "requestId": exc.request_id})
        return 1
    except ReconForgeError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    _print({"status": "success", "metadata": metadata})
    return 0


def run_scan_ports(args) -> int:
    supervisor = Supervisor()
    results = asyncio.run(supervisor.scan_ports(args.hosts, batch_size=args.batch_size))
    _print(results)
    return 0 if all("error" not in r for r in results) else 1


def run_tools(args) -> int:
    installed = get_installed_tools()
    for name, tdef in TOOLS.items():
        mark = "installed" if name in installed else "missing"
        print(f"{name:<10} {mark:<10} {tdef['label']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="reconforge", description="ReconForge Command Deck")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Worker Command
    worker_parser = subparsers.add_parser("worker", help="Serve a tool worker on stdin/stdout")
    worker_parser.add_argument("kind", choices=sorted(WORKERS))
    worker_parser.set_defaults(func=run_worker)

    # Run Command
    run_parser = subparsers.add_parser("run", help="Run one request in a fresh worker")
    run_parser.add_argument("kind", choices=sorted(WORKERS))
    run_parser.add_argument("--params", required=True, help="Request JSON, or @file")
    run_parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the response")
    run_parser.set_defaults(func=run_request)

    # Port Scan Command
    scan_parser = subparsers.add_parser("scan-ports", help="Scan hosts with batched nmap workers")
    scan_parser.add_argument("hosts", nargs="+")
    scan_parser.add_argument("--batch-size", type=int, default=None)
    scan_parser.set_defaults(func=run_scan_ports)

    # Tools Command
    tools_parser = subparsers.add_parser("tools", help="List tool binaries found on PATH")
    tools_parser.set_defaults(func=run_tools)

    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    if args.command != "worker":
        setup_logging(get_config())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
