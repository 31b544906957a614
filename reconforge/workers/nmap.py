"""
reconforge/workers/nmap.py
Open port discovery with Nmap.

One-shot: the worker scans a single host and exits. The supervisor runs
several of these side by side for a host list.
"""

from typing import Any, Dict

from reconforge.parsers.nmap import parse_open_ports
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import NmapRequest


class NmapWorker(Worker):
    kind = "nmap"
    request_model = NmapRequest
    one_shot = True

    def process(self, request, staging, log) -> Dict[str, Any]:
        argv = get_tool_command("nmap", target=request.host)
        if self.config.scan.nmap_use_sudo:
            # -sS/-sU need raw sockets
            argv = ["sudo", "-n"] + argv

        log.info(f"Scanning {request.host}")
        result = self.execute(argv, log)

        if result.stderr:
            log.warning(f"nmap stderr: {result.stderr[:1000]}")

        ports = parse_open_ports(result.stdout)
        log.info(f"{request.host}: {len(ports)} open ports")
        return {"host": request.host, "ports": ports}
