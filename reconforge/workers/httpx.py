"""
reconforge/workers/httpx.py
Live-host probing with httpx.
"""

from typing import Any, Dict

from reconforge.parsers.lines import parse_json_lines
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import HttpxRequest


def _result_url(record: Any, line: str) -> str:
    # Records without a url still count; the raw line stands in for it
    if isinstance(record, dict) and record.get("url"):
        return record["url"]
    return line


class HttpxWorker(Worker):
    kind = "httpx"
    request_model = HttpxRequest

    def process(self, request, staging, log) -> Dict[str, Any]:
        hosts_file = staging.write_lines("httpx-hosts", request.hosts)
        log.info(f"Probing {len(request.hosts)} hosts")

        result = self.execute(get_tool_command("httpx", input_file=hosts_file), log)

        parsed = parse_json_lines(result.stdout, _result_url)
        for warning in parsed.warnings:
            log.warning(f"Skipping unparsable httpx output ({warning})")

        log.info(f"Found {len(parsed.records)} live URLs")
        return {"results": parsed.records}
