"""
reconforge/workers/katana.py
Web crawling with katana.

Crawled responses are stored under ``<work_dir>/crawled_data/crawled_<id>``.
Optional crawler/form/field rule sets arrive as mappings and are handed to
katana as YAML files; auth headers are passed with -H and masked in logs.
"""

import shutil
from pathlib import Path
from typing import Any, Dict, List

from reconforge.parsers.katana import INDEX_FILE, parse_response_index
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import KatanaRequest

# request field -> (staged file stem, katana flag)
RULE_FILES = (
    ("crawler_config", "katana-crawler-config", "-config"),
    ("form_config", "katana-form-config", "-fc"),
    ("field_config", "katana-field-config", "-flc"),
)


class KatanaWorker(Worker):
    kind = "katana"
    request_model = KatanaRequest

    def response_dir(self, request_id: str) -> Path:
        return Path(self.work_dir) / "crawled_data" / f"crawled_{request_id}"

    def process(self, request, staging, log) -> Dict[str, Any]:
        urls_file = staging.write_lines("katana-urls", request.webapp_urls)
        response_dir = self.response_dir(request.request_id)
        retain = self.retain_output(request)

        argv = get_tool_command("katana", input_file=urls_file, response_dir=response_dir)
        for field_name, stem, flag in RULE_FILES:
            rules = getattr(request, field_name)
            if rules:
                argv += [flag, str(staging.write_yaml(stem, rules))]

        redact: List[int] = []
        headers = request.headers
        for name, value in (("Authorization", headers.authorization), ("Cookie", headers.cookie)):
            if value:
                argv.append("-H")
                redact.append(len(argv))
                argv.append(f"{name}: {value}")

        log.info(f"Crawling {len(request.webapp_urls)} URLs into {response_dir}")
        try:
            self.execute(argv, log, redact=redact)
            if retain:
                return {"responseDir": str(response_dir)}
            responses = self._read_index(response_dir)
            log.info(f"Collected {len(responses)} crawled responses")
            return {"responses": responses}
        finally:
            if not retain:
                shutil.rmtree(response_dir, ignore_errors=True)

    def _read_index(self, response_dir: Path) -> List[Dict[str, Any]]:
        index = response_dir / INDEX_FILE
        if not index.exists():
            return []
        return parse_response_index(index.read_text(encoding="utf-8", errors="replace"))
