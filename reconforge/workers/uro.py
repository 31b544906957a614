"""
reconforge/workers/uro.py
URL de-duplication with uro.
"""

from pathlib import Path
from typing import Any, Dict

from reconforge.parsers.lines import parse_plain_lines
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import UroRequest


class UroWorker(Worker):
    kind = "uro"
    request_model = UroRequest

    def output_file(self, request_id: str) -> Path:
        return Path(self.work_dir) / "uro_output" / f"uro-output-{request_id}.txt"

    def process(self, request, staging, log) -> Dict[str, Any]:
        input_file = staging.write_lines("uro-input", request.urls)
        output_file = self.output_file(request.request_id)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        if not self.retain_output(request):
            # Read back below, then removed along with the staged input
            staging.track(output_file)

        log.info(f"De-duplicating {len(request.urls)} URLs")
        self.execute(get_tool_command("uro", input_file=input_file, output_file=output_file), log)

        if self.retain_output(request):
            log.info(f"uro output written to {output_file}")
            return {"outputFile": str(output_file)}

        text = output_file.read_text(encoding="utf-8") if output_file.exists() else ""
        urls = parse_plain_lines(text)
        log.info(f"{len(urls)} unique URLs")
        return {"urls": urls}
