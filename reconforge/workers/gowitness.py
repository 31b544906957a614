"""
reconforge/workers/gowitness.py
Web screenshots with gowitness.

gowitness reports each capture as a JSONL line naming the image file. The
JSONL file is read once and removed. Images stay in ``<work_dir>/screenshots``
when output is retained; otherwise they are inlined as base64 and deleted.
"""

import base64
from pathlib import Path
from typing import Any, Dict

from reconforge.parsers.gowitness import parse_screenshots
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import GowitnessRequest


class GowitnessWorker(Worker):
    kind = "gowitness"
    request_model = GowitnessRequest

    @property
    def screenshot_dir(self) -> Path:
        return Path(self.work_dir) / "screenshots"

    def process(self, request, staging, log) -> Dict[str, Any]:
        urls_file = staging.write_lines("gowitness-urls", request.asset_urls)
        jsonl_file = staging.track(Path(self.work_dir) / f"gowitness-{request.request_id}.jsonl")
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

        argv = get_tool_command(
            "gowitness",
            input_file=urls_file,
            jsonl_file=jsonl_file,
            screenshot_dir=self.screenshot_dir,
        )
        log.info(f"Capturing {len(request.asset_urls)} URLs")
        self.execute(argv, log)

        text = jsonl_file.read_text(encoding="utf-8") if jsonl_file.exists() else ""
        parsed = parse_screenshots(text, self.screenshot_dir)
        for warning in parsed.warnings:
            log.warning(f"Skipping unparsable gowitness result ({warning})")

        screenshots = parsed.records
        if not self.retain_output(request):
            for shot in screenshots:
                self._inline(shot, log)

        log.info(f"Captured {len(screenshots)} screenshots")
        return {"screenshots": screenshots}

    def _inline(self, shot: Dict[str, Any], log) -> None:
        path = Path(shot["path"])
        try:
            shot["data"] = base64.b64encode(path.read_bytes()).decode("ascii")
            path.unlink()
        except OSError as exc:
            log.warning(f"Could not inline screenshot {path}: {exc}")
