"""
reconforge/parsers/gowitness.py
Parses gowitness JSONL results into screenshot records.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from reconforge.parsers.lines import LineParseResult, parse_json_lines


def parse_screenshots(text: str, screenshot_dir: Path) -> LineParseResult:
    """
    One record per JSONL entry that produced a screenshot:

        {"path": "<screenshot_dir>/<file_name>", "metadata": "<raw jsonl line>"}

    Entries without ``file_name`` (failed captures) are dropped.
    """
    screenshot_dir = Path(screenshot_dir)

    def _extract(entry: Any, line: str) -> Optional[Dict[str, str]]:
        if not isinstance(entry, dict) or not entry.get("file_name"):
            return None
        return {"path": str(screenshot_dir / entry["file_name"]), "metadata": line}

    return parse_json_lines(text, _extract)
