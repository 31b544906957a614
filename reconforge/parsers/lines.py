"""
reconforge/parsers/lines.py
Line-oriented output parsing.

Tools that emit one JSON object per line (httpx -json, gowitness JSONL) are
parsed line by line: a bad line is skipped and recorded as a warning, it never
aborts the batch. Empty output is an empty result, not an error.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


@dataclass
class LineParseResult:
    records: List[Any] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def parse_json_lines(
    text: str,
    extract: Optional[Callable[[Any, str], Any]] = None,
) -> LineParseResult:
    """
    Parse JSON-lines output.

    Args:
        text: Raw tool output
        extract: Optional ``(record, raw_line) -> value``; returning None
            drops the record without a warning

    Returns:
        LineParseResult with one record per usable line and one warning per
        unparsable line ("line N: reason").
    """
    result = LineParseResult()
    for number, raw in enumerate((text or "").splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            result.warnings.append(f"line {number}: {exc.msg}")
            continue
        value = extract(record, line) if extract else record
        if value is not None:
            result.records.append(value)
    return result


def parse_plain_lines(text: str) -> List[str]:
    """Stripped, non-blank lines (cloudlist assets, uro URLs)."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]
