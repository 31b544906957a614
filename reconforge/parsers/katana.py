"""
reconforge/parsers/katana.py
Reads the index katana writes into a stored-response directory.

Each line of ``index.txt`` maps a stored response file to the URL it came
from and the HTTP status:

    crawled_data/crawled_ab12cd34/example.com/3f2a...txt https://example.com/login (200 OK)
"""

import re
from typing import Dict, List, Union

INDEX_FILE = "index.txt"

INDEX_LINE_RE = re.compile(r"^(\S+)\s+(\S+)(?:\s+\((\d{3})[^)]*\))?\s*$")


def parse_response_index(text: str) -> List[Dict[str, Union[str, int, None]]]:
    responses: List[Dict[str, Union[str, int, None]]] = []
    for raw in (text or "").splitlines():
        match = INDEX_LINE_RE.match(raw.strip())
        if not match:
            continue
        status = match.group(3)
        responses.append({
            "file": match.group(1),
            "url": match.group(2),
            "status": int(status) if status else None,
        })
    return responses
