"""
reconforge/parsers/nmap.py
Extracts open ports from Nmap greppable (-oG) output.

    Host: 10.0.0.5 ()  Ports: 22/open/tcp//ssh///, 53/open/udp//domain///

Same idea as ``grep -oP '\\d+(?=/open)'``: every port number immediately
followed by an open-state marker, in order of appearance.
"""

import re
from typing import List

OPEN_PORT_RE = re.compile(r"(\d+)/open")


def parse_open_ports(output: str) -> List[int]:
    return [int(match.group(1)) for match in OPEN_PORT_RE.finditer(output or "")]
