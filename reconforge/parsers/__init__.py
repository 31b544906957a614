from .gowitness import parse_screenshots
from .katana import parse_response_index
from .lines import LineParseResult, parse_json_lines, parse_plain_lines
from .nmap import parse_open_ports

__all__ = [
    "LineParseResult",
    "parse_json_lines",
    "parse_plain_lines",
    "parse_open_ports",
    "parse_response_index",
    "parse_screenshots",
]
