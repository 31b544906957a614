"""Unit tests for tool output parsing."""
from pathlib import Path

from reconforge.parsers import (
    parse_json_lines,
    parse_open_ports,
    parse_plain_lines,
    parse_response_index,
    parse_screenshots,
)


class TestJsonLines:

    def test_valid_and_malformed_lines(self):
        text = "\n".join([
            '{"url": "http://a.example.com"}',
            "not json at all",
            '{"url": "http://b.example.com"}',
            '{"url": ',
            '{"url": "http://c.example.com"}',
        ])
        result = parse_json_lines(text)

        assert len(result.records) == 3
        assert len(result.warnings) == 2
        assert result.warnings[0].startswith("line 2: ")
        assert result.warnings[1].startswith("line 4: ")

    def test_blank_lines_are_ignored(self):
        result = parse_json_lines('\n\n{"a": 1}\n   \n')
        assert result.records == [{"a": 1}]
        assert result.warnings == []

    def test_empty_output(self):
        result = parse_json_lines("")
        assert result.records == [] and result.warnings == []

    def test_extract_receives_raw_line_and_can_drop(self):
        def extract(record, line):
            return line if record.get("keep") else None

        result = parse_json_lines('{"keep": true}\n{"keep": false}', extract)
        assert result.records == ['{"keep": true}']
        assert result.warnings == []


class TestPlainLines:

    def test_strips_and_drops_blanks(self):
        assert parse_plain_lines("  a.example.com \n\n10.0.0.1\r\n") == ["a.example.com", "10.0.0.1"]

    def test_empty(self):
        assert parse_plain_lines("") == []


class TestNmapGreppable:

    def test_open_ports_in_order(self):
        output = (
            "# Nmap 7.94 scan initiated\n"
            "Host: 10.0.0.5 ()\tStatus: Up\n"
            "Host: 10.0.0.5 ()\tPorts: 22/open/tcp//ssh///, 80/open/tcp//http///, 53/open/udp//domain///\n"
            "# Nmap done\n"
        )
        assert parse_open_ports(output) == [22, 80, 53]

    def test_filtered_ports_are_ignored(self):
        assert parse_open_ports("Ports: 25/filtered/tcp//smtp///, 443/open/tcp//https///") == [443]

    def test_no_open_ports(self):
        assert parse_open_ports("") == []


class TestGowitness:

    def test_screenshot_records(self):
        text = '{"url": "https://a.example.com", "file_name": "a.jpeg"}\n{"url": "https://b.example.com", "file_name": ""}\n'
        result = parse_screenshots(text, Path("/work/screenshots"))

        assert result.records == [{
            "path": "/work/screenshots/a.jpeg",
            "metadata": '{"url": "https://a.example.com", "file_name": "a.jpeg"}',
        }]

    def test_malformed_line_is_a_warning(self):
        result = parse_screenshots('oops\n{"file_name": "x.jpeg"}', Path("/s"))
        assert len(result.records) == 1
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("line 1:")


class TestKatanaIndex:

    def test_index_lines(self):
        text = (
            "crawled_data/crawled_r1/a.example.com/3f2a.txt https://a.example.com/login (200 OK)\n"
            "crawled_data/crawled_r1/a.example.com/9c1d.txt https://a.example.com/missing (404 Not Found)\n"
            "crawled_data/crawled_r1/a.example.com/77aa.txt https://a.example.com/raw\n"
            "\n"
        )
        assert parse_response_index(text) == [
            {"file": "crawled_data/crawled_r1/a.example.com/3f2a.txt", "url": "https://a.example.com/login", "status": 200},
            {"file": "crawled_data/crawled_r1/a.example.com/9c1d.txt", "url": "https://a.example.com/missing", "status": 404},
            {"file": "crawled_data/crawled_r1/a.example.com/77aa.txt", "url": "https://a.example.com/raw", "status": None},
        ]
