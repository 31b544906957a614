"""
reconforge/ipc/channel.py
JSON-lines message channel between a parent and a worker.

One message per line, UTF-8 encoded JSON objects. Any language that can
write a line to a pipe can drive a worker.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, BinaryIO, Dict, Union

from reconforge.ipc.envelope import Envelope

logger = logging.getLogger(__name__)


class ChannelClosed(Exception):
    """The other side closed its end of the channel (disconnect)."""


class MalformedMessage(Exception):
    """A line arrived that is not a JSON object."""
    def __init__(self, message: str, raw: bytes = b""):
        super().__init__(message)
        self.raw = raw


Message = Union[Envelope, Dict[str, Any]]


def encode_message(message: Message) -> bytes:
    payload = message.to_wire() if isinstance(message, Envelope) else message
    return (json.dumps(payload, separators=(",", ":"), default=str) + "\n").encode("utf-8")


def decode_message(line: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedMessage(f"Message is not valid JSON: {exc}", raw=line) from exc
    if not isinstance(data, dict):
        raise MalformedMessage("Message must be a JSON object", raw=line)
    return data


class Channel:
    """Blocking channel over a pair of byte streams."""

    def __init__(self, reader: BinaryIO, writer: BinaryIO):
        self._reader = reader
        self._writer = writer
        self._closed = False

    @classmethod
    def stdio(cls) -> "Channel":
        """Channel on the process' own stdin/stdout (worker side)."""
        return cls(sys.stdin.buffer, sys.stdout.buffer)

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: Message) -> None:
        if self._closed:
            raise ChannelClosed("Channel already closed")
        try:
            self._writer.write(encode_message(message))
            self._writer.flush()
        except (BrokenPipeError, ValueError) as exc:
            # ValueError: write to a closed file object
            self._closed = True
            raise ChannelClosed(f"Parent channel closed: {exc}") from exc

    def receive(self) -> Dict[str, Any]:
        """Next message; skips blank lines. Raises ChannelClosed on EOF."""
        while True:
            if self._closed:
                raise ChannelClosed("Channel already closed")
            line = self._reader.readline()
            if not line:
                self._closed = True
                raise ChannelClosed("End of stream")
            if not line.strip():
                continue
            return decode_message(line)

    def close(self) -> None:
        self._closed = True
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except (OSError, ValueError) as exc:
                logger.debug(f"[channel] close failed: {exc}")