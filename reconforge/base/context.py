"""
reconforge/base/context.py
Request-scoped logging.
"""

import logging
from typing import Any, MutableMapping, Tuple


class RequestLogger(logging.LoggerAdapter):
    """
    Tags every entry with the tool and correlation id:

        [httpx] [a1b2c3d4] Executing httpx

    The id is also attached to the record as ``request_id`` so file handlers
    with a richer format can pick it up.
    """

    def __init__(self, logger: logging.Logger, tool: str, request_id: str):
        super().__init__(logger, {"tool": tool, "request_id": request_id})

    @property
    def request_id(self) -> str:
        return self.extra["request_id"]

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("request_id", self.extra["request_id"])
        kwargs["extra"] = extra
        return f"[{self.extra['tool']}] [{self.extra['request_id']}] {msg}", kwargs
