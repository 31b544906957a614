"""
reconforge/toolkit/staging.py
Staged inputs for one request.

External tools take their inputs as files (host lists, YAML rule files,
credential configs). A StagingArea creates those files right before the
command runs and removes all of them on every exit path, including a
SystemExit raised by a termination signal.

File names are ``<stem>-<requestId><suffix>`` inside the temp dir. Files are
opened with O_EXCL: two requests sharing an id fail loudly instead of
silently sharing files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml

logger = logging.getLogger(__name__)


class StagingArea:
    """Owns every staged file of a single request."""

    def __init__(self, tool: str, request_id: str, temp_dir: Path, log: Optional[logging.LoggerAdapter] = None):
        self.tool = tool
        self.request_id = request_id
        self.temp_dir = Path(temp_dir)
        self._log = log or logger
        self._paths: List[Path] = []

    def __enter__(self) -> "StagingArea":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    @property
    def staged(self) -> List[Path]:
        return list(self._paths)

    def path(self, stem: str, suffix: str = ".txt") -> Path:
        return self.temp_dir / f"{stem}-{self.request_id}{suffix}"

    def write_lines(self, stem: str, items: Iterable[str], suffix: str = ".txt") -> Path:
        """One item per line; the usual ``-l``/``-list``/``-f`` input file."""
        return self._write(self.path(stem, suffix), "\n".join(items))

    def write_yaml(self, stem: str, data: Any) -> Path:
        text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
        return self._write(self.path(stem, ".yaml"), text)

    def write_secret(self, stem: str, text: str, suffix: str) -> Path:
        """Credential material: owner-only permissions, content never logged."""
        return self._write(self.path(stem, suffix), text, mode=0o600, secret=True)

    def track(self, path: Path) -> Path:
        """Adopt an intermediate file so it is removed with the staged inputs."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
        return path

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink()
                self._log.debug(f"Removed staged file {path}")
            except FileNotFoundError:
                pass
            except OSError as exc:
                self._log.warning(f"Could not remove staged file {path}: {exc}")

    def _write(self, path: Path, text: str, mode: int = 0o644, secret: bool = False) -> Path:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
        # Tracked before writing so a failed write is still cleaned up
        self._paths.append(path)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        if secret:
            self._log.debug(f"Staged credential file {path}")
        else:
            self._log.debug(f"Staged {path} ({len(text)} bytes)")
        return path
