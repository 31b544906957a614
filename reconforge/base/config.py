# ============================================================================
# reconforge/base/config.py
# Worker Configuration Management
# ============================================================================
#
# PURPOSE:
# All settings a worker or the supervisor needs: per-tool execution ceilings,
# where staged inputs and tool outputs live, nmap privileges, logging.
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: settings cannot change once a worker has started
# 2. Environment variables: every knob is readable from RECONFORGE_* vars
# 3. Singleton: get_config() builds the config once per process
#
# ============================================================================

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

MB = 1024 * 1024

# Names of every tool a worker exists for.
TOOL_NAMES = ("httpx", "nmap", "katana", "gowitness", "cloudlist", "steampipe", "uro")


# ============================================================================
# Per-tool Execution Configuration
# ============================================================================
# Broad network scans and large httpx/crawl jobs get a wall-clock ceiling;
# every tool gets a ceiling on combined stdout+stderr.

@dataclass(frozen=True)
class ToolConfig:
    # Seconds before the external command is killed (None = no ceiling)
    timeout_seconds: Optional[float] = None

    # Combined stdout+stderr bytes before the command is killed
    max_output_bytes: int = 200 * MB

    # Keep output artifacts (response dirs, screenshots, output files) for
    # the parent instead of inlining and deleting them
    retain_output: bool = False


DEFAULT_TOOLS: Dict[str, ToolConfig] = {
    "httpx": ToolConfig(timeout_seconds=300, max_output_bytes=100 * MB),
    "nmap": ToolConfig(timeout_seconds=600, max_output_bytes=50 * MB),
    "cloudlist": ToolConfig(timeout_seconds=600, max_output_bytes=100 * MB),
    "katana": ToolConfig(timeout_seconds=3600, max_output_bytes=100 * MB, retain_output=True),
    "gowitness": ToolConfig(retain_output=True),
    "steampipe": ToolConfig(),
    "uro": ToolConfig(retain_output=True),
}


# ============================================================================
# File Storage Configuration
# ============================================================================

@dataclass(frozen=True)
class StorageConfig:
    # Well-known location tools write their results under (crawled_data/,
    # screenshots/, uro_output/ ...)
    work_dir: Path = field(default_factory=Path.cwd)

    # Where staged inputs (host lists, rule files, credentials) are written
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))


# ============================================================================
# Scanning Configuration
# ============================================================================

@dataclass(frozen=True)
class ScanConfig:
    # SYN and UDP scans need raw sockets, so nmap runs under sudo by default
    nmap_use_sudo: bool = True

    # How many one-shot nmap workers the supervisor runs at the same time
    nmap_batch_size: int = 5

    # Seconds the supervisor waits for a freshly spawned worker to say "ready"
    ready_timeout_seconds: float = 30.0


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Optional rotating log file, in addition to stderr
    file_path: Optional[Path] = None
    max_file_size_mb: int = 10
    backup_count: int = 5


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass(frozen=True)
class WorkerConfig:
    tools: Dict[str, ToolConfig] = field(default_factory=lambda: dict(DEFAULT_TOOLS))
    storage: StorageConfig = field(default_factory=StorageConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    log: LogConfig = field(default_factory=LogConfig)
    debug: bool = False

    def tool(self, name: str) -> ToolConfig:
        """Settings for one tool (defaults when the tool is not listed)."""
        return self.tools.get(name, ToolConfig())

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        tools = {name: _tool_from_env(name, DEFAULT_TOOLS.get(name, ToolConfig())) for name in TOOL_NAMES}

        work_dir = os.getenv("RECONFORGE_WORK_DIR")
        temp_dir = os.getenv("RECONFORGE_TEMP_DIR")
        storage = StorageConfig(
            work_dir=Path(work_dir) if work_dir else Path.cwd(),
            temp_dir=Path(temp_dir) if temp_dir else Path(tempfile.gettempdir()),
        )

        scan = ScanConfig(
            nmap_use_sudo=_env_bool("RECONFORGE_NMAP_SUDO", True),
            nmap_batch_size=_env_number("RECONFORGE_NMAP_BATCH_SIZE", 5, int),
            ready_timeout_seconds=_env_number("RECONFORGE_READY_TIMEOUT", 30.0, float),
        )

        log_file = os.getenv("RECONFORGE_LOG_FILE")
        log = LogConfig(
            level=os.getenv("RECONFORGE_LOG_LEVEL", "INFO"),
            file_path=Path(log_file) if log_file else None,
        )

        return cls(
            tools=tools,
            storage=storage,
            scan=scan,
            log=log,
            debug=_env_bool("RECONFORGE_DEBUG", False),
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: Any, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return cast(raw.strip())


def _tool_from_env(name: str, base: ToolConfig) -> ToolConfig:
    prefix = f"RECONFORGE_{name.upper()}_"

    timeout = base.timeout_seconds
    raw_timeout = os.getenv(prefix + "TIMEOUT")
    if raw_timeout is not None:
        # "0" or "" lifts the ceiling
        timeout = float(raw_timeout) if raw_timeout.strip() not in ("", "0") else None

    max_output = base.max_output_bytes
    raw_max = os.getenv(prefix + "MAX_OUTPUT_MB")
    if raw_max:
        max_output = int(float(raw_max) * MB)

    return ToolConfig(
        timeout_seconds=timeout,
        max_output_bytes=max_output,
        retain_output=_env_bool(prefix + "RETAIN_OUTPUT", base.retain_output),
    )


# ============================================================================
# Global Configuration Singleton
# ============================================================================

_config: Optional[WorkerConfig] = None


def get_config() -> WorkerConfig:
    """
    Get the process-wide configuration, building it from the environment
    on first use.
    """
    global _config
    if _config is None:
        _config = WorkerConfig.from_env()
    return _config


def set_config(config: Optional[WorkerConfig]) -> None:
    """Replace the global configuration (tests). None forces a reload."""
    global _config
    _config = config


def setup_logging(config: Optional[WorkerConfig] = None) -> None:
    """
    Configure logging for a worker or supervisor process.

    Everything goes to stderr: a worker's stdout carries protocol messages
    and must never receive log lines.
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                cfg.log.file_path,
                maxBytes=cfg.log.max_file_size_mb * MB,
                backupCount=cfg.log.backup_count,
            )
        )

    level = "DEBUG" if cfg.debug else cfg.log.level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
