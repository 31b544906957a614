# ============================================================================
# reconforge/workers/__init__.py
# Workers Package - One Process per External Tool
# ============================================================================
#
# PURPOSE:
# Each worker wraps exactly one reconnaissance tool. It is spawned by a
# parent (see reconforge.engine.supervisor), announces readiness on its
# channel, then turns JSON requests into one tool invocation each.
#
# One-shot workers (nmap, cloudlist) exit after their first response.
#
# ============================================================================

from typing import Dict, Optional, Type

from reconforge.base.config import WorkerConfig
from reconforge.ipc.channel import Channel

from .base import Worker, WorkerState
from .cloudlist import CloudlistWorker
from .gowitness import GowitnessWorker
from .httpx import HttpxWorker
from .katana import KatanaWorker
from .nmap import NmapWorker
from .steampipe import SteampipeWorker
from .uro import UroWorker

WORKERS: Dict[str, Type[Worker]] = {
    cls.kind: cls
    for cls in (
        HttpxWorker,
        NmapWorker,
        KatanaWorker,
        GowitnessWorker,
        CloudlistWorker,
        SteampipeWorker,
        UroWorker,
    )
}


def create_worker(kind: str, channel: Channel, config: Optional[WorkerConfig] = None) -> Worker:
    try:
        worker_cls = WORKERS[kind]
    except KeyError:
        raise ValueError(f"Unknown worker kind: {kind!r} (expected one of {', '.join(WORKERS)})") from None
    return worker_cls(channel, config)


__all__ = [
    "WORKERS",
    "Worker",
    "WorkerState",
    "create_worker",
    "CloudlistWorker",
    "GowitnessWorker",
    "HttpxWorker",
    "KatanaWorker",
    "NmapWorker",
    "SteampipeWorker",
    "UroWorker",
]
