# ============================================================================
# reconforge/engine/__init__.py
# Engine Package - Parent-side Worker Supervision
# ============================================================================
#
# PURPOSE:
# Drives workers from the parent process: spawn, wait for ready, request,
# collect, shut down. Port scans fan out over one-shot nmap workers.
#
# ============================================================================

from .supervisor import Supervisor, WorkerHandle, spawn_worker

__all__ = ["Supervisor", "WorkerHandle", "spawn_worker"]
