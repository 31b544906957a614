# ============================================================================
# reconforge/__init__.py
# ReconForge - Reconnaissance Tool Workers
# ============================================================================
#
# PURPOSE:
# Child processes that each wrap one third-party reconnaissance tool
# (httpx, nmap, katana, gowitness, cloudlist, steampipe, uro) behind a small
# request/response protocol, plus the parent-side supervisor that drives them.
#
# PACKAGE LAYOUT:
# - **base/**: configuration, logging setup, error hierarchy
# - **ipc/**: envelopes and the JSON-lines channel between parent and worker
# - **toolkit/**: tool registry, staging of input files, command execution
# - **parsers/**: tool output interpretation
# - **workers/**: the worker lifecycle and one worker per tool
# - **engine/**: asyncio supervisor (parent side)
#
# ============================================================================

__version__ = "0.4.0"
