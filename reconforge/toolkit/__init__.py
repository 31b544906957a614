# ============================================================================
# reconforge/toolkit/__init__.py
# Toolkit Package - External Tool Integration Layer
# ============================================================================
#
# PURPOSE:
# Everything a worker needs to turn a request into one external command:
#
# - **registry.py**: tool catalogue and fixed command lines
# - **staging.py**: temp files that satisfy a tool's calling convention
# - **executor.py**: synchronous execution with timeout/output ceilings
#
# ============================================================================

from .executor import ExternalCommandResult, check_result, run_command
from .registry import TOOLS, get_installed_tools, get_tool_command
from .staging import StagingArea

__all__ = [
    "ExternalCommandResult",
    "check_result",
    "run_command",
    "TOOLS",
    "get_installed_tools",
    "get_tool_command",
    "StagingArea",
]
