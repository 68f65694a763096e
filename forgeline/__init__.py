"""Forgeline: launch, watch and cancel Unreal Build Tool builds.

One build at a time, run out of band from the request path:
  - Bounded per-job log buffer with a stable global line index
  - Four-state job machine (running -> success | error | cancelled)
  - Cooperative cancellation with optional kill escalation
  - Pollable FastAPI interface for status, logs and cancel
  - Typer CLI with Rich output for serving and foreground builds
"""

__version__ = "0.2.0"
__description__ = "Launch, watch and cancel Unreal Build Tool builds through a pollable HTTP API."

from forgeline.core.build_manager import BuildManager
from forgeline.monitor.renderer import BuildRenderer as BuildMonitor
from forgeline.cli.app import app as cli

__all__ = ["BuildManager", "BuildMonitor", "cli", "__version__"]
