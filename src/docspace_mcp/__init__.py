# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""DocSpace document management exposed as MCP tools."""

from __future__ import annotations

from .client import Client
from .config import Config, load_config
from .errors import Errors, format_error
from .result import Err, Ok, Result
from .server import DocSpaceServer, MisconfiguredServer, Router
from .tool import ToolContext, tool, toolset
from .version import __version__


__all__ = [
    "Client",
    "Config",
    "DocSpaceServer",
    "Err",
    "Errors",
    "MisconfiguredServer",
    "Ok",
    "Result",
    "Router",
    "ToolContext",
    "__version__",
    "format_error",
    "load_config",
    "tool",
    "toolset",
]
