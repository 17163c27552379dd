# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""The DocSpace toolsets, in the order clients see them."""

from __future__ import annotations

from .files import FILES
from .folders import FOLDERS
from .people import PEOPLE
from .rooms import ROOMS


TOOLSETS = (FILES, FOLDERS, ROOMS, PEOPLE)

TOOLSET_NAMES = tuple(toolset.name for toolset in TOOLSETS)

TOOL_NAMES = tuple(spec.name for toolset in TOOLSETS for spec in toolset.tools)


__all__ = ["FILES", "FOLDERS", "PEOPLE", "ROOMS", "TOOLSETS", "TOOLSET_NAMES", "TOOL_NAMES"]
