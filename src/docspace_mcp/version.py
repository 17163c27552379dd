# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Package version and the default user agent derived from it."""

__version__ = "0.1.0"

SERVER_NAME = "docspace-mcp"

DEFAULT_USER_AGENT = f"{SERVER_NAME} v{__version__}"

__all__ = ["DEFAULT_USER_AGENT", "SERVER_NAME", "__version__"]
