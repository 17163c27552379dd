# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Environment-driven configuration.

:func:`load_config` reads every ``DOCSPACE_*`` variable, validates it and
collects *all* problems into one :class:`~docspace_mcp.errors.Errors`
instead of stopping at the first.  In HTTP mode the same rules are applied
per request to prefixed headers (:func:`request_api_config`,
:func:`request_mcp_config`) so one deployment can serve many portals.

Durations are given in milliseconds in the environment and stored in
seconds.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Literal, TypeVar

import httpx

from .errors import Errors, with_cause
from .result import Err, Ok, Result
from .server.toolsets import TOOLSETS, TOOLSET_NAMES, TOOL_NAMES
from .utils import get_logger
from .version import DEFAULT_USER_AGENT


_T = TypeVar("_T")

_logger = get_logger("docspace_mcp.config")

Transport = Literal["stdio", "http"]

TRANSPORTS: tuple[Transport, ...] = ("stdio", "http")
TRUE_VALUES = ("yes", "y", "true", "1")
FALSE_VALUES = ("no", "n", "false", "0")
ALL_TOOLSETS = "all"
MASK = "***"
SECRET_FIELDS = frozenset({"api_key", "auth_token", "password", "bearer_token"})

DEFAULT_OAUTH_BASE_URL = "https://oauth.onlyoffice.com/"
DEFAULT_DOCUMENTATION_URL = "https://github.com/onlyoffice/docspace-mcp/blob/main/README.md"
DEFAULT_SESSION_TTL_MS = 28_800_000
DEFAULT_SESSION_INTERVAL_MS = 240_000
DEFAULT_CORS_MAX_AGE_MS = 86_400_000
DEFAULT_HEADER_PREFIX = "x-mcp-"

AUTH_METHODS_MESSAGE = "DOCSPACE_API_KEY, DOCSPACE_AUTH_TOKEN, or (DOCSPACE_USERNAME and DOCSPACE_PASSWORD)"


@dataclass(slots=True, frozen=True)
class ApiConfig:
    """How to reach and authenticate against one DocSpace portal."""

    base_url: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    origin: str | None = None
    api_key: str | None = None
    auth_token: str | None = None
    username: str | None = None
    password: str | None = None
    bearer_token: str | None = None

    @property
    def auth_methods(self) -> int:
        methods = [self.api_key, self.auth_token, self.bearer_token]
        count = sum(1 for method in methods if method)
        if self.username and self.password:
            count += 1
        return count


@dataclass(slots=True, frozen=True)
class McpConfig:
    """Which tools a server instance exposes, and how."""

    dynamic: bool = False
    toolsets: tuple[str, ...] = TOOLSET_NAMES
    enabled_tools: tuple[str, ...] = ()
    disabled_tools: tuple[str, ...] = ()
    tools: tuple[str, ...] = TOOL_NAMES


@dataclass(slots=True, frozen=True)
class OAuthConfig:
    client_id: str | None = None
    base_url: str = DEFAULT_OAUTH_BASE_URL
    scopes_supported: tuple[str, ...] = ()
    resource_name: str = DEFAULT_USER_AGENT
    resource_documentation: str = DEFAULT_DOCUMENTATION_URL

    @property
    def enabled(self) -> bool:
        return bool(self.client_id)


@dataclass(slots=True, frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    base_url: str | None = None
    cors_origins: tuple[str, ...] = ("*",)
    cors_max_age: float = DEFAULT_CORS_MAX_AGE_MS / 1000
    session_ttl: float = DEFAULT_SESSION_TTL_MS / 1000
    session_interval: float = DEFAULT_SESSION_INTERVAL_MS / 1000
    request_header_prefix: str = DEFAULT_HEADER_PREFIX


@dataclass(slots=True, frozen=True)
class Config:
    transport: Transport = "stdio"
    api: ApiConfig = field(default_factory=ApiConfig)
    mcp: McpConfig = field(default_factory=McpConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    oauth: OAuthConfig = field(default_factory=OAuthConfig)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_config(environ: Mapping[str, str]) -> Result[Config, Errors]:
    """Build a :class:`Config` from ``environ``."""
    reader = _Reader(environ)

    transport = reader.read("DOCSPACE_TRANSPORT", _choice(TRANSPORTS), "stdio")
    user_agent = reader.read("DOCSPACE_USER_AGENT", str.strip, DEFAULT_USER_AGENT)

    api = ApiConfig(
        base_url=reader.read("DOCSPACE_BASE_URL", parse_base_url, None),
        user_agent=user_agent,
        origin=reader.read("DOCSPACE_ORIGIN", _optional_str, None),
        api_key=reader.read("DOCSPACE_API_KEY", _optional_str, None),
        auth_token=reader.read("DOCSPACE_AUTH_TOKEN", _optional_str, None),
        username=reader.read("DOCSPACE_USERNAME", _optional_str, None),
        password=reader.read("DOCSPACE_PASSWORD", _optional_str, None),
    )

    dynamic = reader.read("DOCSPACE_DYNAMIC", parse_bool, False)
    toolsets = reader.read("DOCSPACE_TOOLSETS", _options((*TOOLSET_NAMES, ALL_TOOLSETS)), (ALL_TOOLSETS,))
    enabled = reader.read("DOCSPACE_ENABLED_TOOLS", _options(TOOL_NAMES), ())
    disabled = reader.read("DOCSPACE_DISABLED_TOOLS", _options(TOOL_NAMES), ())

    server = ServerConfig(
        host=reader.read("DOCSPACE_HOST", str.strip, "127.0.0.1"),
        port=reader.read("DOCSPACE_PORT", parse_port, 8080),
        base_url=reader.read("DOCSPACE_SERVER_BASE_URL", parse_base_url, None),
        cors_origins=reader.read("DOCSPACE_SERVER_CORS_MCP_ORIGIN", parse_list, ("*",), keep_empty=True),
        cors_max_age=reader.read("DOCSPACE_SERVER_CORS_MCP_MAX_AGE", parse_duration, DEFAULT_CORS_MAX_AGE_MS / 1000),
        session_ttl=reader.read("DOCSPACE_SESSION_TTL", parse_duration, DEFAULT_SESSION_TTL_MS / 1000),
        session_interval=reader.read("DOCSPACE_SESSION_INTERVAL", parse_duration, DEFAULT_SESSION_INTERVAL_MS / 1000),
        request_header_prefix=reader.read(
            "DOCSPACE_REQUEST_HEADER_PREFIX", _lower_strip, DEFAULT_HEADER_PREFIX, keep_empty=True
        ),
    )

    oauth = OAuthConfig(
        client_id=reader.read("DOCSPACE_OAUTH_CLIENT_ID", _optional_str, None),
        base_url=reader.read("DOCSPACE_OAUTH_BASE_URL", parse_base_url, DEFAULT_OAUTH_BASE_URL),
        scopes_supported=reader.read("DOCSPACE_OAUTH_SCOPES_SUPPORTED", parse_list, ()),
        resource_name=reader.read("DOCSPACE_OAUTH_RESOURCE_NAME", str.strip, DEFAULT_USER_AGENT),
        resource_documentation=reader.read(
            "DOCSPACE_OAUTH_RESOURCE_DOCUMENTATION", str.strip, DEFAULT_DOCUMENTATION_URL
        ),
    )

    mcp_result = resolve_mcp(dynamic, toolsets, enabled, disabled)
    mcp = McpConfig(dynamic=dynamic)
    if isinstance(mcp_result, Err):
        reader.errors.extend(mcp_result.error.exceptions)
    else:
        mcp = mcp_result.value

    if transport == "stdio":
        if not api.base_url:
            reader.errors.append(ValueError("DOCSPACE_BASE_URL is required"))
        reader.errors.extend(_auth_errors(api, required=True))
    else:
        reader.errors.extend(_auth_errors(api, required=False))
        if oauth.enabled and not server.base_url:
            reader.errors.append(
                ValueError("DOCSPACE_SERVER_BASE_URL is required when DOCSPACE_OAUTH_CLIENT_ID is set")
            )

    if reader.errors:
        error = Errors(reader.errors, "Validating configuration")
        _logger.error("invalid configuration", extra={"event": "config.invalid", "errors": len(reader.errors)})
        return Err(error)

    return Ok(Config(transport=transport, api=api, mcp=mcp, server=server, oauth=oauth))


def resolve_mcp(
    dynamic: bool,
    toolsets: Sequence[str],
    enabled_tools: Sequence[str],
    disabled_tools: Sequence[str],
) -> Result[McpConfig, Errors]:
    """Expand toolset selection plus enable/disable lists into tool names.

    Enabling a tool pulls in its toolset; toolsets left without tools are
    dropped.  Output follows the canonical tool order.
    """
    selected = set(TOOLSET_NAMES) if ALL_TOOLSETS in toolsets else set(toolsets)

    owner = {spec.name: ts.name for ts in TOOLSETS for spec in ts.tools}
    for name in enabled_tools:
        selected.add(owner[name])

    chosen = {name for name, toolset in owner.items() if toolset in selected}
    chosen.update(enabled_tools)
    chosen.difference_update(disabled_tools)

    tools = tuple(name for name in TOOL_NAMES if name in chosen)
    remaining = tuple(ts.name for ts in TOOLSETS if any(spec.name in chosen for spec in ts.tools))

    if not tools:
        return Err(Errors([ValueError("No tools left")]))

    return Ok(
        McpConfig(
            dynamic=dynamic,
            toolsets=remaining,
            enabled_tools=tuple(enabled_tools),
            disabled_tools=tuple(disabled_tools),
            tools=tools,
        )
    )


# ---------------------------------------------------------------------------
# Per-request overrides (HTTP transports)
# ---------------------------------------------------------------------------


def request_api_config(config: Config, headers: Mapping[str, str]) -> Result[ApiConfig, Exception]:
    """Merge ``<prefix>*`` credential headers over the environment credentials.

    When a request sends none of them the environment values are used
    unchanged.
    """
    prefix = config.server.request_header_prefix
    api = config.api

    if prefix:
        reader = _Reader(_lower_keys(headers))
        overrides = {
            "base_url": reader.read(f"{prefix}base-url", parse_base_url, None),
            "api_key": reader.read(f"{prefix}api-key", _optional_str, None),
            "auth_token": reader.read(f"{prefix}auth-token", _optional_str, None),
            "username": reader.read(f"{prefix}username", _optional_str, None),
            "password": reader.read(f"{prefix}password", _optional_str, None),
        }
        if reader.errors:
            return Err(with_cause(ValueError("Parsing API config"), Errors(reader.errors)))

        credentials = ("api_key", "auth_token", "username", "password")
        if any(overrides[key] for key in credentials):
            api = replace(api, api_key=None, auth_token=None, username=None, password=None)
        api = replace(api, **{key: value for key, value in overrides.items() if value})

    errors = _auth_errors(api, required=True)
    if not api.base_url:
        errors.append(ValueError("Base URL is required"))
    if errors:
        return Err(with_cause(ValueError("Parsing API config"), Errors(errors)))

    return Ok(api)


def request_mcp_config(config: Config, headers: Mapping[str, str]) -> Result[McpConfig, Exception]:
    """Apply ``<prefix>dynamic`` and tool selection headers."""
    prefix = config.server.request_header_prefix
    mcp = config.mcp

    if not prefix:
        return Ok(mcp)

    reader = _Reader(_lower_keys(headers))
    dynamic = reader.read(f"{prefix}dynamic", parse_bool, mcp.dynamic)
    toolsets = reader.read(f"{prefix}toolsets", _options((*TOOLSET_NAMES, ALL_TOOLSETS)), mcp.toolsets)
    enabled = reader.read(f"{prefix}enabled-tools", _options(TOOL_NAMES), mcp.enabled_tools)
    disabled = reader.read(f"{prefix}disabled-tools", _options(TOOL_NAMES), mcp.disabled_tools)
    if reader.errors:
        return Err(with_cause(ValueError("Parsing MCP config"), Errors(reader.errors)))

    result = resolve_mcp(dynamic, toolsets, enabled, disabled)
    if isinstance(result, Err):
        return Err(with_cause(ValueError("Parsing MCP config"), result.error))
    return result


def mask(config: Config) -> dict[str, Any]:
    """Return ``config`` as a dict with secrets replaced by ``***``."""
    return _mask(asdict(config))


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------


def parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    expected = ", ".join((*TRUE_VALUES, *FALSE_VALUES))
    raise ValueError(f"Expected one of {expected}, got {value!r}")


def parse_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ValueError(f"Expected an integer, got {value!r}") from exc


def parse_port(value: str) -> int:
    port = parse_int(value)
    if not 1 <= port <= 65535:
        raise ValueError(f"Expected a port between 1 and 65535, got {port}")
    return port


def parse_duration(value: str) -> float:
    """Parse non-negative milliseconds into seconds."""
    millis = parse_int(value)
    if millis < 0:
        raise ValueError(f"Expected a non-negative number, got {millis}")
    return millis / 1000


def parse_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def parse_base_url(value: str) -> str | None:
    text = value.strip()
    if not text:
        return None
    try:
        url = httpx.URL(text)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Expected an absolute HTTP URL, got {value!r}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Expected an absolute HTTP URL, got {value!r}")
    if not text.endswith("/"):
        text += "/"
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


class _Reader:
    """Read variables from a mapping, collecting parse failures."""

    def __init__(self, source: Mapping[str, str]) -> None:
        self._source = source
        self.errors: list[Exception] = []

    def read(self, name: str, parse: Callable[[str], _T], default: _T, *, keep_empty: bool = False) -> _T:
        raw = self._source.get(name)
        if raw is None or (raw.strip() == "" and not keep_empty):
            return default
        try:
            return parse(raw)
        except (ValueError, Errors) as exc:
            self.errors.append(with_cause(ValueError(f"Parsing {name}"), exc))
            return default


def _optional_str(value: str) -> str | None:
    return value.strip() or None


def _lower_strip(value: str) -> str:
    return value.strip().lower()


def _choice(options: Sequence[str]) -> Callable[[str], Any]:
    def parse(value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in options:
            raise ValueError(f"Unknown value: {value.strip()}")
        return normalized

    return parse


def _options(options: Iterable[str]) -> Callable[[str], tuple[str, ...]]:
    known = frozenset(options)

    def parse(value: str) -> tuple[str, ...]:
        items = parse_list(value)
        unknown = [item for item in items if item not in known]
        if len(unknown) == 1:
            raise ValueError(f"Unknown value: {unknown[0]}")
        if unknown:
            raise Errors([ValueError(f"Unknown value: {item}") for item in unknown])
        return items

    return parse


def _auth_errors(api: ApiConfig, *, required: bool) -> list[Exception]:
    errors: list[Exception] = []
    if (api.username is None) != (api.password is None):
        errors.append(ValueError("Expected both DOCSPACE_USERNAME and DOCSPACE_PASSWORD to be set"))
    methods = api.auth_methods
    if required and methods == 0 and not errors:
        errors.append(ValueError(f"Expected at least one of {AUTH_METHODS_MESSAGE} to be set"))
    if methods > 1:
        errors.append(ValueError(f"Expected only one of {AUTH_METHODS_MESSAGE} to be set"))
    return errors


def _lower_keys(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: (MASK if key in SECRET_FIELDS and item else _mask(item))
            for key, item in value.items()
        }
    return value


__all__ = [
    "ApiConfig",
    "Config",
    "McpConfig",
    "OAuthConfig",
    "ServerConfig",
    "load_config",
    "mask",
    "parse_base_url",
    "parse_bool",
    "parse_duration",
    "parse_list",
    "request_api_config",
    "request_mcp_config",
    "resolve_mcp",
]
