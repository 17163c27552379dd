# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""``docspace-mcp`` command line entry point."""

from __future__ import annotations

import argparse
from collections.abc import Mapping, Sequence
import os

import anyio
from dotenv import load_dotenv
import orjson

from .config import (
    TRANSPORTS,
    Config,
    ServerConfig,
    load_config,
    mask,
    parse_duration,
    parse_list,
    parse_port,
)
from .errors import format_error
from .result import Err
from .server.app import MisconfiguredSource, ServerFactory
from .server.authorization import AuthorizationManager
from .server.transports import BaseTransport, CORSSettings, HTTPTransport, ServerSource, SessionSettings, StdioTransport
from .utils import get_logger, setup_logger
from .version import __version__


_logger = get_logger("docspace_mcp.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docspace-mcp", description="MCP server for ONLYOFFICE DocSpace")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        help="Transport to serve (default: DOCSPACE_TRANSPORT or stdio)",
    )
    parser.add_argument("--host", help="Interface to bind in http mode (default: DOCSPACE_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to bind in http mode (default: DOCSPACE_PORT or 8080)")
    return parser


def apply_overrides(environ: Mapping[str, str], args: argparse.Namespace) -> dict[str, str]:
    """Return ``environ`` with command line flags taking precedence."""
    merged = dict(environ)
    if args.transport:
        merged["DOCSPACE_TRANSPORT"] = args.transport
    if args.host:
        merged["DOCSPACE_HOST"] = args.host
    if args.port is not None:
        merged["DOCSPACE_PORT"] = str(args.port)
    return merged


async def serve(environ: Mapping[str, str]) -> None:
    result = load_config(environ)
    if isinstance(result, Err):
        _logger.error("configuration is invalid, serving error results:\n%s", format_error(result.error))
        source = MisconfiguredSource(result.error)
        transport_name = _fallback_transport(environ)
        if transport_name == "stdio":
            await StdioTransport(source.create()).run()
        else:
            server = _fallback_server_config(environ)
            cors = CORSSettings(origins=server.cors_origins, max_age=server.cors_max_age)
            await _serve_http(HTTPTransport(source, cors=cors), server)
        return

    config = result.value
    _logger.info("configuration loaded: %s", orjson.dumps(mask(config)).decode())

    factory = ServerFactory.from_config(config)
    try:
        if config.transport == "stdio":
            await StdioTransport(factory.create()).run()
        else:
            await _serve_http(_http_transport(config, factory, factory.authorization()), config.server)
    finally:
        await factory.aclose()


def _http_transport(
    config: Config,
    source: ServerSource,
    authorization: AuthorizationManager | None,
) -> HTTPTransport:
    return HTTPTransport(
        source,
        sessions=SessionSettings(ttl=config.server.session_ttl, interval=config.server.session_interval),
        cors=CORSSettings(origins=config.server.cors_origins, max_age=config.server.cors_max_age),
        authorization=authorization,
    )


async def _serve_http(transport: BaseTransport, server: ServerConfig) -> None:
    await transport.run(host=server.host, port=server.port)


def _fallback_transport(environ: Mapping[str, str]) -> str:
    value = environ.get("DOCSPACE_TRANSPORT", "").strip().lower()
    return value if value in TRANSPORTS else "stdio"


def _fallback_server_config(environ: Mapping[str, str]) -> ServerConfig:
    """Best-effort host, port and CORS for serving a configuration error over HTTP."""
    values: dict[str, object] = {}
    parsers = {
        "host": ("DOCSPACE_HOST", str.strip),
        "port": ("DOCSPACE_PORT", parse_port),
        "cors_origins": ("DOCSPACE_SERVER_CORS_MCP_ORIGIN", parse_list),
        "cors_max_age": ("DOCSPACE_SERVER_CORS_MCP_MAX_AGE", parse_duration),
    }
    for field_name, (name, parse) in parsers.items():
        raw = environ.get(name, "").strip()
        if not raw:
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError:
            _logger.debug("ignoring invalid %s while serving a configuration error", name)
    return ServerConfig(**values)  # type: ignore[arg-type]


def main(argv: Sequence[str] | None = None) -> None:
    load_dotenv()
    setup_logger()
    args = build_parser().parse_args(argv)
    environ = apply_overrides(os.environ, args)
    try:
        anyio.run(serve, environ)
    except KeyboardInterrupt:
        _logger.info("shutting down")


__all__ = ["apply_overrides", "build_parser", "main", "serve"]
