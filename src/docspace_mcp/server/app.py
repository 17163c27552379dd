# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Assemble servers from configuration.

stdio builds one server at startup.  The HTTP transports build one server
per session from the request that opens it, so every session may carry its
own credentials and tool selection.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from ..client import Client, decode_token_payload
from ..config import ApiConfig, Config, McpConfig, parse_base_url, request_api_config, request_mcp_config
from ..errors import with_cause
from ..resolver import Resolver
from ..result import Err, Ok, Result
from ..tool import ToolContext
from ..uploader import Uploader
from .authorization import AuthorizationConfig, AuthorizationContext, AuthorizationManager, IntrospectionProvider
from .core import DocSpaceServer, MisconfiguredServer, ToolServer
from .router import Router


def create_client(api: ApiConfig, *, base: Client) -> Client:
    """Return a copy of ``base`` pointed at ``api.base_url`` with its credentials."""
    client = base.with_base_url(api.base_url or base.base_url)
    if api.api_key:
        return client.with_api_key(api.api_key)
    if api.auth_token:
        return client.with_auth_token(api.auth_token)
    if api.username and api.password:
        return client.with_basic_auth(api.username, api.password)
    if api.bearer_token:
        return client.with_bearer_auth(api.bearer_token)
    return client


def create_server(client: Client, mcp: McpConfig) -> DocSpaceServer:
    context = ToolContext(client=client, resolver=Resolver(client), uploader=Uploader(client))
    router = Router(context, enabled_tools=mcp.tools, dynamic=mcp.dynamic)
    return DocSpaceServer(router)


@dataclass(slots=True)
class ServerFactory:
    """Build :class:`DocSpaceServer` instances that share one connection pool."""

    config: Config
    base: Client

    @classmethod
    def from_config(cls, config: Config, *, http: httpx.AsyncClient | None = None) -> ServerFactory:
        base = Client(
            config.api.base_url or "",
            user_agent=config.api.user_agent,
            origin=config.api.origin,
            oauth_base_url=config.oauth.base_url,
            http=http,
        )
        return cls(config=config, base=base)

    def create(self) -> DocSpaceServer:
        """Server for the environment credentials alone (stdio)."""
        return create_server(create_client(self.config.api, base=self.base), self.config.mcp)

    def for_request(
        self,
        headers: Mapping[str, str],
        auth: AuthorizationContext | None = None,
    ) -> Result[DocSpaceServer, Exception]:
        """Server for the session a request opens."""
        mcp = request_mcp_config(self.config, headers)
        if isinstance(mcp, Err):
            return mcp

        if auth is not None:
            api = self._oauth_api_config(auth)
        else:
            api = request_api_config(self.config, headers)
        if isinstance(api, Err):
            return api

        client = create_client(api.value, base=self.base)
        return Ok(create_server(client, mcp.value))

    def _oauth_api_config(self, auth: AuthorizationContext) -> Result[ApiConfig, Exception]:
        token = auth.token
        if not token:
            return Err(ValueError("OAuth token is missing"))
        try:
            payload = decode_token_payload(token)
            base_url = parse_base_url(payload.aud)
        except Exception as exc:
            return Err(with_cause(ValueError("Parsing API config"), exc))
        if base_url is None:
            return Err(ValueError("Parsing API config"))

        api = ApiConfig(
            base_url=base_url,
            user_agent=self.config.api.user_agent,
            origin=self.config.api.origin,
            bearer_token=token,
        )
        return Ok(api)

    def authorization(self) -> AuthorizationManager | None:
        """Bearer enforcement for the HTTP transports, when OAuth is configured."""
        oauth = self.config.oauth
        if not oauth.enabled:
            return None
        config = AuthorizationConfig(
            enabled=True,
            resource_url=self.config.server.base_url,
            authorization_servers=[oauth.base_url.rstrip("/")],
            scopes_supported=list(oauth.scopes_supported),
            resource_name=oauth.resource_name,
            resource_documentation=oauth.resource_documentation,
        )
        return AuthorizationManager(config, IntrospectionProvider(self.base))

    async def aclose(self) -> None:
        await self.base.aclose()


@dataclass(slots=True)
class MisconfiguredSource:
    """Hand every session the server that reports ``error``."""

    error: BaseException

    def create(self) -> ToolServer:
        return MisconfiguredServer(self.error)

    def for_request(
        self,
        headers: Mapping[str, str],
        auth: AuthorizationContext | None = None,
    ) -> Result[ToolServer, Exception]:
        return Ok(self.create())


__all__ = ["MisconfiguredSource", "ServerFactory", "create_client", "create_server"]
