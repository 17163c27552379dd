# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool and toolset descriptors.

Handlers in :mod:`docspace_mcp.server.toolsets` are plain coroutines marked
with :func:`tool`.  The decorator resolves the input and output schemas once,
at import time, and attaches a :class:`ToolSpec` to the function;
:class:`ToolsetSpec` groups the specs the way clients see them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mcp import types
from pydantic import BaseModel, ValidationError

from .errors import InputError
from .utils.schema import JsonSchema, ensure_object_schema, generate_schema


if TYPE_CHECKING:  # pragma: no cover - type-checking helpers only
    from .client import Client
    from .resolver import Resolver
    from .uploader import Uploader


EMPTY_INPUT_SCHEMA: JsonSchema = {"type": "object", "properties": {}}


@dataclass(slots=True)
class ToolContext:
    """Collaborators a handler may use for one server instance."""

    client: Client
    resolver: Resolver
    uploader: Uploader


ToolFn = Callable[[Any, Any], Awaitable[Any]]


@dataclass(slots=True)
class ToolSpec:
    """In-memory representation of a tool definition."""

    name: str
    fn: ToolFn
    description: str = ""
    input_model: type[BaseModel] | None = None
    input_schema: JsonSchema = field(default_factory=lambda: dict(EMPTY_INPUT_SCHEMA))
    output_schema: JsonSchema | None = None

    def parse(self, arguments: Mapping[str, Any] | None) -> BaseModel | None:
        if self.input_model is None:
            return None
        try:
            return self.input_model.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            raise InputError("Parsing input.") from exc

    async def invoke(self, context: Any, arguments: Mapping[str, Any] | None) -> Any:
        return await self.fn(context, self.parse(arguments))

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description or None,
            inputSchema=self.input_schema,
            outputSchema=self.output_schema,
        )


@dataclass(slots=True)
class ToolsetSpec:
    """A named group of related tools."""

    name: str
    description: str
    tools: list[ToolSpec] = field(default_factory=list)

    @property
    def tool_names(self) -> list[str]:
        return [spec.name for spec in self.tools]

    def only(self, names: set[str] | frozenset[str]) -> ToolsetSpec:
        """Return a copy restricted to ``names``, keeping tool order."""
        return ToolsetSpec(
            name=self.name,
            description=self.description,
            tools=[spec for spec in self.tools if spec.name in names],
        )


_TOOL_ATTR = "__docspace_tool__"


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    input: type[BaseModel] | None = None,
    output: Any = None,
) -> Callable[[ToolFn], ToolFn]:
    """Decorator that marks a coroutine as a DocSpace tool.

    ``input`` is the pydantic model arguments are validated against;
    ``output`` is any annotation whose schema describes the structured
    content the tool returns.
    """

    def decorator(fn: ToolFn) -> ToolFn:
        desc = (description if description is not None else (fn.__doc__ or "")).strip()

        input_schema = dict(EMPTY_INPUT_SCHEMA)
        if input is not None:
            input_schema = ensure_object_schema(generate_schema(input))

        output_schema = None
        if output is not None:
            output_schema = ensure_object_schema(generate_schema(output, mode="serialization"))

        spec = ToolSpec(
            name=name or fn.__name__,
            fn=fn,
            description=desc,
            input_model=input,
            input_schema=input_schema,
            output_schema=output_schema,
        )
        setattr(fn, _TOOL_ATTR, spec)
        return fn

    return decorator


def extract_tool_spec(fn: ToolFn) -> ToolSpec | None:
    """Return the attached :class:`ToolSpec` for *fn*, if present."""
    spec = getattr(fn, _TOOL_ATTR, None)
    if not isinstance(spec, ToolSpec):
        return None
    return spec


def toolset(name: str, description: str, *fns: ToolFn) -> ToolsetSpec:
    """Collect decorated handlers into a :class:`ToolsetSpec`."""
    specs: list[ToolSpec] = []
    for fn in fns:
        spec = extract_tool_spec(fn)
        if spec is None:
            raise TypeError(f"{fn!r} is not decorated with @tool")
        specs.append(spec)
    return ToolsetSpec(name=name, description=description, tools=specs)


__all__ = [
    "ToolContext",
    "ToolFn",
    "ToolSpec",
    "ToolsetSpec",
    "extract_tool_spec",
    "tool",
    "toolset",
]
