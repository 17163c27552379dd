# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Ensure JSON Schema values satisfy MCP's object-shaped contract.

Tool input and output schemas are generated by Pydantic from the models in
:mod:`docspace_mcp.server.toolsets.schemas`.  This module prunes cosmetic
metadata, inlines local ``$ref`` pointers so clients never have to resolve
``$defs``, and rejects schemas that do not describe a JSON object.
"""

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from pydantic import TypeAdapter
from pydantic.json_schema import JsonSchemaMode, JsonSchemaValue


__all__ = [
    "JsonSchema",
    "SchemaError",
    "compress_schema",
    "ensure_object_schema",
    "generate_schema",
]


JsonSchema = JsonSchemaValue


class SchemaError(RuntimeError):
    """Raised when a schema cannot be generated or normalised."""


def generate_schema(
    annotation: Any,
    *,
    mode: JsonSchemaMode = "validation",
    compress: bool = True,
    drop_titles: bool = True,
    relax_additional_properties: bool = True,
) -> JsonSchema:
    """Build a self-contained JSON Schema from a Python annotation.

    Args:
        annotation: Object understood by :class:`pydantic.TypeAdapter`.
        mode: JSON Schema generation mode.
        compress: Whether to remove cosmetic metadata.
        drop_titles: Remove ``title`` annotations when compression is enabled.
        relax_additional_properties: Drop ``additionalProperties: false``
            when compression is enabled.

    Returns:
        JsonSchema: Schema with every local reference inlined.

    Raises:
        SchemaError: If :class:`pydantic.TypeAdapter` cannot derive a schema.

    """
    try:
        schema = TypeAdapter(annotation).json_schema(mode=mode)
    except Exception as exc:  # pragma: no cover - surface the original failure
        raise SchemaError(f"Unable to derive JSON schema for {annotation!r}") from exc

    schema = _inline_refs(schema, schema.get("$defs", {}))
    schema.pop("$defs", None)

    if compress:
        schema = compress_schema(
            schema, drop_titles=drop_titles, relax_additional_properties=relax_additional_properties
        )
    return schema


def ensure_object_schema(schema: JsonSchema) -> JsonSchema:
    """Return a copy of ``schema`` after checking it describes an object.

    Raises:
        SchemaError: If ``schema`` is not object-shaped.

    """
    if not _describes_object(schema):
        raise SchemaError("Schema describes a non-object value; MCP tool schemas must be objects.")
    return _clone_schema(schema)


def compress_schema(
    schema: JsonSchema,
    *,
    drop_titles: bool = True,
    relax_additional_properties: bool = True,
) -> JsonSchema:
    """Return a structurally equivalent schema with cosmetic noise removed.

    Args:
        schema: JSON Schema to normalise.
        drop_titles: Remove ``title`` annotations recursively.  Properties
            that happen to be *named* ``title`` are kept.
        relax_additional_properties: Drop ``additionalProperties: false``.

    Returns:
        JsonSchema: Cleaned schema.

    """
    clone = _clone_schema(schema)

    for node in _mapping_nodes(clone):
        # ``title`` keyed to a schema is a property name, not an annotation.
        if drop_titles and isinstance(node.get("title"), str):
            del node["title"]
        if relax_additional_properties and node.get("additionalProperties") is False:
            del node["additionalProperties"]
        if node.get("required") == []:
            del node["required"]
    return clone


def _clone_schema(schema: JsonSchema) -> JsonSchema:
    if isinstance(schema, dict):
        return {k: _clone_schema(v) for k, v in schema.items()}
    if isinstance(schema, list):
        return [_clone_schema(item) for item in schema]
    return schema


def _mapping_nodes(node: Any) -> Iterator[MutableMapping[str, Any]]:
    """Yield every mapping in ``node``, parents before children."""
    if isinstance(node, MutableMapping):
        yield node
        children = list(node.values())
    elif isinstance(node, list):
        children = node
    else:
        return
    for child in children:
        yield from _mapping_nodes(child)


def _describes_object(schema: Mapping[str, Any]) -> bool:
    if schema.get("type") == "object":
        return True
    return any(
        key in schema
        for key in ("properties", "patternProperties", "additionalProperties", "propertyNames", "dependentRequired")
    )


def _inline_refs(node: Any, defs: Mapping[str, Any]) -> Any:
    """Replace ``{"$ref": "#/$defs/X"}`` with a copy of ``X``.

    Sibling keys of the reference (``description``, ``default``) win over the
    referenced definition.
    """
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            name = ref.removeprefix("#/$defs/")
            if name not in defs:
                raise SchemaError(f"Unresolved schema reference {ref!r}")
            resolved = _inline_refs(_clone_schema(defs[name]), defs)
            siblings = {k: _inline_refs(v, defs) for k, v in node.items() if k != "$ref"}
            return {**resolved, **siblings}
        return {k: _inline_refs(v, defs) for k, v in node.items() if k != "$defs"}
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    return node
