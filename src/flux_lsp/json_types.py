from __future__ import annotations

"""Value types for untyped wire data.

JSON-RPC bodies arrive as text or an already-decoded object; the Flux AST
arrives as nested JSON objects tagged with a ``type`` key.
"""

from typing import TypeAlias


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

# One JSON-RPC message as handed to the router.
RawMessage: TypeAlias = str | bytes | JSONObject
# A ``{"type": ..., "location": ...}`` AST node.
NodePayload: TypeAlias = JSONObject
