from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional

from cattrs.errors import BaseValidationError
from lsprotocol import converters
from lsprotocol.types import (
    TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS,
    PublishDiagnosticsParams,
)
from pydantic import ValidationError

from flux_lsp.exceptions import (
    FluxLspError,
    InvalidEnvelopeError,
    MalformedParamsError,
    ParseError,
)
from flux_lsp.json_types import JSONObject, JSONValue, RawMessage
from flux_lsp.schema import RequestEnvelope
from flux_lsp.session import Session

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Route:
    method: str
    handler: Handler
    params_type: Optional[type] = None
    # Registration options passed to pygls (trigger characters and the like).
    options: Any = None


async def no_op(session: Session, params: Any) -> None:
    return None


NO_OP = Route(method="", handler=no_op)

_converter = converters.get_converter()


def structure_params(route: Route, raw: JSONValue) -> Any:
    if route.params_type is None:
        return raw
    try:
        return _converter.structure(raw, route.params_type)
    except (BaseValidationError, KeyError, TypeError, ValueError) as exc:
        raise MalformedParamsError(
            f"invalid params for {route.method}: {exc}"
        ) from exc


def unstructure(value: Any) -> JSONValue:
    return _converter.unstructure(value)


def _decode(raw: RawMessage) -> JSONObject:
    if isinstance(raw, dict):
        return raw
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"message body is not JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise InvalidEnvelopeError("message body must be a JSON object")
    return body


def _error_reply(request_id: Any, error: FluxLspError) -> str:
    return json.dumps(
        {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": unstructure(error.to_response_error()),
        }
    )


class Router:
    """Static method table in front of the handlers.

    ``dispatch`` is the whole message path for hosts that hand over raw
    JSON-RPC bodies; the pygls server in :mod:`flux_lsp.server` registers
    the same routes as features instead.
    """

    def __init__(self, session: Session, routes: Iterable[Route]) -> None:
        self.session = session
        self._table: Mapping[str, Route] = MappingProxyType(
            {route.method: route for route in routes}
        )

    def routes(self) -> List[Route]:
        return list(self._table.values())

    def resolve(self, method: str) -> Route:
        return self._table.get(method, NO_OP)

    async def call(self, method: str, raw_params: JSONValue = None) -> Any:
        route = self.resolve(method)
        params = structure_params(route, raw_params)
        return await route.handler(self.session, params)

    async def dispatch(self, raw: RawMessage) -> Optional[str]:
        """Route one message and return the serialized reply, if any."""
        try:
            body = _decode(raw)
            envelope = RequestEnvelope.model_validate(body)
        except ValidationError as exc:
            logger.error("rejecting message without a valid envelope: %s", exc)
            return _error_reply(None, InvalidEnvelopeError(str(exc)))
        except FluxLspError as exc:
            logger.error("rejecting malformed message: %s", exc)
            return _error_reply(None, exc)

        if envelope.method not in self._table:
            logger.debug("ignoring unsupported method %s", envelope.method)
        else:
            logger.debug("dispatching %s (id=%s)", envelope.method, envelope.id)
        try:
            reply = await self.call(envelope.method, body.get("params"))
        except FluxLspError as exc:
            logger.error("%s failed: %s", envelope.method, exc)
            if envelope.id is None:
                return None
            return _error_reply(envelope.id, exc)
        except Exception as exc:
            logger.exception("%s raised unexpectedly", envelope.method)
            if envelope.id is None:
                return None
            return _error_reply(envelope.id, FluxLspError(f"{envelope.method}: {exc}"))
        return self._encode(envelope, reply)

    def _encode(self, envelope: RequestEnvelope, reply: Any) -> Optional[str]:
        if isinstance(reply, PublishDiagnosticsParams):
            return json.dumps(
                {
                    "jsonrpc": "2.0",
                    "method": TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS,
                    "params": unstructure(reply),
                }
            )
        if envelope.id is None or envelope.method not in self._table:
            return None
        return json.dumps(
            {"jsonrpc": "2.0", "id": envelope.id, "result": unstructure(reply)}
        )
