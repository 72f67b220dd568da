from __future__ import annotations

import logging
from typing import Any, Callable

from lsprotocol.types import PublishDiagnosticsParams, TextDocumentSyncKind
from pygls.lsp.server import LanguageServer

from flux_lsp import __version__
from flux_lsp.frontend import FrontEnd
from flux_lsp.handlers import default_routes
from flux_lsp.handlers.lifecycle import SERVER_NAME
from flux_lsp.router import Route, Router
from flux_lsp.schema import ServerSettings
from flux_lsp.session import Session

logger = logging.getLogger(__name__)


def create_router(frontend: FrontEnd, settings: ServerSettings | None = None) -> Router:
    settings = settings or ServerSettings()
    session = Session(frontend, settings)
    return Router(session, default_routes(settings))


def _feature(route: Route, session: Session) -> Callable[..., Any]:
    async def handle(ls: LanguageServer, params: Any) -> Any:
        reply = await route.handler(session, params)
        if isinstance(reply, PublishDiagnosticsParams):
            ls.text_document_publish_diagnostics(reply)
            return None
        return reply

    handle.__name__ = route.handler.__name__
    return handle


def build_server(router: Router) -> LanguageServer:
    """A pygls server with every route of ``router`` registered as a feature.

    pygls answers ``initialize`` itself from the registered features; the
    routed ``initialize`` handler still runs so the session sees the
    client's initialization options.
    """
    server = LanguageServer(
        SERVER_NAME, __version__, text_document_sync_kind=TextDocumentSyncKind.Full
    )
    for route in router.routes():
        server.feature(route.method, route.options)(_feature(route, router.session))
    return server


def start(
    server: LanguageServer,
    *,
    tcp: bool = False,
    host: str = "127.0.0.1",
    port: int = 2087,
    start_fn: Callable[[], None] | None = None,
) -> None:
    if start_fn is not None:
        start_fn()
    elif tcp:
        logger.info("listening on %s:%d", host, port)
        server.start_tcp(host, port)
    else:
        server.start_io()
