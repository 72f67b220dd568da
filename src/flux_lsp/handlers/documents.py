"""Document lifecycle notifications and the diagnostics they publish."""

from __future__ import annotations

import logging
from typing import List, Optional

from lsprotocol.types import (
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    PublishDiagnosticsParams,
)

from flux_lsp.analysis.diagnostics import (
    FileDiagnostic,
    contrib_usage,
    experimental_usage,
    for_document,
    reserved_identifiers,
)
from flux_lsp.analysis.position import to_range
from flux_lsp.session import Session

logger = logging.getLogger(__name__)

CHECKER_SOURCE = "flux"


def collect_diagnostics(session: Session, uri: str) -> List[Diagnostic]:
    package = session.parse_package(uri)
    found: List[FileDiagnostic] = [
        FileDiagnostic(
            file=error.loc.file,
            diagnostic=Diagnostic(
                range=to_range(error.loc),
                message=error.message,
                severity=DiagnosticSeverity.Error,
                source=CHECKER_SOURCE,
            ),
        )
        for error in session.frontend.check(package)
    ]
    settings = session.settings
    analyzed = session.analyze(package)
    if settings.experimental_diagnostics:
        found.extend(experimental_usage(analyzed))
    if settings.contrib_diagnostics:
        found.extend(contrib_usage(analyzed))
    if settings.reserved_identifiers:
        found.extend(reserved_identifiers(analyzed, settings.reserved_identifiers))
    return for_document(found, uri)


def publish(session: Session, uri: str) -> PublishDiagnosticsParams:
    document = session.store.get(uri)
    diagnostics = collect_diagnostics(session, uri)
    logger.debug("%d diagnostics for %s", len(diagnostics), uri)
    return PublishDiagnosticsParams(
        uri=uri, diagnostics=diagnostics, version=document.version
    )


async def did_open(
    session: Session, params: DidOpenTextDocumentParams
) -> PublishDiagnosticsParams:
    document = params.text_document
    session.store.force(document.uri, document.version, document.text)
    return publish(session, document.uri)


def _full_text(params: DidChangeTextDocumentParams) -> Optional[str]:
    text = None
    for change in params.content_changes:
        # Only whole-document changes are advertised; ranged ones carry a range.
        if getattr(change, "range", None) is None:
            text = change.text
    return text


async def did_change(
    session: Session, params: DidChangeTextDocumentParams
) -> Optional[PublishDiagnosticsParams]:
    uri = params.text_document.uri
    text = _full_text(params)
    if text is None:
        logger.warning("ignoring change to %s without full document text", uri)
        return None
    session.store.set(uri, params.text_document.version, text)
    return publish(session, uri)


async def did_save(
    session: Session, params: DidSaveTextDocumentParams
) -> PublishDiagnosticsParams:
    return publish(session, params.text_document.uri)


async def did_close(
    session: Session, params: DidCloseTextDocumentParams
) -> PublishDiagnosticsParams:
    uri = params.text_document.uri
    session.store.remove(uri)
    return PublishDiagnosticsParams(uri=uri, diagnostics=[])
