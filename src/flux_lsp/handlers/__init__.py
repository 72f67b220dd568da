from __future__ import annotations

from typing import List

from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZE,
    SHUTDOWN,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_FOLDING_RANGE,
    TEXT_DOCUMENT_FORMATTING,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_REFERENCES,
    TEXT_DOCUMENT_RENAME,
    TEXT_DOCUMENT_SIGNATURE_HELP,
    CompletionItem,
    CompletionParams,
    DefinitionParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    DocumentFormattingParams,
    DocumentSymbolParams,
    FoldingRangeParams,
    HoverParams,
    InitializeParams,
    ReferenceParams,
    RenameParams,
    SignatureHelpParams,
)

from flux_lsp.handlers import documents, language, lifecycle
from flux_lsp.router import Route
from flux_lsp.schema import ServerSettings


def default_routes(settings: ServerSettings) -> List[Route]:
    routes = [
        Route(INITIALIZE, lifecycle.initialize, InitializeParams),
        Route(SHUTDOWN, lifecycle.shutdown),
        Route(TEXT_DOCUMENT_DID_OPEN, documents.did_open, DidOpenTextDocumentParams),
        Route(TEXT_DOCUMENT_DID_CHANGE, documents.did_change, DidChangeTextDocumentParams),
        Route(TEXT_DOCUMENT_DID_SAVE, documents.did_save, DidSaveTextDocumentParams),
        Route(TEXT_DOCUMENT_DID_CLOSE, documents.did_close, DidCloseTextDocumentParams),
        Route(
            TEXT_DOCUMENT_COMPLETION,
            language.completion,
            CompletionParams,
            lifecycle.completion_options(),
        ),
        Route(COMPLETION_ITEM_RESOLVE, language.completion_resolve, CompletionItem),
        Route(
            TEXT_DOCUMENT_SIGNATURE_HELP,
            language.signature_help,
            SignatureHelpParams,
            lifecycle.signature_help_options(),
        ),
        Route(TEXT_DOCUMENT_DOCUMENT_SYMBOL, language.document_symbol, DocumentSymbolParams),
        Route(TEXT_DOCUMENT_DEFINITION, language.definition, DefinitionParams),
        Route(TEXT_DOCUMENT_REFERENCES, language.references, ReferenceParams),
        Route(TEXT_DOCUMENT_RENAME, language.rename, RenameParams),
        Route(TEXT_DOCUMENT_FORMATTING, language.formatting, DocumentFormattingParams),
        Route(TEXT_DOCUMENT_HOVER, language.hover, HoverParams),
    ]
    if not settings.disable_folding:
        routes.append(
            Route(TEXT_DOCUMENT_FOLDING_RANGE, language.folding_range, FoldingRangeParams)
        )
    return routes
