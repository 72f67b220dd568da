from __future__ import annotations

import logging
from typing import Any

from lsprotocol.types import (
    CompletionOptions,
    InitializeParams,
    InitializeResult,
    ServerCapabilities,
    ServerInfo,
    SignatureHelpOptions,
    TextDocumentSyncKind,
)
from pydantic import ValidationError

from flux_lsp import __version__
from flux_lsp.schema import InitializationOptions, ServerSettings
from flux_lsp.session import Session

logger = logging.getLogger(__name__)

SERVER_NAME = "flux-lsp"
COMPLETION_TRIGGERS = [".", ":", "(", ",", '"']
SIGNATURE_TRIGGERS = ["("]


def completion_options() -> CompletionOptions:
    return CompletionOptions(
        trigger_characters=list(COMPLETION_TRIGGERS), resolve_provider=True
    )


def signature_help_options() -> SignatureHelpOptions:
    return SignatureHelpOptions(
        trigger_characters=list(SIGNATURE_TRIGGERS),
        retrigger_characters=list(SIGNATURE_TRIGGERS),
    )


def server_capabilities(settings: ServerSettings) -> ServerCapabilities:
    return ServerCapabilities(
        text_document_sync=TextDocumentSyncKind.Full,
        completion_provider=completion_options(),
        signature_help_provider=signature_help_options(),
        definition_provider=True,
        references_provider=True,
        rename_provider=True,
        document_formatting_provider=True,
        document_symbol_provider=True,
        folding_range_provider=not settings.disable_folding,
        hover_provider=True,
    )


def _multi_file_option(raw: Any) -> bool | None:
    if not isinstance(raw, dict):
        return None
    try:
        options = InitializationOptions.model_validate(raw)
    except ValidationError as exc:
        logger.warning("ignoring invalid initializationOptions: %s", exc)
        return None
    return options.support_multiple_files


async def initialize(session: Session, params: InitializeParams) -> InitializeResult:
    requested = _multi_file_option(params.initialization_options)
    if requested is not None:
        session.multi_file = requested
    logger.info("initialized (multi-file %s)", "on" if session.multi_file else "off")
    return InitializeResult(
        capabilities=server_capabilities(session.settings),
        server_info=ServerInfo(name=SERVER_NAME, version=__version__),
    )


async def shutdown(session: Session, params: Any) -> None:
    session.reset()
    return None
