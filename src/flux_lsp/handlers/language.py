"""Language feature requests."""

from __future__ import annotations

import logging
from typing import List, Optional

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
    DefinitionParams,
    DocumentFormattingParams,
    DocumentSymbolParams,
    FoldingRange,
    FoldingRangeParams,
    Hover,
    HoverParams,
    Location,
    ReferenceParams,
    RenameParams,
    SignatureHelp,
    SignatureHelpParams,
    SymbolInformation,
    TextEdit,
    WorkspaceEdit,
)

from flux_lsp.analysis.calls import functions_for_call
from flux_lsp.analysis.completion import classify, complete
from flux_lsp.analysis.format_diff import format_edits
from flux_lsp.analysis.nodes import (
    CallExpression,
    package_of,
    without_bad_statements,
    without_statements_at,
)
from flux_lsp.analysis.position import find_node, move_back, to_point, to_range
from flux_lsp.analysis.scopes import find_definition, reference_locations, rename_edit
from flux_lsp.analysis.visitors import collect_folds, collect_symbols
from flux_lsp.exceptions import FormatError
from flux_lsp.session import Session

logger = logging.getLogger(__name__)


async def completion(session: Session, params: CompletionParams) -> CompletionList:
    uri = params.text_document.uri
    package = session.parse_package(uri)
    # The character before the cursor is what the user just typed.
    point = to_point(move_back(params.position))
    context = classify(package.files[-1], point)
    if context is None:
        return CompletionList(is_incomplete=False, items=[])
    *siblings, target = package.files
    scope = package_of([*siblings, without_statements_at(target, point)], package.path)
    trigger = params.context.trigger_character if params.context is not None else None
    items = complete(
        context,
        scope,
        session.environment(),
        to_point(params.position),
        trigger,
    )
    logger.debug("%s completion at %s: %d items", context.kind.value, point, len(items))
    return CompletionList(is_incomplete=False, items=items)


async def completion_resolve(session: Session, params: CompletionItem) -> CompletionItem:
    return params


async def signature_help(session: Session, params: SignatureHelpParams) -> SignatureHelp:
    package = session.analyze(session.parse_package(params.text_document.uri))
    point = to_point(params.position)
    match = find_node(package.files[-1], point)
    call = match.nearest(CallExpression) if match is not None else None
    if call is None:
        return SignatureHelp(signatures=[])
    signatures = [
        signature.to_lsp()
        for info in functions_for_call(call, package, session.environment(), point)
        for signature in info.signatures()
    ]
    return SignatureHelp(signatures=signatures)


async def document_symbol(
    session: Session, params: DocumentSymbolParams
) -> List[SymbolInformation]:
    uri = params.text_document.uri
    parsed = session.parse_single(uri)
    package = session.analyze(
        package_of([without_bad_statements(file) for file in parsed.files], parsed.path)
    )
    return collect_symbols(package, uri)


async def definition(session: Session, params: DefinitionParams) -> Optional[Location]:
    uri = params.text_document.uri
    match = find_node(session.parse_single(uri), to_point(params.position))
    if match is None:
        return None
    node = find_definition(match)
    if node is None:
        return None
    return Location(uri=node.loc.file or uri, range=to_range(node.loc))


async def references(session: Session, params: ReferenceParams) -> List[Location]:
    uri = params.text_document.uri
    match = find_node(session.parse_single(uri), to_point(params.position))
    if match is None:
        return []
    return reference_locations(match, uri)


async def rename(session: Session, params: RenameParams) -> Optional[WorkspaceEdit]:
    uri = params.text_document.uri
    match = find_node(session.parse_single(uri), to_point(params.position))
    if match is None:
        return None
    return rename_edit(match, params.new_name, uri)


async def formatting(session: Session, params: DocumentFormattingParams) -> List[TextEdit]:
    uri = params.text_document.uri
    contents = session.store.get(uri).contents
    try:
        canonical = session.frontend.format(contents)
    except FormatError as exc:
        logger.warning("cannot format %s: %s", uri, exc)
        return []
    return format_edits(contents, canonical)


async def folding_range(session: Session, params: FoldingRangeParams) -> List[FoldingRange]:
    return collect_folds(session.parse_single(params.text_document.uri))


async def hover(session: Session, params: HoverParams) -> Optional[Hover]:
    return None
