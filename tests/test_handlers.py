from __future__ import annotations

import asyncio
from typing import Any

from lsprotocol.types import (
    CompletionList,
    DiagnosticSeverity,
    InitializeResult,
    PublishDiagnosticsParams,
    SymbolKind,
)

from flux_lsp.analysis.nodes import (
    CallExpression,
    File,
    IntegerLiteral,
    Location,
    Point,
    VariableAssignment,
)
from flux_lsp.frontend import SourceError
from flux_lsp.router import Router
from flux_lsp.schema import ServerSettings
from flux_lsp.server import create_router
from tests.frontend_stub import StubFrontEnd, sample_environment
from tests.trees import (
    IMPORT_MEMBER_TEXT,
    functions_source,
    ident,
    import_member_source,
    span,
    statement,
)

FUNCTIONS_TEXT = (
    "add = (a, b=1) => { return a }\n"
    "option tidy = (x) => x\n"
    "add(a: 2)\n"
    "late = (z) => z\n"
)
FROM_TEXT = "from()"
RESERVED_TEXT = "v = 1"


def _from_tree() -> File:
    call = CallExpression(loc=span(1, 1, 1, 7), callee=ident("from", 1, 1))
    return File(loc=span(1, 1, 1, 7), body=[statement(call)])


def _reserved_tree() -> File:
    assignment = VariableAssignment(
        loc=span(1, 1, 1, 6),
        id=ident("v", 1, 1),
        init=IntegerLiteral(loc=span(1, 5, 1, 6), value=1),
    )
    return File(loc=span(1, 1, 1, 6), body=[assignment])


def _frontend(**kwargs: Any) -> StubFrontEnd:
    trees = {
        IMPORT_MEMBER_TEXT: import_member_source(),
        FUNCTIONS_TEXT: functions_source(),
        FROM_TEXT: _from_tree(),
        RESERVED_TEXT: _reserved_tree(),
    }
    return StubFrontEnd(environment=sample_environment(), trees=trees, **kwargs)


def _call(router: Router, method: str, params: Any = None) -> Any:
    return asyncio.run(router.call(method, params))


def _open(router: Router, uri: str, text: str, version: int = 1) -> Any:
    return _call(
        router,
        "textDocument/didOpen",
        {
            "textDocument": {
                "uri": uri,
                "languageId": "flux",
                "version": version,
                "text": text,
            }
        },
    )


def _at(uri: str, line: int, character: int) -> dict:
    return {
        "textDocument": {"uri": uri},
        "position": {"line": line, "character": character},
    }


def _initialize(router: Router, options: Any = None) -> InitializeResult:
    params = {"processId": None, "rootUri": None, "capabilities": {}}
    if options is not None:
        params["initializationOptions"] = options
    return _call(router, "initialize", params)


def test_member_completion_after_open() -> None:
    router = create_router(_frontend())
    uri = "file:///p/main.flux"
    published = _open(router, uri, IMPORT_MEMBER_TEXT)
    assert isinstance(published, PublishDiagnosticsParams)
    assert published.diagnostics == []

    params = _at(uri, 2, 4)
    params["context"] = {"triggerKind": 2, "triggerCharacter": "."}
    result = _call(router, "textDocument/completion", params)
    assert isinstance(result, CompletionList)
    assert [item.label for item in result.items] == ["query", "limit", "emit"]


def test_completion_outside_any_node_is_empty() -> None:
    router = create_router(_frontend())
    uri = "file:///p/main.flux"
    _open(router, uri, IMPORT_MEMBER_TEXT)
    result = _call(router, "textDocument/completion", _at(uri, 9, 1))
    assert result.items == []


def test_signature_help_for_builtin() -> None:
    router = create_router(_frontend())
    uri = "file:///p/q.flux"
    _open(router, uri, FROM_TEXT)
    result = _call(router, "textDocument/signatureHelp", _at(uri, 0, 5))
    assert [signature.label for signature in result.signatures] == [
        "from(bucket: $bucket)",
        "from(bucket: $bucket, host: $host)",
    ]


def test_document_symbols() -> None:
    router = create_router(_frontend())
    uri = "file:///p/functions.flux"
    _open(router, uri, FUNCTIONS_TEXT)
    symbols = _call(router, "textDocument/documentSymbol", {"textDocument": {"uri": uri}})
    assert [symbol.name for symbol in symbols if symbol.kind == SymbolKind.Function] == [
        "add",
        "tidy",
        "add",
        "late",
    ]


def test_definition_and_references() -> None:
    router = create_router(_frontend())
    uri = "file:///p/functions.flux"
    _open(router, uri, FUNCTIONS_TEXT)
    location = _call(router, "textDocument/definition", _at(uri, 2, 0))
    assert location.uri == uri
    assert (location.range.start.line, location.range.end.character) == (0, 30)

    params = _at(uri, 2, 1)
    params["context"] = {"includeDeclaration": True}
    locations = _call(router, "textDocument/references", params)
    assert [item.range.start.line for item in locations] == [0, 2]

    params = _at(uri, 2, 1)
    params["newName"] = "plus"
    edit = _call(router, "textDocument/rename", params)
    assert [item.new_text for item in edit.changes[uri]] == ["plus", "plus"]


def test_formatting() -> None:
    uri = "file:///p/a.flux"
    router = create_router(_frontend(canonical={"x=1": "x = 1\n"}))
    _open(router, uri, "x=1")
    edits = _call(router, "textDocument/formatting", {
        "textDocument": {"uri": uri},
        "options": {"tabSize": 4, "insertSpaces": True},
    })
    assert [edit.new_text for edit in edits] == ["x = 1\n"]

    _open(router, uri, "unformattable", version=2)
    edits = _call(router, "textDocument/formatting", {
        "textDocument": {"uri": uri},
        "options": {"tabSize": 4, "insertSpaces": True},
    })
    assert edits == []


def test_folding_ranges_follow_settings() -> None:
    uri = "file:///p/functions.flux"
    router = create_router(_frontend())
    _open(router, uri, FUNCTIONS_TEXT)
    folds = _call(router, "textDocument/foldingRange", {"textDocument": {"uri": uri}})
    assert len(folds) == 1

    disabled = create_router(_frontend(), ServerSettings(disable_folding=True))
    assert "textDocument/foldingRange" not in {route.method for route in disabled.routes()}
    result = _initialize(disabled)
    assert result.capabilities.folding_range_provider is False


def test_diagnostics_from_checker_and_reserved_names() -> None:
    error = SourceError(
        message="undefined identifier x",
        loc=Location(start=Point(1, 5), end=Point(1, 6)),
    )
    router = create_router(_frontend(errors=[error]))
    published = _open(router, "file:///p/r.flux", RESERVED_TEXT)
    assert [(item.severity, item.source) for item in published.diagnostics] == [
        (DiagnosticSeverity.Error, "flux"),
        (DiagnosticSeverity.Warning, "flux-lsp"),
    ]


def test_analysis_failure_falls_back_to_parse_tree() -> None:
    router = create_router(_frontend(fail_analysis=True))
    published = _open(router, "file:///p/r.flux", RESERVED_TEXT)
    assert len(published.diagnostics) == 1


def test_stale_change_is_ignored() -> None:
    router = create_router(_frontend())
    uri = "file:///p/a.flux"
    _open(router, uri, "a", version=2)

    def change(version: int, text: str) -> Any:
        return _call(router, "textDocument/didChange", {
            "textDocument": {"uri": uri, "version": version},
            "contentChanges": [{"text": text}],
        })

    change(1, "b")
    assert router.session.store.get(uri).contents == "a"
    published = change(3, "c")
    assert published.version == 3
    assert router.session.store.get(uri).contents == "c"


def test_close_clears_diagnostics_and_document() -> None:
    router = create_router(_frontend())
    uri = "file:///p/a.flux"
    _open(router, uri, RESERVED_TEXT)
    published = _call(router, "textDocument/didClose", {"textDocument": {"uri": uri}})
    assert published.diagnostics == []
    assert router.session.store.keys() == []


def test_initialize_enables_multiple_files() -> None:
    frontend = _frontend()
    router = create_router(frontend)
    result = _initialize(router, {"supportMultipleFiles": True})
    assert result.server_info.name == "flux-lsp"
    assert result.capabilities.completion_provider.trigger_characters == [
        ".",
        ":",
        "(",
        ",",
        '"',
    ]
    assert router.session.multi_file is True

    _open(router, "file:///p/b.flux", FUNCTIONS_TEXT)
    frontend.parsed.clear()
    _open(router, "file:///p/a.flux", RESERVED_TEXT)
    assert frontend.parsed == ["file:///p/b.flux", "file:///p/a.flux"]

    _call(router, "shutdown")
    assert router.session.store.keys() == []
    assert router.session.multi_file is False


def test_single_file_mode_parses_only_the_document() -> None:
    frontend = _frontend()
    router = create_router(frontend)
    _initialize(router, {"supportMultipleFiles": "sometimes"})
    _open(router, "file:///p/b.flux", FUNCTIONS_TEXT)
    frontend.parsed.clear()
    _open(router, "file:///p/a.flux", RESERVED_TEXT)
    assert frontend.parsed == ["file:///p/a.flux"]


def test_unopened_target_is_parsed_last_beside_its_package() -> None:
    frontend = _frontend()
    router = create_router(frontend)
    _initialize(router, {"supportMultipleFiles": True})
    _open(router, "file:///p/b.flux", FUNCTIONS_TEXT)

    documents = router.session.documents("file:///p/a.flux")
    assert [document.uri for document in documents] == [
        "file:///p/b.flux",
        "file:///p/a.flux",
    ]
    assert (documents[-1].version, documents[-1].contents) == (1, "")
    assert router.session.store.keys() == ["file:///p/b.flux"]

    frontend.parsed.clear()
    package = router.session.parse_package("file:///p/a.flux")
    assert frontend.parsed == ["file:///p/b.flux", "file:///p/a.flux"]
    assert package.files[-1].name == "file:///p/a.flux"
