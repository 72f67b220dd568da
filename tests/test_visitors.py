from __future__ import annotations

from lsprotocol.types import FoldingRangeKind, SymbolKind

from flux_lsp.analysis.nodes import (
    ArrayExpression,
    File,
    FunctionExpression,
    ImportDeclaration,
    IntegerLiteral,
    Location,
    MemberExpression,
    ObjectExpression,
    OptionStatement,
    Parameter,
    Point,
    Property,
    StringLiteral,
    VariableAssignment,
)
from flux_lsp.analysis.signatures import FunctionInfo
from flux_lsp.analysis.visitors import (
    collect_folds,
    collect_functions_before,
    collect_identifiers,
    collect_imports,
    collect_object_functions,
    collect_object_properties,
    collect_symbols,
)
from tests.trees import (
    functions_source,
    ident,
    import_member_source,
    member_source,
    span,
    statement,
)


def _symbol_rows(symbols):
    return [
        (
            symbol.name,
            symbol.kind,
            symbol.location.range.start.line,
            symbol.location.range.start.character,
        )
        for symbol in symbols
    ]


def test_symbols_sorted_by_start() -> None:
    symbols = collect_symbols(functions_source(), "file:///p/functions.flux")
    assert _symbol_rows(symbols) == [
        ("add", SymbolKind.Function, 0, 0),
        ("a", SymbolKind.Variable, 0, 7),
        ("b", SymbolKind.Variable, 0, 10),
        ("1", SymbolKind.Number, 0, 12),
        ("tidy", SymbolKind.Function, 1, 7),
        ("x", SymbolKind.Variable, 1, 15),
        ("add", SymbolKind.Function, 2, 0),
        ("a", SymbolKind.Variable, 2, 4),
        ("2", SymbolKind.Number, 2, 7),
        ("late", SymbolKind.Function, 3, 0),
        ("z", SymbolKind.Variable, 3, 8),
    ]
    assert {symbol.location.uri for symbol in symbols} == {"file:///p/functions.flux"}


def test_array_symbol_does_not_descend() -> None:
    # xs = [1, 2]
    array = ArrayExpression(
        loc=span(1, 6, 1, 12),
        elements=[
            IntegerLiteral(loc=span(1, 7, 1, 8), value=1),
            IntegerLiteral(loc=span(1, 10, 1, 11), value=2),
        ],
    )
    tree = File(
        loc=span(1, 1, 1, 12),
        body=[VariableAssignment(loc=span(1, 1, 1, 12), id=ident("xs", 1, 1), init=array)],
    )
    rows = _symbol_rows(collect_symbols(tree, "file:///p/a.flux"))
    assert rows == [("xs", SymbolKind.Variable, 0, 0), ("[]", SymbolKind.Array, 0, 5)]


def test_member_with_source_is_an_object_symbol() -> None:
    member = MemberExpression(
        loc=Location(start=Point(1, 1), end=Point(1, 9), source="r._value"),
        object=ident("r", 1, 1),
        property=ident("_value", 1, 3),
    )
    tree = File(loc=span(1, 1, 1, 9), body=[statement(member)])
    rows = _symbol_rows(collect_symbols(tree, "file:///p/a.flux"))
    assert rows == [("r._value", SymbolKind.Object, 0, 0)]


def test_in_scope_functions_skip_later_definitions() -> None:
    tree = functions_source()
    functions = collect_functions_before(tree, Point(3, 1))
    assert functions == [
        FunctionInfo(name="add", owner="self", required=("a",), optional=("b",)),
        FunctionInfo(name="tidy", owner="self", required=("x",)),
    ]
    everything = collect_functions_before(tree, None)
    assert [info.name for info in everything] == ["add", "tidy", "late"]


def test_definition_on_the_cursor_counts() -> None:
    functions = collect_functions_before(functions_source(), Point(4, 1))
    assert [info.name for info in functions] == ["add", "tidy", "late"]


def _object_tree() -> File:
    # o = {f: (x) => x, n: 1}
    # option cfg = {g: () => 1}
    plain = VariableAssignment(
        loc=span(1, 1, 1, 24),
        id=ident("o", 1, 1),
        init=ObjectExpression(
            loc=span(1, 5, 1, 24),
            properties=[
                Property(
                    loc=span(1, 6, 1, 17),
                    key=ident("f", 1, 6),
                    value=FunctionExpression(
                        loc=span(1, 9, 1, 17),
                        params=[Parameter(loc=span(1, 10, 1, 11), key=ident("x", 1, 10))],
                        body=ident("x", 1, 16),
                    ),
                ),
                Property(
                    loc=span(1, 19, 1, 23),
                    key=ident("n", 1, 19),
                    value=IntegerLiteral(loc=span(1, 22, 1, 23), value=1),
                ),
            ],
        ),
    )
    option = OptionStatement(
        loc=span(2, 1, 2, 26),
        assignment=VariableAssignment(
            loc=span(2, 8, 2, 26),
            id=ident("cfg", 2, 8),
            init=ObjectExpression(
                loc=span(2, 14, 2, 26),
                properties=[
                    Property(
                        loc=span(2, 15, 2, 25),
                        key=ident("g", 2, 15),
                        value=FunctionExpression(
                            loc=span(2, 18, 2, 25),
                            body=IntegerLiteral(loc=span(2, 24, 2, 25), value=1),
                        ),
                    )
                ],
            ),
        ),
    )
    return File(loc=span(1, 1, 2, 26), body=[plain, option])


def test_object_functions() -> None:
    assert collect_object_functions(_object_tree()) == [
        ("o", FunctionInfo(name="f", owner="o", required=("x",))),
        ("cfg", FunctionInfo(name="g", owner="cfg")),
    ]


def test_object_properties_follow_with() -> None:
    tree = _object_tree()
    base = tree.body[0]
    extended = VariableAssignment(
        loc=span(3, 1, 3, 20),
        id=ident("p", 3, 1),
        init=ObjectExpression(
            loc=span(3, 5, 3, 20),
            with_=ident("o", 3, 6),
            properties=[
                Property(
                    loc=span(3, 13, 3, 19),
                    key=ident("extra", 3, 13),
                    value=StringLiteral(loc=span(3, 19, 3, 19), value=""),
                )
            ],
        ),
    )
    extended_tree = File(loc=span(1, 1, 3, 20), body=[base, extended])
    names = [prop.name for prop in collect_object_properties(extended_tree, "p")]
    assert names == ["extra", "f", "n"]
    assert collect_object_properties(extended_tree, "missing") == []


def test_identifier_occurrences_skip_member_properties() -> None:
    found = collect_identifiers(member_source(), "a")
    assert [(node.loc.start.line, node.loc.start.column) for node in found] == [
        (1, 1),
        (1, 6),
    ]


def test_identifier_occurrences_search_nested_member_objects() -> None:
    # a.b.c
    inner = MemberExpression(
        loc=span(1, 1, 1, 4), object=ident("a", 1, 1), property=ident("b", 1, 3)
    )
    outer = MemberExpression(
        loc=span(1, 1, 1, 6), object=inner, property=ident("c", 1, 5)
    )
    tree = File(loc=span(1, 1, 1, 6), body=[statement(outer)])
    assert [node.name for node in collect_identifiers(tree, "a")] == ["a"]
    assert collect_identifiers(tree, "b") == []
    assert collect_identifiers(tree, "c") == []


def test_imports_use_alias_or_last_segment() -> None:
    aliased = ImportDeclaration(
        loc=span(2, 1, 2, 32),
        alias=ident("arr", 2, 8),
        path=StringLiteral(loc=span(2, 12, 2, 32), value="experimental/array"),
    )
    plain = ImportDeclaration(
        loc=span(3, 1, 3, 23),
        path=StringLiteral(loc=span(3, 8, 3, 23), value="influxdata/strings"),
    )
    base = import_member_source()
    tree = File(loc=span(1, 1, 3, 23), imports=[*base.imports, aliased, plain])
    imports = collect_imports(tree)
    assert [(item.path, item.alias, item.package_name) for item in imports] == [
        ("pkg", "pkg", "pkg"),
        ("experimental/array", "arr", "array"),
        ("influxdata/strings", "strings", "strings"),
    ]


def test_blocks_fold_as_regions() -> None:
    folds = collect_folds(functions_source())
    assert len(folds) == 1
    fold = folds[0]
    assert (fold.start_line, fold.start_character, fold.end_line, fold.end_character) == (
        0,
        18,
        0,
        30,
    )
    assert fold.kind == FoldingRangeKind.Region
