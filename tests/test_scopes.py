from __future__ import annotations

from flux_lsp.analysis.nodes import (
    BuiltinStatement,
    File,
    Parameter,
    Point,
    VariableAssignment,
    package_of,
)
from flux_lsp.analysis.position import find_node
from flux_lsp.analysis.scopes import (
    find_definition,
    find_references,
    reference_locations,
    rename_edit,
)
from tests.trees import functions_source, ident, span


def _match(tree, line: int, column: int):
    match = find_node(package_of([tree], "file:///p"), Point(line, column))
    assert match is not None
    return match


def test_definition_of_top_level_function() -> None:
    # ``add`` in ``add(a: 2)``
    definition = find_definition(_match(functions_source(), 3, 1))
    assert isinstance(definition, VariableAssignment)
    assert definition.id.name == "add"


def test_definition_of_parameter_inside_function() -> None:
    # ``a`` in ``return a``
    definition = find_definition(_match(functions_source(), 1, 28))
    assert isinstance(definition, Parameter)
    assert definition.key.name == "a"


def test_definition_of_builtin() -> None:
    tree = File(
        loc=span(1, 1, 2, 8),
        body=[
            BuiltinStatement(loc=span(1, 1, 1, 12), id=ident("now", 1, 9)),
            VariableAssignment(
                loc=span(2, 1, 2, 8), id=ident("t", 2, 1), init=ident("now", 2, 5)
            ),
        ],
    )
    definition = find_definition(_match(tree, 2, 5))
    assert definition is not None
    assert (definition.loc.start.line, definition.loc.start.column) == (1, 9)


def test_definition_missing() -> None:
    tree = File(
        loc=span(1, 1, 1, 9),
        body=[
            VariableAssignment(
                loc=span(1, 1, 1, 9), id=ident("t", 1, 1), init=ident("nope", 1, 5)
            )
        ],
    )
    assert find_definition(_match(tree, 1, 6)) is None


def test_references_stay_in_the_defining_function() -> None:
    # ``a`` in ``return a`` is the parameter, not the call's argument key.
    references = find_references(_match(functions_source(), 1, 28))
    assert [(node.loc.start.line, node.loc.start.column) for node in references] == [
        (1, 8),
        (1, 28),
    ]


def test_references_fall_back_to_root_scope() -> None:
    # ``add`` on line 3 resolves to the package-level definition.
    references = find_references(_match(functions_source(), 3, 2))
    assert [(node.loc.start.line, node.loc.start.column) for node in references] == [
        (1, 1),
        (3, 1),
    ]


def test_rename_groups_edits_by_uri() -> None:
    match = _match(functions_source(), 3, 2)
    locations = reference_locations(match, "file:///p/functions.flux")
    assert {location.uri for location in locations} == {"file:///p/functions.flux"}
    edit = rename_edit(match, "plus", "file:///p/functions.flux")
    edits = edit.changes["file:///p/functions.flux"]
    assert [item.new_text for item in edits] == ["plus", "plus"]
    assert [(item.range.start.line, item.range.start.character) for item in edits] == [
        (0, 0),
        (2, 0),
    ]
