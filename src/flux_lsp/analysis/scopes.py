"""Scope-aware identifier lookups: definitions, references and renames."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from lsprotocol.types import Location as LspLocation
from lsprotocol.types import TextEdit, WorkspaceEdit

from flux_lsp.analysis.nodes import (
    BuiltinStatement,
    File,
    FunctionExpression,
    Identifier,
    Node,
    Package,
    Parameter,
    VariableAssignment,
)
from flux_lsp.analysis.position import PositionMatch, to_range
from flux_lsp.analysis.visitors import collect_identifiers
from flux_lsp.analysis.walk import NodeVisitor, walk

SCOPE_TYPES = (FunctionExpression, File, Package)


class DefinitionCollector(NodeVisitor):
    """First node defining ``name`` directly inside ``scope``.

    Nested functions open their own scope and are not searched.
    """

    def __init__(self, name: str, scope: Node) -> None:
        self.name = name
        self.scope = scope
        self.definition: Optional[Node] = None

    def visit(self, node: Node) -> bool:
        if self.definition is not None:
            return False
        return super().visit(node)

    def visit_FunctionExpression(self, node: FunctionExpression) -> bool:
        return node is self.scope

    def visit_Parameter(self, node: Parameter) -> bool:
        if node.key.name == self.name:
            self.definition = node
        return False

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if node.id.name == self.name:
            self.definition = node
            return False
        return True

    def visit_BuiltinStatement(self, node: BuiltinStatement) -> bool:
        if node.id.name == self.name:
            self.definition = node.id
        return False


def find_definition_in(scope: Node, name: str) -> Optional[Node]:
    collector = DefinitionCollector(name, scope)
    walk(collector, scope)
    return collector.definition


def _identifier_name(match: PositionMatch) -> Optional[str]:
    if isinstance(match.node, Identifier):
        return match.node.name
    return None


def find_definition(match: PositionMatch) -> Optional[Node]:
    """Innermost enclosing scope's definition of the identifier under the cursor."""
    name = _identifier_name(match)
    if name is None:
        return None
    for node in reversed(match.path):
        if not isinstance(node, SCOPE_TYPES):
            continue
        definition = find_definition_in(node, name)
        if definition is not None:
            return definition
    return None


def find_scope(match: PositionMatch) -> Optional[Node]:
    name = _identifier_name(match)
    if name is None:
        return None
    for node in reversed(match.path):
        if isinstance(node, SCOPE_TYPES) and find_definition_in(node, name) is not None:
            return node
    if len(match.path) > 1:
        return match.path[0]
    return None


def find_references(match: PositionMatch) -> List[Identifier]:
    name = _identifier_name(match)
    scope = find_scope(match)
    if name is None or scope is None:
        return []
    return collect_identifiers(scope, name)


def reference_locations(match: PositionMatch, default_uri: str) -> List[LspLocation]:
    return [
        LspLocation(uri=identifier.loc.file or default_uri, range=to_range(identifier.loc))
        for identifier in find_references(match)
    ]


def rename_edit(match: PositionMatch, new_name: str, default_uri: str) -> WorkspaceEdit:
    changes: Dict[str, List[TextEdit]] = defaultdict(list)
    for location in reference_locations(match, default_uri):
        changes[location.uri].append(TextEdit(range=location.range, new_text=new_name))
    return WorkspaceEdit(changes=dict(changes))
