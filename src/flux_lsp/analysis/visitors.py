from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from lsprotocol.types import Location as LspLocation
from lsprotocol.types import (
    FoldingRange,
    FoldingRangeKind,
    SymbolInformation,
    SymbolKind,
)

from flux_lsp.analysis.nodes import (
    ArrayExpression,
    BinaryExpression,
    Block,
    BooleanLiteral,
    CallExpression,
    DateTimeLiteral,
    FloatLiteral,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    IntegerLiteral,
    MemberExpression,
    Node,
    ObjectExpression,
    Point,
    Property,
    StringLiteral,
    UnsignedIntegerLiteral,
    VariableAssignment,
)
from flux_lsp.analysis.position import to_range
from flux_lsp.analysis.signatures import SELF_OWNER, FunctionInfo
from flux_lsp.analysis.walk import NodeVisitor, walk


def function_info(
    name: str, function: FunctionExpression, owner: str = SELF_OWNER
) -> FunctionInfo:
    return FunctionInfo(
        name=name,
        owner=owner,
        required=tuple(function.required),
        optional=tuple(function.optional),
    )


class SymbolCollector(NodeVisitor):
    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.symbols: List[SymbolInformation] = []

    def _emit(self, name: str, kind: SymbolKind, node: Node) -> None:
        self.symbols.append(
            SymbolInformation(
                name=name,
                kind=kind,
                location=LspLocation(uri=self.uri, range=to_range(node.loc)),
            )
        )

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if isinstance(node.init, FunctionExpression):
            self._emit(node.id.name, SymbolKind.Function, node)
            for param in node.init.params:
                self._emit(param.key.name, SymbolKind.Variable, param)
        else:
            self._emit(node.id.name, SymbolKind.Variable, node)
        return True

    def visit_CallExpression(self, node: CallExpression) -> bool:
        if isinstance(node.callee, Identifier):
            self._emit(node.callee.name, SymbolKind.Function, node)
        for prop in node.properties:
            kind = (
                SymbolKind.Function
                if isinstance(prop.value, FunctionExpression)
                else SymbolKind.Variable
            )
            self._emit(prop.name, kind, prop)
        return True

    def visit_BinaryExpression(self, node: BinaryExpression) -> bool:
        for operand in (node.left, node.right):
            if isinstance(operand, Identifier):
                self._emit(operand.name, SymbolKind.Variable, operand)
        return True

    def visit_MemberExpression(self, node: MemberExpression) -> bool:
        if node.loc.source:
            self._emit(node.loc.source, SymbolKind.Object, node)
        return True

    def visit_IntegerLiteral(self, node: IntegerLiteral) -> bool:
        self._emit(str(node.value), SymbolKind.Number, node)
        return False

    def visit_UnsignedIntegerLiteral(self, node: UnsignedIntegerLiteral) -> bool:
        self._emit(str(node.value), SymbolKind.Number, node)
        return False

    def visit_FloatLiteral(self, node: FloatLiteral) -> bool:
        self._emit(str(node.value), SymbolKind.Number, node)
        return False

    def visit_StringLiteral(self, node: StringLiteral) -> bool:
        self._emit(node.value, SymbolKind.String, node)
        return False

    def visit_BooleanLiteral(self, node: BooleanLiteral) -> bool:
        self._emit("true" if node.value else "false", SymbolKind.Boolean, node)
        return False

    def visit_DateTimeLiteral(self, node: DateTimeLiteral) -> bool:
        self._emit(node.value, SymbolKind.Constant, node)
        return False

    def visit_ArrayExpression(self, node: ArrayExpression) -> bool:
        self._emit("[]", SymbolKind.Array, node)
        return False


def _symbol_start(symbol: SymbolInformation) -> Tuple[int, int]:
    start = symbol.location.range.start
    return (start.line, start.character)


def collect_symbols(root: Node, uri: str) -> List[SymbolInformation]:
    collector = SymbolCollector(uri)
    walk(collector, root)
    return sorted(collector.symbols, key=_symbol_start)


class InScopeFunctionCollector(NodeVisitor):
    """Function assignments that start at or before a position.

    Option statements wrap a variable assignment, so ``option f = (x) => x``
    is found through the same visit. Without a point every assignment counts.
    """

    def __init__(self, point: Optional[Point]) -> None:
        self.point = point
        self.functions: List[FunctionInfo] = []

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if self.point is not None and node.loc.start > self.point:
            return True
        if isinstance(node.init, FunctionExpression):
            self.functions.append(function_info(node.id.name, node.init))
        return True


def collect_functions_before(root: Node, point: Optional[Point]) -> List[FunctionInfo]:
    collector = InScopeFunctionCollector(point)
    walk(collector, root)
    return collector.functions


class ObjectFunctionCollector(NodeVisitor):
    def __init__(self) -> None:
        self.results: List[Tuple[str, FunctionInfo]] = []

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if not isinstance(node.init, ObjectExpression):
            return True
        owner = node.id.name
        for prop in node.init.properties:
            if isinstance(prop.value, FunctionExpression):
                self.results.append((owner, function_info(prop.name, prop.value, owner)))
        return True


def collect_object_functions(root: Node) -> List[Tuple[str, FunctionInfo]]:
    collector = ObjectFunctionCollector()
    walk(collector, root)
    return collector.results


class ObjectPropertyCollector(NodeVisitor):
    """Properties of object literals assigned to ``name``.

    ``o = {p with x: 1}`` also contributes the properties of ``p``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.properties: List[Property] = []
        self._objects: dict[str, ObjectExpression] = {}

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if isinstance(node.init, ObjectExpression):
            self._objects[node.id.name] = node.init
        return True

    def resolve(self) -> List[Property]:
        seen: set[str] = set()
        pending = [self.name]
        while pending:
            name = pending.pop()
            if name in seen or name not in self._objects:
                continue
            seen.add(name)
            expression = self._objects[name]
            self.properties.extend(expression.properties)
            if expression.with_ is not None:
                pending.append(expression.with_.name)
        return self.properties


def collect_object_properties(root: Node, name: str) -> List[Property]:
    collector = ObjectPropertyCollector(name)
    walk(collector, root)
    return collector.resolve()


class IdentifierOccurrenceCollector(NodeVisitor):
    """Identifiers named ``name``, skipping member-expression properties.

    In ``a.b`` only ``a`` is an occurrence. The object side of a member
    expression is still searched, so ``f(a).b`` and ``a.b.c`` find ``a``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.identifiers: List[Identifier] = []

    def visit_MemberExpression(self, node: MemberExpression) -> bool:
        walk(self, node.object)
        return False

    def visit_Identifier(self, node: Identifier) -> bool:
        if node.name == self.name:
            self.identifiers.append(node)
        return False


def collect_identifiers(root: Node, name: str) -> List[Identifier]:
    collector = IdentifierOccurrenceCollector(name)
    walk(collector, root)
    return collector.identifiers


@dataclass(frozen=True)
class Import:
    path: str
    alias: str
    node: Optional[ImportDeclaration] = None

    @property
    def package_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class ImportCollector(NodeVisitor):
    def __init__(self) -> None:
        self.imports: List[Import] = []

    def visit_ImportDeclaration(self, node: ImportDeclaration) -> bool:
        path = node.path.value
        alias = node.alias.name if node.alias is not None else path.rsplit("/", 1)[-1]
        self.imports.append(Import(path=path, alias=alias, node=node))
        return False


def collect_imports(root: Node) -> List[Import]:
    collector = ImportCollector()
    walk(collector, root)
    return collector.imports


class FoldCollector(NodeVisitor):
    def __init__(self) -> None:
        self.ranges: List[FoldingRange] = []

    def visit_Block(self, node: Block) -> bool:
        self.ranges.append(
            FoldingRange(
                start_line=node.loc.start.line - 1,
                start_character=node.loc.start.column - 1,
                end_line=node.loc.end.line - 1,
                end_character=node.loc.end.column - 1,
                kind=FoldingRangeKind.Region,
            )
        )
        return True


def collect_folds(root: Node) -> List[FoldingRange]:
    collector = FoldCollector()
    walk(collector, root)
    return collector.ranges
