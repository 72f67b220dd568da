"""Flux syntax tree.

Nodes are immutable and hashed by identity, so visitors can use them as
dictionary keys and compare them with ``is``. Locations are 1-based, the
start is inclusive and the end points just past the last character.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterator, List, Optional

from flux_lsp.json_types import JSONValue, NodePayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Point:
    line: int
    column: int


@dataclass(frozen=True)
class Location:
    start: Point
    end: Point
    source: Optional[str] = None
    file: Optional[str] = None

    def contains(self, point: Point) -> bool:
        return self.start <= point <= self.end


@dataclass(frozen=True, eq=False, kw_only=True)
class Node:
    loc: Location
    # Type name filled in by a front end's analysis pass, if any.
    typ: Optional[str] = None

    def children(self) -> Iterator[Node]:
        return iter(())


def _present(*nodes: Optional[Node]) -> Iterator[Node]:
    for node in nodes:
        if node is not None:
            yield node


# Expressions


@dataclass(frozen=True, eq=False, kw_only=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True, eq=False, kw_only=True)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True, eq=False, kw_only=True)
class IntegerLiteral(Node):
    value: int


@dataclass(frozen=True, eq=False, kw_only=True)
class UnsignedIntegerLiteral(Node):
    value: int


@dataclass(frozen=True, eq=False, kw_only=True)
class FloatLiteral(Node):
    value: float


@dataclass(frozen=True, eq=False, kw_only=True)
class BooleanLiteral(Node):
    value: bool


@dataclass(frozen=True, eq=False, kw_only=True)
class DateTimeLiteral(Node):
    value: str


@dataclass(frozen=True, eq=False, kw_only=True)
class DurationLiteral(Node):
    value: str


@dataclass(frozen=True, eq=False, kw_only=True)
class RegexpLiteral(Node):
    value: str


@dataclass(frozen=True, eq=False, kw_only=True)
class PipeLiteral(Node):
    pass


@dataclass(frozen=True, eq=False, kw_only=True)
class BadExpression(Node):
    text: str = ""


@dataclass(frozen=True, eq=False, kw_only=True)
class Property(Node):
    key: Node
    value: Optional[Node] = None

    @property
    def name(self) -> str:
        return property_name(self.key)

    def children(self) -> Iterator[Node]:
        return _present(self.key, self.value)


@dataclass(frozen=True, eq=False, kw_only=True)
class ObjectExpression(Node):
    properties: List[Property] = field(default_factory=list)
    with_: Optional[Identifier] = None

    def children(self) -> Iterator[Node]:
        yield from _present(self.with_)
        yield from self.properties


@dataclass(frozen=True, eq=False, kw_only=True)
class ArrayExpression(Node):
    elements: List[Node] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.elements)


@dataclass(frozen=True, eq=False, kw_only=True)
class MemberExpression(Node):
    object: Node
    property: Node

    def children(self) -> Iterator[Node]:
        return iter((self.object, self.property))


@dataclass(frozen=True, eq=False, kw_only=True)
class IndexExpression(Node):
    array: Node
    index: Node

    def children(self) -> Iterator[Node]:
        return iter((self.array, self.index))


@dataclass(frozen=True, eq=False, kw_only=True)
class CallExpression(Node):
    callee: Node
    arguments: List[Node] = field(default_factory=list)

    @property
    def properties(self) -> List[Property]:
        """Keyword arguments of the call (Flux passes a single object)."""
        for argument in self.arguments:
            if isinstance(argument, ObjectExpression):
                return list(argument.properties)
        return []

    def children(self) -> Iterator[Node]:
        yield self.callee
        yield from self.arguments


@dataclass(frozen=True, eq=False, kw_only=True)
class PipeExpression(Node):
    argument: Node
    call: CallExpression

    def children(self) -> Iterator[Node]:
        return iter((self.argument, self.call))


@dataclass(frozen=True, eq=False, kw_only=True)
class BinaryExpression(Node):
    operator: str
    left: Node
    right: Node

    def children(self) -> Iterator[Node]:
        return iter((self.left, self.right))


@dataclass(frozen=True, eq=False, kw_only=True)
class LogicalExpression(Node):
    operator: str
    left: Node
    right: Node

    def children(self) -> Iterator[Node]:
        return iter((self.left, self.right))


@dataclass(frozen=True, eq=False, kw_only=True)
class UnaryExpression(Node):
    operator: str
    argument: Node

    def children(self) -> Iterator[Node]:
        return iter((self.argument,))


@dataclass(frozen=True, eq=False, kw_only=True)
class ConditionalExpression(Node):
    test: Node
    consequent: Node
    alternate: Node

    def children(self) -> Iterator[Node]:
        return iter((self.test, self.consequent, self.alternate))


@dataclass(frozen=True, eq=False, kw_only=True)
class Parameter(Node):
    key: Identifier
    default: Optional[Node] = None

    def children(self) -> Iterator[Node]:
        return _present(self.key, self.default)


@dataclass(frozen=True, eq=False, kw_only=True)
class Block(Node):
    body: List[Node] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.body)


@dataclass(frozen=True, eq=False, kw_only=True)
class FunctionExpression(Node):
    params: List[Parameter] = field(default_factory=list)
    body: Optional[Node] = None

    @property
    def required(self) -> List[str]:
        return [param.key.name for param in self.params if param.default is None]

    @property
    def optional(self) -> List[str]:
        return [param.key.name for param in self.params if param.default is not None]

    def children(self) -> Iterator[Node]:
        yield from self.params
        yield from _present(self.body)


# Statements


@dataclass(frozen=True, eq=False, kw_only=True)
class VariableAssignment(Node):
    id: Identifier
    init: Node

    def children(self) -> Iterator[Node]:
        return iter((self.id, self.init))


@dataclass(frozen=True, eq=False, kw_only=True)
class MemberAssignment(Node):
    member: MemberExpression
    init: Node

    def children(self) -> Iterator[Node]:
        return iter((self.member, self.init))


@dataclass(frozen=True, eq=False, kw_only=True)
class OptionStatement(Node):
    assignment: Node

    def children(self) -> Iterator[Node]:
        return iter((self.assignment,))


@dataclass(frozen=True, eq=False, kw_only=True)
class BuiltinStatement(Node):
    id: Identifier

    def children(self) -> Iterator[Node]:
        return iter((self.id,))


@dataclass(frozen=True, eq=False, kw_only=True)
class ExpressionStatement(Node):
    expression: Node

    def children(self) -> Iterator[Node]:
        return iter((self.expression,))


@dataclass(frozen=True, eq=False, kw_only=True)
class ReturnStatement(Node):
    argument: Node

    def children(self) -> Iterator[Node]:
        return iter((self.argument,))


@dataclass(frozen=True, eq=False, kw_only=True)
class TestCaseStatement(Node):
    id: Identifier
    block: Block

    def children(self) -> Iterator[Node]:
        return iter((self.id, self.block))


@dataclass(frozen=True, eq=False, kw_only=True)
class BadStatement(Node):
    text: str = ""


# Files and packages


@dataclass(frozen=True, eq=False, kw_only=True)
class PackageClause(Node):
    name: Identifier

    def children(self) -> Iterator[Node]:
        return iter((self.name,))


@dataclass(frozen=True, eq=False, kw_only=True)
class ImportDeclaration(Node):
    path: StringLiteral
    alias: Optional[Identifier] = None

    def children(self) -> Iterator[Node]:
        return _present(self.alias, self.path)


@dataclass(frozen=True, eq=False, kw_only=True)
class File(Node):
    name: str = ""
    package: Optional[PackageClause] = None
    imports: List[ImportDeclaration] = field(default_factory=list)
    body: List[Node] = field(default_factory=list)

    @property
    def package_name(self) -> str:
        return self.package.name.name if self.package is not None else "main"

    def children(self) -> Iterator[Node]:
        yield from _present(self.package)
        yield from self.imports
        yield from self.body


@dataclass(frozen=True, eq=False, kw_only=True)
class Package(Node):
    path: str = ""
    package: str = "main"
    files: List[File] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        return iter(self.files)


def property_name(key: Node) -> str:
    if isinstance(key, Identifier):
        return key.name
    if isinstance(key, StringLiteral):
        return key.value
    return ""


def package_of(files: List[File], path: str = "") -> Package:
    """Wrap parsed files in a package node spanning all of them."""
    if files:
        start = min(file.loc.start for file in files)
        end = max(file.loc.end for file in files)
    else:
        start = end = Point(1, 1)
    name = files[-1].package_name if files else "main"
    return Package(
        loc=Location(start=start, end=end),
        path=path,
        package=name,
        files=list(files),
    )


def without_bad_statements(file: File) -> File:
    body = [statement for statement in file.body if not isinstance(statement, BadStatement)]
    if len(body) == len(file.body):
        return file
    return File(
        loc=file.loc,
        typ=file.typ,
        name=file.name,
        package=file.package,
        imports=file.imports,
        body=body,
    )


def without_statements_at(file: File, point: Point) -> File:
    """Drop top-level statements that contain ``point``.

    Used while completing: the statement under the cursor is usually
    incomplete and would only produce analysis noise.
    """
    body = [statement for statement in file.body if not statement.loc.contains(point)]
    if len(body) == len(file.body):
        return file
    return File(
        loc=file.loc,
        typ=file.typ,
        name=file.name,
        package=file.package,
        imports=file.imports,
        body=body,
    )


# JSON decoding


def _location(payload: JSONValue, file: str | None) -> Location:
    if not isinstance(payload, dict):
        return Location(start=Point(1, 1), end=Point(1, 1), file=file)
    start = payload.get("start") or {}
    end = payload.get("end") or {}
    source = payload.get("source")
    return Location(
        start=Point(int(start.get("line", 1)), int(start.get("column", 1))),
        end=Point(int(end.get("line", 1)), int(end.get("column", 1))),
        source=source if isinstance(source, str) else None,
        file=file,
    )


class _Decoder:
    def __init__(self, file: str | None) -> None:
        self.file = file

    def node(self, payload: JSONValue) -> Node:
        if not isinstance(payload, dict):
            raise ValueError(f"expected a node object, got {type(payload).__name__}")
        kind = str(payload.get("type", ""))
        loc = _location(payload.get("location"), self.file)
        typ = payload.get("typ")
        common = {"loc": loc, "typ": typ if isinstance(typ, str) else None}
        builder = getattr(self, f"_{kind}", None)
        if builder is None:
            logger.debug("decoding unsupported node type %r as a bad expression", kind)
            return BadExpression(text=kind, **common)
        return builder(payload, common)

    def optional(self, payload: JSONValue) -> Optional[Node]:
        return None if payload is None else self.node(payload)

    def nodes(self, payload: JSONValue) -> List[Node]:
        if not isinstance(payload, list):
            return []
        return [self.node(item) for item in payload]

    def _Package(self, payload: NodePayload, common: dict) -> Package:
        return Package(
            path=str(payload.get("path") or ""),
            package=str(payload.get("package") or "main"),
            files=[file for file in self.nodes(payload.get("files")) if isinstance(file, File)],
            **common,
        )

    def _File(self, payload: NodePayload, common: dict) -> File:
        package = payload.get("package")
        return File(
            name=str(payload.get("name") or self.file or ""),
            package=self.optional(package),
            imports=self.nodes(payload.get("imports")),
            body=self.nodes(payload.get("body")),
            **common,
        )

    def _PackageClause(self, payload: NodePayload, common: dict) -> PackageClause:
        return PackageClause(name=self.node(payload.get("name")), **common)

    def _ImportDeclaration(self, payload: NodePayload, common: dict) -> ImportDeclaration:
        return ImportDeclaration(
            path=self.node(payload.get("path")),
            alias=self.optional(payload.get("as")),
            **common,
        )

    def _VariableAssignment(self, payload: NodePayload, common: dict) -> VariableAssignment:
        return VariableAssignment(
            id=self.node(payload.get("id")), init=self.node(payload.get("init")), **common
        )

    def _MemberAssignment(self, payload: NodePayload, common: dict) -> MemberAssignment:
        return MemberAssignment(
            member=self.node(payload.get("member")),
            init=self.node(payload.get("init")),
            **common,
        )

    def _OptionStatement(self, payload: NodePayload, common: dict) -> OptionStatement:
        return OptionStatement(assignment=self.node(payload.get("assignment")), **common)

    def _BuiltinStatement(self, payload: NodePayload, common: dict) -> BuiltinStatement:
        return BuiltinStatement(id=self.node(payload.get("id")), **common)

    def _ExpressionStatement(self, payload: NodePayload, common: dict) -> ExpressionStatement:
        return ExpressionStatement(expression=self.node(payload.get("expression")), **common)

    def _ReturnStatement(self, payload: NodePayload, common: dict) -> ReturnStatement:
        return ReturnStatement(argument=self.node(payload.get("argument")), **common)

    def _TestCaseStatement(self, payload: NodePayload, common: dict) -> TestCaseStatement:
        return TestCaseStatement(
            id=self.node(payload.get("id")), block=self.node(payload.get("block")), **common
        )

    def _BadStatement(self, payload: NodePayload, common: dict) -> BadStatement:
        return BadStatement(text=str(payload.get("text") or ""), **common)

    def _Block(self, payload: NodePayload, common: dict) -> Block:
        return Block(body=self.nodes(payload.get("body")), **common)

    def _FunctionExpression(self, payload: NodePayload, common: dict) -> FunctionExpression:
        params = []
        for item in payload.get("params") or []:
            prop = self.node(item)
            if isinstance(prop, Property) and isinstance(prop.key, Identifier):
                params.append(Parameter(loc=prop.loc, key=prop.key, default=prop.value))
        return FunctionExpression(params=params, body=self.optional(payload.get("body")), **common)

    def _Property(self, payload: NodePayload, common: dict) -> Property:
        return Property(
            key=self.node(payload.get("key")), value=self.optional(payload.get("value")), **common
        )

    def _ObjectExpression(self, payload: NodePayload, common: dict) -> ObjectExpression:
        return ObjectExpression(
            with_=self.optional(payload.get("with")),
            properties=self.nodes(payload.get("properties")),
            **common,
        )

    def _ArrayExpression(self, payload: NodePayload, common: dict) -> ArrayExpression:
        return ArrayExpression(elements=self.nodes(payload.get("elements")), **common)

    def _CallExpression(self, payload: NodePayload, common: dict) -> CallExpression:
        return CallExpression(
            callee=self.node(payload.get("callee")),
            arguments=self.nodes(payload.get("arguments")),
            **common,
        )

    def _PipeExpression(self, payload: NodePayload, common: dict) -> PipeExpression:
        return PipeExpression(
            argument=self.node(payload.get("argument")),
            call=self.node(payload.get("call")),
            **common,
        )

    def _MemberExpression(self, payload: NodePayload, common: dict) -> MemberExpression:
        return MemberExpression(
            object=self.node(payload.get("object")),
            property=self.node(payload.get("property")),
            **common,
        )

    def _IndexExpression(self, payload: NodePayload, common: dict) -> IndexExpression:
        return IndexExpression(
            array=self.node(payload.get("array")), index=self.node(payload.get("index")), **common
        )

    def _BinaryExpression(self, payload: NodePayload, common: dict) -> BinaryExpression:
        return BinaryExpression(
            operator=str(payload.get("operator") or ""),
            left=self.node(payload.get("left")),
            right=self.node(payload.get("right")),
            **common,
        )

    def _LogicalExpression(self, payload: NodePayload, common: dict) -> LogicalExpression:
        return LogicalExpression(
            operator=str(payload.get("operator") or ""),
            left=self.node(payload.get("left")),
            right=self.node(payload.get("right")),
            **common,
        )

    def _UnaryExpression(self, payload: NodePayload, common: dict) -> UnaryExpression:
        return UnaryExpression(
            operator=str(payload.get("operator") or ""),
            argument=self.node(payload.get("argument")),
            **common,
        )

    def _ConditionalExpression(self, payload: NodePayload, common: dict) -> ConditionalExpression:
        return ConditionalExpression(
            test=self.node(payload.get("test")),
            consequent=self.node(payload.get("consequent")),
            alternate=self.node(payload.get("alternate")),
            **common,
        )

    def _Identifier(self, payload: NodePayload, common: dict) -> Identifier:
        return Identifier(name=str(payload.get("name") or ""), **common)

    def _StringLiteral(self, payload: NodePayload, common: dict) -> StringLiteral:
        return StringLiteral(value=str(payload.get("value") or ""), **common)

    def _IntegerLiteral(self, payload: NodePayload, common: dict) -> IntegerLiteral:
        return IntegerLiteral(value=int(payload.get("value") or 0), **common)

    def _UnsignedIntegerLiteral(
        self, payload: NodePayload, common: dict
    ) -> UnsignedIntegerLiteral:
        return UnsignedIntegerLiteral(value=int(payload.get("value") or 0), **common)

    def _FloatLiteral(self, payload: NodePayload, common: dict) -> FloatLiteral:
        return FloatLiteral(value=float(payload.get("value") or 0.0), **common)

    def _BooleanLiteral(self, payload: NodePayload, common: dict) -> BooleanLiteral:
        return BooleanLiteral(value=bool(payload.get("value")), **common)

    def _DateTimeLiteral(self, payload: NodePayload, common: dict) -> DateTimeLiteral:
        return DateTimeLiteral(value=str(payload.get("value") or ""), **common)

    def _DurationLiteral(self, payload: NodePayload, common: dict) -> DurationLiteral:
        parts = payload.get("values") or []
        text = "".join(
            f"{part.get('magnitude', '')}{part.get('unit', '')}"
            for part in parts
            if isinstance(part, dict)
        )
        return DurationLiteral(value=text, **common)

    def _RegexpLiteral(self, payload: NodePayload, common: dict) -> RegexpLiteral:
        return RegexpLiteral(value=str(payload.get("value") or ""), **common)

    def _PipeLiteral(self, payload: NodePayload, common: dict) -> PipeLiteral:
        return PipeLiteral(**common)

    def _BadExpression(self, payload: NodePayload, common: dict) -> BadExpression:
        return BadExpression(text=str(payload.get("text") or ""), **common)


def from_json(payload: JSONValue, file: str | None = None) -> Node:
    """Decode the JSON AST emitted by Flux tooling.

    ``file`` is recorded on every location so results from multi-file
    packages can be attributed to their document.
    """
    return _Decoder(file).node(payload)
