from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from lsprotocol.types import CompletionItem, CompletionItemKind, InsertTextFormat

from flux_lsp.analysis.calls import (
    argument_call,
    functions_for_call,
    imports_for,
    parameter_types,
)
from flux_lsp.analysis.nodes import (
    ArrayExpression,
    BadExpression,
    BooleanLiteral,
    CallExpression,
    DateTimeLiteral,
    DurationLiteral,
    FloatLiteral,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    IntegerLiteral,
    MemberExpression,
    Node,
    ObjectExpression,
    Package,
    Point,
    RegexpLiteral,
    StringLiteral,
    UnsignedIntegerLiteral,
    VariableAssignment,
)
from flux_lsp.analysis.position import find_node
from flux_lsp.analysis.signatures import BUILTIN_OWNER, SELF_OWNER, FunctionInfo
from flux_lsp.analysis.visitors import (
    collect_imports,
    collect_object_properties,
    function_info,
)
from flux_lsp.analysis.walk import NodeVisitor, walk
from flux_lsp.frontend import Environment, PackageMember, package_name

_LITERAL_TYPES = {
    ArrayExpression: "Array",
    BooleanLiteral: "Boolean",
    DateTimeLiteral: "Time",
    DurationLiteral: "Duration",
    FloatLiteral: "Float",
    IntegerLiteral: "Integer",
    ObjectExpression: "Object",
    RegexpLiteral: "Regular Expression",
    StringLiteral: "String",
    UnsignedIntegerLiteral: "Uint",
}

# Trigger characters after which an argument key is inserted without a space.
_TIGHT_TRIGGERS = (None, "(")


class CompletionKind(str, Enum):
    GENERIC = "generic"
    MEMBER = "member"
    IMPORT = "import"
    CALL_PROPERTY = "call-property"


@dataclass(frozen=True)
class CompletionContext:
    kind: CompletionKind
    text: str = ""
    call: Optional[CallExpression] = None


def classify(root: Node, point: Point) -> Optional[CompletionContext]:
    """Decide what kind of completion fits the node at ``point``."""
    match = find_node(root, point)
    if match is None:
        return None
    node = match.node
    parent = match.parent
    if isinstance(parent, MemberExpression) and isinstance(parent.object, Identifier):
        return CompletionContext(CompletionKind.MEMBER, parent.object.name)
    if isinstance(node, MemberExpression) and isinstance(node.object, Identifier):
        return CompletionContext(CompletionKind.MEMBER, node.object.name)
    if isinstance(node, ImportDeclaration) or isinstance(parent, ImportDeclaration):
        return CompletionContext(CompletionKind.IMPORT)
    call = match.nearest(CallExpression)
    if argument_call(match.path, call):
        return CompletionContext(CompletionKind.CALL_PROPERTY, call=call)
    if isinstance(node, Identifier):
        return CompletionContext(CompletionKind.GENERIC, node.name)
    if isinstance(node, BadExpression):
        return CompletionContext(CompletionKind.GENERIC, node.text)
    return CompletionContext(CompletionKind.GENERIC)


def variable_type(node: Node) -> str:
    if node.typ:
        return node.typ
    for kind, name in _LITERAL_TYPES.items():
        if isinstance(node, kind):
            return name
    return ""


def function_item(info: FunctionInfo, detail: str | None = None) -> CompletionItem:
    return CompletionItem(
        label=info.name,
        kind=CompletionItemKind.Function,
        detail=detail or info.describe(),
        documentation=f"from {info.owner}",
        filter_text=info.name,
        sort_text=f"{info.name} {info.owner}",
        insert_text=info.snippet(),
        insert_text_format=InsertTextFormat.Snippet,
    )


def value_item(name: str, type_name: str, owner: str) -> CompletionItem:
    return CompletionItem(
        label=name,
        kind=CompletionItemKind.Variable,
        detail=type_name or None,
        documentation=f"from {owner}",
        filter_text=name,
        sort_text=f"{name} {owner}",
        insert_text=name,
        insert_text_format=InsertTextFormat.PlainText,
    )


def member_item(member: PackageMember, owner: str) -> CompletionItem:
    if member.is_function:
        return function_item(member.function_info(owner), member.type_name or None)
    return value_item(member.name, member.type_name, owner)


def _unique(items: Iterable[CompletionItem]) -> List[CompletionItem]:
    seen: set[str] = set()
    unique = []
    for item in items:
        if item.label in seen:
            continue
        seen.add(item.label)
        unique.append(item)
    return unique


class UserDefinitionCollector(NodeVisitor):
    """Variables and functions assigned before ``point`` (anywhere, if ``None``)."""

    def __init__(self, point: Optional[Point]) -> None:
        self.point = point
        self.items: List[CompletionItem] = []

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if self.point is not None and node.loc.start > self.point:
            return True
        if isinstance(node.init, FunctionExpression):
            self.items.append(function_item(function_info(node.id.name, node.init)))
        else:
            self.items.append(value_item(node.id.name, variable_type(node.init), SELF_OWNER))
        return True


def user_definitions(package: Package, point: Point) -> List[CompletionItem]:
    if not package.files:
        return []
    *siblings, target = package.files
    collector = UserDefinitionCollector(None)
    for file in siblings:
        walk(collector, file)
    collector.point = point
    walk(collector, target)
    return collector.items


def member_completions(
    name: str, package: Package, environment: Environment
) -> List[CompletionItem]:
    items: List[CompletionItem] = []
    for item in imports_for(package, name):
        owner = package_name(item.path)
        items.extend(member_item(member, owner) for member in environment.members(item.path))
    for prop in collect_object_properties(package, name):
        if isinstance(prop.value, FunctionExpression):
            items.append(function_item(function_info(prop.name, prop.value, name)))
        else:
            type_name = variable_type(prop.value) if prop.value is not None else ""
            items.append(value_item(prop.name, type_name, name))
    return _unique(items)


def import_completions(environment: Environment) -> List[CompletionItem]:
    return [
        CompletionItem(
            label=path,
            kind=CompletionItemKind.Module,
            detail="Package",
            documentation=package_name(path),
            insert_text=path,
            insert_text_format=InsertTextFormat.PlainText,
        )
        for path in environment.package_paths()
    ]


def call_property_completions(
    call: CallExpression,
    package: Package,
    environment: Environment,
    point: Point,
    trigger: Optional[str] = None,
) -> List[CompletionItem]:
    provided = {prop.name for prop in call.properties}
    types = parameter_types(call, package, environment)
    prefix = "" if trigger in _TIGHT_TRIGGERS else " "
    items: List[CompletionItem] = []
    for info in functions_for_call(call, package, environment, point):
        for argument in info.arguments:
            if argument in provided:
                continue
            type_name = types.get(argument, "")
            stop = '"$1"' if type_name.lower() == "string" else "$1"
            items.append(
                CompletionItem(
                    label=argument,
                    kind=CompletionItemKind.Field,
                    detail=type_name or None,
                    documentation=f"argument of {info.name}",
                    insert_text=f"{prefix}{argument}: {stop}",
                    insert_text_format=InsertTextFormat.Snippet,
                )
            )
    return _unique(items)


def generic_completions(
    package: Package, environment: Environment, point: Point
) -> List[CompletionItem]:
    items = [member_item(member, BUILTIN_OWNER) for member in environment.prelude]
    for item in collect_imports(package):
        items.append(
            CompletionItem(
                label=item.alias,
                kind=CompletionItemKind.Module,
                detail="Package",
                documentation=item.path,
                insert_text=item.alias,
                insert_text_format=InsertTextFormat.PlainText,
            )
        )
    items.extend(user_definitions(package, point))
    return _unique(items)


def complete(
    context: CompletionContext,
    package: Package,
    environment: Environment,
    point: Point,
    trigger: Optional[str] = None,
) -> List[CompletionItem]:
    if context.kind is CompletionKind.MEMBER:
        return member_completions(context.text, package, environment)
    if context.kind is CompletionKind.IMPORT:
        return import_completions(environment)
    if context.kind is CompletionKind.CALL_PROPERTY and context.call is not None:
        return call_property_completions(context.call, package, environment, point, trigger)
    return generic_completions(package, environment, point)
