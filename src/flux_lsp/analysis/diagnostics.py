from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from flux_lsp.analysis.nodes import (
    CallExpression,
    Identifier,
    MemberExpression,
    Node,
    Package,
    VariableAssignment,
)
from flux_lsp.analysis.position import to_range
from flux_lsp.analysis.walk import NodeVisitor, walk

DIAGNOSTIC_SOURCE = "flux-lsp"

EXPERIMENTAL_PREFIX = "experimental"
EXPERIMENTAL_MESSAGE = (
    "experimental features can change often or be deleted/moved. Use with caution."
)
CONTRIB_PREFIX = "contrib"
CONTRIB_MESSAGE = (
    "contrib packages are user-contributed, and do not carry with them the same "
    "compatibility guarantees as the standard library. Use with caution."
)
RESERVED_MESSAGE = (
    "Avoid using `{name}` as an identifier name. In some InfluxDB contexts, "
    "it may be provided at runtime."
)


@dataclass(frozen=True)
class FileDiagnostic:
    file: Optional[str]
    diagnostic: Diagnostic


def _diagnostic(node: Node, message: str, severity: DiagnosticSeverity) -> FileDiagnostic:
    return FileDiagnostic(
        file=node.loc.file,
        diagnostic=Diagnostic(
            range=to_range(node.loc),
            message=message,
            severity=severity,
            source=DIAGNOSTIC_SOURCE,
        ),
    )


class NamespaceUsageDiagnostic(NodeVisitor):
    """Flags calls into packages imported from under ``prefix``.

    The package node is inspected first: without a matching import nothing
    below it can match, so the walk stops there.
    """

    def __init__(
        self,
        prefix: str,
        message: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.Hint,
    ) -> None:
        self.prefix = prefix
        self.message = message
        self.severity = severity
        self.namespaces: Set[str] = set()
        self.diagnostics: List[FileDiagnostic] = []

    def visit_Package(self, node: Package) -> bool:
        found = False
        for file in node.files:
            for declaration in file.imports:
                path = declaration.path.value
                if not path.startswith(self.prefix):
                    continue
                found = True
                if declaration.alias is not None:
                    self.namespaces.add(declaration.alias.name)
                else:
                    self.namespaces.add(path.rsplit("/", 1)[-1])
        return found

    def visit_CallExpression(self, node: CallExpression) -> bool:
        callee = node.callee
        if isinstance(callee, MemberExpression) and isinstance(callee.object, Identifier):
            callee = callee.object
        if isinstance(callee, Identifier) and callee.name in self.namespaces:
            self.diagnostics.append(_diagnostic(node, self.message, self.severity))
        return True


class ReservedIdentifierDiagnostic(NodeVisitor):
    def __init__(self, names: Iterable[str]) -> None:
        self.names = frozenset(names)
        self.diagnostics: List[FileDiagnostic] = []

    def visit_VariableAssignment(self, node: VariableAssignment) -> bool:
        if node.id.name in self.names:
            message = RESERVED_MESSAGE.format(name=node.id.name)
            self.diagnostics.append(
                _diagnostic(node.id, message, DiagnosticSeverity.Warning)
            )
        return True


def experimental_usage(package: Package) -> List[FileDiagnostic]:
    visitor = NamespaceUsageDiagnostic(EXPERIMENTAL_PREFIX, EXPERIMENTAL_MESSAGE)
    walk(visitor, package)
    return visitor.diagnostics


def contrib_usage(package: Package) -> List[FileDiagnostic]:
    visitor = NamespaceUsageDiagnostic(CONTRIB_PREFIX, CONTRIB_MESSAGE)
    walk(visitor, package)
    return visitor.diagnostics


def reserved_identifiers(package: Package, names: Sequence[str]) -> List[FileDiagnostic]:
    visitor = ReservedIdentifierDiagnostic(names)
    walk(visitor, package)
    return visitor.diagnostics


def for_document(diagnostics: Iterable[FileDiagnostic], uri: str) -> List[Diagnostic]:
    """Diagnostics attributed to ``uri``; unattributed ones belong to every document."""
    return [item.diagnostic for item in diagnostics if item.file in (None, uri)]
