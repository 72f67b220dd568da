from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Type, TypeVar

from lsprotocol.types import Position, Range

from flux_lsp.analysis.nodes import Location, Node, Point
from flux_lsp.analysis.walk import walk

NodeT = TypeVar("NodeT", bound=Node)


def to_point(position: Position) -> Point:
    return Point(position.line + 1, position.character + 1)


def move_back(position: Position, count: int = 1) -> Position:
    return Position(line=position.line, character=max(position.character - count, 0))


def to_range(loc: Location) -> Range:
    return Range(
        start=Position(line=loc.start.line - 1, character=loc.start.column - 1),
        end=Position(line=loc.end.line - 1, character=loc.end.column - 1),
    )


@dataclass
class PositionMatch:
    node: Node
    # Containing nodes from the root down to ``node`` (inclusive).
    path: List[Node] = field(default_factory=list)

    @property
    def parent(self) -> Optional[Node]:
        return self.path[-2] if len(self.path) > 1 else None

    def nearest(self, kind: Type[NodeT]) -> Optional[NodeT]:
        for node in reversed(self.path):
            if isinstance(node, kind):
                return node
        return None


class _NodeFinder:
    def __init__(self, point: Point) -> None:
        self.point = point
        self.match: Optional[PositionMatch] = None
        self._stack: List[Node] = []

    def visit(self, node: Node) -> bool:
        self._stack.append(node)
        if node.loc.contains(self.point):
            path = [item for item in self._stack if item.loc.contains(self.point)]
            self.match = PositionMatch(node=node, path=path)
        return True

    def done(self, node: Node) -> None:
        self._stack.pop()


def find_node(root: Node, point: Point) -> Optional[PositionMatch]:
    """The most deeply nested node whose range includes ``point``.

    Both range ends count as inside, so a cursor sitting right after an
    identifier still resolves to it.
    """
    finder = _NodeFinder(point)
    walk(finder, root)
    return finder.match
