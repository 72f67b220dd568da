from __future__ import annotations

from typing import Iterator, List, Protocol, Tuple

from flux_lsp.analysis.nodes import Node


class Visitor(Protocol):
    def visit(self, node: Node) -> bool:
        """Inspect ``node``; return whether to descend into its children."""


class NodeVisitor:
    """Dispatches ``visit`` to ``visit_<NodeClass>`` methods.

    A method returning ``None`` descends into the children, like the
    generic fallback for node types without a method.
    """

    def visit(self, node: Node) -> bool:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            return True
        result = method(node)
        return True if result is None else bool(result)


def walk(visitor: Visitor, root: Node) -> None:
    """Depth-first, parent-before-children traversal.

    Visitors may define ``done(node)``; it runs once all of a node's
    children have been walked (or immediately, when the visitor declined
    to descend).
    """
    done = getattr(visitor, "done", None)
    if not visitor.visit(root):
        if done is not None:
            done(root)
        return
    stack: List[Tuple[Node, Iterator[Node]]] = [(root, root.children())]
    while stack:
        node, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            if done is not None:
                done(node)
            continue
        if visitor.visit(child):
            stack.append((child, child.children()))
        elif done is not None:
            done(child)


def iter_nodes(root: Node) -> Iterator[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))
