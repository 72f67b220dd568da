"""Tree analysis for the Flux language server."""

from .nodes import Location, Node, Package, Point, from_json
from .position import PositionMatch, find_node

__all__ = [
    "Location",
    "Node",
    "Package",
    "Point",
    "PositionMatch",
    "find_node",
    "from_json",
]
