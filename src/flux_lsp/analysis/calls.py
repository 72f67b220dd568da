from __future__ import annotations

from typing import Dict, List, Optional

from flux_lsp.analysis.nodes import (
    CallExpression,
    Identifier,
    MemberExpression,
    Package,
    Point,
    property_name,
)
from flux_lsp.analysis.signatures import FunctionInfo
from flux_lsp.analysis.visitors import (
    Import,
    collect_functions_before,
    collect_imports,
    collect_object_functions,
)
from flux_lsp.frontend import Environment


def imports_for(package: Package, alias: str) -> List[Import]:
    seen: set[str] = set()
    found = []
    for item in collect_imports(package):
        if item.alias == alias and item.path not in seen:
            seen.add(item.path)
            found.append(item)
    return found


def visible_functions(package: Package, point: Point) -> List[FunctionInfo]:
    """User functions callable at ``point`` in the last file of ``package``.

    Sibling files are fully visible; the edited file only up to ``point``.
    """
    if not package.files:
        return []
    *siblings, target = package.files
    functions: List[FunctionInfo] = []
    for file in siblings:
        functions.extend(collect_functions_before(file, None))
    functions.extend(collect_functions_before(target, point))
    return functions


def functions_for_call(
    call: CallExpression, package: Package, environment: Environment, point: Point
) -> List[FunctionInfo]:
    callee = call.callee
    if isinstance(callee, Identifier):
        functions = environment.builtin_functions(callee.name)
        functions.extend(
            info for info in visible_functions(package, point) if info.name == callee.name
        )
        return functions
    if isinstance(callee, MemberExpression) and isinstance(callee.object, Identifier):
        owner = callee.object.name
        name = property_name(callee.property)
        functions = []
        for item in imports_for(package, owner):
            functions.extend(environment.package_functions(item.path, name))
        functions.extend(
            info
            for object_name, info in collect_object_functions(package)
            if object_name == owner and info.name == name
        )
        return functions
    return []


def parameter_types(
    call: CallExpression, package: Package, environment: Environment
) -> Dict[str, str]:
    callee = call.callee
    if isinstance(callee, Identifier):
        return environment.parameter_types(None, callee.name)
    if isinstance(callee, MemberExpression) and isinstance(callee.object, Identifier):
        name = property_name(callee.property)
        types: Dict[str, str] = {}
        for item in imports_for(package, callee.object.name):
            types.update(environment.parameter_types(item.path, name))
        return types
    return {}


def argument_call(path: List, call: Optional[CallExpression]) -> bool:
    """Whether ``path`` ends inside ``call``'s keyword-argument list.

    True for the call itself (empty parentheses), its argument object, one
    of the object's properties, or a property's key; false on the callee
    and inside argument values.
    """
    if call is None or call not in path:
        return False
    rest = path[path.index(call) + 1 :]
    if not rest:
        return True
    head = rest[0]
    if head is call.callee:
        return False
    if len(rest) == 1:
        return True
    prop = rest[1]
    if len(rest) == 2:
        return True
    return len(rest) == 3 and rest[2] is getattr(prop, "key", None)
