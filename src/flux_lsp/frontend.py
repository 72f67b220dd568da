"""The language front end the server delegates to.

Parsing, type analysis, the standard library catalogue and canonical
formatting all come from a Flux front end. The server only needs the small
surface described by :class:`FrontEnd`; an implementation is selected by
``module:attribute`` reference in ``flux-lsp.toml`` or on the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import importlib
import logging
from typing import Dict, List, Mapping, Protocol, Tuple

from flux_lsp.analysis.nodes import File, Location, Package
from flux_lsp.analysis.signatures import BUILTIN_OWNER, FunctionInfo
from flux_lsp.exceptions import FrontEndLoadError

logger = logging.getLogger(__name__)


class MemberKind(str, Enum):
    FUNCTION = "function"
    VALUE = "value"


@dataclass(frozen=True)
class PackageMember:
    name: str
    kind: MemberKind = MemberKind.VALUE
    # Type of a value, or the rendered signature of a function.
    type_name: str = ""
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    parameter_types: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_function(self) -> bool:
        return self.kind is MemberKind.FUNCTION

    def function_info(self, owner: str) -> FunctionInfo:
        return FunctionInfo(
            name=self.name, owner=owner, required=self.required, optional=self.optional
        )


def package_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Environment:
    """Exports visible to user code: the prelude and importable packages."""

    prelude: Tuple[PackageMember, ...] = ()
    packages: Mapping[str, Tuple[PackageMember, ...]] = field(default_factory=dict)

    def members(self, path: str) -> Tuple[PackageMember, ...]:
        return tuple(self.packages.get(path, ()))

    def package_paths(self) -> List[str]:
        return sorted(self.packages)

    def builtin_functions(self, name: str | None = None) -> List[FunctionInfo]:
        return [
            member.function_info(BUILTIN_OWNER)
            for member in self.prelude
            if member.is_function and (name is None or member.name == name)
        ]

    def package_functions(self, path: str, name: str | None = None) -> List[FunctionInfo]:
        owner = package_name(path)
        return [
            member.function_info(owner)
            for member in self.members(path)
            if member.is_function and (name is None or member.name == name)
        ]

    def parameter_types(self, path: str | None, name: str) -> Dict[str, str]:
        members = self.prelude if path is None else self.members(path)
        for member in members:
            if member.is_function and member.name == name:
                return dict(member.parameter_types)
        return {}


@dataclass(frozen=True)
class SourceError:
    message: str
    loc: Location


class FrontEnd(Protocol):
    def parse(self, text: str, name: str) -> File:
        """Parse one document; node locations carry ``name`` as their file."""

    def analyze(self, package: Package) -> Package:
        """Return the type-annotated package, or raise ``AnalysisError``."""

    def environment(self) -> Environment:
        ...

    def format(self, text: str) -> str:
        """Canonical rendering of ``text``, or raise ``FormatError``."""

    def check(self, package: Package) -> List[SourceError]:
        ...


def load_frontend(reference: str) -> FrontEnd:
    """Resolve ``"package.module:attribute"`` to a front end.

    The attribute may be an instance or a zero-argument factory (a class or
    function).
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise FrontEndLoadError(f"expected 'module:attribute', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise FrontEndLoadError(f"cannot import front end module {module_name!r}: {exc}") from exc
    target = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise FrontEndLoadError(f"{module_name!r} has no attribute {attribute!r}") from exc
    if isinstance(target, type) or not hasattr(target, "parse"):
        if not callable(target):
            raise FrontEndLoadError(f"{reference!r} is not a front end")
        target = target()
    for method in ("parse", "analyze", "environment", "format", "check"):
        if not callable(getattr(target, method, None)):
            raise FrontEndLoadError(f"{reference!r} does not provide {method}()")
    logger.info("using front end %s", reference)
    return target
