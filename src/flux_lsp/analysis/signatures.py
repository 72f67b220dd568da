from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, Iterator, List, Tuple

from lsprotocol.types import ParameterInformation, SignatureInformation

SELF_OWNER = "self"
BUILTIN_OWNER = "builtin"


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    arguments: Tuple[str, ...]

    @property
    def label(self) -> str:
        rendered = ", ".join(f"{argument}: ${argument}" for argument in self.arguments)
        return f"{self.name}({rendered})"

    @property
    def parameters(self) -> List[str]:
        return [f"${argument}" for argument in self.arguments]

    def to_lsp(self) -> SignatureInformation:
        return SignatureInformation(
            label=self.label,
            parameters=[ParameterInformation(label=label) for label in self.parameters],
        )


def optional_combinations(optional: Iterable[str]) -> Iterator[Tuple[str, ...]]:
    """Every non-empty subset of ``optional``, smallest subsets first."""
    names = sorted(optional)
    for size in range(1, len(names) + 1):
        yield from combinations(names, size)


def generate_signatures(
    name: str, required: Iterable[str], optional: Iterable[str] = ()
) -> List[FunctionSignature]:
    required = tuple(required)
    signatures = [FunctionSignature(name=name, arguments=required)]
    for subset in optional_combinations(optional):
        signatures.append(FunctionSignature(name=name, arguments=required + subset))
    return signatures


@dataclass(frozen=True)
class FunctionInfo:
    """A callable visible to the editor.

    ``owner`` is the package name the function is exported from,
    ``"builtin"`` for the prelude and ``"self"`` for functions defined in
    the edited source.
    """

    name: str
    owner: str = SELF_OWNER
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()

    @property
    def arguments(self) -> Tuple[str, ...]:
        return self.required + self.optional

    def signatures(self) -> List[FunctionSignature]:
        return generate_signatures(self.name, self.required, self.optional)

    def describe(self) -> str:
        rendered = list(self.required) + [f"?{name}" for name in self.optional]
        return f"({', '.join(rendered)})"

    def snippet(self) -> str:
        """Insert text for a call, with a tab stop per required argument."""
        if not self.required:
            return f"{self.name}($1)$0" if self.optional else f"{self.name}()$0"
        stops = ", ".join(
            f"{argument}: ${index}" for index, argument in enumerate(self.required, 1)
        )
        return f"{self.name}({stops})$0"
