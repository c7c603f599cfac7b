"""Resolution of missing capabilities into an ordered set of components.

Given capabilities that a program needs but nothing provides, the resolver
walks the capability index depth first, choosing one provider per capability
and following that provider's own requirements, until every reachable
capability is either satisfied or known to be missing. Providers are emitted
dependency-first, so the resulting order can be used directly to wire
components together.

Cycles are not resolved here: a capability met again on its own path is simply
skipped for that branch. Cycles are reported by :mod:`wirework.analyzer`.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional

from wirework.domain import ComponentDefinition, Diagnostic
from wirework.index import CapabilityIndex

__all__ = ["ResolutionResult", "resolve"]


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of a single :func:`resolve` call."""

    resolved: tuple[ComponentDefinition, ...]
    """Selected components, without duplicates, dependencies first."""

    missing: tuple[str, ...]
    """Capabilities reached during resolution that no component provides."""

    order: tuple[str, ...]
    """Names of ``resolved``, in the same order."""

    diagnostics: tuple[Diagnostic, ...] = field(default=())
    """Non-fatal warnings raised while selecting providers."""

    @property
    def is_complete(self) -> bool:
        return len(self.missing) == 0


class _Resolution:
    """State owned by one resolve call.

    Path membership is not held here. Each branch receives its own frozen
    path, so sibling branches never see each other's ancestors.
    """

    def __init__(self, index: CapabilityIndex, overrides: Mapping[str, str]):
        self._index = index
        self._overrides = overrides
        self._visited: set[str] = set()
        self._missing: list[str] = []
        self._resolved: dict[str, ComponentDefinition] = {}
        self._diagnostics: list[Diagnostic] = []

    def visit(self, capability: str):
        """Resolve ``capability`` and everything its provider transitively requires.

        The walk keeps its own stack so long requirement chains cannot exhaust
        the interpreter's recursion limit. Each frame holds the capability, the
        selected provider, the provider's pending requirements and the branch
        path including the capability itself.
        """
        frames: list[tuple[str, ComponentDefinition, Iterator[str], frozenset[str]]] = []
        self._enter(capability, frozenset(), frames)
        while frames:
            current, selected, pending, branch_path = frames[-1]
            requirement = next(pending, None)
            if requirement is not None:
                self._enter(requirement, branch_path, frames)
                continue

            frames.pop()
            self._visited.add(current)
            if current not in self._resolved:
                self._resolved[current] = selected

    def _enter(self, capability: str, path: frozenset[str], frames: list):
        if capability in self._visited or capability in path:
            return

        candidates = self._index.candidates(capability)
        if not candidates:
            if capability not in self._missing:
                self._missing.append(capability)
                self._diagnostics.append(
                    Diagnostic(
                        "unsatisfiable",
                        capability,
                        f"No component provides {capability}",
                    )
                )
            return

        selected = self._select(capability, candidates)
        frames.append((capability, selected, iter(selected.requires), path | {capability}))

    def _select(
        self, capability: str, candidates: tuple[ComponentDefinition, ...]
    ) -> ComponentDefinition:
        selected_name = self._overrides.get(capability)
        if selected_name is not None:
            selected = next((c for c in candidates if c.name == selected_name), None)
            if selected is not None:
                return selected
            self._diagnostics.append(
                Diagnostic(
                    "invalid_override",
                    capability,
                    f"Selected component '{selected_name}' does not provide {capability}, "
                    f"using '{candidates[0].name}'",
                )
            )
        elif len(candidates) > 1:
            self._diagnostics.append(
                Diagnostic(
                    "ambiguous_selection",
                    capability,
                    f"{len(candidates)} components provide {capability} "
                    f"({', '.join(c.name for c in candidates)}), using '{candidates[0].name}'",
                )
            )
        return candidates[0]

    def result(self) -> ResolutionResult:
        resolved = tuple(self._resolved.values())
        return ResolutionResult(
            resolved,
            tuple(self._missing),
            tuple(component.name for component in resolved),
            tuple(self._diagnostics),
        )


def resolve(
    requested: Iterable[str],
    index: CapabilityIndex,
    overrides: Optional[Mapping[str, str]] = None,
) -> ResolutionResult:
    """Resolve capabilities into the components needed to provide them.

    Args:
        requested: Capabilities to satisfy. They are visited in iteration
            order; pass an ordered sequence for reproducible diagnostics.
        index: The capability index of the full catalog.
        overrides: Optional mapping of capability to the name of the component
            that should provide it. Overrides naming a component that does not
            provide the capability fall back to the first provider.

    Returns:
        The :class:`ResolutionResult`. Unprovided capabilities are listed in
        ``missing`` rather than raised.

    Example:
        >>> index = build_index(catalog)
        >>> result = resolve(["Cache"], index)
        >>> result.order
        ('Db', 'Cache')
    """
    resolution = _Resolution(index, overrides or {})
    for capability in dict.fromkeys(requested):
        resolution.visit(capability)
    return resolution.result()
