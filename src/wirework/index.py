"""Lookup from capability name to the components that provide it."""

from collections import defaultdict
from typing import Iterable

from wirework.domain import ComponentDefinition

__all__ = ["CapabilityIndex", "build_index"]


class CapabilityIndex:
    """Maps each capability to its providers, in catalog order.

    A capability may have zero, one or many providers. Components that provide
    nothing are never indexed.
    """

    def __init__(self, providers: dict[str, tuple[ComponentDefinition, ...]]):
        self._providers = providers

    def candidates(self, capability: str) -> tuple[ComponentDefinition, ...]:
        """Return the providers of ``capability``; empty if there are none."""
        return self._providers.get(capability, ())

    def capabilities(self) -> list[str]:
        return list(self._providers)

    def __getitem__(self, capability: str) -> tuple[ComponentDefinition, ...]:
        return self.candidates(capability)

    def __contains__(self, capability: object) -> bool:
        return capability in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_index(components: Iterable[ComponentDefinition]) -> CapabilityIndex:
    """Index components by the capability they provide.

    Args:
        components: A catalog, or any iterable of definitions in registration order.

    Returns:
        A :class:`CapabilityIndex` whose buckets preserve the iteration order.
    """
    providers: dict[str, list[ComponentDefinition]] = defaultdict(list)
    for component in components:
        if component.provides is not None:
            providers[component.provides].append(component)
    return CapabilityIndex({capability: tuple(found) for capability, found in providers.items()})
