"""The immutable collection of component definitions an analysis runs over."""

from typing import Iterable, Iterator, Optional

from wirework.domain import ComponentDefinition
from wirework.errors import CatalogError

__all__ = ["ComponentCatalog", "make_catalog"]


class ComponentCatalog:
    """An ordered, read-only set of components keyed by unique name.

    Iteration yields components in registration order, which is also the
    tie-break order used when several components provide the same capability.
    """

    def __init__(self, components: tuple[ComponentDefinition, ...]):
        self._components = components
        self._by_name = {component.name: component for component in components}

    @property
    def components(self) -> tuple[ComponentDefinition, ...]:
        return self._components

    def get(self, name: str) -> Optional[ComponentDefinition]:
        return self._by_name.get(name)

    def __getitem__(self, name: str) -> ComponentDefinition:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ComponentDefinition]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return f"ComponentCatalog({[c.name for c in self._components]})"


def make_catalog(components: Iterable[ComponentDefinition]) -> ComponentCatalog:
    """Construct a :class:`ComponentCatalog`, validating that names are unique.

    Args:
        components: Component definitions in registration order.

    Returns:
        The catalog.

    Raises:
        CatalogError: If two components share a name.
    """
    ordered = tuple(components)
    seen: set[str] = set()
    for component in ordered:
        if component.name in seen:
            raise CatalogError(
                f"Duplicate component name '{component.name}' "
                f"in components {[c.name for c in ordered]}"
            )
        seen.add(component.name)
    return ComponentCatalog(ordered)
