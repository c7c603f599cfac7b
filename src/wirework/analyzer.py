"""Whole-catalog checks: dependency cycles and orphaned components.

Unlike the resolver, these operate on every component in the catalog, not just
those needed for a particular request.
"""

from collections import defaultdict
from typing import Iterable

from wirework.domain import ComponentDefinition

__all__ = ["dependency_edges", "detect_cycles", "find_orphans"]


def dependency_edges(components: Iterable[ComponentDefinition]) -> dict[str, list[str]]:
    """Build the consumer -> provider adjacency list of a catalog.

    Every component appears as a key, in catalog order. A component has an edge
    to each component that provides one of its required capabilities; edges are
    listed in ``requires`` order, then provider registration order, without
    repeats.

    Args:
        components: The full catalog.

    Returns:
        Mapping of component name to the names of the components it depends on.
    """
    components = list(components)
    providers: dict[str, list[str]] = defaultdict(list)
    for component in components:
        if component.provides is not None:
            providers[component.provides].append(component.name)

    adjacency: dict[str, list[str]] = {}
    for component in components:
        dependencies: list[str] = []
        for requirement in component.requires:
            for provider in providers.get(requirement, ()):
                if provider not in dependencies:
                    dependencies.append(provider)
        adjacency[component.name] = dependencies
    return adjacency


def detect_cycles(components: Iterable[ComponentDefinition]) -> list[list[str]]:
    """Find groups of components that depend on each other in a cycle.

    Runs Tarjan's strongly connected components algorithm over
    :func:`dependency_edges`. The traversal keeps its own call stack so long
    dependency chains cannot exhaust the interpreter's recursion limit, but
    visits nodes in exactly the order the recursive formulation would.

    Args:
        components: The full catalog.

    Returns:
        One list of component names per strongly connected component with more
        than one member. Members are in stack pop order; only their grouping is
        meaningful.
    """
    adjacency = dependency_edges(components)

    counter = 0
    indices: dict[str, int] = {}
    lowlinks: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    def discover(node: str) -> None:
        nonlocal counter
        indices[node] = counter
        lowlinks[node] = counter
        counter += 1
        stack.append(node)
        on_stack.add(node)

    for root in adjacency:
        if root in indices:
            continue

        discover(root)
        # Each frame is a node and the position of the next neighbour to examine.
        frames: list[list] = [[root, 0]]
        while frames:
            frame = frames[-1]
            node, position = frame
            neighbours = adjacency.get(node, [])

            if position < len(neighbours):
                frame[1] += 1
                neighbour = neighbours[position]
                if neighbour not in indices:
                    discover(neighbour)
                    frames.append([neighbour, 0])
                elif neighbour in on_stack:
                    lowlinks[node] = min(lowlinks[node], indices[neighbour])
                continue

            frames.pop()
            if frames:
                parent = frames[-1][0]
                lowlinks[parent] = min(lowlinks[parent], lowlinks[node])

            if lowlinks[node] == indices[node]:
                component: list[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1:
                    cycles.append(component)

    return cycles


def find_orphans(components: Iterable[ComponentDefinition]) -> list[str]:
    """Find components whose capability nothing in the catalog requires.

    Components that provide nothing are never orphans.

    Args:
        components: The full catalog.

    Returns:
        Names of orphaned components, in catalog order.
    """
    components = list(components)
    required = {requirement for component in components for requirement in component.requires}
    return [
        component.name
        for component in components
        if component.provides is not None and component.provides not in required
    ]
