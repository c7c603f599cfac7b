"""Layered layout of the component dependency graph.

Components are drawn top to bottom with providers above the components that
consume them, following the usual Sugiyama-style steps:

    1. Reverse enough edges to make the graph acyclic (for ranking only).
    2. Assign ranks by longest path from the sources.
    3. Split edges that span several ranks with dummy nodes.
    4. Reorder each rank with barycenter sweeps to reduce edge crossings.
    5. Assign coordinates and edge polylines.

Coordinates are in abstract drawing units. Node ``x``/``y`` give the centre of
the node, ``width``/``height`` its size.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from wirework.analyzer import dependency_edges, detect_cycles, find_orphans
from wirework.catalog import ComponentCatalog
from wirework.config import LayoutConfig
from wirework.domain import CompositionType, Provenance

__all__ = ["Point", "LayoutNode", "LayoutEdge", "GraphLayout", "layout_graph"]


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class LayoutNode:
    """A positioned component.

    Attributes:
        id: The component name.
        label: Text drawn inside the node.
        x: Horizontal centre.
        y: Vertical centre.
        width: Width derived from the label length.
        height: Fixed height of three text rows.
        rank: The layer the node was placed in, 0 at the top.
        is_orphan: Whether nothing requires the node's capability.
        is_in_cycle: Whether the node is part of a dependency cycle.
        children: Sub-components for container nodes.
    """

    id: str
    label: str
    x: float
    y: float
    width: float
    height: float
    rank: int
    provides: Optional[str] = None
    requires: tuple[str, ...] = ()
    provenance: Provenance = Provenance()
    is_orphan: bool = False
    is_in_cycle: bool = False
    children: tuple[str, ...] = ()
    composition_type: CompositionType = "none"

    @property
    def is_container(self) -> bool:
        return len(self.children) > 0


@dataclass(frozen=True)
class LayoutEdge:
    """A provider -> consumer relationship with its routing points."""

    source: str
    target: str
    points: tuple[Point, ...]


@dataclass(frozen=True)
class GraphLayout:
    nodes: tuple[LayoutNode, ...]
    edges: tuple[LayoutEdge, ...]
    width: float
    height: float
    cycles: tuple[tuple[str, ...], ...] = ()
    orphans: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return len(self.nodes) == 0


class _LayeredGraph:
    """
    Internal helper holding the acyclic, rank-proper graph being laid out.

    Vertices are integers: ``0 .. len(names) - 1`` are components in catalog
    order, larger ids are dummy vertices inserted along long edges.
    """

    def __init__(self, names: list[str]):
        self.names = names
        self.successors: dict[int, list[int]] = defaultdict(list)
        self.predecessors: dict[int, list[int]] = defaultdict(list)
        self.rank: dict[int, int] = {}
        self.vertex_count = len(names)

    def is_dummy(self, vertex: int) -> bool:
        return vertex >= len(self.names)

    def add_edge(self, upper: int, lower: int):
        self.successors[upper].append(lower)
        self.predecessors[lower].append(upper)

    def add_dummy(self, rank: int) -> int:
        vertex = self.vertex_count
        self.vertex_count += 1
        self.rank[vertex] = rank
        return vertex


def layout_graph(catalog: ComponentCatalog, config: Optional[LayoutConfig] = None) -> GraphLayout:
    """Lay out every component of a catalog as a layered graph.

    Args:
        catalog: The full component catalog.
        config: Spacing and sizing; defaults to :class:`LayoutConfig`.

    Returns:
        The :class:`GraphLayout`, including the catalog's cycles and orphans
        for annotation. An empty catalog gives an empty layout.
    """
    config = config or LayoutConfig()
    components = list(catalog)
    if not components:
        return GraphLayout((), (), 0, 0)

    names = [component.name for component in components]
    position_of = {name: i for i, name in enumerate(names)}

    # provider -> consumer, self-loops cannot be drawn between ranks
    edges: list[tuple[int, int]] = []
    for consumer, providers in dependency_edges(components).items():
        for provider in providers:
            if provider != consumer:
                edges.append((position_of[provider], position_of[consumer]))

    reversed_edges = _feedback_edges(len(names), edges)
    oriented = [(v, u) if (u, v) in reversed_edges else (u, v) for u, v in edges]

    graph = _LayeredGraph(names)
    graph.rank.update(_longest_path_ranks(len(names), oriented))

    chains: dict[tuple[int, int], list[int]] = {}
    for upper, lower in dict.fromkeys(oriented):
        chain = [upper]
        for rank in range(graph.rank[upper] + 1, graph.rank[lower]):
            chain.append(graph.add_dummy(rank))
        chain.append(lower)
        for a, b in zip(chain, chain[1:]):
            graph.add_edge(a, b)
        chains[(upper, lower)] = chain

    layers = _order_layers(graph, config.ordering_passes)

    widths = {
        vertex: 0.0 if graph.is_dummy(vertex)
        else (len(names[vertex]) + config.label_padding) * config.char_scale
        for layer in layers
        for vertex in layer
    }
    centres = _assign_coordinates(layers, widths, config)

    cycles = detect_cycles(components)
    in_cycle = {member for cycle in cycles for member in cycle}
    orphans = find_orphans(components)
    orphan_set = set(orphans)

    half_height = config.node_height / 2
    nodes = tuple(
        LayoutNode(
            component.name,
            component.name,
            centres[i].x,
            centres[i].y,
            widths[i],
            config.node_height,
            graph.rank[i],
            component.provides,
            component.requires,
            component.provenance,
            component.name in orphan_set,
            component.name in in_cycle,
            component.composed_of,
            component.composition_type,
        )
        for i, component in enumerate(components)
    )

    layout_edges = []
    for provider, consumer in dict.fromkeys(edges):
        if (provider, consumer) in reversed_edges:
            chain = list(reversed(chains[(consumer, provider)]))
            exit_offset, entry_offset = -half_height, half_height
        else:
            chain = chains[(provider, consumer)]
            exit_offset, entry_offset = half_height, -half_height
        points = [Point(centres[chain[0]].x, centres[chain[0]].y + exit_offset)]
        points.extend(centres[vertex] for vertex in chain[1:-1])
        points.append(Point(centres[chain[-1]].x, centres[chain[-1]].y + entry_offset))
        layout_edges.append(LayoutEdge(names[provider], names[consumer], tuple(points)))

    rank_count = max(graph.rank.values()) + 1
    width = max(
        sum(widths[vertex] for vertex in layer) + config.node_sep * (len(layer) - 1)
        for layer in layers
    ) + 2 * config.margin_x
    height = (
        rank_count * config.node_height
        + (rank_count - 1) * config.rank_sep
        + 2 * config.margin_y
    )

    return GraphLayout(
        nodes,
        tuple(layout_edges),
        width,
        height,
        tuple(tuple(cycle) for cycle in cycles),
        tuple(orphans),
    )


def _feedback_edges(vertex_count: int, edges: list[tuple[int, int]]) -> set[tuple[int, int]]:
    """Return the DFS back edges; reversing them makes the graph acyclic."""
    successors: dict[int, list[int]] = defaultdict(list)
    for u, v in edges:
        successors[u].append(v)

    back_edges: set[tuple[int, int]] = set()
    visited: set[int] = set()
    on_path: set[int] = set()
    for root in range(vertex_count):
        if root in visited:
            continue
        visited.add(root)
        on_path.add(root)
        frames = [(root, iter(successors[root]))]
        while frames:
            vertex, pending = frames[-1]
            successor = next(pending, None)
            if successor is None:
                frames.pop()
                on_path.discard(vertex)
            elif successor in on_path:
                back_edges.add((vertex, successor))
            elif successor not in visited:
                visited.add(successor)
                on_path.add(successor)
                frames.append((successor, iter(successors[successor])))
    return back_edges


def _longest_path_ranks(vertex_count: int, edges: list[tuple[int, int]]) -> dict[int, int]:
    """Rank vertices so every edge points at least one rank down.

    Sources get rank 0; every other vertex sits one rank below its lowest
    predecessor.
    """
    successors: dict[int, list[int]] = defaultdict(list)
    in_degree = [0] * vertex_count
    for u, v in dict.fromkeys(edges):
        successors[u].append(v)
        in_degree[v] += 1

    ranks = {vertex: 0 for vertex in range(vertex_count)}
    ready = [vertex for vertex in range(vertex_count) if in_degree[vertex] == 0]
    while ready:
        vertex = ready.pop(0)
        for successor in successors[vertex]:
            ranks[successor] = max(ranks[successor], ranks[vertex] + 1)
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                ready.append(successor)
    return ranks


def _order_layers(graph: _LayeredGraph, passes: int) -> list[list[int]]:
    """Order the vertices of each rank, keeping the arrangement with fewest crossings."""
    rank_count = max(graph.rank.values()) + 1
    layers: list[list[int]] = [[] for _ in range(rank_count)]
    for vertex in range(graph.vertex_count):
        layers[graph.rank[vertex]].append(vertex)

    best = [list(layer) for layer in layers]
    best_crossings = _count_crossings(graph, best)

    for _ in range(passes):
        for i in range(1, rank_count):
            layers[i] = _barycenter_sorted(layers[i], layers[i - 1], graph.predecessors)
        for i in range(rank_count - 2, -1, -1):
            layers[i] = _barycenter_sorted(layers[i], layers[i + 1], graph.successors)

        crossings = _count_crossings(graph, layers)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings
        if best_crossings == 0:
            break

    return best


def _barycenter_sorted(
    layer: list[int], fixed: list[int], neighbours: dict[int, list[int]]
) -> list[int]:
    position = {vertex: i for i, vertex in enumerate(fixed)}

    def barycenter(item: tuple[int, int]) -> float:
        current, vertex = item
        linked = [position[n] for n in neighbours.get(vertex, ()) if n in position]
        if not linked:
            return float(current)
        return sum(linked) / len(linked)

    return [vertex for _, vertex in sorted(enumerate(layer), key=barycenter)]


def _count_crossings(graph: _LayeredGraph, layers: list[list[int]]) -> int:
    crossings = 0
    for upper, lower in zip(layers, layers[1:]):
        lower_position = {vertex: i for i, vertex in enumerate(lower)}
        segments = [
            (i, lower_position[successor])
            for i, vertex in enumerate(upper)
            for successor in graph.successors.get(vertex, ())
            if successor in lower_position
        ]
        for a, (a_top, a_bottom) in enumerate(segments):
            for b_top, b_bottom in segments[a + 1:]:
                if (a_top - b_top) * (a_bottom - b_bottom) < 0:
                    crossings += 1
    return crossings


def _assign_coordinates(
    layers: list[list[int]], widths: dict[int, float], config: LayoutConfig
) -> dict[int, Point]:
    """Pack each rank left to right and centre it against the widest rank."""
    rank_widths = [
        sum(widths[vertex] for vertex in layer) + config.node_sep * (len(layer) - 1)
        for layer in layers
    ]
    widest = max(rank_widths)

    centres: dict[int, Point] = {}
    for rank, layer in enumerate(layers):
        y = config.margin_y + rank * (config.node_height + config.rank_sep) + config.node_height / 2
        cursor = config.margin_x + (widest - rank_widths[rank]) / 2
        for vertex in layer:
            centres[vertex] = Point(cursor + widths[vertex] / 2, y)
            cursor += widths[vertex] + config.node_sep
    return centres
