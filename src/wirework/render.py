"""Rasterisation of a :class:`~wirework.layout.GraphLayout` into text.

The renderer uses its own fixed grid rather than the layout's coordinates:
every node gets a cell of the same size, nodes are grouped into ranks by
their layout ``y`` and kept in layout ``x`` order, and ranks that do not fit
the available width are wrapped onto several visual rows. Edges between ranks
are then routed orthogonally between cells.

Annotations:

    - ``*`` left of a box's top border marks a component in a cycle.
    - ``?`` right of a box's top border marks an orphaned component.
    - ``>`` left of a box's label marks the selected component.
"""

from dataclasses import dataclass
from typing import Optional

from wirework.config import RenderConfig
from wirework.layout import GraphLayout, LayoutNode

__all__ = ["BOX", "EMPTY_PLACEHOLDER", "render_graph"]


BOX = {
    "top_left": "┌",
    "top_right": "┐",
    "bottom_left": "└",
    "bottom_right": "┘",
    "horizontal": "─",
    "vertical": "│",
    "top_t": "┬",
    "bottom_t": "┴",
    "left_t": "├",
    "right_t": "┤",
    "cross": "┼",
    "arrow_down": "▼",
}

ELLIPSIS = "…"
CYCLE_MARKER = "*"
ORPHAN_MARKER = "?"
SELECTED_MARKER = ">"
EMPTY_PLACEHOLDER = "No components found"

BOX_HEIGHT = 3
INNER_BOX_HEIGHT = 3

# Glyphs that belong to boxes; edges never draw over them.
_PROTECTED = {
    BOX["top_left"],
    BOX["top_right"],
    BOX["bottom_left"],
    BOX["bottom_right"],
    BOX["left_t"],
    BOX["right_t"],
    BOX["top_t"],
    BOX["bottom_t"],
    BOX["cross"],
    BOX["arrow_down"],
}


def _is_protected(char: str) -> bool:
    return char in _PROTECTED or char.isalnum() or char == ELLIPSIS


def _truncate(label: str, limit: int) -> str:
    if len(label) <= limit:
        return label
    if limit <= 1:
        return ELLIPSIS[:limit]
    return label[: limit - 1] + ELLIPSIS


class _Grid:
    """A fixed-size character buffer. Writes outside it are clipped."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells = [[" "] * width for _ in range(height)]

    def get(self, x: int, y: int) -> Optional[str]:
        if 0 <= y < self.height and 0 <= x < self.width:
            return self.cells[y][x]
        return None

    def put(self, x: int, y: int, char: str):
        if 0 <= y < self.height and 0 <= x < self.width:
            self.cells[y][x] = char

    def write(self, x: int, y: int, text: str):
        for offset, char in enumerate(text):
            self.put(x + offset, y, char)

    def draw_horizontal(self, x1: int, x2: int, y: int, char: str = BOX["horizontal"]):
        for x in range(min(x1, x2), max(x1, x2) + 1):
            existing = self.get(x, y)
            if existing is not None and not _is_protected(existing):
                self.cells[y][x] = char

    def draw_box(self, x: int, y: int, width: int, height: int, label: str):
        self.write(x, y, BOX["top_left"])
        self.draw_horizontal(x + 1, x + width - 2, y)
        self.write(x + width - 1, y, BOX["top_right"])

        middle = y + height // 2
        self.write(x, middle, BOX["vertical"])
        self.write(x + 1 + (width - 2 - len(label)) // 2, middle, label)
        self.write(x + width - 1, middle, BOX["vertical"])

        bottom = y + height - 1
        self.write(x, bottom, BOX["bottom_left"])
        self.draw_horizontal(x + 1, x + width - 2, bottom)
        self.write(x + width - 1, bottom, BOX["bottom_right"])

    def draw_container(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        label: str,
        children: tuple[str, ...],
        inner_width: int,
    ):
        """Draw a box titled with ``label`` that encloses one small box per child."""
        title = _truncate(label, width - 4)
        self.write(x, y, BOX["top_left"])
        self.write(x + 1, y, BOX["horizontal"])
        self.write(x + 2, y, title)
        for column in range(x + 2 + len(title), x + width - 1):
            self.put(column, y, BOX["horizontal"])
        self.write(x + width - 1, y, BOX["top_right"])

        for row in range(y + 1, y + height - 1):
            self.write(x, row, BOX["vertical"])
            self.write(x + width - 1, row, BOX["vertical"])

        children_width = len(children) * (inner_width + 1) - 1
        child_x = x + 1 + (width - 2 - children_width) // 2
        for child in children:
            self.draw_box(child_x, y + 1, inner_width, INNER_BOX_HEIGHT, _truncate(child, inner_width - 4))
            child_x += inner_width + 1

        bottom = y + height - 1
        self.write(x, bottom, BOX["bottom_left"])
        self.draw_horizontal(x + 1, x + width - 2, bottom)
        self.write(x + width - 1, bottom, BOX["bottom_right"])

    def lines(self) -> list[str]:
        lines = ["".join(row).rstrip() for row in self.cells]
        while lines and not lines[-1]:
            lines.pop()
        return lines


@dataclass(frozen=True)
class _Placement:
    """Where a node ended up on the grid."""

    row: int
    rank: int
    centre_x: int
    box_height: int


class _Geometry:
    """Box and cell sizes for regular and container nodes."""

    def __init__(self, config: RenderConfig):
        self._config = config

    def box_width(self, node: LayoutNode) -> int:
        if not node.is_container:
            return self._config.box_width
        return max(self._config.box_width, len(node.children) * (self._config.inner_box_width + 2) + 2)

    def box_height(self, node: LayoutNode) -> int:
        if not node.is_container:
            return BOX_HEIGHT
        return INNER_BOX_HEIGHT + 4

    def cell_width(self, node: LayoutNode) -> int:
        return max(self._config.cell_width, self.box_width(node) + 4)

    def cell_height(self, node: LayoutNode) -> int:
        return max(self._config.cell_height, self.box_height(node) + 2)


def render_graph(
    layout: GraphLayout,
    max_width: Optional[int] = None,
    selected_node: Optional[str] = None,
    config: Optional[RenderConfig] = None,
) -> list[str]:
    """Render a graph layout as lines of box-drawing text.

    Args:
        layout: The layout to draw.
        max_width: Maximum line length; defaults to ``config.max_width``.
        selected_node: Name of a component to mark as selected.
        config: Grid geometry; defaults to :class:`RenderConfig`.

    Returns:
        One string per character row, right-trimmed and no longer than
        ``max_width``. An empty layout gives a single placeholder line.
    """
    config = config or RenderConfig()
    max_width = max(1, max_width if max_width is not None else config.max_width)

    if layout.is_empty:
        return [EMPTY_PLACEHOLDER]

    geometry = _Geometry(config)

    container_of: dict[str, str] = {}
    for node in layout.nodes:
        for child in node.children:
            if child != node.id:
                container_of.setdefault(child, node.id)
    top_level = [node for node in layout.nodes if node.id not in container_of]
    if not top_level:
        # Containers nest each other in a loop; draw everything flat.
        container_of = {}
        top_level = list(layout.nodes)

    ranks = _group_ranks(top_level, config.rank_tolerance)
    cell_width = max(geometry.cell_width(node) for node in top_level)
    per_row = max(1, max_width // cell_width)

    visual_rows: list[tuple[int, list[LayoutNode]]] = []
    for rank_index, rank in enumerate(ranks):
        for start in range(0, len(rank), per_row):
            visual_rows.append((rank_index, rank[start:start + per_row]))

    row_heights = [max(geometry.cell_height(node) for node in nodes) for _, nodes in visual_rows]
    row_tops: list[int] = []
    cumulative = 0
    for height in row_heights:
        row_tops.append(cumulative)
        cumulative += height

    grid = _Grid(min(per_row * cell_width, max_width), cumulative + 1)
    placements: dict[str, _Placement] = {}
    box_regions: dict[int, list[tuple[int, int]]] = {}

    for row_index, (rank_index, nodes) in enumerate(visual_rows):
        top = row_tops[row_index]
        start_x = max(0, (grid.width - len(nodes) * cell_width) // 2)

        for column, node in enumerate(nodes):
            width = geometry.box_width(node)
            height = geometry.box_height(node)
            x = start_x + column * cell_width + (cell_width - width) // 2

            placement = _Placement(row_index, rank_index, x + width // 2, height)
            placements[node.id] = placement
            for child in node.children:
                if container_of.get(child) == node.id:
                    placements[child] = placement

            label = _truncate(node.label, width - 4)
            if node.is_container:
                grid.draw_container(x, top, width, height, label, node.children, config.inner_box_width)
            else:
                grid.draw_box(x, top, width, height, label)

            # Box columns plus the marker columns on either side.
            box_regions.setdefault(row_index, []).append((x - 1, x + width))

            if node.is_in_cycle:
                grid.write(x - 1, top, CYCLE_MARKER)
            if node.is_orphan:
                grid.write(x + width, top, ORPHAN_MARKER)
            if node.id == selected_node:
                grid.write(x - 1, top + height // 2, SELECTED_MARKER)

    router = _EdgeRouter(grid, row_tops, row_heights, box_regions)
    for edge in layout.edges:
        source = placements.get(edge.source)
        target = placements.get(edge.target)
        if source is None or target is None or source.rank == target.rank:
            continue
        router.route(source, target)

    return grid.lines()


def _group_ranks(nodes: list[LayoutNode], tolerance: float) -> list[list[LayoutNode]]:
    """Group nodes whose ``y`` is within ``tolerance`` of the previous node, left to right."""
    ranks: list[list[LayoutNode]] = []
    last_y: Optional[float] = None
    for node in sorted(nodes, key=lambda n: (n.y, n.x)):
        if last_y is None or node.y - last_y > tolerance:
            ranks.append([node])
        else:
            ranks[-1].append(node)
        last_y = node.y
    for rank in ranks:
        rank.sort(key=lambda n: n.x)
    return ranks




_CORNERS = {
    ("down", "right"): BOX["bottom_left"],
    ("down", "left"): BOX["bottom_right"],
    ("right", "down"): BOX["top_right"],
    ("left", "down"): BOX["top_left"],
}

# Glyph drawn where an edge meets a line already drawn by another edge.
_JUNCTIONS = {
    frozenset({BOX["vertical"], BOX["horizontal"]}): BOX["cross"],
    frozenset({BOX["vertical"], BOX["bottom_left"]}): BOX["left_t"],
    frozenset({BOX["vertical"], BOX["top_left"]}): BOX["left_t"],
    frozenset({BOX["vertical"], BOX["bottom_right"]}): BOX["right_t"],
    frozenset({BOX["vertical"], BOX["top_right"]}): BOX["right_t"],
    frozenset({BOX["horizontal"], BOX["top_left"]}): BOX["top_t"],
    frozenset({BOX["horizontal"], BOX["top_right"]}): BOX["top_t"],
    frozenset({BOX["horizontal"], BOX["bottom_left"]}): BOX["bottom_t"],
    frozenset({BOX["horizontal"], BOX["bottom_right"]}): BOX["bottom_t"],
}


def _direction(x1: int, x2: int) -> str:
    if x1 == x2:
        return "down"
    return "right" if x2 > x1 else "left"


def _simplify(points: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Drop repeated points and points in the middle of a straight run."""
    unique = [point for i, point in enumerate(points) if i == 0 or point != points[i - 1]]
    simplified = unique[:1]
    for i in range(1, len(unique)):
        if i + 1 < len(unique):
            previous, point, following = simplified[-1], unique[i], unique[i + 1]
            if previous[0] == point[0] == following[0] or previous[1] == point[1] == following[1]:
                continue
        simplified.append(unique[i])
    return simplified


class _EdgeRouter:
    """Draws orthogonal provider -> consumer edges onto a grid.

    Every visual row has a lane, the second to last character row of the row,
    which lies below all of the row's boxes. An edge drops from the provider
    to the lane of its own row, runs along it, and drops into the consumer
    from the lane of the row just above the consumer. When other rows lie in
    between, the edge travels down the free column nearest to both ends, so it
    never passes through another component's box.
    """

    def __init__(
        self,
        grid: _Grid,
        row_tops: list[int],
        row_heights: list[int],
        box_regions: dict[int, list[tuple[int, int]]],
    ):
        self._grid = grid
        self._row_tops = row_tops
        self._row_heights = row_heights
        self._box_regions = box_regions

    def route(self, source: _Placement, target: _Placement):
        """Route from just below the provider's box to just above the consumer's.

        Edges that would have to travel upwards are skipped, as are edges that
        find no free column through the rows in between.
        """
        from_x, to_x = source.centre_x, target.centre_x
        from_y = self._row_tops[source.row] + source.box_height
        to_y = self._row_tops[target.row] - 1
        if from_y >= to_y:
            return

        exit_lane = self._lane(source.row)
        if target.row == source.row + 1:
            points = [(from_x, from_y), (from_x, exit_lane), (to_x, exit_lane), (to_x, to_y)]
        else:
            column = self._free_column(range(source.row + 1, target.row), from_x, to_x)
            if column is None:
                return
            entry_lane = self._lane(target.row - 1)
            points = [
                (from_x, from_y),
                (from_x, exit_lane),
                (column, exit_lane),
                (column, entry_lane),
                (to_x, entry_lane),
                (to_x, to_y),
            ]
        self._draw(_simplify(points))

    def _lane(self, row: int) -> int:
        return self._row_tops[row] + self._row_heights[row] - 2

    def _free_column(self, rows: range, from_x: int, to_x: int) -> Optional[int]:
        blocked = [region for row in rows for region in self._box_regions.get(row, ())]
        columns = sorted(
            range(self._grid.width),
            key=lambda c: (abs(c - from_x) + abs(c - to_x), abs(c - from_x), c),
        )
        return next(
            (c for c in columns if not any(start <= c <= end for start, end in blocked)),
            None,
        )

    def _draw(self, points: list[tuple[int, int]]):
        incoming = "down"
        for (x1, y1), (x2, y2) in zip(points, points[1:]):
            outgoing = _direction(x1, x2)
            if outgoing == incoming:
                self._paint(x1, y1, BOX["vertical"] if outgoing == "down" else BOX["horizontal"])
            else:
                self._paint(x1, y1, _CORNERS[(incoming, outgoing)])

            if outgoing == "down":
                for y in range(y1 + 1, y2):
                    self._paint(x1, y, BOX["vertical"])
            else:
                for x in range(min(x1, x2) + 1, max(x1, x2)):
                    self._paint(x, y1, BOX["horizontal"])
            incoming = outgoing

        end_x, end_y = points[-1]
        self._grid.put(end_x, end_y, BOX["arrow_down"])

    def _paint(self, x: int, y: int, char: str):
        existing = self._grid.get(x, y)
        if existing is None:
            return
        junction = _JUNCTIONS.get(frozenset({existing, char}))
        if junction is not None:
            self._grid.put(x, y, junction)
        elif not _is_protected(existing):
            self._grid.put(x, y, char)
