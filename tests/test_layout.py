import pytest

from wirework.catalog import make_catalog
from wirework.config import LayoutConfig
from wirework.domain import ComponentDefinition
from wirework.layout import Point, layout_graph


def nodes_by_id(layout):
    return {node.id: node for node in layout.nodes}


@pytest.fixture
def chain():
    return make_catalog(
        [
            ComponentDefinition("Db", "Database"),
            ComponentDefinition("Cache", "Cache", ("Database",)),
        ]
    )


def test_empty_catalog_gives_empty_layout():
    layout = layout_graph(make_catalog([]))

    assert layout.is_empty
    assert layout.edges == ()
    assert (layout.width, layout.height) == (0, 0)


def test_providers_are_placed_above_consumers(chain):
    layout = layout_graph(chain)
    nodes = nodes_by_id(layout)

    assert nodes["Db"].rank == 0
    assert nodes["Cache"].rank == 1
    assert nodes["Db"].y < nodes["Cache"].y


def test_node_size_follows_label_length(chain):
    nodes = nodes_by_id(layout_graph(chain))

    assert nodes["Db"].width == pytest.approx((2 + 4) * 1.5)
    assert nodes["Cache"].width == pytest.approx((5 + 4) * 1.5)
    assert nodes["Cache"].height == 3


def test_layout_bounds_include_margins(chain):
    layout = layout_graph(chain)

    assert layout.width == pytest.approx((5 + 4) * 1.5 + 2 * 10)
    assert layout.height == pytest.approx(2 * 3 + 40 + 2 * 10)


def test_edge_runs_from_provider_bottom_to_consumer_top(chain):
    layout = layout_graph(chain)
    nodes = nodes_by_id(layout)

    [edge] = layout.edges

    assert (edge.source, edge.target) == ("Db", "Cache")
    assert edge.points[0] == Point(nodes["Db"].x, nodes["Db"].y + 1.5)
    assert edge.points[-1] == Point(nodes["Cache"].x, nodes["Cache"].y - 1.5)


def test_long_edges_bend_through_intermediate_ranks():
    layout = layout_graph(
        make_catalog(
            [
                ComponentDefinition("A", "a"),
                ComponentDefinition("B", "b", ("a",)),
                ComponentDefinition("C", "c", ("a", "b")),
            ]
        )
    )

    long_edge = next(e for e in layout.edges if (e.source, e.target) == ("A", "C"))

    assert [node.rank for node in layout.nodes] == [0, 1, 2]
    assert len(long_edge.points) == 3


def test_ordering_removes_avoidable_crossings():
    layout = layout_graph(
        make_catalog(
            [
                ComponentDefinition("P1", "p1"),
                ComponentDefinition("P2", "p2"),
                ComponentDefinition("C1", "c1", ("p2",)),
                ComponentDefinition("C2", "c2", ("p1",)),
            ]
        )
    )
    nodes = nodes_by_id(layout)

    assert nodes["P1"].x < nodes["P2"].x
    assert nodes["C2"].x < nodes["C1"].x


def test_cycles_are_laid_out_and_flagged():
    layout = layout_graph(
        make_catalog(
            [
                ComponentDefinition("A", "X", ("Y",)),
                ComponentDefinition("B", "Y", ("X",)),
                ComponentDefinition("Unused", "Z"),
            ]
        )
    )
    nodes = nodes_by_id(layout)

    assert nodes["A"].rank != nodes["B"].rank
    assert nodes["A"].is_in_cycle and nodes["B"].is_in_cycle
    assert nodes["Unused"].is_orphan
    assert [sorted(cycle) for cycle in layout.cycles] == [["A", "B"]]
    assert layout.orphans == ("Unused",)
    assert {(e.source, e.target) for e in layout.edges} == {("A", "B"), ("B", "A")}


def test_spacing_is_configurable(chain):
    config = LayoutConfig(rank_sep=100, margin_y=0)
    nodes = nodes_by_id(layout_graph(chain, config))

    assert nodes["Cache"].y - nodes["Db"].y == pytest.approx(103)


def test_container_nodes_keep_their_children():
    layout = layout_graph(
        make_catalog(
            [
                ComponentDefinition("App", None, (), composed_of=("Db", "Cache"), composition_type="merge"),
                ComponentDefinition("Db", "Database"),
                ComponentDefinition("Cache", "Cache", ("Database",)),
            ]
        )
    )
    app = nodes_by_id(layout)["App"]

    assert app.is_container
    assert app.children == ("Db", "Cache")
    assert app.composition_type == "merge"
