from wirework.analyzer import dependency_edges, detect_cycles, find_orphans
from wirework.domain import ComponentDefinition


def test_two_component_cycle_is_reported_once():
    components = [
        ComponentDefinition("A", "X", ("Y",)),
        ComponentDefinition("B", "Y", ("X",)),
    ]

    cycles = detect_cycles(components)

    assert len(cycles) == 1
    assert sorted(cycles[0]) == ["A", "B"]


def test_acyclic_chain_has_no_cycles():
    components = [
        ComponentDefinition("Config", "config"),
        ComponentDefinition("Db", "db", ("config",)),
        ComponentDefinition("Cache", "cache", ("db", "config")),
    ]

    assert detect_cycles(components) == []


def test_separate_cycles_are_reported_separately():
    components = [
        ComponentDefinition("A", "a", ("b",)),
        ComponentDefinition("B", "b", ("c",)),
        ComponentDefinition("C", "c", ("a",)),
        ComponentDefinition("D", "d", ("e", "a")),
        ComponentDefinition("E", "e", ("d",)),
        ComponentDefinition("F", "f", ("a",)),
    ]

    cycles = sorted(sorted(cycle) for cycle in detect_cycles(components))

    assert cycles == [["A", "B", "C"], ["D", "E"]]


def test_self_requirement_is_not_a_cycle():
    assert detect_cycles([ComponentDefinition("A", "a", ("a",))]) == []


def test_cycle_through_any_provider_is_detected():
    components = [
        ComponentDefinition("A", "a", ("b",)),
        ComponentDefinition("B1", "b"),
        ComponentDefinition("B2", "b", ("a",)),
    ]

    assert [sorted(cycle) for cycle in detect_cycles(components)] == [["A", "B2"]]


def test_long_chain_does_not_exhaust_recursion():
    components = [ComponentDefinition("C0", "k0")] + [
        ComponentDefinition(f"C{i}", f"k{i}", (f"k{i - 1}",)) for i in range(1, 5000)
    ]
    components.append(ComponentDefinition("Loop", "k0-alt", ("k4999",)))

    assert detect_cycles(components) == []
    assert find_orphans(components) == ["Loop"]


def test_orphans_are_components_nobody_requires():
    components = [
        ComponentDefinition("Db", "Database"),
        ComponentDefinition("Cache", "Cache", ("Database",)),
        ComponentDefinition("Metrics", "Metrics"),
        ComponentDefinition("App", None, ("Cache",)),
    ]

    assert find_orphans(components) == ["Metrics"]


def test_components_providing_nothing_are_never_orphans():
    assert find_orphans([ComponentDefinition("App"), ComponentDefinition("Tool", None, ("x",))]) == []


def test_dependency_edges_cover_every_component():
    components = [
        ComponentDefinition("A", "a", ("b", "c", "b")),
        ComponentDefinition("B1", "b"),
        ComponentDefinition("B2", "b"),
        ComponentDefinition("C", "c"),
    ]

    assert dependency_edges(components) == {
        "A": ["B1", "B2", "C"],
        "B1": [],
        "B2": [],
        "C": [],
    }
