import pytest

from wirework.catalog import make_catalog
from wirework.domain import ComponentDefinition
from wirework.index import build_index
from wirework.resolver import resolve


def index_of(*components):
    return build_index(make_catalog(components))


def assert_topological(result):
    position = {component.name: i for i, component in enumerate(result.resolved)}
    provider_of = {c.provides: c for c in result.resolved if c.provides is not None}
    for component in result.resolved:
        for requirement in component.requires:
            provider = provider_of.get(requirement)
            if provider is not None:
                assert position[provider.name] < position[component.name]


@pytest.fixture
def services():
    return index_of(
        ComponentDefinition("DatabaseLive", "DatabaseService"),
        ComponentDefinition("DatabaseTest", "DatabaseService"),
        ComponentDefinition("LoggingLive", "LoggingService"),
        ComponentDefinition("ConfigLive", "ConfigService"),
        ComponentDefinition("ConfigTest", "ConfigService"),
        ComponentDefinition("CacheLive", "CacheService", ("ConfigService",)),
        ComponentDefinition("CacheTest", "CacheService", ("ConfigService",)),
    )


def test_dependency_is_resolved_before_dependent():
    index = index_of(
        ComponentDefinition("Db", "Database"),
        ComponentDefinition("Cache", "Cache", ("Database",)),
    )

    result = resolve({"Cache"}, index)

    assert [c.name for c in result.resolved] == ["Db", "Cache"]
    assert result.order == ("Db", "Cache")
    assert result.missing == ()
    assert result.is_complete


def test_unprovided_requirement_is_reported_missing():
    index = index_of(ComponentDefinition("A", "Svc", ("Other",)))

    result = resolve({"Svc"}, index)

    assert [c.name for c in result.resolved] == ["A"]
    assert result.missing == ("Other",)
    assert [d.kind for d in result.diagnostics] == ["unsatisfiable"]


def test_requested_capability_without_provider_is_excluded_from_resolved():
    result = resolve(["Nothing"], index_of(ComponentDefinition("A", "Svc")))

    assert result.resolved == ()
    assert result.missing == ("Nothing",)


def test_missing_capability_is_recorded_once():
    index = index_of(
        ComponentDefinition("A", "a", ("Shared",)),
        ComponentDefinition("B", "b", ("Shared",)),
    )

    result = resolve(["a", "b", "Shared"], index)

    assert result.missing == ("Shared",)
    assert result.order == ("A", "B")


def test_transitive_requirements_are_resolved(services):
    result = resolve(["DatabaseService", "LoggingService", "CacheService"], services)

    assert result.order == ("DatabaseLive", "LoggingLive", "ConfigLive", "CacheLive")
    assert_topological(result)


def test_first_registered_provider_wins_with_warning(services):
    result = resolve(["DatabaseService"], services)

    assert result.order == ("DatabaseLive",)
    assert [(d.kind, d.capability) for d in result.diagnostics] == [
        ("ambiguous_selection", "DatabaseService")
    ]


def test_override_selects_provider(services):
    result = resolve(
        ["CacheService"], services, {"CacheService": "CacheTest", "ConfigService": "ConfigTest"}
    )

    assert result.order == ("ConfigTest", "CacheTest")
    assert result.diagnostics == ()


def test_invalid_override_falls_back_to_first_candidate(services):
    result = resolve(["DatabaseService"], services, {"DatabaseService": "CacheLive"})

    assert result.order == ("DatabaseLive",)
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].kind == "invalid_override"
    assert "CacheLive" in result.diagnostics[0].message


def test_shared_dependency_is_not_duplicated():
    index = index_of(
        ComponentDefinition("Config", "config"),
        ComponentDefinition("Db", "db", ("config",)),
        ComponentDefinition("Cache", "cache", ("config", "db")),
        ComponentDefinition("Api", "api", ("db", "cache", "config")),
    )

    result = resolve(["api", "cache", "api"], index)

    assert result.order == ("Config", "Db", "Cache", "Api")
    assert len(set(result.order)) == len(result.order)
    assert_topological(result)


def test_cycle_terminates_without_reporting_missing():
    index = index_of(
        ComponentDefinition("A", "a", ("b",)),
        ComponentDefinition("B", "b", ("a",)),
    )

    result = resolve(["a"], index)

    assert result.order == ("B", "A")
    assert result.missing == ()


def test_sibling_branches_do_not_share_cycle_state():
    # Both branches of Root reach Leaf; the second must not treat it as a cycle.
    index = index_of(
        ComponentDefinition("Root", "root", ("left", "right")),
        ComponentDefinition("Left", "left", ("leaf",)),
        ComponentDefinition("Right", "right", ("leaf",)),
        ComponentDefinition("Leaf", "leaf"),
    )

    result = resolve(["root"], index)

    assert result.order == ("Leaf", "Left", "Right", "Root")
    assert_topological(result)


def test_resolve_is_idempotent(services):
    request = ["CacheService", "DatabaseService", "Unknown"]

    first = resolve(request, services)
    second = resolve(request, services)

    assert first == second


def test_long_chain_does_not_exhaust_recursion():
    components = [ComponentDefinition("C0", "k0")] + [
        ComponentDefinition(f"C{i}", f"k{i}", (f"k{i - 1}",)) for i in range(1, 1500)
    ]

    result = resolve(["k1499"], index_of(*components))

    assert result.order == tuple(f"C{i}" for i in range(1500))
    assert result.missing == ()
