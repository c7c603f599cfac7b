import pytest

from wirework.domain import ComponentDefinition
from wirework.plan import (
    Leaf,
    Merge,
    Provide,
    build_plan,
    format_plan,
    plan_from_dict,
    plan_to_dict,
)


def test_provider_is_folded_into_its_consumer():
    plan = build_plan(
        [
            ComponentDefinition("Db", "Database"),
            ComponentDefinition("Cache", "Cache", ("Database",)),
        ]
    )

    assert plan.root == Merge((Provide(Leaf("Cache"), "Db"),))
    assert plan.independent == ("Db",)
    assert plan.dependent == ("Cache",)
    assert plan.provider_only == ("Db",)
    assert format_plan(plan.root) == "merge(Cache.provide(Db))"


def test_unrelated_components_are_merged_side_by_side():
    plan = build_plan(
        [
            ComponentDefinition("Logger", "Logging"),
            ComponentDefinition("Config", "Config"),
            ComponentDefinition("Cache", "Cache", ("Config",)),
        ]
    )

    assert format_plan(plan.root) == "merge(Logger, Cache.provide(Config))"
    assert plan.provider_only == ("Config",)


def test_providers_wrap_in_requires_order():
    plan = build_plan(
        [
            ComponentDefinition("Config", "config"),
            ComponentDefinition("Db", "db"),
            ComponentDefinition("Api", "api", ("db", "external", "config")),
        ]
    )

    assert plan.root.children == (Provide(Provide(Leaf("Api"), "Db"), "Config"),)
    assert format_plan(plan.root) == "merge(Api.provide(Db).provide(Config))"


def test_dependent_provider_stays_at_top_level():
    plan = build_plan(
        [
            ComponentDefinition("Config", "config"),
            ComponentDefinition("Db", "db", ("config",)),
            ComponentDefinition("Cache", "cache", ("db",)),
        ]
    )

    assert plan.dependent == ("Db", "Cache")
    assert format_plan(plan.root) == "merge(Db.provide(Config), Cache.provide(Db))"


def test_component_providing_its_own_requirement_is_independent():
    plan = build_plan(
        [
            ComponentDefinition("Config", "config"),
            ComponentDefinition("Wrapper", "wrapped", ("wrapped", "config")),
            ComponentDefinition("Echo", "echo", ("echo",)),
        ]
    )

    assert plan.independent == ("Config", "Echo")
    assert plan.dependent == ("Wrapper",)
    assert format_plan(plan.root) == "merge(Echo, Wrapper.provide(Config))"


def test_empty_resolution_gives_empty_merge():
    plan = build_plan([])

    assert plan.is_empty
    assert format_plan(plan.root) == "merge()"


def test_plan_dict_form():
    root = Merge((Leaf("Logger"), Provide(Leaf("Cache"), "Config")))

    data = plan_to_dict(root)

    assert data == {
        "kind": "merge",
        "children": [
            {"kind": "leaf", "component": "Logger"},
            {
                "kind": "provide",
                "node": {"kind": "leaf", "component": "Cache"},
                "provider": "Config",
            },
        ],
    }
    assert plan_from_dict(data) == root


def test_unknown_node_kind_is_rejected():
    with pytest.raises(ValueError, match="Unknown composition node kind 'layer'"):
        plan_from_dict({"kind": "layer"})

    with pytest.raises(TypeError):
        format_plan("Cache")
