import pytest

from wirework.catalog import make_catalog
from wirework.domain import ComponentDefinition, Provenance
from wirework.errors import CatalogError
from wirework.index import build_index


@pytest.fixture
def catalog():
    return make_catalog(
        [
            ComponentDefinition("DatabaseLive", "Database", provenance=Provenance("db.ts", 3)),
            ComponentDefinition("DatabaseTest", "Database", provenance=Provenance("db.ts", 9)),
            ComponentDefinition("CacheLive", "Cache", ("Config",)),
            ComponentDefinition("AppLayer", None, ("Database", "Cache")),
        ]
    )


def test_catalog_preserves_registration_order(catalog):
    assert [c.name for c in catalog] == ["DatabaseLive", "DatabaseTest", "CacheLive", "AppLayer"]
    assert len(catalog) == 4
    assert "CacheLive" in catalog
    assert catalog["DatabaseTest"].provenance == Provenance("db.ts", 9)
    assert catalog.get("Missing") is None


def test_duplicate_component_names_raise():
    with pytest.raises(CatalogError, match="Duplicate component name 'Db'"):
        make_catalog([ComponentDefinition("Db", "Database"), ComponentDefinition("Db", "Other")])


def test_index_keeps_providers_in_catalog_order(catalog):
    index = build_index(catalog)

    assert [c.name for c in index["Database"]] == ["DatabaseLive", "DatabaseTest"]
    assert [c.name for c in index.candidates("Cache")] == ["CacheLive"]


def test_index_ignores_components_that_provide_nothing(catalog):
    index = build_index(catalog)

    assert index.capabilities() == ["Database", "Cache"]
    assert all(c.name != "AppLayer" for cap in index.capabilities() for c in index[cap])


def test_unknown_capability_has_no_candidates(catalog):
    index = build_index(catalog)

    assert index.candidates("Config") == ()
    assert "Config" not in index


def test_empty_catalog_gives_empty_index():
    assert len(build_index(make_catalog([]))) == 0
