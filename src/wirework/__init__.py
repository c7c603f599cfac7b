"""Wirework dependency wiring engine.

Wirework helps repair missing dependency-injection wiring in programs built
from declarative components, each of which may provide one named capability
and require others. Given the components found in a program and the
capabilities it is missing, it works out which components to add, in what
order, and how to compose them, and draws the full dependency graph so that
cycles and unused components stand out.

Key Features:
    - Capability index with deterministic, catalog-order provider selection
    - Transitive resolution with per-capability overrides and cycle suppression
    - Cycle (Tarjan SCC) and orphan detection over the whole catalog
    - Merge/provide composition plans for the code-editing collaborator
    - Layered graph layout and box-drawing text rendering

Basic Usage:
    >>> from wirework.catalog import make_catalog
    >>> from wirework.domain import ComponentDefinition
    >>> from wirework.index import build_index
    >>> from wirework.resolver import resolve
    >>>
    >>> catalog = make_catalog([
    ...     ComponentDefinition("Db", "Database"),
    ...     ComponentDefinition("Cache", "Cache", ("Database",)),
    ... ])
    >>> resolve(["Cache"], build_index(catalog)).order
    ('Db', 'Cache')

The engine consists of several core modules:
    - catalog, index: component catalog and capability lookup
    - resolver: resolution of missing capabilities
    - analyzer: cycle and orphan detection
    - plan: composition plans
    - layout, render: graph drawing
    - analysis: payload-level entry points used by the CLI
"""
