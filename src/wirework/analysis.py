"""High level entry points tying the engine stages together.

:func:`analyze` turns a collaborator payload into an :class:`AnalysisReport`:
which capabilities are missing, which components could provide them, the
default resolution and the composition plan for it. :func:`build_fix` repeats
the resolution for the capabilities the user picked components for, and
produces the :class:`LayerFix` handed to the code-editing collaborator.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from wirework.catalog import ComponentCatalog, make_catalog
from wirework.domain import Diagnostic, MissingRequirement
from wirework.index import CapabilityIndex, build_index
from wirework.payload import (
    AnalysisPayload,
    AnalysisReport,
    CandidateRecord,
    ComponentRecord,
    DiagnosticRecord,
    LayerFix,
    ResolvedRecord,
)
from wirework.plan import build_plan, format_plan, plan_to_dict
from wirework.resolver import resolve

__all__ = ["FixOutcome", "missing_capabilities", "candidates_for", "analyze", "build_fix"]


@dataclass(frozen=True)
class FixOutcome:
    """Result of :func:`build_fix`; ``fix`` is None when there was nothing to apply."""

    fix: Optional[LayerFix]
    still_missing: tuple[str, ...]
    diagnostics: tuple[Diagnostic, ...]
    messages: tuple[str, ...] = ()


def missing_capabilities(requirements: Sequence[MissingRequirement]) -> list[str]:
    """Collect missing capabilities across all requirements, first occurrence first."""
    return list(
        dict.fromkeys(
            capability for requirement in requirements for capability in requirement.capabilities
        )
    )


def candidates_for(capabilities: Sequence[str], index: CapabilityIndex) -> list[CandidateRecord]:
    """List every provider of each capability, for the user to choose from."""
    return [
        CandidateRecord(
            service=capability,
            layers=[ComponentRecord.from_definition(c) for c in index.candidates(capability)],
        )
        for capability in capabilities
    ]


def analyze(
    payload: AnalysisPayload, overrides: Optional[Mapping[str, str]] = None
) -> AnalysisReport:
    """Resolve every missing capability reported in ``payload``.

    Args:
        payload: Components and missing requirements from the static-analysis
            collaborator.
        overrides: Optional capability -> component name selections.

    Returns:
        The :class:`AnalysisReport`. The report targets the first missing
        requirement's location. A payload without missing requirements gives
        an empty successful report.

    Raises:
        CatalogError: If component names in the payload are not unique.
    """
    requirements = payload.requirements()
    catalog = make_catalog(payload.definitions())
    if not requirements:
        return AnalysisReport(all_components=list(payload.components))

    index = build_index(catalog)
    missing = missing_capabilities(requirements)
    result = resolve(missing, index, overrides)
    plan = build_plan(result.resolved)
    target = requirements[0].provenance

    return AnalysisReport(
        missing=missing,
        resolved=[
            ResolvedRecord(
                service=component.provides or "",
                layer=component.name,
                file=component.provenance.file,
                line=component.provenance.line,
                requires=list(component.requires),
            )
            for component in result.resolved
        ],
        candidates=candidates_for(missing, index),
        all_components=list(payload.components),
        plan=plan_to_dict(plan.root),
        expression=format_plan(plan.root),
        resolution_order=list(result.order),
        still_missing=list(result.missing),
        diagnostics=[DiagnosticRecord.from_diagnostic(d) for d in result.diagnostics],
        target_file=target.file,
        target_line=target.line,
    )


def build_fix(
    catalog: ComponentCatalog,
    target: Optional[MissingRequirement],
    selections: Mapping[str, str],
) -> FixOutcome:
    """Build the fix wiring in the components the user selected.

    Only capabilities with a selection are resolved, together with whatever
    their selected components transitively require.

    Args:
        catalog: The full component catalog.
        target: The missing requirement whose location receives the fix.
        selections: Capability -> component name chosen by the user.

    Returns:
        A :class:`FixOutcome`. Without a target or without selections, ``fix``
        is None and ``messages`` explains why.
    """
    if target is None:
        return FixOutcome(None, (), (), ("No missing requirement to fix",))
    if not selections:
        return FixOutcome(
            None, (), (), ("No components selected. Select components for capabilities you want to fix.",)
        )

    result = resolve(list(selections), build_index(catalog), selections)
    plan = build_plan(result.resolved)
    fix = LayerFix(
        target_file=target.provenance.file,
        target_line=target.provenance.line,
        plan=plan_to_dict(plan.root),
        expression=format_plan(plan.root),
        component_names=list(result.order),
    )
    return FixOutcome(fix, result.missing, result.diagnostics)
