"""Domain models used throughout the engine."""

from dataclasses import dataclass, field
from typing import Literal, Optional

__all__ = [
    "CompositionType",
    "DiagnosticKind",
    "Provenance",
    "ComponentDefinition",
    "MissingRequirement",
    "Diagnostic",
]


CompositionType = Literal["merge", "provide", "none"]
"""How a component is composed from its ``composed_of`` sub-components."""

DiagnosticKind = Literal["unsatisfiable", "ambiguous_selection", "invalid_override"]


@dataclass(frozen=True)
class Provenance:
    """Where a definition came from. Opaque to the engine.

    Attributes:
        file: Path of the defining source file.
        line: 1-based line of the definition.
    """

    file: str = ""
    line: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class ComponentDefinition:
    """A declarative component that may provide one capability and require others.

    Attributes:
        name: Name of the component, unique within a catalog.
        provides: The capability this component provides, or None for pure
            aggregators that provide nothing themselves.
        requires: Capability names this component depends on. Order is kept
            because composition plans wrap providers in this order.
        provenance: Defining file and line, carried through for reporting.
        composed_of: Names of sub-components when this component is itself a
            composition of other components.
        composition_type: How ``composed_of`` is combined.
    """

    name: str
    provides: Optional[str] = None
    requires: tuple[str, ...] = ()
    provenance: Provenance = field(default_factory=Provenance)
    composed_of: tuple[str, ...] = ()
    composition_type: CompositionType = "none"

    @property
    def is_container(self) -> bool:
        return len(self.composed_of) > 0


@dataclass(frozen=True)
class MissingRequirement:
    """A location in the analysed program where capabilities are not provided.

    Attributes:
        provenance: File and line of the offending call.
        column: 1-based column of the offending call.
        capabilities: The capability names reported as missing there.
        message: The raw diagnostic text reported by the analyser.
    """

    provenance: Provenance
    capabilities: tuple[str, ...]
    column: int = 0
    message: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition reported alongside a result."""

    kind: DiagnosticKind
    capability: str
    message: str
