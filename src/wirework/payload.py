"""JSON models exchanged with the external collaborators.

The static-analysis collaborator sends an :class:`AnalysisPayload` holding the
component records it found and the places where capabilities are missing.
The engine answers with an :class:`AnalysisReport`, and hands a
:class:`LayerFix` to the code-editing collaborator once the user has chosen
which components to wire in. Field names follow the collaborators' camelCase
convention on the wire and snake_case in Python.
"""

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from wirework.domain import ComponentDefinition, Diagnostic, MissingRequirement, Provenance
from wirework.errors import PayloadError

__all__ = [
    "ComponentRecord",
    "MissingRequirementRecord",
    "AnalysisPayload",
    "ResolvedRecord",
    "CandidateRecord",
    "DiagnosticRecord",
    "AnalysisReport",
    "LayerFix",
    "load_payload",
    "dump_model",
]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_COMPOSITION_ALIASES = {
    "mergeAll": "merge",
    "merge": "merge",
    "provide": "provide",
    "provideMerge": "provide",
    "none": "none",
}


class ComponentRecord(_WireModel):
    name: str = Field(min_length=1)
    provides: Optional[str] = None
    requires: list[str] = Field(default_factory=list)
    file: str = ""
    line: int = 0
    composed_of: list[str] = Field(default_factory=list)
    composition_type: Literal["merge", "provide", "none"] = "none"

    @field_validator("composition_type", mode="before")
    @classmethod
    def _fold_composition_type(cls, value: Any) -> Any:
        if value is None:
            return "none"
        return _COMPOSITION_ALIASES.get(value, value)

    @classmethod
    def from_definition(cls, component: ComponentDefinition) -> "ComponentRecord":
        return cls(
            name=component.name,
            provides=component.provides,
            requires=list(component.requires),
            file=component.provenance.file,
            line=component.provenance.line,
            composed_of=list(component.composed_of),
            composition_type=component.composition_type,
        )

    def to_definition(self) -> ComponentDefinition:
        return ComponentDefinition(
            self.name,
            self.provides,
            tuple(dict.fromkeys(self.requires)),
            Provenance(self.file, self.line),
            tuple(self.composed_of),
            self.composition_type,
        )


class MissingRequirementRecord(_WireModel):
    file: str = ""
    line: int = 0
    column: int = 0
    missing_services: list[str] = Field(default_factory=list)
    full_error: str = ""

    def to_requirement(self) -> MissingRequirement:
        return MissingRequirement(
            Provenance(self.file, self.line),
            tuple(self.missing_services),
            self.column,
            self.full_error,
        )


class AnalysisPayload(_WireModel):
    """What the static-analysis collaborator reports about a program."""

    components: list[ComponentRecord] = Field(default_factory=list)
    missing: list[MissingRequirementRecord] = Field(default_factory=list)

    def definitions(self) -> list[ComponentDefinition]:
        return [record.to_definition() for record in self.components]

    def requirements(self) -> list[MissingRequirement]:
        return [record.to_requirement() for record in self.missing]


class ResolvedRecord(_WireModel):
    service: str
    layer: str
    file: str
    line: int
    requires: list[str]


class CandidateRecord(_WireModel):
    service: str
    layers: list[ComponentRecord]


class DiagnosticRecord(_WireModel):
    kind: str
    capability: str
    message: str

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> "DiagnosticRecord":
        return cls(kind=diagnostic.kind, capability=diagnostic.capability, message=diagnostic.message)


class AnalysisReport(_WireModel):
    """The engine's answer to an :class:`AnalysisPayload`."""

    status: Literal["success", "error"] = "success"
    missing: list[str] = Field(default_factory=list)
    resolved: list[ResolvedRecord] = Field(default_factory=list)
    candidates: list[CandidateRecord] = Field(default_factory=list)
    all_components: list[ComponentRecord] = Field(default_factory=list)
    plan: Optional[dict[str, Any]] = None
    expression: str = ""
    resolution_order: list[str] = Field(default_factory=list)
    still_missing: list[str] = Field(default_factory=list)
    diagnostics: list[DiagnosticRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    target_file: Optional[str] = None
    target_line: Optional[int] = None


class LayerFix(_WireModel):
    """Everything the code-editing collaborator needs to insert a composition."""

    target_file: str
    target_line: int
    plan: dict[str, Any]
    expression: str
    component_names: list[str]


def load_payload(text: str) -> AnalysisPayload:
    """Parse and validate a collaborator payload.

    Args:
        text: The JSON document.

    Returns:
        The validated :class:`AnalysisPayload`.

    Raises:
        PayloadError: If the text is not JSON or does not match the schema.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Payload is not valid JSON: {exc}") from exc

    try:
        return AnalysisPayload.model_validate(data)
    except ValidationError as exc:
        raise PayloadError(f"Payload does not match the expected schema: {exc}") from exc


def dump_model(model: BaseModel) -> str:
    """Serialize a wire model with its camelCase field names."""
    return model.model_dump_json(by_alias=True, indent=2)
