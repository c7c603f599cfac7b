"""Configuration models for layout, rendering and the analysis collaborator."""

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wirework.errors import ConfigError

__all__ = [
    "LayoutConfig",
    "RenderConfig",
    "CollaboratorConfig",
    "WireworkConfig",
    "load_config",
]


class LayoutConfig(BaseModel):
    """Spacing and sizing used by the layered layout, in drawing units."""

    model_config = ConfigDict(validate_assignment=True)

    node_sep: float = Field(default=30, ge=0)
    rank_sep: float = Field(default=40, ge=0)
    margin_x: float = Field(default=10, ge=0)
    margin_y: float = Field(default=10, ge=0)
    label_padding: int = Field(default=4, ge=0)
    char_scale: float = Field(default=1.5, gt=0)
    node_height: float = Field(default=3, gt=0)
    ordering_passes: int = Field(default=4, ge=0)


class RenderConfig(BaseModel):
    """Character grid geometry used by the renderer."""

    model_config = ConfigDict(validate_assignment=True)

    max_width: int = Field(default=80, ge=1)
    cell_width: int = Field(default=22, ge=4)
    cell_height: int = Field(default=5, ge=4)
    box_width: int = Field(default=18, ge=4)
    inner_box_width: int = Field(default=14, ge=4)
    rank_tolerance: float = Field(default=20, gt=0)


class CollaboratorConfig(BaseModel):
    """How to invoke the external static-analysis command."""

    model_config = ConfigDict(validate_assignment=True)

    command: list[str] = Field(default_factory=list)
    timeout: float = Field(default=60.0, gt=0)


class WireworkConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    collaborator: CollaboratorConfig = Field(default_factory=CollaboratorConfig)


def load_config(path: Optional[Path] = None) -> WireworkConfig:
    """Load configuration from a TOML file.

    The ``[tool.wirework]`` table is used when present, so the settings can live
    in ``pyproject.toml``; otherwise the whole document is read as the
    configuration.

    Args:
        path: The file to read. When None or absent, defaults are returned.

    Returns:
        The validated :class:`WireworkConfig`.

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid settings.
    """
    if path is None or not path.is_file():
        return WireworkConfig()

    try:
        with path.open("rb") as handle:
            document: dict[str, Any] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc

    section = document.get("tool", {}).get("wirework")
    if section is None:
        if path.name == "pyproject.toml":
            return WireworkConfig()
        section = {key: value for key, value in document.items() if key != "tool"}

    try:
        return WireworkConfig.model_validate(section)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
