"""Exceptions raised at the boundaries of the wiring engine.

The engine itself reports unmet capabilities, cycles and selection problems as
values. The exceptions below are reserved for malformed input and for failures
of the external collaborators.
"""

__all__ = [
    "WiringError",
    "CatalogError",
    "PayloadError",
    "ConfigError",
    "CollaboratorError",
    "CollaboratorTimeout",
    "CollaboratorCancelled",
]


class WiringError(Exception):
    """Base class for all errors raised by wirework."""

    pass


class CatalogError(WiringError):
    """Raised when a set of component definitions cannot form a catalog."""

    pass


class PayloadError(WiringError):
    """Raised when a JSON payload is malformed or violates its schema."""

    pass


class ConfigError(WiringError):
    """Raised when a configuration file cannot be read or is invalid."""

    pass


class CollaboratorError(WiringError):
    """Raised when the external static-analysis command fails."""

    pass


class CollaboratorTimeout(CollaboratorError):
    """Raised when the external command exceeds its time limit."""

    pass


class CollaboratorCancelled(CollaboratorError):
    """Raised when results are requested from a cancelled task."""

    pass
