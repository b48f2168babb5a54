"""Errors raised while constructing a reserve design model.

Every error subclasses ``ModelConstructionError`` which is itself a
``ValueError``, so callers can catch the whole family at once.
"""


class ModelConstructionError(ValueError):
    """Base class for invalid model inputs."""


class UnsupportedInputType(ModelConstructionError, TypeError):
    """Planning units, features or rij are not one of the accepted shapes."""


class MalformedTable(ModelConstructionError):
    """A long-format rij table is missing columns or has bad index columns."""


class DimensionMismatch(ModelConstructionError):
    """Matrix or vector sizes do not agree with the planning units or features."""


class InvalidLockSet(ModelConstructionError):
    """Lock indices are out of range, not integers, or overlap."""


class InfeasibleBudget(ModelConstructionError):
    """Budget is not a positive number or is exceeded by locked in units."""


class InfeasibleTarget(ModelConstructionError):
    """A target exceeds the total representation of its feature."""


class InvalidTarget(ModelConstructionError):
    """Targets are negative or non-numeric."""


class InvalidCost(ModelConstructionError):
    """Planning unit costs are missing where exclusion is not supported."""


class NonFiniteRepresentation(ModelConstructionError):
    """The representation matrix holds missing or non-numeric values."""
