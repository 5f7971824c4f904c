"""Warning - Analysis warnings attached to results.

Warnings flag results whose numbers are silently biased or approximated:
- Terrain data missing at some samples (counted as occluded/impassable)
- Pathfinder fell back to the straight start-end line
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Warning(ABC):
    """Abstract base class for analysis warnings.

    Subclasses store specific parameters and compute message as property.
    Use isinstance() to check warning type.
    Each subclass has a warning_type field for serialization.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable warning message."""

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class MissingElevationWarning(Warning):
    """Terrain elevation was unavailable (NaN) at some samples.

    Those samples are classified as occluded or impassable, which biases
    results towards "not visible" and "higher cost". Profiles and volumes
    leave them out of their statistics instead.

    Attributes:
        missing_count: Number of samples without elevation
        total_count: Number of samples queried
        treatment: How the analysis handled those samples ("occluded", "impassable", "skipped")
        warning_type: Type identifier for serialization
    """

    missing_count: int
    total_count: int
    treatment: str = "occluded"
    warning_type: str = "MissingElevationWarning"

    @property
    def missing_fraction(self) -> float:
        """Share of samples without elevation (0-1)."""
        return self.missing_count / self.total_count if self.total_count > 0 else 0.0

    @property
    def message(self) -> str:
        return (
            f"Missing terrain data at {self.missing_count} of {self.total_count} samples "
            f"({self.missing_fraction * 100:.1f}%), treated as {self.treatment}"
        )


@dataclass(frozen=True)
class FallbackPathWarning(Warning):
    """The returned path is the straight start-end line, not a searched route.

    Attributes:
        reason: Why the search did not produce a route
        warning_type: Type identifier for serialization
    """

    reason: str
    warning_type: str = "FallbackPathWarning"

    @property
    def message(self) -> str:
        return f"No terrain-following path found ({self.reason}); returning straight line"


def missing_elevation_warnings(missing_count: int, total_count: int, treatment: str = "occluded") -> list[Warning]:
    """Return a one-element warning list when any elevation was missing, else empty."""
    if missing_count <= 0:
        return []
    return [MissingElevationWarning(missing_count=missing_count, total_count=total_count, treatment=treatment)]
