"""CleanupAction data class."""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any


@dataclass
class CleanupAction:
    """Represents a deletion performed during a run."""

    resource_kind: str
    name: str
    action: str
    reason: str
    location: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)
