"""
Store locations and the staff working at each one.

The location list is closed: a waiver can only be filed for one of these
sites. Staff lists drive the technician / sales representative pickers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


LOCATIONS: Tuple[str, ...] = (
    "Augusta",
    "Perimeter",
    "Cumberland",
    "Southlake",
    "Lynnhaven",
    "Carolina Place",
)

_ATLANTA_TEAM = ["Aly", "Meviz", "Ankush", "Zee", "Rahim", "Insha", "Rehan", "Corey", "Omar"]

EMPLOYEES_BY_LOCATION: Dict[str, List[str]] = {
    "Augusta": ["Shan", "Kenny", "Tre", "Sam"],
    "Perimeter": list(_ATLANTA_TEAM),
    "Cumberland": list(_ATLANTA_TEAM),
    "Southlake": list(_ATLANTA_TEAM),
    "Lynnhaven": ["Lee", "Mark", "Gianna", "Ameen", "Roopa", "Sujitha", "Harshita", "Abdul"],
    "Carolina Place": ["Channi"],
}


@dataclass(frozen=True)
class PortalContext:
    """
    Read-only context a waiver workflow runs in.

    Passed to each workflow instead of being looked up globally, so tests can
    run the workflow for any organisation, site list or timezone.
    """

    organization_name: str = "Mobile Care"
    locations: Tuple[str, ...] = LOCATIONS
    employees_by_location: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in EMPLOYEES_BY_LOCATION.items()}
    )
    timezone: str = "America/New_York"

    def is_location(self, name: str) -> bool:
        return name in self.locations

    def employees_for(self, location: str) -> List[str]:
        """Staff at ``location``; empty for an unknown or unselected site."""
        return list(self.employees_by_location.get(location, []))

    def is_employee_at(self, location: str, name: str) -> bool:
        return name in self.employees_by_location.get(location, [])

    @classmethod
    def from_config(cls, config) -> "PortalContext":
        """Build from a Flask config mapping."""
        return cls(
            organization_name=config.get("ORGANIZATION_NAME", "Mobile Care"),
            timezone=config.get("PORTAL_TIMEZONE", "America/New_York"),
        )
