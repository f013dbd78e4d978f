# -*- coding: utf-8 -*-
"""
Runtime State of one wizard session.

Plain data: a persistence layer may serialize it with to_dict() and
hand it back to the engine later through from_dict().
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.datetime_utils import to_isoformat, from_isoformat


def _parse_date(value: Any) -> Any:
    """Parse an ISO datetime, keeping the raw value if it is not one."""
    parsed = from_isoformat(value)
    return value if parsed is None else parsed


def _parse_index(value: Any) -> Any:
    """Parse an array index, keeping the raw value if it is not an integer."""
    if isinstance(value, bool):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


@dataclass
class SectionStatus:
    """Progress of one section."""
    active: bool = False
    started: bool = False
    started_date: Optional[datetime] = None
    completed: bool = False
    completed_date: Optional[datetime] = None
    route_last: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "started": self.started,
            "startedDate": to_isoformat(self.started_date),
            "completed": self.completed,
            "completedDate": to_isoformat(self.completed_date),
            "routeLast": self.route_last,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SectionStatus":
        return cls(
            active=bool(data.get("active", False)),
            started=bool(data.get("started", False)),
            started_date=_parse_date(data.get("startedDate")),
            completed=bool(data.get("completed", False)),
            completed_date=_parse_date(data.get("completedDate")),
            route_last=data.get("routeLast"),
        )


@dataclass
class State:
    """
    Current position, history and per-section progress.

    Attributes:
        section_active_id: Active section, None before the engine starts
        route_active_id: Active route, None before the engine starts
        route_path: Visited route ids, oldest first
        status: Section id -> SectionStatus
        array_indexes: Array field -> current iteration index
    """
    section_active_id: Optional[str] = None
    route_active_id: Optional[str] = None
    route_path: List[str] = field(default_factory=list)
    status: Dict[str, SectionStatus] = field(default_factory=dict)
    array_indexes: Dict[str, int] = field(default_factory=dict)

    def status_for(self, section_id: str) -> SectionStatus:
        """Get a section's status, creating an empty one on first access."""
        if section_id not in self.status:
            self.status[section_id] = SectionStatus()
        return self.status[section_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectionActiveId": self.section_active_id,
            "routeActiveId": self.route_active_id,
            "routePath": list(self.route_path),
            "status": {
                section_id: status.to_dict()
                for section_id, status in self.status.items()
            },
            "arrayIndexes": dict(self.array_indexes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "State":
        """
        Restore a State serialized by to_dict().

        Values that do not parse are kept as-is so StateValidator can
        report them.
        """
        return cls(
            section_active_id=data.get("sectionActiveId"),
            route_active_id=data.get("routeActiveId"),
            route_path=list(data.get("routePath") or []),
            status={
                section_id: SectionStatus.from_dict(status)
                for section_id, status in (data.get("status") or {}).items()
            },
            array_indexes={
                key: _parse_index(index)
                for key, index in (data.get("arrayIndexes") or {}).items()
            },
        )
