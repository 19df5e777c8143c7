"""
Load reports and per-component state.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..faults import LoadError


class ComponentState(str, Enum):
    """Loader-side state of one component."""
    PENDING = "pending"      # enabled, not resolved yet
    LOADED = "loaded"        # live instance exists
    FAILED = "failed"        # see ComponentStatus.error
    DISABLED = "disabled"    # toggled off in the registry


@dataclass
class ComponentStatus:
    """Explicit state record kept by the loader for each id it has seen."""

    id: str
    state: ComponentState = ComponentState.PENDING
    error: Optional[LoadError] = None
    loaded_at: Optional[datetime] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state.value,
            "error_code": self.error.code if self.error else None,
            "reason": self.reason,
            "loaded_at": self.loaded_at.isoformat() if self.loaded_at else None,
        }


@dataclass
class LoadReport:
    """
    Outcome of one ``load_all()`` pass. Not persisted.

    Attributes:
        order: Realized load order (cycle members excluded)
        loaded: Ids with a live instance after the pass, in load order
        errors: Failed id -> human-readable reason
        cycles: Dependency cycles found among enabled components
        failures: Failed id -> typed LoadError
        constructed: Ids constructed during this pass (already-live ones excluded)
        duration: Wall time of the pass in seconds
    """

    order: List[str] = field(default_factory=list)
    loaded: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    cycles: List[List[str]] = field(default_factory=list)
    failures: Dict[str, LoadError] = field(default_factory=dict, compare=False)
    constructed: List[str] = field(default_factory=list, compare=False)
    duration: float = field(default=0.0, compare=False)

    def add_failure(self, error: LoadError) -> None:
        self.failures[error.component_id] = error
        self.errors[error.component_id] = error.reason

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def total(self) -> int:
        return len(self.loaded) + len(self.errors)

    @property
    def success_rate(self) -> float:
        """Percentage of attempted components that are live."""
        if self.total == 0:
            return 100.0
        return len(self.loaded) / self.total * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": list(self.order),
            "loaded": list(self.loaded),
            "errors": dict(self.errors),
            "error_codes": {cid: err.code for cid, err in self.failures.items()},
            "cycles": [list(c) for c in self.cycles],
            "constructed": list(self.constructed),
            "success_rate": round(self.success_rate, 1),
            "duration": self.duration,
        }
