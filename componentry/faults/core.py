"""
Componentry faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- ValidationReport (aggregated registration diagnostics)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when a fault is recorded.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.REGISTRY = FaultDomain("registry", "Component registration errors")
FaultDomain.LOADER = FaultDomain("loader", "Component loading errors")
FaultDomain.STORE = FaultDomain("store", "Configuration store errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.REGISTRY: Severity.ERROR,
    FaultDomain.LOADER: Severity.ERROR,
    FaultDomain.STORE: Severity.WARN,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault carries a stable machine-readable code, a human-readable
    message, a domain and a severity. Faults are raised for registration
    problems and recorded (not raised) for load problems.

    Attributes:
        code: Stable machine-readable identifier (e.g., "DUPLICATE_ID")
        message: Human-readable summary
        domain: Fault domain
        severity: Fault severity
        component_id: Offending component id, when there is one
        suggestion: Optional hint for fixing the fault
        metadata: Additional context data
    """

    code: Optional[str] = None
    domain: Optional[FaultDomain] = None

    def __init__(
        self,
        code: Optional[str] = None,
        message: Optional[str] = None,
        *,
        domain: Optional[FaultDomain] = None,
        severity: Optional[Severity] = None,
        component_id: Optional[str] = None,
        suggestion: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.code = code if code is not None else type(self).code
        self.message = message
        self.domain = domain if domain is not None else type(self).domain

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        self.severity = severity or DOMAIN_DEFAULTS.get(self.domain, Severity.ERROR)
        self.component_id = component_id
        self.suggestion = suggestion
        self.metadata = metadata or {}

    def format_error(self) -> str:
        """Format fault with diagnostics."""
        lines = [f"✗ {self.__class__.__name__} [{self.code}]: {self.message}"]

        if self.metadata:
            lines.append("   Details:")
            for key, value in self.metadata.items():
                lines.append(f"   - {key}: {value}")

        if self.suggestion:
            lines.append(f"   Suggestion: {self.suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/diagnostics
        """
        return {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "component_id": self.component_id,
            "metadata": self.metadata,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, "
            f"component_id={self.component_id!r}, domain={self.domain.value})"
        )


# ============================================================================
# ValidationReport
# ============================================================================

@dataclass
class ValidationReport:
    """
    Aggregated validation report.

    Collects faults and warnings without raising, e.g. during bulk
    registration from an extension hook.
    """

    errors: List[Fault] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, error: Fault) -> None:
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def merge(self, other: "ValidationReport") -> None:
        """Merge another report into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report."""
        return {
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
        }

    def format_report(self) -> str:
        """Format report for display."""
        lines = []

        if self.errors:
            lines.append(f"✗ {len(self.errors)} error(s):")
            for i, error in enumerate(self.errors, 1):
                lines.append(f"{i}. {error.format_error()}")

        if self.warnings:
            lines.append(f"⚠ {len(self.warnings)} warning(s):")
            for i, warning in enumerate(self.warnings, 1):
                lines.append(f"   {i}. {warning}")

        if not self.errors and not self.warnings:
            lines.append("✓ No errors or warnings")

        return "\n".join(lines)
