"""
Componentry faults - Domain-specific fault types.

Registration faults are raised synchronously by the registry. Load faults
are recorded by the loader against the failing component and never abort
a load pass.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .core import Fault, FaultDomain, Severity


# ============================================================================
# Registration Faults
# ============================================================================

class RegistrationError(Fault):
    """Base class for component registration faults."""

    domain = FaultDomain.REGISTRY


class InvalidDescriptor(RegistrationError):
    """Descriptor is missing required fields or has wrong field types."""

    code = "INVALID_DESCRIPTOR"

    def __init__(self, component_id: Optional[str], errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(
            message=(
                f"Descriptor for '{component_id or '<unknown>'}' is invalid: "
                f"{'; '.join(self.errors)}"
            ),
            component_id=component_id,
            suggestion="Required fields are: id, name, locator, construction_target.",
            metadata={"errors": self.errors},
        )


class DuplicateId(RegistrationError):
    """A component with the same id is already registered."""

    code = "DUPLICATE_ID"

    def __init__(self, component_id: str):
        super().__init__(
            message=f"Component '{component_id}' is already registered",
            component_id=component_id,
            suggestion="Each component needs a unique id. Unregister the existing one first.",
        )


class ReservedId(RegistrationError):
    """Component id collides with a reserved word."""

    code = "RESERVED_ID"

    def __init__(self, component_id: str, reserved: Sequence[str] = ()):
        super().__init__(
            message=f"Component id '{component_id}' is reserved",
            component_id=component_id,
            metadata={"reserved": sorted(reserved)},
        )


class InvalidPath(RegistrationError):
    """Locator is outside the trusted directory, missing, or unreadable."""

    code = "INVALID_PATH"

    def __init__(self, component_id: Optional[str], path: Any, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(
            message=f"Invalid locator for '{component_id}': {reason} ({self.path})",
            component_id=component_id,
            metadata={"path": self.path, "reason": reason},
        )


class InvalidConstructionTarget(RegistrationError):
    """Construction target is neither a callable nor a valid attribute path."""

    code = "INVALID_CONSTRUCTION_TARGET"

    def __init__(self, component_id: Optional[str], target: Any):
        super().__init__(
            message=f"Invalid construction target for '{component_id}': {target!r}",
            component_id=component_id,
            suggestion="Use a callable factory or a dotted attribute path such as 'PaymentManager'.",
            metadata={"target": repr(target)},
        )


# ============================================================================
# Load Faults
# ============================================================================

class LoadError(Fault):
    """Base class for faults recorded while loading a component."""

    domain = FaultDomain.LOADER

    def __init__(self, component_id: str, message: str, **kwargs: Any):
        super().__init__(message=message, component_id=component_id, **kwargs)

    @property
    def reason(self) -> str:
        """Human-readable reason used in load reports."""
        return self.message


class CircularDependency(LoadError):
    """Component sits on a dependency cycle."""

    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, component_id: str, cycle: List[str]):
        self.cycle = list(cycle)
        cycle_repr = " → ".join(self.cycle + self.cycle[:1])
        super().__init__(
            component_id,
            f"Circular dependency detected: {cycle_repr}",
            suggestion="Break the cycle by removing one of the dependencies.",
            metadata={"cycle": self.cycle, "cycle_length": len(self.cycle)},
        )


class MissingDependency(LoadError):
    """Component declares a dependency that was never registered."""

    code = "MISSING_DEPENDENCY"

    def __init__(self, component_id: str, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            component_id,
            f"Missing dependency: {', '.join(repr(m) for m in self.missing)} not registered",
            metadata={"missing": self.missing},
        )


class DependencyUnsatisfied(LoadError):
    """A registered dependency has no live instance."""

    code = "DEPENDENCY_UNSATISFIED"

    def __init__(self, component_id: str, unsatisfied: Sequence[str]):
        self.unsatisfied = list(unsatisfied)
        super().__init__(
            component_id,
            f"Dependency unsatisfied: {', '.join(repr(d) for d in self.unsatisfied)} not loaded",
            metadata={"unsatisfied": self.unsatisfied},
        )


class EntryFileMissing(LoadError):
    """Entry file does not exist or is not readable."""

    code = "ENTRY_FILE_MISSING"

    def __init__(self, component_id: str, path: Any, reason: str = "not found"):
        self.path = str(path)
        super().__init__(
            component_id,
            f"Component file {reason}: {self.path}",
            metadata={"path": self.path},
        )


class ConstructionFailed(LoadError):
    """Target lookup or construction raised."""

    code = "CONSTRUCTION_FAILED"

    def __init__(self, component_id: str, reason: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(
            component_id,
            f"Construction failed: {reason}",
            metadata={"exception": type(cause).__name__} if cause else None,
        )


class ActivationFailed(LoadError):
    """The component's activation step reported failure."""

    code = "ACTIVATION_FAILED"

    def __init__(self, component_id: str, reason: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(
            component_id,
            f"Activation failed: {reason}",
            metadata={"exception": type(cause).__name__} if cause else None,
        )


# ============================================================================
# Config / Manifest Faults
# ============================================================================

class ConfigError(Fault):
    """Raised when configuration validation fails."""

    code = "CONFIG_INVALID"
    domain = FaultDomain.CONFIG

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message=message, **kwargs)


class ManifestError(Fault):
    """Descriptor manifest could not be read or parsed."""

    code = "MANIFEST_INVALID"
    domain = FaultDomain.REGISTRY

    def __init__(self, path: Any, reason: str):
        self.path = str(path)
        super().__init__(
            message=f"Failed to load manifest from '{self.path}': {reason}",
            severity=Severity.ERROR,
            metadata={"path": self.path, "reason": reason},
        )


class StoreError(Fault):
    """Configuration store could not be read or written."""

    code = "STORE_IO"
    domain = FaultDomain.STORE

    def __init__(self, path: Any, reason: str):
        self.path = str(path)
        super().__init__(
            message=f"Config store I/O failed for '{self.path}': {reason}",
            metadata={"path": self.path, "reason": reason},
        )
