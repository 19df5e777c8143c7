"""
Componentry faults - structured error values.

Registration faults are raised to the caller of ``register()``; load faults
are contained by the loader and surface through ``LoadReport`` and
``get_loading_errors()``.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
    ValidationReport,
)

from .domains import (
    RegistrationError,
    InvalidDescriptor,
    DuplicateId,
    ReservedId,
    InvalidPath,
    InvalidConstructionTarget,
    LoadError,
    CircularDependency,
    MissingDependency,
    DependencyUnsatisfied,
    EntryFileMissing,
    ConstructionFailed,
    ActivationFailed,
    ConfigError,
    ManifestError,
    StoreError,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    "ValidationReport",

    # Registration
    "RegistrationError",
    "InvalidDescriptor",
    "DuplicateId",
    "ReservedId",
    "InvalidPath",
    "InvalidConstructionTarget",

    # Loading
    "LoadError",
    "CircularDependency",
    "MissingDependency",
    "DependencyUnsatisfied",
    "EntryFileMissing",
    "ConstructionFailed",
    "ActivationFailed",

    # Config / manifests / store
    "ConfigError",
    "ManifestError",
    "StoreError",
]
