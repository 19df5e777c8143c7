"""
Componentry - Component lifecycle management for modular applications

Complete integration of:
- Registry: Validated component descriptors with persisted enable toggles
- Loader: Dependency-ordered instantiation with per-component failure isolation
- Faults: Structured error values with stable codes
- Events: Registration, activation and load notifications
- Config: Layered YAML/JSON/.env/environment configuration
"""

__version__ = "0.1.0"

# ============================================================================
# Core
# ============================================================================

from .registry import (
    ComponentRegistry,
    ComponentDescriptor,
    Locator,
    DependencyGraph,
    SortResult,
    DescriptorValidator,
    load_manifest,
    register_manifest,
)
from .loader import (
    Component,
    ComponentLoader,
    ComponentState,
    ComponentStatus,
    LoadReport,
)
from .bootstrap import ComponentManager
from .diagnostics import snapshot

# ============================================================================
# Supporting layers
# ============================================================================

from .config import ConfigLoader, ManagerConfig, DEFAULT_RESERVED_IDS
from .events import ComponentEvent, EventBus, EventPayload
from .store import ConfigStore, MemoryStore, FileStore
from .faults import (
    Fault,
    ValidationReport,
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
    "__version__",
    # Core
    "ComponentRegistry",
    "ComponentDescriptor",
    "Locator",
    "DependencyGraph",
    "SortResult",
    "DescriptorValidator",
    "load_manifest",
    "register_manifest",
    "Component",
    "ComponentLoader",
    "ComponentState",
    "ComponentStatus",
    "LoadReport",
    "ComponentManager",
    "snapshot",
    # Supporting layers
    "ConfigLoader",
    "ManagerConfig",
    "DEFAULT_RESERVED_IDS",
    "ComponentEvent",
    "EventBus",
    "EventPayload",
    "ConfigStore",
    "MemoryStore",
    "FileStore",
    # Faults
    "Fault",
    "ValidationReport",
    "RegistrationError",
    "InvalidDescriptor",
    "DuplicateId",
    "ReservedId",
    "InvalidPath",
    "InvalidConstructionTarget",
    "LoadError",
    "CircularDependency",
    "MissingDependency",
    "DependencyUnsatisfied",
    "EntryFileMissing",
    "ConstructionFailed",
    "ActivationFailed",
    "ConfigError",
    "ManifestError",
    "StoreError",
]
