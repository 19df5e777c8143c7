"""
Component registry - single source of truth for which components exist and
whether they are allowed to run.

The registry validates and stores descriptors and persists each
component's enabled toggle to the config store. It never instantiates
anything; that is the loader's job.
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union
from datetime import datetime, timezone
import logging

from ..config import DEFAULT_RESERVED_IDS
from ..events import ComponentEvent, EventBus
from ..faults import (
    DuplicateId,
    InvalidDescriptor,
    MissingDependency,
    CircularDependency,
    RegistrationError,
    ValidationReport,
)
from ..store import ConfigStore, MemoryStore
from .descriptor import ComponentDescriptor
from .graph import DependencyGraph
from .validator import DescriptorValidator


logger = logging.getLogger("componentry.registry")

DescriptorLike = Union[ComponentDescriptor, Mapping[str, Any]]


class ComponentRegistry:
    """
    Holds component descriptors and their persisted enabled state.

    Example:
        registry = ComponentRegistry(store, trusted_dir="/srv/app/components")
        registry.register({
            "id": "payment",
            "name": "Payment System",
            "locator": ("payment", "manager.py"),
            "construction_target": "PaymentManager",
            "priority": 1,
        })
    """

    def __init__(
        self,
        store: Optional[ConfigStore] = None,
        *,
        trusted_dir: Any = ".",
        reserved_ids: Optional[Iterable[str]] = None,
        default_priority: int = 10,
        namespace: str = "componentry",
        events: Optional[EventBus] = None,
    ):
        self.store = store if store is not None else MemoryStore()
        self.events = events if events is not None else EventBus()
        self.default_priority = default_priority
        self.namespace = namespace
        self.validator = DescriptorValidator(
            trusted_dir,
            DEFAULT_RESERVED_IDS if reserved_ids is None else reserved_ids,
        )

        self._components: Dict[str, ComponentDescriptor] = {}
        self._settings: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def from_config(
        cls,
        config: Any,
        store: Optional[ConfigStore] = None,
        events: Optional[EventBus] = None,
    ) -> "ComponentRegistry":
        """Build a registry from a ManagerConfig."""
        return cls(
            store,
            trusted_dir=config.trusted_dir,
            reserved_ids=config.reserved_ids,
            default_priority=config.default_priority,
            namespace=config.settings_namespace,
            events=events,
        )

    @property
    def trusted_root(self):
        return self.validator.trusted_root

    # ========================================================================
    # Registration
    # ========================================================================

    def register(self, descriptor: DescriptorLike) -> ComponentDescriptor:
        """
        Validate and store a descriptor.

        Args:
            descriptor: ComponentDescriptor or plain mapping

        Returns:
            The stored descriptor with defaults and persisted state merged in

        Raises:
            InvalidDescriptor, DuplicateId, ReservedId, InvalidPath,
            InvalidConstructionTarget. The registry is unchanged on failure.
        """
        if isinstance(descriptor, Mapping):
            descriptor = ComponentDescriptor.from_dict(descriptor)
        elif not isinstance(descriptor, ComponentDescriptor):
            error = InvalidDescriptor(
                None, [f"Expected a descriptor or mapping, got {type(descriptor).__name__}"]
            )
            logger.error(f"✗ Registration rejected: {error}")
            raise error

        try:
            warnings = self.validator.validate(descriptor)
            if descriptor.id in self._components:
                raise DuplicateId(descriptor.id)
        except RegistrationError as e:
            logger.error(f"✗ Registration rejected for '{e.component_id}': {e.message}")
            raise

        for warning in warnings:
            logger.warning(warning)

        component = descriptor.normalized(self.default_priority)
        settings = self._initial_settings(component)
        component = component.with_state(
            enabled=settings["enabled"],
            registered_at=datetime.fromisoformat(settings["registered_at"]),
        )

        self._components[component.id] = component
        self._settings[component.id] = settings

        try:
            persisted = self.store.set(self.settings_key(component.id), dict(settings))
        except Exception:
            del self._components[component.id]
            del self._settings[component.id]
            logger.error(f"✗ Could not persist settings for '{component.id}'; registration rolled back")
            raise

        if not persisted:
            logger.warning(f"Settings for '{component.id}' were not persisted; toggle will not survive restart")

        logger.debug(
            f"Registered component '{component.id}' "
            f"(priority={component.priority}, deps={list(component.dependencies)})"
        )
        self.events.emit(ComponentEvent.REGISTERED, component.id, descriptor=component)
        return component

    def try_register(self, descriptor: DescriptorLike) -> Optional[RegistrationError]:
        """
        Non-raising register.

        Returns:
            None on success, otherwise the registration error
        """
        try:
            self.register(descriptor)
        except RegistrationError as e:
            return e
        return None

    def register_many(self, descriptors: Iterable[DescriptorLike]) -> ValidationReport:
        """
        Register several descriptors, collecting errors instead of raising.
        """
        report = ValidationReport()
        for descriptor in descriptors:
            error = self.try_register(descriptor)
            if error is not None:
                report.add_error(error)
        return report

    def _initial_settings(self, component: ComponentDescriptor) -> Dict[str, Any]:
        """Merge persisted settings from a previous run over the descriptor's."""
        stored = self.store.get(self.settings_key(component.id), None)
        stored = stored if isinstance(stored, dict) else {}

        enabled = stored.get("enabled")
        if not isinstance(enabled, bool):
            enabled = component.enabled

        registered_at = stored.get("registered_at")
        try:
            datetime.fromisoformat(registered_at)
        except (TypeError, ValueError):
            registered_at = datetime.now(timezone.utc).isoformat()

        return {**stored, "enabled": enabled, "registered_at": registered_at}

    def unregister(self, component_id: str) -> bool:
        """
        Remove a descriptor and its persisted settings.

        Live instances are torn down by the loader, which listens for the
        UNREGISTERED event.
        """
        descriptor = self._components.pop(component_id, None)
        if descriptor is None:
            return False

        self._settings.pop(component_id, None)
        self.store.delete(self.settings_key(component_id))

        logger.info(f"Unregistered component '{component_id}'")
        self.events.emit(ComponentEvent.UNREGISTERED, component_id, descriptor=descriptor)
        return True

    def clear(self, *, purge_settings: bool = False) -> None:
        """
        Drop every descriptor.

        Persisted toggles are kept unless purge_settings is True, so a
        re-bootstrap in the same process sees the same enabled flags.
        """
        ids = list(self._components)

        if purge_settings:
            for component_id in ids:
                self.store.delete(self.settings_key(component_id))

        self._components.clear()
        self._settings.clear()

        logger.info(f"Cleared {len(ids)} component(s)")
        self.events.emit(ComponentEvent.CLEARED, ids=ids)

    # ========================================================================
    # Queries
    # ========================================================================

    def get(self, component_id: str) -> Optional[ComponentDescriptor]:
        """Descriptor with the current enabled flag merged in."""
        descriptor = self._components.get(component_id)
        if descriptor is None:
            return None
        return descriptor.with_state(enabled=self.is_enabled(component_id))

    def get_all(self) -> List[ComponentDescriptor]:
        """All descriptors in registration order."""
        return [self.get(component_id) for component_id in self._components]

    def get_sorted(self) -> List[ComponentDescriptor]:
        """All descriptors, stable-sorted by priority."""
        return sorted(self.get_all(), key=lambda d: d.priority)

    def get_enabled(self) -> List[ComponentDescriptor]:
        """Enabled descriptors, stable-sorted by priority."""
        return [d for d in self.get_sorted() if d.enabled]

    def is_registered(self, component_id: str) -> bool:
        return component_id in self._components

    def is_enabled(self, component_id: str) -> bool:
        if component_id not in self._components:
            return False
        return bool(self._load_settings(component_id).get("enabled", False))

    def count(self) -> int:
        return len(self._components)

    def ids(self) -> List[str]:
        return list(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __iter__(self) -> Iterator[ComponentDescriptor]:
        return iter(self.get_all())

    # ========================================================================
    # Enabled toggle
    # ========================================================================

    def enable(self, component_id: str) -> bool:
        """Enable and persist. False for unknown ids."""
        return self._set_enabled(component_id, True)

    def disable(self, component_id: str) -> bool:
        """Disable and persist. False for unknown ids."""
        return self._set_enabled(component_id, False)

    def _set_enabled(self, component_id: str, enabled: bool) -> bool:
        if component_id not in self._components:
            logger.error(f"Cannot {'enable' if enabled else 'disable'} unknown component '{component_id}'")
            return False

        settings = {**self._load_settings(component_id), "enabled": enabled}
        try:
            persisted = self.store.set(self.settings_key(component_id), dict(settings))
        except Exception:
            logger.error(f"✗ Could not persist toggle for '{component_id}'; state unchanged")
            raise
        self._settings[component_id] = settings

        if not persisted:
            logger.warning(f"Toggle for '{component_id}' was not persisted")

        event = ComponentEvent.ENABLED if enabled else ComponentEvent.DISABLED
        logger.info(f"Component '{component_id}' {'enabled' if enabled else 'disabled'}")
        self.events.emit(event, component_id)
        return True

    def settings_key(self, component_id: str) -> str:
        return f"{self.namespace}.{component_id}"

    def _load_settings(self, component_id: str) -> Dict[str, Any]:
        """Settings cache; falls back to the store on first access."""
        if component_id not in self._settings:
            stored = self.store.get(self.settings_key(component_id), None)
            settings = dict(stored) if isinstance(stored, dict) else {}
            settings.setdefault("enabled", self._components[component_id].enabled)
            self._settings[component_id] = settings
        return self._settings[component_id]

    # ========================================================================
    # Dependency analysis
    # ========================================================================

    def graph(self, *, enabled_only: bool = False) -> DependencyGraph:
        """Dependency graph over all (or only enabled) components."""
        graph = DependencyGraph()
        descriptors = self.get_enabled() if enabled_only else self.get_sorted()
        for descriptor in descriptors:
            graph.add_node(descriptor.id, descriptor.dependencies, descriptor.priority)
        return graph

    def find_dependents(self, component_id: str) -> List[str]:
        """Ids that list component_id as a direct dependency."""
        return [
            d.id for d in self._components.values()
            if component_id in d.dependencies
        ]

    def find_all_dependents(self, component_id: str) -> List[str]:
        """Direct and indirect dependents, nearest first."""
        return self.graph().get_transitive_dependents(component_id)

    def check_circular_dependencies(self) -> List[str]:
        """
        Every id reachable from itself, across all registered components
        (enabled or not).
        """
        found: List[str] = []
        for cycle in self.graph().find_cycles():
            found.extend(cycle)
        return found

    def validate(self) -> ValidationReport:
        """
        Whole-registry check for missing dependencies and cycles.

        Returns:
            ValidationReport; disabled dependencies produce warnings
        """
        report = ValidationReport()
        result = self.graph().topological_sort()

        for component_id, missing in result.missing.items():
            report.add_error(MissingDependency(component_id, missing))

        for cycle in result.cycles:
            for component_id in cycle:
                report.add_error(CircularDependency(component_id, cycle))

        for descriptor in self.get_enabled():
            for dep in descriptor.dependencies:
                if dep in self._components and not self.is_enabled(dep):
                    report.add_warning(
                        f"Component '{descriptor.id}' depends on disabled component '{dep}'"
                    )

        return report

    def __repr__(self) -> str:
        return f"ComponentRegistry({len(self._components)} components)"
