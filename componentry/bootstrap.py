"""
Bootstrap - wires store, event bus, registry and loader together and runs
the startup sequence.

Startup sequence:
1. Emit ``REGISTER_COMPONENTS`` with the registry
2. Call every callable published under the configured entry-point group
3. Register descriptor manifests listed in configuration
4. ``load_all()``
"""

from typing import Any, Dict, List, Optional
from importlib.metadata import entry_points
import logging

from .config import ConfigLoader, ManagerConfig
from .diagnostics import snapshot
from .events import ComponentEvent, EventBus
from .faults import ManifestError, ValidationReport
from .loader.core import ComponentLoader
from .loader.report import LoadReport
from .registry.core import ComponentRegistry
from .registry.manifest import register_manifest
from .store import ConfigStore, FileStore, MemoryStore


logger = logging.getLogger("componentry.bootstrap")


class ComponentManager:
    """
    Facade owning one registry and one loader.

    Example:
        manager = ComponentManager.from_files("componentry.yaml")
        manager.events.on(
            ComponentEvent.REGISTER_COMPONENTS,
            lambda payload: payload.data["registry"].register(PAYMENT),
        )
        report = manager.bootstrap()
        payment = manager.get_instance("payment")
    """

    def __init__(
        self,
        config: Optional[ManagerConfig] = None,
        store: Optional[ConfigStore] = None,
    ):
        self.config = config if config is not None else ManagerConfig()

        if store is None:
            store = FileStore(self.config.store_path) if self.config.store_path else MemoryStore()

        self.store = store
        self.events = EventBus()
        self.registry = ComponentRegistry.from_config(self.config, store, self.events)
        self.loader = ComponentLoader(self.registry, events=self.events, debug=self.config.debug)
        self.registration_report = ValidationReport()
        self._bootstrapped = False

    @classmethod
    def from_files(
        cls,
        *paths: str,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_environ: bool = True,
        store: Optional[ConfigStore] = None,
    ) -> "ComponentManager":
        """Build a manager from layered configuration (see ConfigLoader)."""
        loader = ConfigLoader.load(
            paths=list(paths),
            env_file=env_file,
            overrides=overrides,
            use_environ=use_environ,
        )
        return cls(loader.get_manager_config(), store)

    # ========================================================================
    # Startup
    # ========================================================================

    def bootstrap(self) -> LoadReport:
        """
        Run the startup sequence once.

        Registration problems from hooks and manifests are collected in
        ``registration_report``; load problems end up in the returned
        LoadReport. Neither aborts the sequence.
        """
        if self._bootstrapped:
            logger.warning("ComponentManager.bootstrap() called twice; reloading")

        logger.info("Bootstrapping components")

        self.events.emit(ComponentEvent.REGISTER_COMPONENTS, registry=self.registry)
        self.discover_entry_points()
        self.register_manifests()

        report = self.loader.load_all()
        self._bootstrapped = True

        if self.registration_report.has_errors():
            logger.warning(
                f"{len(self.registration_report.errors)} component(s) rejected at registration"
            )

        return report

    def discover_entry_points(self) -> List[str]:
        """
        Call every registration hook published under the entry-point group.

        Each hook receives the registry. A failing hook is logged and
        skipped.

        Returns:
            Names of hooks that ran successfully
        """
        group = self.config.entry_point_group
        called: List[str] = []

        for ep in entry_points(group=group):
            try:
                hook = ep.load()
            except Exception as e:
                logger.error(f"✗ Failed to load entry point '{ep.name}' ({group}): {e}")
                continue

            if not callable(hook):
                logger.error(f"✗ Entry point '{ep.name}' ({group}) is not callable")
                continue

            try:
                hook(self.registry)
            except Exception as e:
                logger.error(f"✗ Registration hook '{ep.name}' failed: {e}")
                continue

            logger.info(f"✓ Registration hook ran: {ep.name}")
            called.append(ep.name)

        return called

    def register_manifests(self) -> ValidationReport:
        """Register every manifest listed in ``config.manifests``."""
        report = ValidationReport()

        for path in self.config.manifests:
            try:
                report.merge(register_manifest(self.registry, path))
            except ManifestError as e:
                logger.error(f"✗ {e}")
                report.add_error(e)

        self.registration_report.merge(report)
        return report

    def shutdown(self) -> None:
        """Deactivate every live component in reverse load order."""
        self.loader.unload_all()
        self._bootstrapped = False

    # ========================================================================
    # Delegates
    # ========================================================================

    def register(self, descriptor: Any):
        return self.registry.register(descriptor)

    def get_instance(self, component_id: str) -> Optional[Any]:
        return self.loader.get_instance(component_id)

    def enable_component(self, component_id: str) -> bool:
        return self.loader.enable_component(component_id)

    def disable_component(self, component_id: str, *, cascade: bool = False) -> bool:
        return self.loader.disable_component(component_id, cascade=cascade)

    def snapshot(self) -> Dict[str, Any]:
        return snapshot(self.registry, self.loader)

    def __repr__(self) -> str:
        return f"ComponentManager({self.registry!r}, {self.loader!r})"
