"""
Component loader - turns the registry's enabled descriptors into live,
correctly ordered instances.

Failures are contained per component: a broken component is recorded in
the load report and everything that does not depend on it still loads.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import time

from ..events import ComponentEvent, EventBus, EventPayload
from ..faults import (
    ActivationFailed,
    CircularDependency,
    ConstructionFailed,
    DependencyUnsatisfied,
    LoadError,
    MissingDependency,
)
from ..registry.core import ComponentRegistry
from ..registry.descriptor import ComponentDescriptor
from .component import Component
from .report import ComponentState, ComponentStatus, LoadReport
from .resolver import EntryResolver


logger = logging.getLogger("componentry.loader")


class ComponentLoader:
    """
    Instantiates components in dependency order.

    Responsibilities:
    - Compute a deterministic order (priority, then dependencies)
    - Refuse every member of a dependency cycle
    - Construct each component exactly once and run its activation hooks
    - Record failures without aborting the batch
    - Expose live instances, per-component state and the last report
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        *,
        events: Optional[EventBus] = None,
        debug: bool = False,
    ):
        self.registry = registry
        self.events = events if events is not None else registry.events
        self.resolver = EntryResolver(registry.validator)
        self.debug = debug

        self._instances: Dict[str, Any] = {}
        self._status: Dict[str, ComponentStatus] = {}
        self._loading_order: List[str] = []
        self._last_report: Optional[LoadReport] = None

        registry.events.on(ComponentEvent.UNREGISTERED, self._on_unregistered)
        registry.events.on(ComponentEvent.CLEARED, self._on_cleared)

    def _log_step(self, message: str) -> None:
        logger.log(logging.INFO if self.debug else logging.DEBUG, message)

    # ========================================================================
    # Batch loading
    # ========================================================================

    def load_all(self) -> LoadReport:
        """
        Load every enabled component.

        Already-live components are not constructed again and components
        that failed in an earlier pass are not retried (their failure is
        carried into this report); use enable_component() after fixing one.

        Returns:
            LoadReport for this pass
        """
        started = time.perf_counter()
        enabled = self.registry.get_enabled()
        descriptors = {d.id: d for d in enabled}

        self._mark_disabled()

        if not enabled:
            logger.info("No enabled components to load")

        sort = self.registry.graph(enabled_only=True).topological_sort()
        report = LoadReport(order=list(sort.order), cycles=[list(c) for c in sort.cycles])

        logger.info(f"Loading {len(enabled)} enabled component(s)")

        for cycle in sort.cycles:
            for component_id in cycle:
                if component_id not in self._instances:
                    self._fail(CircularDependency(component_id, cycle), report)

        for component_id in sort.order:
            self._load_one(descriptors[component_id], report)

        order = set(sort.order)
        report.loaded = [cid for cid in self._loading_order if cid in order]
        report.duration = time.perf_counter() - started
        self._last_report = report

        logger.info(
            f"Component loading completed: {len(report.loaded)}/{report.total} "
            f"loaded ({report.success_rate:.0f}%)"
        )

        self.events.emit(
            ComponentEvent.ALL_LOADED,
            report=report,
            instances=self.get_all_instances(),
        )
        return report

    def _mark_disabled(self) -> None:
        for descriptor in self.registry.get_all():
            if not descriptor.enabled and descriptor.id not in self._instances:
                self._status[descriptor.id] = ComponentStatus(descriptor.id, ComponentState.DISABLED)

    # ========================================================================
    # Single component
    # ========================================================================

    def _load_one(self, descriptor: ComponentDescriptor, report: LoadReport) -> bool:
        """
        Instantiate one component whose dependencies were already attempted.
        """
        component_id = descriptor.id

        if component_id in self._instances:
            self._log_step(f"Component already loaded: {component_id}")
            return True

        status = self._status.get(component_id)
        if status is not None and status.state == ComponentState.FAILED:
            self._log_step(f"Skipping previously failed component: {component_id}")
            report.add_failure(status.error)
            return False

        missing = [d for d in descriptor.dependencies if not self.registry.is_registered(d)]
        if missing:
            self._fail(MissingDependency(component_id, missing), report)
            return False

        unsatisfied = [d for d in descriptor.dependencies if d not in self._instances]
        if unsatisfied:
            self._fail(DependencyUnsatisfied(component_id, unsatisfied), report)
            return False

        try:
            instance = self._construct(descriptor)
        except LoadError as e:
            self._fail(e, report)
            return False
        except Exception as e:
            self._fail(ConstructionFailed(component_id, f"{type(e).__name__}: {e}", e), report)
            return False

        self._instances[component_id] = instance
        self._loading_order.append(component_id)
        self._status[component_id] = ComponentStatus(
            component_id,
            ComponentState.LOADED,
            loaded_at=datetime.now(timezone.utc),
        )
        report.constructed.append(component_id)

        logger.info(f"✓ Component loaded: {component_id}")
        self.events.emit(ComponentEvent.ACTIVATED, component_id, instance=instance)
        return True

    def _construct(self, descriptor: ComponentDescriptor) -> Any:
        """
        Resolve, construct and activate. Nothing is stored on failure.

        Raises:
            EntryFileMissing, ConstructionFailed, ActivationFailed
        """
        component_id = descriptor.id
        factory = self.resolver.resolve(descriptor)

        self._log_step(f"Constructing {component_id} from {descriptor.target_name}")

        try:
            instance = factory()
        except Exception as e:
            raise ConstructionFailed(component_id, f"{type(e).__name__}: {e}", e) from e

        if instance is None:
            raise ConstructionFailed(component_id, f"{descriptor.target_name} returned None")

        if isinstance(instance, Component):
            instance.bind(component_id, self.registry.store, self.registry.namespace)

        activate = getattr(instance, "activate", None)
        if callable(activate):
            try:
                result = activate()
            except Exception as e:
                raise ActivationFailed(component_id, f"{type(e).__name__}: {e}", e) from e
            if not result:
                raise ActivationFailed(component_id, f"activate() returned {result!r}")

        init = getattr(instance, "init", None)
        if callable(init):
            try:
                init()
            except Exception as e:
                self._safe_deactivate(component_id, instance)
                raise ActivationFailed(component_id, f"init() raised {type(e).__name__}: {e}", e) from e

        return instance

    def _fail(self, error: LoadError, report: Optional[LoadReport] = None) -> None:
        component_id = error.component_id
        self._status[component_id] = ComponentStatus(component_id, ComponentState.FAILED, error=error)
        if report is not None:
            report.add_failure(error)

        logger.error(f"✗ Component '{component_id}': {error.reason}")
        self.events.emit(ComponentEvent.LOAD_FAILED, component_id, error=error)

    # ========================================================================
    # Runtime toggles
    # ========================================================================

    def enable_component(self, component_id: str) -> bool:
        """
        Enable in the registry and, if not live yet, load the component
        together with any enabled dependencies that are not live.

        A previous failure of this component is cleared first. Disabled
        dependencies are not enabled automatically.

        Returns:
            True if the component is live afterwards
        """
        if not self.registry.is_registered(component_id):
            logger.error(f"Cannot enable non-existent component: {component_id}")
            return False

        self.registry.enable(component_id)

        if component_id in self._instances:
            return True

        self._status.pop(component_id, None)

        enabled = self.registry.get_enabled()
        descriptors = {d.id: d for d in enabled}
        graph = self.registry.graph(enabled_only=True)
        sort = graph.topological_sort()
        report = LoadReport(cycles=[list(c) for c in sort.cycles])

        cycle = sort.cycle_of(component_id)
        if cycle is not None:
            self._fail(CircularDependency(component_id, cycle), report)
            self._merge_into_last(report)
            return False

        chain = graph.get_transitive_dependencies(component_id) | {component_id}

        for nid in sort.order:
            if nid in chain and nid not in self._instances:
                report.order.append(nid)
                self._load_one(descriptors[nid], report)

        report.loaded = [cid for cid in report.order if cid in self._instances]
        self._merge_into_last(report)
        return component_id in self._instances

    def disable_component(self, component_id: str, *, cascade: bool = False) -> bool:
        """
        Tear down the live instance (if any) and disable in the registry.

        Args:
            component_id: Component to disable
            cascade: Also disable every direct and indirect dependent,
                deepest first. Off by default; dependents otherwise keep
                running without this component.

        Returns:
            False for unknown ids
        """
        if not self.registry.is_registered(component_id):
            logger.error(f"Cannot disable non-existent component: {component_id}")
            return False

        dependents = self.registry.find_all_dependents(component_id)

        if cascade:
            for dependent in reversed(dependents):
                self._teardown(dependent)
                self.registry.disable(dependent)
                self._status[dependent] = ComponentStatus(dependent, ComponentState.DISABLED)
        else:
            live = [d for d in dependents if d in self._instances]
            if live:
                logger.warning(
                    f"Component '{component_id}' disabled while live dependents remain: "
                    f"{', '.join(live)}"
                )

        self._teardown(component_id)
        result = self.registry.disable(component_id)
        self._status[component_id] = ComponentStatus(component_id, ComponentState.DISABLED)
        return result

    def reload_component(self, component_id: str) -> bool:
        """Tear down and construct a fresh instance without touching dependents."""
        if not self.registry.is_registered(component_id):
            return False
        self._teardown(component_id)
        return self.enable_component(component_id)

    def unload_all(self) -> None:
        """Deactivate every live instance in reverse load order."""
        for component_id in reversed(list(self._loading_order)):
            self._teardown(component_id)
            self._status.pop(component_id, None)
        logger.info("All components unloaded")

    def _teardown(self, component_id: str) -> bool:
        instance = self._instances.pop(component_id, None)
        if instance is None:
            return False

        if component_id in self._loading_order:
            self._loading_order.remove(component_id)

        self._safe_deactivate(component_id, instance)
        logger.info(f"Component instance unloaded: {component_id}")
        self.events.emit(ComponentEvent.DEACTIVATED, component_id, instance=instance)
        return True

    def _safe_deactivate(self, component_id: str, instance: Any) -> None:
        deactivate = getattr(instance, "deactivate", None)
        if not callable(deactivate):
            return
        try:
            deactivate()
        except Exception as e:
            logger.error(f"✗ Component '{component_id}' deactivation error: {e}")

    def _merge_into_last(self, report: LoadReport) -> None:
        """Fold a single-component report into the last batch report."""
        if self._last_report is None:
            self._last_report = report
            return

        last = self._last_report
        for component_id in report.order:
            if component_id not in last.order:
                last.order.append(component_id)
        for component_id in report.failures:
            if component_id in last.loaded:
                last.loaded.remove(component_id)
        for component_id in report.loaded:
            last.errors.pop(component_id, None)
            last.failures.pop(component_id, None)
            if component_id not in last.loaded:
                last.loaded.append(component_id)
        for error in report.failures.values():
            last.add_failure(error)
        last.constructed.extend(report.constructed)

    # ========================================================================
    # Registry events
    # ========================================================================

    def _on_unregistered(self, payload: EventPayload) -> None:
        self._teardown(payload.component_id)
        self._status.pop(payload.component_id, None)

    def _on_cleared(self, payload: EventPayload) -> None:
        self.unload_all()
        self._status.clear()

    # ========================================================================
    # Introspection
    # ========================================================================

    def get_instance(self, component_id: str) -> Optional[Any]:
        return self._instances.get(component_id)

    def get_all_instances(self) -> Dict[str, Any]:
        return dict(self._instances)

    def is_loaded(self, component_id: str) -> bool:
        return component_id in self._instances

    def get_loaded_count(self) -> int:
        return len(self._instances)

    def get_state(self, component_id: str) -> Optional[ComponentState]:
        """Current state, or None for unregistered ids."""
        if not self.registry.is_registered(component_id):
            return None
        if component_id in self._instances:
            return ComponentState.LOADED
        if not self.registry.is_enabled(component_id):
            return ComponentState.DISABLED
        status = self._status.get(component_id)
        return status.state if status is not None else ComponentState.PENDING

    def get_status(self, component_id: str) -> Optional[ComponentStatus]:
        state = self.get_state(component_id)
        if state is None:
            return None
        status = self._status.get(component_id)
        if status is not None and status.state == state:
            return status
        return ComponentStatus(component_id, state)

    def get_loading_errors(self) -> Dict[str, str]:
        """Failed id -> reason, for components currently in FAILED state."""
        return {
            cid: status.reason
            for cid, status in self._status.items()
            if status.state == ComponentState.FAILED and self.get_state(cid) == ComponentState.FAILED
        }

    def get_loading_order(self) -> List[str]:
        """Ids of live components in the order they were constructed."""
        return list(self._loading_order)

    def get_all_components(self) -> List[Dict[str, Any]]:
        """Status rows for a diagnostics view: descriptor data plus state."""
        rows = []
        for descriptor in self.registry.get_sorted():
            status = self.get_status(descriptor.id)
            rows.append({
                **descriptor.to_dict(),
                "state": status.state.value,
                "loaded": descriptor.id in self._instances,
                "error_code": status.error.code if status.error else None,
                "reason": status.reason,
                "dependents": self.registry.find_dependents(descriptor.id),
            })
        return rows

    @property
    def last_report(self) -> Optional[LoadReport]:
        return self._last_report

    def __repr__(self) -> str:
        return f"ComponentLoader({len(self._instances)} loaded)"
