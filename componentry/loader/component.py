"""
Component base class.

Components do not have to inherit from this; the loader only looks for the
optional ``activate`` / ``init`` / ``deactivate`` methods. Subclassing adds
per-component settings backed by the config store and a status summary.

Example:
    class PaymentManager(Component):
        name = "Payment System"

        def default_settings(self):
            return {"currency": "NGN"}

        def setup(self):
            self.gateway = make_gateway(self.get_setting("currency"))
"""

from typing import Any, Dict, Optional
import logging


class Component:
    """
    Base class for feature components.

    Lifecycle, as driven by the loader:
        construct() -> bind() -> activate() -> init() ... deactivate()
    """

    name: str = ""
    description: str = ""
    version: str = "1.0.0"

    def __init__(self):
        self.id: Optional[str] = None
        self._store: Any = None
        self._namespace = "componentry"
        self._active = False
        self._initialized = False
        self.logger = logging.getLogger(f"componentry.components.{type(self).__name__}")

    # ------------------------------------------------------------------
    # Loader extension points
    # ------------------------------------------------------------------

    def bind(self, component_id: str, store: Any, namespace: str = "componentry") -> None:
        """Attach identity and the settings store. Called before activate()."""
        self.id = component_id
        self._store = store
        self._namespace = namespace
        self.logger = logging.getLogger(f"componentry.components.{component_id}")

    def activate(self) -> bool:
        """Run on_activate(); a False return vetoes loading."""
        if self.on_activate() is False:
            self.logger.warning(f"Component '{self.id}' refused activation")
            return False
        self._active = True
        return True

    def init(self) -> None:
        self.setup()
        self._initialized = True

    def deactivate(self) -> None:
        """Run on_deactivate() then cleanup()."""
        try:
            self.on_deactivate()
        finally:
            self.cleanup()
            self._active = False
            self._initialized = False

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    def on_activate(self) -> Optional[bool]:
        return True

    def setup(self) -> None:
        pass

    def on_deactivate(self) -> None:
        pass

    def cleanup(self) -> None:
        pass

    def default_settings(self) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings_key(self) -> str:
        return f"{self._namespace}.{self.id}.settings"

    def get_all_settings(self) -> Dict[str, Any]:
        stored = self._store.get(self.settings_key, {}) if self._store is not None else {}
        return {**self.default_settings(), **(stored or {})}

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.get_all_settings().get(key, default)

    def update_setting(self, key: str, value: Any) -> bool:
        """Persist one setting. False when the component is not bound."""
        if self._store is None:
            return False
        stored = dict(self._store.get(self.settings_key, {}) or {})
        stored[key] = value
        return bool(self._store.set(self.settings_key, stored))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def get_status(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name or type(self).__name__,
            "version": self.version,
            "active": self._active,
            "initialized": self._initialized,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} active={self._active}>"
