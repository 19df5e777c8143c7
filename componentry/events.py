"""
Event hooks - notifications emitted by the registry and the loader.

The host subscribes to these to react to registration changes, per-component
activation, and the end of a load pass. The ``REGISTER_COMPONENTS`` event is
the extension point third-party code uses to add components before loading.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging


logger = logging.getLogger("componentry.events")


class ComponentEvent(str, Enum):
    """Event names."""
    REGISTER_COMPONENTS = "register_components"
    REGISTERED = "component_registered"
    UNREGISTERED = "component_unregistered"
    CLEARED = "components_cleared"
    ENABLED = "component_enabled"
    DISABLED = "component_disabled"
    ACTIVATED = "component_activated"
    DEACTIVATED = "component_deactivated"
    LOAD_FAILED = "component_load_failed"
    ALL_LOADED = "components_loaded"


@dataclass
class EventPayload:
    """Payload delivered to every handler."""
    event: ComponentEvent
    component_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


Handler = Callable[[EventPayload], None]


class EventBus:
    """
    Synchronous in-process hook bus.

    Handlers run in subscription order. A failing handler is logged and
    skipped; it never interrupts the emitter or the remaining handlers.
    """

    def __init__(self):
        self._handlers: Dict[ComponentEvent, List[Handler]] = {}

    def on(self, event: ComponentEvent, handler: Handler) -> Handler:
        """Subscribe handler to event. Returns the handler unchanged."""
        self._handlers.setdefault(ComponentEvent(event), []).append(handler)
        return handler

    def off(self, event: ComponentEvent, handler: Handler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(ComponentEvent(event), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(
        self,
        event: ComponentEvent,
        component_id: Optional[str] = None,
        **data: Any,
    ) -> EventPayload:
        """Emit event to all subscribed handlers."""
        payload = EventPayload(event=ComponentEvent(event), component_id=component_id, data=data)

        for handler in list(self._handlers.get(payload.event, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Event handler error for {payload.event.value}: {e}")

        return payload

    def handler_count(self, event: ComponentEvent) -> int:
        return len(self._handlers.get(ComponentEvent(event), []))

    def clear(self) -> None:
        self._handlers.clear()
