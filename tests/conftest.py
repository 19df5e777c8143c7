"""
Shared test fixtures and helpers for the Componentry test suite.
"""

import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from componentry.events import EventBus
from componentry.loader.core import ComponentLoader
from componentry.registry.core import ComponentRegistry
from componentry.store import MemoryStore


DEFAULT_SOURCE = """
class Main:
    def activate(self):
        return True
"""


# ============================================================================
# Tracking factories
# ============================================================================


class Tracker:
    """Builds factories that record construction and teardown order."""

    def __init__(self):
        self.constructed: List[str] = []
        self.deactivated: List[str] = []

    def factory(
        self,
        component_id: str,
        *,
        activate: Any = True,
        init_error: Optional[Exception] = None,
        ctor_error: Optional[Exception] = None,
    ):
        tracker = self

        class TrackedComponent:
            def __init__(self):
                if ctor_error is not None:
                    raise ctor_error
                tracker.constructed.append(component_id)

            def activate(self):
                return activate

            def init(self):
                if init_error is not None:
                    raise init_error

            def deactivate(self):
                tracker.deactivated.append(component_id)

        TrackedComponent.__qualname__ = f"TrackedComponent[{component_id}]"
        return TrackedComponent


# ============================================================================
# Filesystem helpers
# ============================================================================


def write_component(
    root: Path,
    path: str,
    entry_file: str = "main.py",
    source: str = DEFAULT_SOURCE,
) -> Path:
    """Create ``root/path/entry_file`` with the given source."""
    directory = root / path
    directory.mkdir(parents=True, exist_ok=True)
    entry = directory / entry_file
    entry.write_text(textwrap.dedent(source))
    return entry


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def components_dir(tmp_path) -> Path:
    """Trusted directory for component code."""
    root = tmp_path / "components"
    root.mkdir()
    return root


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def registry(components_dir, store, events) -> ComponentRegistry:
    return ComponentRegistry(store, trusted_dir=components_dir, events=events)


@pytest.fixture
def loader(registry) -> ComponentLoader:
    return ComponentLoader(registry)


@pytest.fixture
def tracker() -> Tracker:
    return Tracker()


@pytest.fixture
def write(components_dir):
    """write(path, entry_file="main.py", source=...) inside the trusted dir."""

    def _write(path: str, entry_file: str = "main.py", source: str = DEFAULT_SOURCE) -> Path:
        return write_component(components_dir, path, entry_file, source)

    return _write


@pytest.fixture
def make_descriptor(components_dir, tracker):
    """
    Build a descriptor mapping backed by a real entry file.

    The construction target defaults to a tracked factory so tests can
    observe construction order and counts.
    """

    def _make(
        component_id: str,
        dependencies=(),
        priority: Optional[int] = None,
        *,
        enabled: bool = True,
        target: Any = None,
        **factory_options: Any,
    ) -> Dict[str, Any]:
        write_component(components_dir, component_id)
        descriptor = {
            "id": component_id,
            "name": component_id.title(),
            "locator": {"path": component_id, "entry_file": "main.py"},
            "construction_target": (
                target if target is not None else tracker.factory(component_id, **factory_options)
            ),
            "dependencies": list(dependencies),
            "enabled": enabled,
        }
        if priority is not None:
            descriptor["priority"] = priority
        return descriptor

    return _make
