"""
Tests for componentry.bootstrap.ComponentManager - wiring and the startup
sequence.
"""

import json

import pytest

import componentry.bootstrap as bootstrap_module
from componentry.bootstrap import ComponentManager
from componentry.config import ManagerConfig
from componentry.events import ComponentEvent
from componentry.faults import ManifestError
from componentry.store import FileStore, MemoryStore


class FakeEntryPoint:
    def __init__(self, name, hook=None, error=None):
        self.name = name
        self._hook = hook
        self._error = error

    def load(self):
        if self._error is not None:
            raise self._error
        return self._hook


@pytest.fixture
def no_entry_points(monkeypatch):
    monkeypatch.setattr(bootstrap_module, "entry_points", lambda group: [])


@pytest.fixture
def manager(components_dir, no_entry_points):
    return ComponentManager(ManagerConfig(trusted_dir=str(components_dir)))


# ============================================================================
# Wiring
# ============================================================================

class TestWiring:

    def test_defaults_to_memory_store(self, manager):
        assert isinstance(manager.store, MemoryStore)
        assert manager.registry.store is manager.store
        assert manager.loader.registry is manager.registry
        assert manager.registry.events is manager.events

    def test_file_store_from_config(self, components_dir, tmp_path):
        config = ManagerConfig(trusted_dir=str(components_dir), store_path=str(tmp_path / "state.json"))
        manager = ComponentManager(config)
        assert isinstance(manager.store, FileStore)

    def test_config_applied_to_registry(self, components_dir):
        config = ManagerConfig(
            trusted_dir=str(components_dir),
            default_priority=50,
            settings_namespace="chatshop",
            reserved_ids=["billing"],
        )
        manager = ComponentManager(config)

        assert manager.registry.default_priority == 50
        assert manager.registry.namespace == "chatshop"
        assert manager.registry.trusted_root == components_dir.resolve()


# ============================================================================
# Startup sequence
# ============================================================================

class TestBootstrap:

    def test_register_components_hook(self, manager, make_descriptor, tracker):
        def register(payload):
            registry = payload.data["registry"]
            registry.register(make_descriptor("payment", priority=1))
            registry.register(make_descriptor("contacts", ["payment"], priority=2))

        manager.events.on(ComponentEvent.REGISTER_COMPONENTS, register)

        report = manager.bootstrap()

        assert report.loaded == ["payment", "contacts"]
        assert tracker.constructed == ["payment", "contacts"]
        assert manager.get_instance("payment") is not None

    def test_all_loaded_event(self, manager, make_descriptor):
        seen = []
        manager.events.on(ComponentEvent.ALL_LOADED, lambda p: seen.append(p.data["report"].loaded))
        manager.register(make_descriptor("payment"))

        manager.bootstrap()

        assert seen == [["payment"]]

    def test_entry_point_hooks(self, manager, monkeypatch, make_descriptor):
        calls = []

        def good_hook(registry):
            calls.append("good")
            registry.register(make_descriptor("crm"))

        def bad_hook(registry):
            raise RuntimeError("plugin bug")

        def fake_entry_points(group):
            assert group == "componentry.components"
            return [
                FakeEntryPoint("good", good_hook),
                FakeEntryPoint("bad", bad_hook),
                FakeEntryPoint("unimportable", error=ImportError("missing package")),
                FakeEntryPoint("not-callable", "just a string"),
            ]

        monkeypatch.setattr(bootstrap_module, "entry_points", fake_entry_points)

        assert manager.discover_entry_points() == ["good"]
        assert calls == ["good"]
        assert manager.registry.is_registered("crm")

    def test_manifests(self, components_dir, tmp_path, write, no_entry_points):
        write("payment")
        manifest = tmp_path / "components.json"
        manifest.write_text(json.dumps({"components": [
            {
                "id": "payment",
                "name": "Payment",
                "locator": {"path": "payment", "entry_file": "main.py"},
                "construction_target": "Main",
            },
            {"id": "core", "name": "Core", "locator": ["payment", "main.py"], "construction_target": "Main"},
        ]}))
        missing = tmp_path / "absent.yaml"
        config = ManagerConfig(trusted_dir=str(components_dir), manifests=[str(manifest), str(missing)])
        manager = ComponentManager(config)

        report = manager.bootstrap()

        assert report.loaded == ["payment"]
        kinds = [type(e).__name__ for e in manager.registration_report.errors]
        assert kinds == ["ReservedId", "ManifestError"]
        assert isinstance(manager.registration_report.errors[1], ManifestError)

    def test_from_files(self, components_dir, tmp_path, no_entry_points, write):
        write("payment")
        config_file = tmp_path / "componentry.yaml"
        config_file.write_text(
            "manager:\n"
            f"  trusted_dir: {components_dir}\n"
            "  settings_namespace: chatshop\n"
        )

        manager = ComponentManager.from_files(str(config_file), use_environ=False)
        manager.register({
            "id": "payment",
            "name": "Payment",
            "locator": ("payment", "main.py"),
            "construction_target": "Main",
        })
        manager.bootstrap()

        assert manager.store.get("chatshop.payment")["enabled"] is True
        assert manager.get_instance("payment") is not None

    def test_toggles_and_shutdown(self, manager, make_descriptor, tracker):
        manager.register(make_descriptor("payment"))
        manager.bootstrap()

        assert manager.disable_component("payment") is True
        assert manager.enable_component("payment") is True
        manager.shutdown()

        assert tracker.deactivated == ["payment", "payment"]
        assert manager.loader.get_loaded_count() == 0

    def test_snapshot(self, manager, make_descriptor):
        manager.register(make_descriptor("payment"))
        manager.bootstrap()

        assert manager.snapshot()["loading_order"] == ["payment"]

    def test_toggle_survives_restart(self, components_dir, tmp_path, make_descriptor, no_entry_points):
        config = ManagerConfig(trusted_dir=str(components_dir), store_path=str(tmp_path / "state.yaml"))

        first = ComponentManager(config)
        first.register(make_descriptor("payment"))
        first.bootstrap()
        first.disable_component("payment")

        second = ComponentManager(config)
        second.register(make_descriptor("payment"))
        report = second.bootstrap()

        assert report.loaded == []
        assert not second.registry.is_enabled("payment")
