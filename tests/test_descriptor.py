"""
Tests for componentry.registry.descriptor - Locator and ComponentDescriptor.
"""

from datetime import datetime, timezone
from pathlib import Path

from componentry.registry.descriptor import ComponentDescriptor, Locator


# ============================================================================
# Locator
# ============================================================================

class TestLocator:

    def test_coerce_pair(self):
        assert Locator.coerce(("payment", "manager.py")) == Locator("payment", "manager.py")

    def test_coerce_mapping_with_main_file_alias(self):
        locator = Locator.coerce({"path": "crm", "main_file": "crm.py"})
        assert locator == Locator("crm", "crm.py")

    def test_coerce_leaves_garbage_alone(self):
        assert Locator.coerce("just-a-string") == "just-a-string"
        assert Locator.coerce({"path": "crm"}) == {"path": "crm"}

    def test_paths(self, tmp_path):
        locator = Locator("payment", "manager.py")
        assert locator.entry_path(tmp_path) == tmp_path / "payment" / "manager.py"
        assert locator.directory(tmp_path) == tmp_path / "payment"
        assert str(locator) == str(Path("payment", "manager.py"))


# ============================================================================
# ComponentDescriptor
# ============================================================================

class TestComponentDescriptor:

    def test_from_dict_flat_form(self):
        descriptor = ComponentDescriptor.from_dict({
            "id": "payment",
            "name": "Payment System",
            "path": "payment",
            "main_file": "manager.py",
            "class_name": "PaymentManager",
            "icon": "money",
        })

        assert descriptor.locator == Locator("payment", "manager.py")
        assert descriptor.construction_target == "PaymentManager"
        assert descriptor.version == "1.0.0"
        assert descriptor.enabled is True
        assert descriptor.priority is None
        assert descriptor.extra == {"icon": "money"}

    def test_from_dict_none_dependencies(self):
        descriptor = ComponentDescriptor.from_dict({"id": "a1", "dependencies": None})
        assert descriptor.dependencies == ()

    def test_normalized(self):
        descriptor = ComponentDescriptor(
            id="reports",
            name="Reports",
            locator=("reports", "main.py"),
            construction_target="Main",
            dependencies=["a1", "b1", "a1"],
        )
        normalized = descriptor.normalized(10)

        assert normalized.dependencies == ("a1", "b1")
        assert normalized.priority == 10
        assert normalized.locator == Locator("reports", "main.py")

    def test_normalized_keeps_explicit_priority(self):
        descriptor = ComponentDescriptor("a1", "A", ("a1", "main.py"), "Main", priority=0)
        assert descriptor.normalized(10).priority == 0

    def test_with_state(self):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        descriptor = ComponentDescriptor("a1", "A", ("a1", "main.py"), "Main")
        updated = descriptor.with_state(enabled=False, registered_at=stamp)

        assert updated.enabled is False
        assert updated.registered_at == stamp
        assert descriptor.enabled is True

    def test_target_name_for_callable(self):
        def build():
            return object()

        descriptor = ComponentDescriptor("a1", "A", ("a1", "main.py"), build)
        assert descriptor.target_name.endswith("build")

    def test_to_dict(self):
        descriptor = ComponentDescriptor(
            "a1", "A", Locator("a1", "main.py"), "Main", dependencies=("b1",), priority=3
        )
        data = descriptor.to_dict()

        assert data["id"] == "a1"
        assert data["construction_target"] == "Main"
        assert data["dependencies"] == ["b1"]
        assert data["priority"] == 3
        assert data["registered_at"] is None
