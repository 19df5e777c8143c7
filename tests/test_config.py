"""
Tests for componentry.config - layered loading and ManagerConfig.
"""

import json

import pytest

from componentry.config import DEFAULT_RESERVED_IDS, ConfigLoader, ManagerConfig
from componentry.faults import ConfigError


# ============================================================================
# ManagerConfig
# ============================================================================

class TestManagerConfig:

    def test_defaults(self):
        config = ManagerConfig()
        assert config.trusted_dir == "."
        assert config.reserved_ids == DEFAULT_RESERVED_IDS
        assert config.default_priority == 10
        assert config.settings_namespace == "componentry"
        assert config.store_path is None
        assert config.entry_point_group == "componentry.components"
        assert config.manifests == []
        assert config.debug is False

    def test_reserved_ids_not_shared(self):
        first = ManagerConfig()
        first.reserved_ids.append("extra")
        assert "extra" not in ManagerConfig().reserved_ids

    def test_trusted_path_resolved(self, tmp_path):
        config = ManagerConfig(trusted_dir=str(tmp_path))
        assert config.trusted_path == tmp_path.resolve()


# ============================================================================
# ConfigLoader
# ============================================================================

class TestConfigLoader:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "componentry.yaml"
        path.write_text(
            "manager:\n"
            "  trusted_dir: ./plugins\n"
            "  default_priority: 5\n"
            "  reserved_ids: [core, admin]\n"
        )
        config = ConfigLoader.load(paths=[str(path)], use_environ=False).get_manager_config()

        assert config.trusted_dir == "./plugins"
        assert config.default_priority == 5
        assert config.reserved_ids == ["core", "admin"]

    def test_json_file(self, tmp_path):
        path = tmp_path / "componentry.json"
        path.write_text(json.dumps({"manager": {"debug": True}}))
        config = ConfigLoader.load(paths=[str(path)], use_environ=False).get_manager_config()
        assert config.debug is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader.load(paths=[str(tmp_path / "nope.yaml")], use_environ=False)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "componentry.toml"
        path.write_text("")
        with pytest.raises(ConfigError, match="Unsupported"):
            ConfigLoader.load(paths=[str(path)], use_environ=False)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "componentry.yaml"
        path.write_text("manager: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigLoader.load(paths=[str(path)], use_environ=False)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "componentry.yaml"
        path.write_text("manager:\n  default_priority: 5\n")
        monkeypatch.setenv("COMPONENTRY_MANAGER__DEFAULT_PRIORITY", "7")
        monkeypatch.setenv("COMPONENTRY_MANAGER__RESERVED_IDS", "core, billing")

        config = ConfigLoader.load(paths=[str(path)]).get_manager_config()

        assert config.default_priority == 7
        assert config.reserved_ids == ["core", "billing"]

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "COMPONENTRY_MANAGER__DEBUG=yes\n"
            "COMPONENTRY_MANAGER__STORE_PATH=state.json\n"
            "UNRELATED=1\n"
        )
        loader = ConfigLoader.load(env_file=str(env_file), use_environ=False)
        config = loader.get_manager_config()

        assert config.debug is True
        assert config.store_path == "state.json"
        assert "unrelated" not in loader.config_data

    def test_overrides_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COMPONENTRY_MANAGER__SETTINGS_NAMESPACE", "from_env")
        loader = ConfigLoader.load(overrides={"manager": {"settings_namespace": "chatshop"}})
        assert loader.get_manager_config().settings_namespace == "chatshop"

    def test_manager_section(self):
        loader = ConfigLoader.load(
            overrides={"manager": {"debug": True, "colour": "blue"}, "other": {"x": 1}},
            use_environ=False,
        )
        assert loader.manager_section() == {"debug": True, "colour": "blue"}
        assert loader.get_manager_config().debug is True
        assert ConfigLoader().manager_section() == {}

    def test_manager_section_must_be_mapping(self):
        loader = ConfigLoader.load(overrides={"manager": ["core"]}, use_environ=False)
        with pytest.raises(ConfigError, match="must be a mapping"):
            loader.get_manager_config()

    def test_scalar_fields_coerced_to_strings(self):
        loader = ConfigLoader.load(
            overrides={"manager": {"trusted_dir": 42, "store_path": None, "manifests": ("a.yaml",)}},
            use_environ=False,
        )
        config = loader.get_manager_config()

        assert config.trusted_dir == "42"
        assert config.store_path is None
        assert config.manifests == ["a.yaml"]

    @pytest.mark.parametrize("name,value", [
        ("debug", "maybe"),
        ("reserved_ids", 5),
        ("settings_namespace", {"a": 1}),
        ("trusted_dir", None),
    ])
    def test_invalid_field_values(self, name, value):
        loader = ConfigLoader.load(overrides={"manager": {name: value}}, use_environ=False)
        with pytest.raises(ConfigError, match=name):
            loader.get_manager_config()

    def test_wrong_type(self):
        loader = ConfigLoader.load(overrides={"manager": {"default_priority": "high"}}, use_environ=False)
        with pytest.raises(ConfigError, match="default_priority"):
            loader.get_manager_config()

    def test_bool_priority_rejected(self):
        loader = ConfigLoader.load(overrides={"manager": {"default_priority": True}}, use_environ=False)
        with pytest.raises(ConfigError, match="must be an integer"):
            loader.get_manager_config()

    @pytest.mark.parametrize("raw,parsed", [
        ("true", True),
        ("off", False),
        ("12", 12),
        ("1.5", 1.5),
        ('["a", "b"]', ["a", "b"]),
        ("./plugins", "./plugins"),
    ])
    def test_parse_value(self, raw, parsed):
        assert ConfigLoader()._parse_value(raw) == parsed
