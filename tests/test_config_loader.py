"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from thermosentry.config import ConfigLoadError, ConfigLoader, LogFormat, LogLevel, load_config
from thermosentry.models.alerts import NotificationMethod, ThermalAlertType

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config"

ENGINE_YAML = """
alerting:
  history_limit: 50
  location_grid: 4.0
ranging:
  sample_history: 500
logging:
  format: text
  level: WARNING
"""

RULES_YAML = """
rules:
  - id: hot
    name: Hot spot
    type: high_temperature
    threshold: 60.0
    notification_methods: [log]
"""


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("THERMOSENTRY_CONFIG_DIR", raising=False)


def write_config(directory: Path, **files: str) -> Path:
    for name, content in files.items():
        (directory / f"{name}.yaml").write_text(content, encoding="utf-8")
    return directory


class TestConfigLoader:
    def test_loads_shipped_config(self):
        config = ConfigLoader(REPO_CONFIG).load()

        assert [r.id for r in config.rules] == [
            "high-temp-critical", "rapid-temp-change", "anomaly-detection",
        ]
        assert config.rules[0].notification_methods == [NotificationMethod.POPUP, NotificationMethod.SOUND]
        assert config.rules[1].conditions.temporal_filtering is False
        assert [p.id for p in config.profiles] == ["medical_screening"]
        assert config.alerting.anomaly_cluster_radius == 15.0
        assert config.logging.format == LogFormat.JSON

    def test_engine_only(self, tmp_path):
        config = ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML)).load()

        assert config.rules is None
        assert config.profiles == []
        assert config.alerting.history_limit == 50
        assert config.alerting.location_grid == 4.0
        assert config.ranging.sample_history == 500
        assert config.ranging.frame_history == 50
        assert config.logging.level == LogLevel.WARNING

    def test_rules_file(self, tmp_path):
        config = ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML, rules=RULES_YAML)).load()

        assert len(config.rules) == 1
        assert config.rules[0].type == ThermalAlertType.HIGH_TEMPERATURE
        assert config.get_rule("hot").threshold == 60.0

    def test_empty_rule_list(self, tmp_path):
        config = ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML, rules="rules: []\n")).load()
        assert config.rules == []

    def test_log_level_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        config = ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML)).load()
        assert config.logging.level == LogLevel.DEBUG

    def test_invalid_log_level_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        config = ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML)).load()
        assert config.logging.level == LogLevel.WARNING

    def test_load_config_uses_environment_dir(self, tmp_path, monkeypatch):
        write_config(tmp_path, engine=ENGINE_YAML)
        monkeypatch.setenv("THERMOSENTRY_CONFIG_DIR", str(tmp_path))
        assert load_config().alerting.history_limit == 50


class TestConfigErrors:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigLoadError) as exc_info:
            ConfigLoader(tmp_path / "missing")
        assert exc_info.value.file_path == tmp_path / "missing"

    def test_missing_engine_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="not found"):
            ConfigLoader(tmp_path).load()

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="empty"):
            ConfigLoader(write_config(tmp_path, engine="")).load()

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigLoadError) as exc_info:
            ConfigLoader(write_config(tmp_path, engine="alerting: [unclosed\n")).load()
        assert exc_info.value.cause is not None

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="Invalid engine configuration"):
            ConfigLoader(write_config(tmp_path, engine="alerting:\n  history_size: 10\n")).load()

    def test_invalid_rule(self, tmp_path):
        rules = "rules:\n  - id: bad\n    name: Bad\n    type: high_temperature\n    threshold: 1\n    cooldown_period: -5\n"
        with pytest.raises(ConfigLoadError, match="'bad'"):
            ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML, rules=rules)).load()

    def test_rule_id_with_colon(self, tmp_path):
        rules = "rules:\n  - id: 'a:b'\n    name: Bad\n    type: anomaly\n    threshold: 1\n"
        with pytest.raises(ConfigLoadError):
            ConfigLoader(write_config(tmp_path, engine=ENGINE_YAML, rules=rules)).load()

    def test_duplicate_rule_ids(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="Duplicate rule ids"):
            ConfigLoader(write_config(
                tmp_path, engine=ENGINE_YAML, rules=RULES_YAML + RULES_YAML.split("rules:\n")[1],
            )).load()
