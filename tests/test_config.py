"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from clinicslots.config import AppConfig, BackendConfig, SchedulingDefaults


def test_defaults():
    config = AppConfig()

    assert config.timezone == "Europe/Vienna"
    assert config.defaults.slot_interval_minutes == 30
    assert config.defaults.service_duration_minutes == 30
    assert config.backend is None
    assert config.data_file is None
    assert config.log_level == "WARNING"


def test_to_rules():
    config = AppConfig(defaults=SchedulingDefaults(slot_interval_minutes=15, merge_adjacent_shifts=True))

    rules = config.to_rules()

    assert rules.slot_interval_minutes == 15
    assert rules.merge_adjacent_shifts is True


@pytest.mark.parametrize("field", ["slot_interval_minutes", "service_duration_minutes"])
def test_non_positive_defaults_are_rejected(field):
    with pytest.raises(ValidationError):
        SchedulingDefaults(**{field: 0})


def test_backend_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        BackendConfig(base_url="https://praxis.example.com/api", timeout_seconds=0)


def test_log_level_is_normalized():
    assert AppConfig(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        AppConfig(log_level="loud")


def test_load_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "timezone: Europe/Berlin\n"
        "defaults:\n"
        "  slot_interval_minutes: 15\n"
        "backend:\n"
        "  base_url: https://praxis.example.com/api\n"
        "  api_token: secret\n",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(config_file)

    assert config.timezone == "Europe/Berlin"
    assert config.defaults.slot_interval_minutes == 15
    assert config.defaults.service_duration_minutes == 30
    assert config.backend.api_token == "secret"
    assert config.backend.timeout_seconds == 10


def test_relative_data_file_resolves_next_to_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("data_file: data/praxis.yaml\n", encoding="utf-8")

    config = AppConfig.load_from_yaml(config_file)

    assert config.data_file == tmp_path / "data" / "praxis.yaml"


def test_absolute_data_file_is_kept(tmp_path):
    data_file = tmp_path / "elsewhere" / "praxis.yaml"
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"data_file: {data_file.as_posix()}\n", encoding="utf-8")

    assert AppConfig.load_from_yaml(config_file).data_file == data_file


def test_empty_file_uses_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("", encoding="utf-8")

    assert AppConfig.load_from_yaml(config_file) == AppConfig()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        AppConfig.load_from_yaml(tmp_path / "config.yaml")


def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("defaults: [oops", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        AppConfig.load_from_yaml(config_file)


def test_root_must_be_mapping(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- 1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        AppConfig.load_from_yaml(config_file)


def test_example_config_loads():
    example = Path(__file__).parent.parent / "config.example.yaml"

    config = AppConfig.load_from_yaml(example)

    assert config.data_file == example.parent / "sample_data" / "praxis.yaml"
    assert config.data_file.exists()
