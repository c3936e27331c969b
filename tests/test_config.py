"""
Tests for settings loading: config.json, SKETCHPAD_* environment overrides
and validation.
"""

import json
import logging

import pytest

from sketchpad.config import SketchpadSettings, load_config, load_settings, save_config


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


def test_defaults(config_path):
    settings = load_settings(config_path)
    assert settings == SketchpadSettings()
    assert settings.node_radius == 0.5
    assert settings.key_begin_node_creation == 'v'
    assert settings.key_add_loop == 'l'
    assert settings.loop_radius == pytest.approx(0.75)


def test_missing_file_loads_empty(config_path):
    assert load_config(config_path) == {}


def test_save_then_load(config_path):
    save_config({"node_radius": 0.8, "directed": True}, config_path)
    assert json.loads(config_path.read_text(encoding='utf-8')) == {"node_radius": 0.8, "directed": True}

    settings = load_settings(config_path)
    assert settings.node_radius == 0.8
    assert settings.directed is True


def test_environment_wins_over_file(config_path, monkeypatch):
    save_config({"arrow_size": 0.2, "key_delete": "x"}, config_path)
    monkeypatch.setenv("SKETCHPAD_ARROW_SIZE", "0.9")
    monkeypatch.setenv("SKETCHPAD_DIRECTED", "yes")

    settings = load_settings(config_path)

    assert settings.arrow_size == 0.9
    assert settings.directed is True
    assert settings.key_delete == "x"


def test_integer_fields_are_coerced(config_path, monkeypatch):
    monkeypatch.setenv("SKETCHPAD_CURVE_SAMPLES", "40")
    assert load_settings(config_path).curve_samples == 40


def test_unreadable_file_is_ignored(config_path, caplog):
    config_path.write_text("{not json", encoding='utf-8')
    with caplog.at_level(logging.WARNING):
        assert load_settings(config_path) == SketchpadSettings()
    assert "unreadable config" in caplog.text


def test_non_object_file_is_ignored(config_path):
    config_path.write_text("[1, 2, 3]", encoding='utf-8')
    assert load_config(config_path) == {}


def test_unknown_and_bad_keys_are_skipped(config_path, caplog):
    save_config({"colour": "red", "loop_segments": "many", "edge_color": "#112233"}, config_path)
    with caplog.at_level(logging.WARNING):
        settings = load_settings(config_path)
    assert settings.edge_color == "#112233"
    assert settings.loop_segments == SketchpadSettings().loop_segments
    assert "Unknown config key 'colour'" in caplog.text
    assert "loop_segments" in caplog.text


def test_invalid_values_fall_back_to_defaults(config_path, caplog):
    save_config({"node_radius": -1}, config_path)
    with caplog.at_level(logging.ERROR):
        settings = load_settings(config_path)
    assert settings == SketchpadSettings()
    assert "falling back to defaults" in caplog.text


@pytest.mark.parametrize("overrides", [
    {"node_radius": 0},
    {"curve_samples": 1},
    {"loop_segments": 1},
    {"min_preview_distance": 0},
])
def test_validation(overrides):
    with pytest.raises(ValueError):
        SketchpadSettings(**overrides)


def test_bad_boolean_env(config_path, monkeypatch, caplog):
    monkeypatch.setenv("SKETCHPAD_DIRECTED", "maybe")
    with caplog.at_level(logging.WARNING):
        assert load_settings(config_path).directed is False
    assert "SKETCHPAD_DIRECTED" in caplog.text


def test_default_config_path_is_project_root(monkeypatch):
    from sketchpad.config import default_config_path

    monkeypatch.delenv("SKETCHPAD_CONFIG", raising=False)
    path = default_config_path()
    assert path.name == "config.json"
    assert (path.parent / "sketchpad").is_dir()


def test_config_path_from_environment(tmp_path, monkeypatch):
    target = tmp_path / "custom.json"
    save_config({"edge_color": "#abcdef"}, target)
    monkeypatch.setenv("SKETCHPAD_CONFIG", str(target))
    assert load_settings().edge_color == "#abcdef"
