import pytest
import yaml

from boundary_tools.common import ConfigLoader, ConfigurationError, ResolutionSettings, ensure_directory
from fake_browser import FakeBrowserDriver, FakeDocument
from testsuites.ui_testing.framework.element_resolver import ElementResolver
from testsuites.ui_testing.framework.frame_manager import FrameManager
from testsuites.ui_testing.framework.shadow_dom_resolver import ShadowDomResolver


def _write(path, data):
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


def test_env_override_and_defaults(monkeypatch, tmp_path):
    config_path = _write(tmp_path / "config.yaml", {"resolution": {"timeout_ms": 8000}})

    loader = ConfigLoader(config_path=config_path)
    assert loader.get("resolution.timeout_ms") == 8000
    assert loader.get("frames.max_depth", 5) == 5

    ConfigLoader.reset()
    monkeypatch.setenv("RESOLUTION_TIMEOUT_MS", "2500")
    loader = ConfigLoader(config_path=config_path)
    assert loader.get("resolution.timeout_ms", 15000) == 2500


def test_reload_updates_values(tmp_path):
    config_path = _write(tmp_path / "config.yaml", {"frames": {"max_depth": 3}})

    loader = ConfigLoader(config_path=config_path)
    assert loader.get("frames.max_depth") == 3

    _write(config_path, {"frames": {"max_depth": 7}})
    loader.reload()
    assert loader.get("frames.max_depth") == 7
    assert loader.get_section("frames") == {"max_depth": 7}


def test_missing_file_uses_defaults(tmp_path):
    loader = ConfigLoader(config_path=tmp_path / "absent.yaml")
    assert loader.get("resolution.timeout_ms", 15000) == 15000
    assert loader.get_section("resolution") == {}


def test_invalid_yaml_raises(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("resolution: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigLoader(config_path=config_path)


def test_resolution_settings_from_config(monkeypatch, tmp_path):
    config_path = _write(tmp_path / "config.yaml", {
        "resolution": {"timeout_ms": 4000, "auto_resolve_frames": True},
        "frames": {"max_depth": 2},
    })
    monkeypatch.setenv("RESOLUTION_AUTO_RESOLVE_SHADOW_DOM", "yes")

    settings = ResolutionSettings.from_config(ConfigLoader(config_path=config_path))

    assert settings == ResolutionSettings(
        timeout_ms=4000,
        poll_interval_ms=500,
        frame_max_depth=2,
        auto_resolve_shadow_dom=True,
        auto_resolve_frames=True,
    )


def test_resolution_settings_defaults_keep_fallbacks_off(tmp_path):
    settings = ResolutionSettings.from_config(ConfigLoader(config_path=tmp_path / "absent.yaml"))

    assert settings.auto_resolve_shadow_dom is False
    assert settings.auto_resolve_frames is False


def test_engine_defaults_follow_configuration(monkeypatch):
    monkeypatch.setenv("RESOLUTION_TIMEOUT_MS", "1234")
    monkeypatch.setenv("FRAMES_MAX_DEPTH", "2")
    driver = FakeBrowserDriver(FakeDocument())

    resolver = ElementResolver(driver)

    assert resolver.timeout_ms == 1234
    assert resolver.shadow_resolver.timeout_ms == 1234
    assert resolver.frame_manager.timeout_ms == 1234
    assert resolver.frame_manager.max_depth == 2
    assert FrameManager(driver).max_depth == 2
    assert ShadowDomResolver(driver).timeout_ms == 1234


def test_explicit_engine_arguments_win_over_configuration(monkeypatch):
    monkeypatch.setenv("RESOLUTION_TIMEOUT_MS", "1234")
    driver = FakeBrowserDriver(FakeDocument())

    manager = FrameManager(driver, max_depth=4, timeout_ms=50)

    assert (manager.max_depth, manager.timeout_ms) == (4, 50)


def test_ensure_directory_creates_nested_path(tmp_path):
    target = tmp_path / "reports" / "screenshots"

    assert ensure_directory(target) == target
    assert target.is_dir()
    assert ensure_directory(target) == target
