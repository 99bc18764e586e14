from pathlib import Path

import cv2

from watchshot.config.compose_config import get_interpolation_method
from watchshot.config.project_config import AppConfig

ENVIRONMENT = (
    "WATCHSHOT_CONFIG",
    "WATCHSHOT_ARTWORK_DIR",
    "WATCHSHOT_DEFAULTS",
    "WATCHSHOT_STORE_DIR",
    "WATCHSHOT_SCREENSHOTS_DIR",
    "WATCHSHOT_TINT",
)


def clear_environment(monkeypatch):
    for name in ENVIRONMENT:
        monkeypatch.delenv(name, raising=False)


def test_defaults_live_under_data_dir(monkeypatch, tmp_path):
    clear_environment(monkeypatch)
    config = AppConfig(data_dir=tmp_path)
    assert config.artwork_dir == tmp_path / "artwork"
    assert config.defaults_path == tmp_path / "defaults.json"
    assert config.store_dir == tmp_path / "store"
    assert config.watches_path.name == "watches.json"
    assert config.watches_path.exists()
    assert config.get_default_tint() is None


def test_environment_overrides_defaults(monkeypatch, tmp_path):
    clear_environment(monkeypatch)
    monkeypatch.setenv("WATCHSHOT_ARTWORK_DIR", str(tmp_path / "faces"))
    monkeypatch.setenv("WATCHSHOT_SCREENSHOTS_DIR", str(tmp_path / "shots"))
    config = AppConfig(data_dir=tmp_path)
    assert config.artwork_dir == tmp_path / "faces"
    assert config.screenshots_dir == tmp_path / "shots"


def test_arguments_override_environment(monkeypatch, tmp_path):
    clear_environment(monkeypatch)
    monkeypatch.setenv("WATCHSHOT_CONFIG", str(tmp_path / "env.json"))
    config = AppConfig(watches_path=Path("explicit.json"))
    assert config.watches_path == Path("explicit.json")


def test_default_tint_accepts_bare_hex(monkeypatch):
    monkeypatch.setenv("WATCHSHOT_TINT", "3a6ea5")
    assert AppConfig().get_default_tint() == "#3a6ea5"
    monkeypatch.setenv("WATCHSHOT_TINT", "navy")
    assert AppConfig().get_default_tint() == "navy"


def test_interpolation_method():
    assert get_interpolation_method() == cv2.INTER_LANCZOS4
