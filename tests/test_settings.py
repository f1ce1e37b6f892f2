import json

import pytest

from resmon.settings import Base, RefreshSpeed, Settings, TemperatureUnit
from resmon.util import ResourceError


def test_enum_defaults():
    settings = Settings()
    assert settings.base() is Base.DECIMAL
    assert settings.temperature_unit() is TemperatureUnit.CELSIUS
    assert settings.refresh_speed() is RefreshSpeed.NORMAL


def test_set_enum_round_trip():
    settings = Settings()
    settings.set("base", Base.BINARY)
    assert settings.base() is Base.BINARY
    assert settings.get("base") == "Binary"


def test_set_bool_and_int():
    settings = Settings()
    settings.set("show-virtual-drives", True)
    settings.set("window-width", 1234)
    assert settings.get("show-virtual-drives") is True
    assert settings.get("window-width") == 1234


def test_wrong_types_rejected():
    settings = Settings()
    with pytest.raises(TypeError):
        settings.set("window-width", True)
    with pytest.raises(TypeError):
        settings.set("network-bits", 1)
    with pytest.raises(TypeError):
        settings.set("base", TemperatureUnit.KELVIN)


def test_unknown_key():
    settings = Settings()
    with pytest.raises(KeyError):
        settings.get("no-such-key")
    with pytest.raises(KeyError):
        settings.set("no-such-key", True)
    with pytest.raises(KeyError):
        settings.connect("no-such-key", print)


def test_connect_receives_typed_values():
    settings = Settings()
    seen = []
    settings.connect("refresh-speed", seen.append)
    settings.connect("network-bits", seen.append)
    settings.set("refresh-speed", RefreshSpeed.FAST)
    settings.set("network-bits", True)
    assert seen == [RefreshSpeed.FAST, True]


def test_connect_only_fires_for_its_key():
    settings = Settings()
    seen = []
    settings.connect("sidebar-details", seen.append)
    settings.set("show-logical-cpus", True)
    assert seen == []


def test_save_and_reload(tmp_path):
    path = tmp_path / "conf" / "settings.json"
    settings = Settings(path)
    settings.set("temperature-unit", TemperatureUnit.FAHRENHEIT)
    settings.set("is-maximized", True)
    settings.save()
    reloaded = Settings(path)
    assert reloaded.temperature_unit() is TemperatureUnit.FAHRENHEIT
    assert reloaded.get("is-maximized") is True


def test_invalid_stored_enum_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"base": "Octal", "refresh-speed": "Fast"}), encoding="utf-8")
    settings = Settings(path)
    assert settings.base() is Base.DECIMAL
    assert settings.refresh_speed() is RefreshSpeed.FAST


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ResourceError):
        Settings(path)


def test_save_without_path_raises():
    with pytest.raises(ResourceError):
        Settings().save()


@pytest.mark.parametrize(
    "speed, interval",
    [
        (RefreshSpeed.VERY_SLOW, 3.0),
        (RefreshSpeed.SLOW, 2.0),
        (RefreshSpeed.NORMAL, 1.0),
        (RefreshSpeed.FAST, 0.5),
        (RefreshSpeed.VERY_FAST, 0.25),
    ],
)
def test_refresh_intervals(speed, interval):
    assert speed.ui_refresh_interval() == interval
    assert speed.process_refresh_interval() == interval * 2