import pytest

from barmods.temperature import Temperature


def _sensor(tmp_path, content):
    path = tmp_path / "temp"
    path.write_text(content)
    return str(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        Temperature({"hwmon-path": str(tmp_path / "absent")})


def test_thermal_zone_path():
    with pytest.raises(OSError):
        Temperature({"thermal-zone": 987654})


def test_hwmon_path_used(tmp_path):
    path = _sensor(tmp_path, "42000\n")
    module = Temperature({"hwmon-path": path})
    assert module.file_path == path


def test_read_whole_degrees(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "42000\n")})
    celsius, fahrenheit = module.read_temperature()
    assert celsius == 42
    assert fahrenheit > celsius


def test_garbage_reads_as_zero(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "abc\n")})
    assert module.read_temperature()[0] == 0


def test_empty_file_reads_as_zero(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "")})
    assert module.read_temperature()[0] == 0


def test_default_format(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "42000\n")})
    view = module.render()
    assert view.text == "42°C"
    assert view.critical is False


def test_fahrenheit_matches_render(tmp_path):
    module = Temperature(
        {"hwmon-path": _sensor(tmp_path, "55300\n"), "format": "{temperatureF}"}
    )
    assert module.render().text == str(module.read_temperature()[1])


def test_critical_threshold(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "80000\n"), "critical-threshold": 80})
    assert module.is_critical(80)
    assert not module.is_critical(79)


def test_no_threshold_never_critical(tmp_path):
    module = Temperature({"hwmon-path": _sensor(tmp_path, "99000\n")})
    assert not module.is_critical(200)


def test_critical_format(tmp_path):
    module = Temperature(
        {
            "hwmon-path": _sensor(tmp_path, "90000\n"),
            "critical-threshold": 80,
            "format-critical": "HOT {temperatureC}",
        }
    )
    view = module.render()
    assert view.critical is True
    assert view.text == "HOT 90"


def test_critical_format_unused_below_threshold(tmp_path):
    module = Temperature(
        {
            "hwmon-path": _sensor(tmp_path, "50000\n"),
            "critical-threshold": 80,
            "format-critical": "HOT",
            "format": "{temperatureC}",
        }
    )
    view = module.render()
    assert view.critical is False
    assert view.text == "50"


def test_icon_string(tmp_path):
    module = Temperature(
        {"hwmon-path": _sensor(tmp_path, "30000\n"), "format": "{icon}", "format-icons": "T"}
    )
    assert module.render().text == "T"