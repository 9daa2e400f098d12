import json

import pytest

from avr_tool.programmer.project import PROJECT_ID, is_project, load_project_config


def _write(folder, data):
    p = folder / "config.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def test_load_full_config(tmp_path):
    p = _write(tmp_path, {
        "id": PROJECT_ID, "mcu": "atmega328p", "partno": "m328p", "cpu_freq": 8000000,
        "programmer": "usbasp", "port": "usb", "bitClock": 10,
    })
    cfg = load_project_config(p)
    assert cfg.partno == "m328p"
    assert cfg.programmer == "usbasp"
    assert cfg.port == "usb"
    assert cfg.bit_clock == "10"
    assert cfg.cpu_freq == 8000000
    assert cfg.cwd == str(tmp_path)


def test_legacy_keys_and_directory_path(tmp_path):
    _write(tmp_path, {"mcu": "attiny13", "programmer": "usbtiny", "bitclock": "5", "port": ""})
    cfg = load_project_config(tmp_path)
    assert cfg.partno == "attiny13"
    assert cfg.bit_clock == "5"
    assert cfg.port is None
    assert cfg.cpu_freq is None


def test_config_without_part(tmp_path):
    assert load_project_config(_write(tmp_path, {"programmer": "usbasp"})) is None


def test_broken_json(tmp_path):
    p = tmp_path / "config.json"
    p.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_project_config(p)


def test_config_not_an_object(tmp_path):
    p = tmp_path / "config.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="expected a JSON object"):
        load_project_config(p)


def test_is_project(tmp_path):
    assert not is_project(tmp_path)
    _write(tmp_path, {"id": "something-else"})
    assert not is_project(tmp_path)
    _write(tmp_path, {"id": PROJECT_ID})
    assert is_project(tmp_path)
    (tmp_path / "config.json").write_text("[]", encoding="utf-8")
    assert not is_project(tmp_path)
