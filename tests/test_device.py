import json

import pytest

from avr_tool.errors import DeviceDataError
from avr_tool.fuses.device import find_device, list_devices, load_device, parse_device
from avr_tool.fuses.model import FieldKind


def test_bundled_devices_load():
    names = {d.name for d in list_devices()}
    assert {"ATmega328P", "ATtiny85"} <= names
    for dev in list_devices():
        assert [r.name for r in dev.registers]
        for reg in dev.registers:
            assert 0 <= reg.default <= 0xFF
            for f in reg.fields:
                for v in f.values:
                    assert v.value & ~f.mask == 0


@pytest.mark.parametrize("key", ["atmega328p", "ATmega328P", "m328p"])
def test_find_device(key):
    assert find_device(key).name == "ATmega328P"


def test_find_device_unknown():
    with pytest.raises(KeyError):
        find_device("z80")


def test_register_lookup(m328p):
    assert m328p.register("low").name == "LOW"
    assert m328p.register("HIGH").default == 0xD9
    with pytest.raises(KeyError):
        m328p.register("FUSE5")


def test_field_kinds(m328p):
    low = m328p.register("LOW")
    assert low.field("CKDIV8").kind is FieldKind.BOOLEAN
    assert low.field("SUT_CKSEL").kind is FieldKind.ENUM
    assert low.field("CKDIV8").title == "Divide clock by 8 internally"


def test_sorted_fields_by_mask(m328p):
    high = m328p.register("HIGH")
    masks = [f.mask for f in high.sorted_fields()]
    assert masks == sorted(masks, reverse=True)


def test_parse_device_accepts_name_labels():
    dev = parse_device({
        "name": "Demo",
        "fuses": [{"name": "LOW", "default": 0xFF, "bitfields": [
            {"name": "MODE", "mask": 3, "values": [{"value": 3, "name": "idle"}, {"value": 0, "label": "run"}]},
        ]}],
    })
    assert dev.partno == "Demo"
    assert dev.f_cpu is None
    labels = [v.label for v in dev.register("LOW").field("MODE").values]
    assert labels == ["idle", "run"]


@pytest.mark.parametrize("data", [
    {"fuses": []},
    {"name": "X", "fuses": [{"name": "LOW"}]},
    {"name": "X", "fuses": [{"name": "LOW", "default": 300}]},
    {"name": "X", "fuses": [{"name": "LOW", "default": 1, "bitfields": [{"name": "A", "mask": 0x100}]}]},
])
def test_parse_device_rejects_malformed(data):
    with pytest.raises(DeviceDataError):
        parse_device(data)


def test_load_device_bad_json(tmp_path):
    p = tmp_path / "broken.json"
    p.write_text("{ not json", encoding="utf-8")
    with pytest.raises(DeviceDataError):
        load_device(p)


def test_find_device_in_custom_dir(tmp_path):
    (tmp_path / "custom.json").write_text(json.dumps({"name": "Custom", "partno": "cx", "fuses": []}), encoding="utf-8")
    assert find_device("cx", directory=tmp_path).name == "Custom"
    assert find_device("custom", directory=tmp_path).partno == "cx"
