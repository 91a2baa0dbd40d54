"""Tests for configuration loading."""

import pytest

from equipsync.common.config import (
    ConnectionProtocol,
    config_to_dict,
    load_config_file,
    load_controller_config,
)
from equipsync.common.exceptions import ConfigError

SAMPLE = {
    "controller": {"id": "pool-1", "name": "Backyard"},
    "settings": {"polling_interval_ms": 5000, "latch_ms": 3000},
    "connections": [
        {"id": "c1", "host": "10.0.0.20", "port": 8080},
        {"id": "c2", "protocol": "https", "host": "relay.example", "port": 443, "base_path": "/api"},
    ],
    "equipment": {
        "circuits": [
            {"id": 5, "name": "Pool Light", "master": 1, "connection_id": "c1", "device_binding": "b1"},
            {"id": "6", "name": "Aux", "master": 0},
        ],
        "pumps": [
            {"id": 1, "name": "Filter", "master": 1, "connection_id": "c2", "device_binding": ""},
        ],
    },
}


def test_load_controller_config():
    config = load_controller_config(SAMPLE)

    assert config.id == "pool-1"
    assert config.settings.polling_interval_ms == 5000
    assert config.settings.latch_ms == 3000
    assert config.get_connection("c2").protocol == ConnectionProtocol.HTTPS
    assert config.get_connection("c2").base_url == "https://relay.example:443/api"

    circuits = config.get_equipment("circuits")
    assert [c.id for c in circuits] == [5, 6]
    assert circuits[0].is_bound
    assert circuits[0].kind == "circuits"
    assert circuits[1].master == 0

    pump = config.get_equipment("pumps")[0]
    assert pump.device_binding is None
    assert not pump.is_bound
    assert config.count_equipment() == {"circuits": 2, "pumps": 1}


def test_defaults():
    config = load_controller_config({"settings": {"polling_interval_ms": 0}})

    assert config.settings.polling_interval_ms == 10000
    assert config.settings.latch_ms == 7000
    assert config.equipment == {}


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"equipment": {"circuits": [{"name": "no id"}]}},
        {"equipment": {"circuits": [{"id": "five"}]}},
        {"equipment": {"circuits": [{"id": 1}, {"id": 1}]}},
        {"equipment": {"circuits": [{"id": 1, "connection_id": "nope", "device_binding": "b"}]}},
        {"connections": [{"host": "x"}]},
        {"connections": [{"id": "c1", "protocol": "mqtt"}]},
        {"connections": ["c1"]},
        {"connections": [{"id": "c1", "port": "eighty"}]},
        {"equipment": {"circuits": ["five"]}},
        {"settings": {"latch_ms": None}},
        {"settings": {"request_timeout_s": None}},
        {"settings": {"health_port": "http"}},
        {"settings": ["latch_ms"]},
    ],
)
def test_invalid_config_raises(data):
    with pytest.raises(ConfigError):
        load_controller_config(data)


def test_load_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "controller: {id: test}\n"
        "equipment:\n"
        "  circuits:\n"
        "    - {id: 1, name: Light, master: 1}\n",
        encoding="utf-8",
    )

    config = load_config_file(path)

    assert config.id == "test"
    assert config.get_equipment("circuits")[0].name == "Light"


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigError):
        load_config_file(tmp_path / "absent.yaml")


def test_load_config_file_bad_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("equipment: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config_file(path)


def test_config_to_dict_is_plain():
    data = config_to_dict(load_controller_config(SAMPLE))

    assert data["connections"][1]["protocol"] == "https"
    assert data["equipment"]["circuits"][0]["device_binding"] == "b1"
