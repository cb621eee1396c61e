import json
import math

import pytest
import requests

from metropulse.services import registry as registry_module
from metropulse.services.registry import NetworkRegistry, RegistryError, load_registry

from conftest import REGISTRY_DATA


def test_bundled_registry_loads():
    registry = load_registry()
    assert "1" in registry.lines
    assert registry.lines["1"].stations[0].name == "La Défense"
    assert registry.runnable_line_ids()
    assert registry.traffic_multiplier("stopped") == math.inf


def test_load_registry_from_file(tmp_path):
    path = tmp_path / "network.json"
    path.write_text(json.dumps(REGISTRY_DATA), encoding="utf-8")

    registry = load_registry(str(path))
    assert set(registry.lines) == {"A", "B", "C", "X"}
    assert registry.runnable_line_ids() == ["A", "B", "C"]


def test_load_registry_from_url(monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return REGISTRY_DATA

    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse()

    monkeypatch.setattr(registry_module.requests, "get", fake_get)

    registry = load_registry("https://example.com/network.json")
    assert calls == ["https://example.com/network.json"]
    assert "B" in registry.lines


def test_load_registry_network_failure(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(registry_module.requests, "get", fake_get)

    with pytest.raises(RegistryError):
        load_registry("http://example.com/network.json")


def test_load_registry_missing_file(tmp_path):
    with pytest.raises(RegistryError):
        load_registry(str(tmp_path / "missing.json"))


def test_invalid_registry_data():
    with pytest.raises(RegistryError):
        NetworkRegistry.from_dict({"lines": {"A": {"name": "No stations"}}})


def test_neutral_traffic_state_always_present():
    registry = NetworkRegistry.from_dict({"lines": REGISTRY_DATA["lines"]})
    assert registry.is_traffic_state("normal")
    assert registry.traffic_multiplier("normal") == 1.0
    assert registry.traffic_multiplier("unknown") == 1.0
    assert registry.traffic_multiplier(None) == 1.0


def test_model_for_line(registry):
    assert registry.model_for_line("A") == "M1"
    assert registry.model_for_line("B") == "M1"
    assert registry.model_for_line("C") in {"M1", "M2", "M3"}


def test_model_for_line_without_models():
    registry = NetworkRegistry.from_dict({"lines": REGISTRY_DATA["lines"]})
    assert registry.model_for_line("A") is None


def test_get_station_bounds(registry):
    assert registry.get_station("A", 1).name == "Bravo"
    assert registry.get_station("A", 2) is None
    assert registry.get_station("A", -1) is None
    assert registry.get_station("nope", 0) is None


def test_line_length_km(registry):
    length = registry.line_length_km("A")
    assert 12 < length < 15
    assert registry.line_length_km("nope") == 0.0
