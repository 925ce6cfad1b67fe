from __future__ import annotations

import pytest

from pyrecon.config import MqttSettings, ReconConfig
from pyrecon.exceptions import ReconConfigError

_ENV_KEYS = (
    "RECON_SECTION_KEYS",
    "RECON_DB_PATH",
    "RECON_CATALOG_PATH",
    "RECON_MQTT_ENABLED",
    "RECON_MQTT_TLS",
    "RECON_MQTT_HOST",
    "RECON_MQTT_PORT",
    "RECON_MQTT_TOPIC",
    "RECON_MQTT_KEEPALIVE",
    "RECON_MQTT_USERNAME",
    "RECON_MQTT_PASSWORD",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = ReconConfig.from_env()

    assert config.section_keys == ("emissions", "cosmetic", "mechanical", "cleaned", "photos")
    assert config.db_path is None
    assert config.catalog_path is None
    assert config.mqtt == MqttSettings()


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECON_SECTION_KEYS", "detailing, , tires")
    monkeypatch.setenv("RECON_DB_PATH", "/var/lib/recon.db")
    monkeypatch.setenv("RECON_MQTT_ENABLED", "yes")
    monkeypatch.setenv("RECON_MQTT_HOST", "broker.local")
    monkeypatch.setenv("RECON_MQTT_PORT", " 8883 ")

    config = ReconConfig.from_env()

    assert config.extra_section_keys == ("detailing", "tires")
    assert config.section_keys[-2:] == ("detailing", "tires")
    assert config.db_path == "/var/lib/recon.db"
    assert config.mqtt.enabled is True
    assert config.mqtt.host == "broker.local"
    assert config.mqtt.port == 8883
    assert config.mqtt.topic == "pyrecon/changes"


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECON_SECTION_KEYS", "detailing")
    monkeypatch.setenv("RECON_MQTT_HOST", "broker.local")

    config = ReconConfig.from_env(extra_section_keys="tires", mqtt={"host": "other"})

    assert config.extra_section_keys == ("tires",)
    assert config.mqtt.host == "other"


def test_section_keys_are_deduplicated() -> None:
    config = ReconConfig(extra_section_keys=("photos", "detailing", "detailing"))
    assert config.section_keys == ("emissions", "cosmetic", "mechanical", "cleaned", "photos", "detailing")


def test_unrecognized_bool_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECON_MQTT_ENABLED", "maybe")
    assert ReconConfig.from_env().mqtt.enabled is False


def test_bad_integer_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECON_MQTT_KEEPALIVE", "soon")
    with pytest.raises(ReconConfigError, match="RECON_MQTT_KEEPALIVE"):
        ReconConfig.from_env()


def test_unknown_override_raises() -> None:
    with pytest.raises(ReconConfigError):
        ReconConfig.from_env(colour="red")
