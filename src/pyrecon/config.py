"""Engine configuration for pyrecon."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyrecon._constants import BASELINE_SECTION_KEYS
from pyrecon.exceptions import ReconConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ReconConfigError(f"{name} must be an integer, got {value!r}") from exc


_ENV_MQTT_STR: dict[str, str] = {
    "RECON_MQTT_HOST": "host",
    "RECON_MQTT_TOPIC": "topic",
    "RECON_MQTT_USERNAME": "username",
    "RECON_MQTT_PASSWORD": "password",
}


def _split_keys(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class MqttSettings:
    """Broker settings for cross-process change relaying."""

    enabled: bool = False
    host: str = "localhost"
    port: int = 1883
    topic: str = "pyrecon/changes"
    keepalive: int = 60
    tls: bool = False
    username: str | None = None
    password: str | None = None


@dataclasses.dataclass(frozen=True)
class ReconConfig:
    """Engine configuration.

    Parameters
    ----------
    extra_section_keys : tuple of str
        Inspection sections enabled on top of the baseline five.
    db_path : str or None
        SQLite file holding the collections. ``None`` keeps them in memory.
    catalog_path : str or None
        JSON file with the baseline vehicle catalog.
    mqtt : MqttSettings
        Optional relay of change notifications between processes.
    """

    extra_section_keys: tuple[str, ...] = ()
    db_path: str | None = None
    catalog_path: str | None = None
    mqtt: MqttSettings = dataclasses.field(default_factory=MqttSettings)

    @property
    def section_keys(self) -> tuple[str, ...]:
        """Active section keys: the baseline followed by the extra ones, deduplicated."""
        return tuple(dict.fromkeys((*BASELINE_SECTION_KEYS, *self.extra_section_keys)))

    @classmethod
    def from_env(cls, **overrides: Any) -> ReconConfig:
        """Create configuration from ``RECON_*`` environment variables.

        Explicit keyword arguments override environment values. ``mqtt``
        may be given as a :class:`MqttSettings` or a dict of its fields.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        if "RECON_MQTT_ENABLED" in env:
            mqtt_kwargs["enabled"] = _env_bool(env.get("RECON_MQTT_ENABLED"), False)
        if "RECON_MQTT_TLS" in env:
            mqtt_kwargs["tls"] = _env_bool(env.get("RECON_MQTT_TLS"), False)
        for env_key, field_name in _ENV_MQTT_STR.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val
        for env_key, field_name in (("RECON_MQTT_PORT", "port"), ("RECON_MQTT_KEEPALIVE", "keepalive")):
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = _env_int(env_key, val)

        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        try:
            mqtt = MqttSettings(**mqtt_kwargs)
        except TypeError as exc:
            raise ReconConfigError(f"Invalid MQTT settings: {exc}") from exc

        config_kwargs: dict[str, Any] = {"mqtt": mqtt}
        keys_env = env.get("RECON_SECTION_KEYS")
        if keys_env is not None:
            config_kwargs["extra_section_keys"] = _split_keys(keys_env)
        for env_key, field_name in (("RECON_DB_PATH", "db_path"), ("RECON_CATALOG_PATH", "catalog_path")):
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        extra = overrides.get("extra_section_keys")
        if isinstance(extra, str):
            overrides["extra_section_keys"] = _split_keys(extra)
        elif extra is not None:
            overrides["extra_section_keys"] = tuple(extra)

        config_kwargs.update(overrides)
        try:
            return cls(**config_kwargs)
        except TypeError as exc:
            raise ReconConfigError(f"Invalid configuration: {exc}") from exc
