"""YAML-file persistence for the device registry."""

import logging
from pathlib import Path
from typing import Any

import yaml

from mezame.config.loader import ConfigError, devices_from_config, load_config, validate_config
from mezame.config.writer import device_to_raw, write_config
from mezame.core.device import Device

logger = logging.getLogger(__name__)


class YamlDeviceStore:
    """
    Keeps the ``devices`` list of a config.yaml file.

    Saving rewrites only the ``devices`` key; ``settings`` and any other
    top-level keys are preserved as found on disk.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = load_config(self.path)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse {self.path}: {exc}") from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{self.path}: config root must be a YAML mapping")
        return raw

    def load(self) -> list[Device]:
        raw = self._read_raw()
        errors = validate_config(raw)
        if errors:
            raise ConfigError(f"{self.path}: " + "; ".join(errors))
        devices = devices_from_config(raw)
        logger.debug("Loaded %d device(s) from %s", len(devices), self.path)
        return devices

    def save(self, devices: list[Device]) -> None:
        raw = self._read_raw()
        raw["devices"] = [device_to_raw(d) for d in devices]
        write_config(self.path, raw)
        logger.debug("Saved %d device(s) to %s", len(devices), self.path)
