"""YAML configuration loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

from mezame.core.device import Device
from mezame.core.mac import InvalidMacAddress, parse_mac
from mezame.core.wol import DEFAULT_BROADCAST, DEFAULT_PORT

DEFAULT_SETTINGS: dict[str, Any] = {
    "broadcast": DEFAULT_BROADCAST,
    "port": DEFAULT_PORT,
    "max_workers": 4,
    "cors_origins": ["http://localhost:3000"],
}


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path, encoding="utf-8") as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    settings = config.get("settings") or {}
    if not isinstance(settings, dict):
        errors.append("'settings' must be a mapping")
    else:
        port = settings.get("port", DEFAULT_PORT)
        if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
            errors.append(f"settings: invalid port '{port}' (expected 1-65535)")
        workers = settings.get("max_workers", 1)
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            errors.append(f"settings: invalid max_workers '{workers}' (expected >= 1)")

    devices = config.get("devices")
    if devices is None:
        return errors
    if not isinstance(devices, list):
        errors.append("'devices' must be a list")
        return errors

    seen: set[str] = set()
    for i, device in enumerate(devices):
        prefix = f"devices[{i}]"
        if not isinstance(device, dict):
            errors.append(f"{prefix}: must be a mapping")
            continue
        for field in ("name", "mac"):
            if not device.get(field):
                errors.append(f"{prefix}: missing required field '{field}'")
        mac = device.get("mac", "")
        if mac:
            try:
                parse_mac(str(mac))
            except InvalidMacAddress:
                errors.append(f"{prefix}: invalid mac '{mac}'")
        for field in ("ip", "broadcast"):
            value = device.get(field)
            if isinstance(value, (dict, list, bool)):
                errors.append(f"{prefix}: '{field}' must be a string")
        name = device.get("name")
        if name:
            if name in seen:
                errors.append(f"{prefix}: duplicate device name '{name}'")
            seen.add(name)

    return errors


def settings_from_config(config: dict[str, Any]) -> dict[str, Any]:
    """Return the config's settings merged over the defaults."""
    settings = dict(DEFAULT_SETTINGS)
    settings.update(config.get("settings") or {})
    return settings


def devices_from_config(config: dict[str, Any]) -> list[Device]:
    """
    Construct Device objects from a validated config dict.

    Args:
        config: Parsed and validated config dictionary

    Returns:
        List of Device instances, in file order
    """
    return [Device.from_dict(raw) for raw in config.get("devices") or []]
