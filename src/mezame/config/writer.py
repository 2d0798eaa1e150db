"""Atomic YAML config write-back."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from mezame.core.device import Device


def device_to_raw(device: Device) -> dict[str, Any]:
    """Serialize a Device back to the raw YAML dict format the loader expects."""
    return device.to_dict()


def write_config(path: Path, config: dict[str, Any]) -> None:
    """
    Atomically write a config dict to a YAML file.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written file.

    Args:
        path: Destination config.yaml path.
        config: Full config dict (settings + devices).
    """
    tmp = path.with_suffix(".yaml.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        os.replace(tmp, path)
    except Exception:
        # Clean up temp file on failure
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


def build_config_dict(
    devices: list[Device],
    settings: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """
    Build a full config dict from devices + settings.

    Returns:
        Config dict ready for write_config().
    """
    result: dict[str, Any] = {}
    if settings:
        result["settings"] = settings
    result["devices"] = [device_to_raw(d) for d in devices]
    return result
