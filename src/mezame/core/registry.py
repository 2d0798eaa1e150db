"""Device registry: named Device records with durable, serialized mutations."""

import logging
import threading
from dataclasses import replace
from typing import Any, Optional, Protocol

from mezame.core.device import Device
from mezame.core.mac import normalize_mac

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "mac", "ip", "broadcast")


class RegistryError(Exception):
    """Base class for registry lookups and uniqueness violations."""


class DuplicateName(RegistryError):
    """Raised when a device name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Device '{name}' already exists")


class NotFound(RegistryError):
    """Raised when a referenced device is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Device '{name}' not found")


class DeviceStore(Protocol):
    """Persistence backend for the registry."""

    def load(self) -> list[Device]: ...

    def save(self, devices: list[Device]) -> None: ...


class InMemoryDeviceStore:
    """Non-durable store, for tests and throwaway registries."""

    def __init__(self, devices: Optional[list[Device]] = None) -> None:
        self.devices: list[Device] = list(devices or [])
        self.saves = 0

    def load(self) -> list[Device]:
        return list(self.devices)

    def save(self, devices: list[Device]) -> None:
        self.devices = list(devices)
        self.saves += 1


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validated(device: Device) -> Device:
    name = device.name.strip() if isinstance(device.name, str) else ""
    if not name:
        raise ValueError("Device name must not be empty")
    return Device(
        name=name,
        mac=normalize_mac(device.mac),
        ip=_clean_optional(device.ip),
        broadcast=_clean_optional(device.broadcast),
    )


class DeviceRegistry:
    """
    Owns the set of registered devices, keyed by name.

    Every mutation runs under one lock covering read, modify and persist, and
    is saved to the store before it returns. If the store fails, the
    in-memory state is rolled back and the store's exception propagates.

    Usage::

        registry = DeviceRegistry(YamlDeviceStore(path))
        registry.add(Device(name="nas", mac="aa-bb-cc-dd-ee-ff"))
        registry.get("nas").mac  # "AA:BB:CC:DD:EE:FF"
    """

    def __init__(self, store: DeviceStore) -> None:
        self._store = store
        self._lock = threading.RLock()
        self._devices: dict[str, Device] = {}
        for device in store.load():
            if device.name in self._devices:
                logger.warning("Ignoring duplicate stored device '%s'", device.name)
                continue
            self._devices[device.name] = _validated(device)
        logger.debug("Registry loaded with %d device(s)", len(self._devices))

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, name: object) -> bool:
        return name in self._devices

    def list(self) -> list[Device]:
        """Return all devices in insertion order."""
        with self._lock:
            return list(self._devices.values())

    def get(self, name: str) -> Device:
        """Return the device called ``name``; raises NotFound if absent."""
        with self._lock:
            try:
                return self._devices[name]
            except KeyError:
                raise NotFound(name) from None

    def add(self, device: Device) -> Device:
        """
        Register a new device.

        Returns:
            The stored device, with its MAC normalized

        Raises:
            DuplicateName: If the name is already registered
            InvalidMacAddress: If the MAC address is malformed
            ValueError: If the name is empty
        """
        device = _validated(device)
        with self._lock:
            if device.name in self._devices:
                raise DuplicateName(device.name)
            updated = dict(self._devices)
            updated[device.name] = device
            self._commit(updated)
        logger.info("Added device '%s' (%s)", device.name, device.mac)
        return device

    def update(self, name: str, /, **changes: Any) -> Device:
        """
        Merge ``changes`` over the device called ``name``.

        Accepted keys are ``name``, ``mac``, ``ip`` and ``broadcast``; fields
        not given are preserved. A ``None`` or empty ``ip``/``broadcast``
        clears it. The record keeps its position when renamed.

        Raises:
            NotFound: If no device is called ``name``
            DuplicateName: If renaming onto a different existing device
            InvalidMacAddress: If a new MAC address is malformed
            ValueError: On unknown fields or an empty name
        """
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown device field(s): {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._devices.get(name)
            if current is None:
                raise NotFound(name)
            for key in ("name", "mac"):
                if key in changes and changes[key] is None:
                    del changes[key]
            merged = _validated(replace(current, **changes))
            if merged.name != name and merged.name in self._devices:
                raise DuplicateName(merged.name)
            updated = {
                (merged.name if key == name else key): (merged if key == name else dev)
                for key, dev in self._devices.items()
            }
            self._commit(updated)
        logger.info("Updated device '%s'", merged.name)
        return merged

    def remove(self, name: str) -> Device:
        """Delete the device called ``name`` and return it; raises NotFound if absent."""
        with self._lock:
            if name not in self._devices:
                raise NotFound(name)
            updated = dict(self._devices)
            removed = updated.pop(name)
            self._commit(updated)
        logger.info("Removed device '%s'", name)
        return removed

    def flush(self) -> None:
        """Persist the current contents to the store."""
        with self._lock:
            self._store.save(list(self._devices.values()))

    def _commit(self, updated: dict[str, Device]) -> None:
        # Caller holds the lock. Only swap in the new state once it is saved.
        self._store.save(list(updated.values()))
        self._devices = updated
