"""Device records."""

from dataclasses import dataclass
from typing import Any, Optional


def _optional_str(value: Any) -> Optional[str]:
    # YAML turns unquoted values like `10` into numbers.
    if value is None:
        return None
    return str(value).strip() or None


@dataclass(frozen=True)
class Device:
    """A registered machine that can be woken."""

    name: str
    mac: str
    # Informational only; packets always go to the broadcast address.
    ip: Optional[str] = None
    # Falls back to the configured default broadcast when unset.
    broadcast: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting unset optional fields."""
        d: dict[str, Any] = {"name": self.name, "mac": self.mac}
        if self.ip:
            d["ip"] = self.ip
        if self.broadcast:
            d["broadcast"] = self.broadcast
        return d

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Device":
        return cls(
            name=str(raw["name"]),
            mac=str(raw["mac"]),
            ip=_optional_str(raw.get("ip")),
            broadcast=_optional_str(raw.get("broadcast")),
        )
