"""MAC address parsing and normalization."""

import re

# Six hex pairs joined by one separator, reused through the backreference so
# "AA:BB-CC:..." is rejected.
_MAC_RE = re.compile(r"^([0-9A-Fa-f]{2})([:\-])((?:[0-9A-Fa-f]{2}\2){4}[0-9A-Fa-f]{2})$")


class InvalidMacAddress(ValueError):
    """Raised when a MAC address string cannot be parsed."""

    def __init__(self, mac: object) -> None:
        self.mac = mac
        super().__init__(f"Invalid MAC address: {mac!r}")


def parse_mac(mac: str) -> bytes:
    """
    Parse a MAC address into its 6 raw bytes.

    Accepts six two-digit hex groups separated uniformly by ':' or '-'
    (e.g. "AA:BB:CC:DD:EE:FF" or "aa-bb-cc-dd-ee-ff").

    Args:
        mac: MAC address text

    Returns:
        The address as 6 bytes, in order

    Raises:
        InvalidMacAddress: If the text is not a well-formed MAC address
    """
    if not isinstance(mac, str):
        raise InvalidMacAddress(mac)
    match = _MAC_RE.match(mac.strip())
    if not match:
        raise InvalidMacAddress(mac)
    sep = match.group(2)
    return bytes.fromhex(match.group(0).replace(sep, ""))


def format_mac(raw: bytes) -> str:
    """Render 6 raw bytes as an upper-case, colon-separated MAC address."""
    return ":".join(f"{b:02X}" for b in raw)


def normalize_mac(mac: str) -> str:
    """Validate a MAC address and return it in canonical "AA:BB:CC:DD:EE:FF" form."""
    return format_mac(parse_mac(mac))
