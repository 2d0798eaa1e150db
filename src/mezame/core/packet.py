"""Wake-on-LAN magic packet construction."""

SYNC_STREAM = b"\xff" * 6
MAC_REPEAT = 16
PACKET_SIZE = len(SYNC_STREAM) + 6 * MAC_REPEAT  # 102


def build_magic_packet(mac_bytes: bytes) -> bytes:
    """
    Build the 102-byte magic packet for a parsed MAC address.

    Layout: 6 bytes of 0xFF followed by the MAC repeated 16 times.

    Args:
        mac_bytes: The 6 raw address bytes (see ``mezame.core.mac.parse_mac``)

    Returns:
        Packet payload

    Raises:
        ValueError: If ``mac_bytes`` is not exactly 6 bytes long
    """
    if len(mac_bytes) != 6:
        raise ValueError(f"MAC address must be 6 bytes, got {len(mac_bytes)}")
    return SYNC_STREAM + bytes(mac_bytes) * MAC_REPEAT
