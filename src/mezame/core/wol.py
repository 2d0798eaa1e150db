"""Wake-on-LAN dispatch: one magic packet, one UDP broadcast datagram."""

import logging
import socket
from dataclasses import dataclass
from typing import Optional

from mezame.core.mac import InvalidMacAddress, format_mac, parse_mac
from mezame.core.packet import build_magic_packet

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST = "255.255.255.255"
DEFAULT_PORT = 9
# Nothing ever answers a magic packet, so the socket only needs long enough
# for the kernel to accept the datagram.
SEND_TIMEOUT = 0.5


class TransportError(OSError):
    """Raised when a magic packet cannot be handed to the network stack."""


@dataclass(frozen=True)
class WakeResult:
    """
    Outcome of a single send attempt.

    ``success`` only means the packet was transmitted; Wake-on-LAN has no
    acknowledgement, so it never confirms that the device powered on.
    """

    success: bool
    device: str
    mac: str
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "device": self.device,
            "mac": self.mac,
            "message": self.message,
        }


def send_packet(packet: bytes, broadcast: str, port: int) -> None:
    """
    Send ``packet`` as a single UDP broadcast datagram to ``(broadcast, port)``.

    Raises:
        TransportError: On any socket, address resolution or bad-address failure
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.settimeout(SEND_TIMEOUT)
            sock.sendto(packet, (broadcast, port))
    except (OSError, OverflowError, TypeError, ValueError) as exc:
        raise TransportError(f"Failed to send to {broadcast}:{port}: {exc}") from exc


def wake(
    mac: str,
    broadcast: Optional[str] = None,
    port: Optional[int] = None,
    device: str = "",
) -> WakeResult:
    """
    Send a Wake-on-LAN magic packet to wake a remote machine.

    Args:
        mac: MAC address of the target machine (e.g., "AA:BB:CC:DD:EE:FF")
        broadcast: Broadcast IP address (default: 255.255.255.255)
        port: UDP port for WOL packet (default: 9)
        device: Registered device name, or "" when waking a raw MAC

    Returns:
        WakeResult describing whether the packet was sent. Validation and
        transport failures are reported in the result, never raised.
    """
    target = broadcast or DEFAULT_BROADCAST
    dest_port = DEFAULT_PORT if port is None else port

    try:
        mac_bytes = parse_mac(mac)
    except InvalidMacAddress as exc:
        logger.warning("Not sending WOL packet for %r: %s", device or mac, exc)
        return WakeResult(success=False, device=device, mac=str(mac), message=str(exc))

    canonical = format_mac(mac_bytes)
    packet = build_magic_packet(mac_bytes)
    logger.info("Sending WOL magic packet to %s via %s:%d", canonical, target, dest_port)
    try:
        send_packet(packet, target, dest_port)
    except TransportError as exc:
        logger.warning("WOL packet to %s failed: %s", canonical, exc)
        return WakeResult(success=False, device=device, mac=canonical, message=str(exc))

    logger.debug("WOL packet sent successfully")
    label = f"'{device}' ({canonical})" if device else canonical
    return WakeResult(
        success=True,
        device=device,
        mac=canonical,
        message=f"Magic packet sent to {label} via {target}:{dest_port}",
    )
