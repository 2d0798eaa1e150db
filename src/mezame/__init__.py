"""Mezame — Wake-on-LAN device registry and dispatcher."""

__version__ = "0.1.0"
