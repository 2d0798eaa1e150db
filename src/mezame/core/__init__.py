"""Core Wake-on-LAN logic: MAC parsing, packets, dispatch, registry."""
