"""Core Wi-Fi record handling.

This package contains the core components of wifi-unredactor:
- BSSID to access-point name mapping table
- Wi-Fi record model and builder
- JSON and CSV output formatters
- Linux radio state provider
- Exception handling

The core is independent of the command line, so the record and formatters can
be used from other programs.
"""
