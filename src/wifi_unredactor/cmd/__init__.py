"""Command line interface modules.

This package provides the ``wifi-unredactor`` command, which reads the
associated Wi-Fi interface and prints it as JSON or CSV. The command modules
only wire options to the core; parsing, formatting and radio access live in
``wifi_unredactor.core``.
"""
