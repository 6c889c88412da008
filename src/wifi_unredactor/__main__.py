"""Allow ``python -m wifi_unredactor``."""

from wifi_unredactor.cmd.cli import app

app(prog_name="wifi-unredactor")
