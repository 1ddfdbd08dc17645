"""itharness CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._listen import app as listen_app
from ._proxy import app as proxy_app
from ._server import app as server_app
from ._server import parse_settings

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "listen_app",
    "parse_settings",
    "proxy_app",
    "register_commands",
    "server_app",
]


def register_commands(app: "App") -> None:
    app.command(listen_app)
    app.command(proxy_app)
    app.command(server_app)
