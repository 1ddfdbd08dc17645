"""Ephemeral port allocation."""

import socket
from typing import cast


def find_open_port(host: str = "localhost") -> int:
    """Find an available port on the given host.

    Note: There is an inherent TOCTOU race condition between discovering
    the port and binding to it. A supervised server that loses the race
    exits during startup, which surfaces as a ServerSpawnError.

    Args:
        host: The host to bind to for port discovery.

    Returns:
        An available port number.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, 0))
        addr = cast("tuple[str, int]", sock.getsockname())
        return addr[1]
