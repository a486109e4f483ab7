"""Loopback port allocation for the control server."""

from __future__ import annotations

import random
import socket

from functions_discovery.config import BASE_PORT, LOOPBACK, PORT_JITTER
from functions_discovery.logging import get_logger

logger = get_logger()

MAX_PORT = 65535


def is_port_free(port: int, host: str = LOOPBACK) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def allocate_port(
    base: int = BASE_PORT,
    jitter: int = PORT_JITTER,
    host: str = LOOPBACK,
    rng: random.Random | None = None,
) -> int:
    """Return the first free port at or above a jittered base port.

    The jitter spreads parallel discovery sessions over the range so they
    rarely probe the same port; the bind check is what guarantees freedom.
    """
    start = base + (rng or random).randrange(jitter)
    for port in range(start, MAX_PORT + 1):
        if is_port_free(port, host):
            logger.debug("Allocated port %d for the control server", port)
            return port
    raise OSError(f"No free port found on {host} at or above {start}")
