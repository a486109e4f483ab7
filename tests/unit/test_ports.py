from __future__ import annotations

import random
import socket

import pytest

from functions_discovery.discovery import ports
from functions_discovery.discovery.ports import allocate_port, is_port_free


def _listen_on_free_port() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    return sock


def test_allocated_port_is_bindable() -> None:
    port = allocate_port()
    assert 8000 <= port <= 65535
    assert is_port_free(port)


def test_jitter_stays_within_range() -> None:
    rng = random.Random(1234)
    for _ in range(20):
        port = allocate_port(rng=rng)
        assert port >= 8000


def test_busy_base_port_is_skipped() -> None:
    busy = _listen_on_free_port()
    try:
        taken = busy.getsockname()[1]
        assert not is_port_free(taken)
        port = allocate_port(base=taken, jitter=1)
        assert port > taken
    finally:
        busy.close()


def test_parallel_sessions_rarely_collide() -> None:
    rng = random.Random(7)
    allocated = {allocate_port(rng=rng) for _ in range(10)}
    # Ten draws over a thousand ports; a couple of collisions at most.
    assert len(allocated) >= 8


def test_exhausted_range_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ports, "is_port_free", lambda port, host="127.0.0.1": False)
    with pytest.raises(OSError, match="No free port"):
        allocate_port(base=65000, jitter=10)
