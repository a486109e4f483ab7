from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from functions_discovery.logging import get_logger
from functions_discovery.runtimes.node.binary import RuntimeInstall
from tests.helpers import write_package


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    return write_package(tmp_path / "functions")


@pytest.fixture
def host_python() -> RuntimeInstall:
    """The test interpreter posing as a node@20 host binary."""
    return RuntimeInstall(path=sys.executable, version="20.11.1")


@pytest.fixture
def debug_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger=get_logger().name)
    return caplog
