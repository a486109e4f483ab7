"""Builders for functions source trees used across the test suite."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

CONTROL_SERVER = Path(__file__).resolve().parents[1] / "fixtures" / "control-server" / "server.py"


def write_package(root: Path, **fields) -> Path:
    """Write a minimal functions package (package.json + index.js) into *root*."""
    root.mkdir(parents=True, exist_ok=True)
    pkg = {
        "name": "functions",
        "main": "index.js",
        "engines": {"node": "20"},
        "dependencies": {"firebase-functions": "^4.0.0"},
    }
    pkg.update(fields)
    (root / "package.json").write_text(json.dumps(pkg), encoding="utf-8")
    (root / "index.js").write_text(
        "const functions = require('firebase-functions');\n"
        "exports.hello = functions.https.onRequest((req, res) => res.send('hi'));\n",
        encoding="utf-8",
    )
    return root


def install_sdk(root: Path, version: str, *, control_server: bool = True) -> Path:
    """Install a fake firebase-functions package (and its control server) under *root*."""
    modules = root / "node_modules"
    sdk = modules / "firebase-functions"
    sdk.mkdir(parents=True, exist_ok=True)
    (sdk / "package.json").write_text(
        json.dumps({"name": "firebase-functions", "version": version}), encoding="utf-8"
    )
    if control_server:
        (modules / ".bin").mkdir(exist_ok=True)
        shutil.copy(CONTROL_SERVER, modules / ".bin" / "firebase-functions")
    return sdk
