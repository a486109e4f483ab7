"""Stand-in for the SDK control server, used by the integration tests.

Invoked as `<python> server.py <source dir>` with PORT and
FUNCTIONS_CONTROL_API in the environment, like the real SDK binary.

Serves:
- /__/functions.yaml: `served.yaml` from the source dir, or a one-endpoint default,
  plus an `observedEnv` key echoing the control variables it was started with
- /__/quitquitquit: stops the server

Behavior switches (files in the source dir):
- `crash`: exit with code 3 before listening
- `ignore-quit`: answer quit requests but keep running
"""
from __future__ import annotations

import json
import os
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

DEFAULT_MANIFEST = """\
specVersion: v1alpha1
requiredAPIs: []
endpoints:
  hello:
    platform: gcfv2
    region: [us-central1]
    httpsTrigger: {}
"""

SOURCE = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()


def _manifest() -> str:
    served = SOURCE / "served.yaml"
    text = served.read_text(encoding="utf-8") if served.exists() else DEFAULT_MANIFEST
    observed = {
        k: os.environ.get(k)
        for k in ("PORT", "FUNCTIONS_CONTROL_API", "CLOUD_RUNTIME_CONFIG", "GREETING")
    }
    return text + f"observedEnv: {json.dumps(observed)}\n"


class Handler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        if self.path == "/__/functions.yaml":
            body = _manifest().encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/yaml")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        elif self.path == "/__/quitquitquit":
            self.send_response(200)
            self.send_header("Content-Length", "0")
            self.end_headers()
            if not (SOURCE / "ignore-quit").exists():
                threading.Thread(target=self.server.shutdown, daemon=True).start()
        else:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()

    def log_message(self, format, *args) -> None:
        pass


if __name__ == "__main__":
    if (SOURCE / "crash").exists():
        sys.exit(3)
    if os.environ.get("FUNCTIONS_CONTROL_API") != "true":
        sys.exit(2)
    server = ThreadingHTTPServer(("127.0.0.1", int(os.environ["PORT"])), Handler)
    print(f"control server listening on {os.environ['PORT']}", flush=True)
    server.serve_forever()
