import os
import threading

import httpx
import pytest

from pipeserve.serve import ResourceServer


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep the developer's PIPESERVE_* variables and .env out of the tests."""
    environ = {k: v for k, v in os.environ.items() if not k.startswith("PIPESERVE_")}
    monkeypatch.setattr(os, "environ", environ)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def client():
    with httpx.Client(trust_env=False, timeout=10.0) as c:
        yield c


@pytest.fixture
def start_server():
    running = []

    def start(resource, quiet=True):
        httpd = ResourceServer(("127.0.0.1", 0), resource, quiet=quiet)
        thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        thread.start()
        running.append((httpd, thread))
        return f"http://127.0.0.1:{httpd.server_port}"

    yield start

    for httpd, thread in running:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=5)
