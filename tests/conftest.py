import json
import sys
import threading
import time
from pathlib import Path

import pytest
import requests

# Make src/ importable the same way ``python src/main.py`` does
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from core.models import GitHubConfig  # noqa: E402


API = "https://api.github.com/repos/octo/demo"


def make_response(status_code, body=None, reason="OK"):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = b""
    return response


class FakeSession(requests.Session):
    """Session that answers Git Data API calls from memory and records them."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.lock = threading.Lock()
        self.blob_counter = 0
        self.fail_blobs = {}
        self.fail_ops = {}
        self.raise_on = {}
        self.responses = {}
        self.blob_delay = 0.0
        self.active_blobs = 0
        self.max_active_blobs = 0

    def request(self, method, url, **kwargs):
        path = url[len(API) + 1:]
        payload = kwargs.get("json")
        with self.lock:
            self.calls.append((method, path, payload, kwargs.get("timeout")))

        key = (method, path)
        if key in self.raise_on:
            raise self.raise_on[key]
        if key in self.fail_ops:
            status, message = self.fail_ops[key]
            return make_response(status, {"message": message}, reason="Error")
        if key in self.responses:
            status, body = self.responses[key]
            return make_response(status, body)

        if (method, path) == ("GET", "git/ref/heads/main"):
            return make_response(200, {"ref": "refs/heads/main", "object": {"sha": "old-head", "type": "commit"}})
        if (method, path) == ("POST", "git/blobs"):
            return self._blob(payload)
        if (method, path) == ("POST", "git/trees"):
            return make_response(201, {"sha": "tree-sha", "tree": payload["tree"]})
        if (method, path) == ("POST", "git/commits"):
            return make_response(201, {
                "sha": "commit-sha",
                "html_url": "https://github.com/octo/demo/commit/commit-sha",
            })
        if (method, path) == ("PATCH", "git/refs/heads/main"):
            return make_response(200, {"ref": "refs/heads/main", "object": {"sha": payload["sha"]}})
        return make_response(404, {"message": "Not Found"}, reason="Not Found")

    def _blob(self, payload):
        with self.lock:
            self.active_blobs += 1
            self.max_active_blobs = max(self.max_active_blobs, self.active_blobs)
        try:
            if self.blob_delay:
                time.sleep(self.blob_delay)
            content = payload["content"]
            if content in self.fail_blobs:
                status, message = self.fail_blobs[content]
                return make_response(status, {"message": message}, reason="Error")
            with self.lock:
                self.blob_counter += 1
                sha = f"blob-{self.blob_counter}"
            return make_response(201, {"sha": sha, "url": f"{API}/git/blobs/{sha}"})
        finally:
            with self.lock:
                self.active_blobs -= 1

    def calls_for(self, method, path):
        return [call for call in self.calls if call[0] == method and call[1] == path]


@pytest.fixture()
def github_config():
    return GitHubConfig(token="test-token", owner="octo", repo="demo", branch="main")


@pytest.fixture()
def fake_session():
    return FakeSession()
