import base64
import subprocess
import sys

import pytest
import requests

from content_sync.core.errors import (
    RemoteAuthError,
    RemoteError,
    RemoteMisconfigurationError,
    RemoteNetworkError,
    RemoteNotFoundError,
)
from content_sync.remote.store import GitHubContentStore, InMemoryContentStore, WriteStatus, blob_sha


class _FakeResponse:
    def __init__(self, status_code, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def _make_store(monkeypatch, get=None, put=None):
    session = requests.Session()
    calls = []

    def fake_get(url, **kwargs):
        calls.append(("GET", url, kwargs))
        return get(url, **kwargs)

    def fake_put(url, **kwargs):
        calls.append(("PUT", url, kwargs))
        return put(url, **kwargs)

    monkeypatch.setattr(session, "get", fake_get)
    monkeypatch.setattr(session, "put", fake_put)
    store = GitHubContentStore(token="t0ken", owner="acme", repo="site", session=session)
    return store, calls


def test_missing_configuration():
    with pytest.raises(RemoteMisconfigurationError):
        GitHubContentStore(token=None, owner="acme", repo="site")
    with pytest.raises(RemoteMisconfigurationError):
        GitHubContentStore(token="t", owner="", repo="site")


def test_read_decodes_wrapped_base64(monkeypatch):
    encoded = base64.b64encode("<p>héllo</p>".encode("utf-8")).decode()
    wrapped = encoded[:8] + "\n" + encoded[8:] + "\n"
    store, calls = _make_store(
        monkeypatch,
        get=lambda url, **kw: _FakeResponse(200, {"type": "file", "content": wrapped, "sha": "abc"}),
    )

    remote = store.read("index.html", "main")
    assert remote.text == "<p>héllo</p>"
    assert remote.sha == "abc"
    method, url, kwargs = calls[0]
    assert url == "https://api.github.com/repos/acme/site/contents/index.html"
    assert kwargs["params"] == {"ref": "main"}
    assert store.session.headers["Authorization"] == "Bearer t0ken"


@pytest.mark.parametrize(
    "status, error",
    [(401, RemoteAuthError), (404, RemoteNotFoundError), (500, RemoteError)],
)
def test_read_errors(monkeypatch, status, error):
    store, _ = _make_store(monkeypatch, get=lambda url, **kw: _FakeResponse(status, {"message": "x"}))
    with pytest.raises(error):
        store.read("index.html", "main")


def test_read_rejects_directories(monkeypatch):
    store, _ = _make_store(monkeypatch, get=lambda url, **kw: _FakeResponse(200, [{"type": "file"}]))
    with pytest.raises(RemoteError, match="expected file content"):
        store.read("contents", "main")


def test_network_errors(monkeypatch):
    def boom(url, **kw):
        raise requests.exceptions.ConnectionError("refused")

    store, _ = _make_store(monkeypatch, get=boom, put=boom)
    with pytest.raises(RemoteNetworkError):
        store.read("index.html", "main")
    with pytest.raises(RemoteNetworkError):
        store.write("index.html", "main", "abc", "x", "msg")


def test_write_sends_base64_with_sha(monkeypatch):
    store, calls = _make_store(monkeypatch, put=lambda url, **kw: _FakeResponse(200, {}))
    assert store.write("index.html", "main", "abc", "<p>x</p>", "Update") == WriteStatus.SUCCESS

    payload = calls[0][2]["json"]
    assert payload["sha"] == "abc"
    assert payload["branch"] == "main"
    assert payload["message"] == "Update"
    assert base64.b64decode(payload["content"]).decode() == "<p>x</p>"


@pytest.mark.parametrize(
    "status, expected",
    [
        (201, WriteStatus.SUCCESS),
        (409, WriteStatus.CONFLICT),
        (422, WriteStatus.CONFLICT),
        (401, WriteStatus.AUTH_ERROR),
        (404, WriteStatus.NOT_FOUND),
    ],
)
def test_write_status_mapping(monkeypatch, status, expected):
    store, _ = _make_store(monkeypatch, put=lambda url, **kw: _FakeResponse(status, {"message": "m"}))
    assert store.write("index.html", "main", "abc", "x", "msg") == expected


def test_in_memory_store_enforces_sha():
    store = InMemoryContentStore({"index.html": "<p>a</p>"})
    sha = store.read("index.html", "main").sha
    assert sha == blob_sha("<p>a</p>")

    assert store.write("index.html", "main", "stale", "<p>b</p>", "m") == WriteStatus.CONFLICT
    assert store.write("index.html", "main", sha, "<p>b</p>", "m") == WriteStatus.SUCCESS
    assert store.write("missing.html", "main", sha, "x", "m") == WriteStatus.NOT_FOUND
    assert store.read("index.html", "main").text == "<p>b</p>"
    with pytest.raises(RemoteNotFoundError):
        store.read("index.html", "gh-pages")


def test_importing_the_store_leaves_logging_to_the_application():
    code = (
        "import logging\n"
        "import content_sync.remote.store\n"
        "assert logging.getLogger().handlers == [], logging.getLogger().handlers\n"
    )
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
