import os
import tempfile

os.environ.setdefault("TSUN_LOG_DIR", tempfile.mkdtemp(prefix="tsun_test_logs_"))

import pytest
import requests

NESTED_PAYLOAD = {
    "code": 0,
    "msg": "success",
    "data": {
        "id": "7301234567890",
        "title": "Dancing in the rain",
        "duration": 65,
        "hdplay": "https://cdn.example.com/hd.mp4",
        "play": "https://cdn.example.com/play.mp4",
        "wmplay": "https://cdn.example.com/wm.mp4",
        "author": {
            "unique_id": "dancer",
            "nickname": "The Dancer",
            "avatar": "https://cdn.example.com/avatar.jpg",
        },
        "music": {"title": "Rain Song", "author": "Cloud Band"},
    },
}


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, reason="OK", headers=None, chunks=None, text=None):
        self.status_code = status_code
        self.reason = reason
        self.headers = headers or {}
        self._json = json_data
        self._chunks = chunks or []
        self._text = text
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._text is not None:
            raise ValueError("not json")
        return self._json

    def iter_content(self, chunk_size=1):
        yield from self._chunks

    def close(self):
        self.closed = True


class FakeRequests:
    """Replaces requests.get, answering from a queue and recording each call."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, response):
        self.responses.append(response)
        return response

    def __call__(self, url, params=None, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout, "stream": stream})
        if not self.responses:
            raise AssertionError(f"unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeRequests()
    monkeypatch.setattr(requests, "get", fake)
    return fake


@pytest.fixture
def nested_payload():
    import copy

    return copy.deepcopy(NESTED_PAYLOAD)
