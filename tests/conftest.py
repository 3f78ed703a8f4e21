from datetime import datetime, timedelta, timezone

import pytest

from pageinsights import graph_api
from pageinsights.config import config
from pageinsights.models import Session


class _MockResponse:
    def __init__(self, status_code=200, data=None):
        self.status_code = status_code
        self._data = data if data is not None else {}
        self.text = str(self._data)

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class FakeGraph:
    """Stands in for requests.get, routing Graph URLs to canned responses.

    Routes are keyed by the path after the API base URL, including the query
    string for cursor URLs. A route may be a JSON body, a _MockResponse, an
    exception instance to raise, or a callable taking the params dict.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, path, handler):
        self.routes[path] = handler

    def next_url(self, path):
        return f"{config.GRAPH_API_BASE_URL}/{path}"

    def paths(self):
        return [path for path, _ in self.calls]

    def __call__(self, url, params=None, timeout=None):
        params = dict(params or {})
        path = url[len(config.GRAPH_API_BASE_URL) + 1:] if url.startswith(config.GRAPH_API_BASE_URL) else url
        self.calls.append((path, params))

        handler = self.routes.get(path)
        if handler is None:
            raise AssertionError(f"Unexpected URL: {url}")
        if callable(handler):
            handler = handler(params)
        if isinstance(handler, Exception):
            raise handler
        if isinstance(handler, _MockResponse):
            return handler
        return _MockResponse(200, handler)


@pytest.fixture
def fake_graph(monkeypatch):
    graph = FakeGraph()
    monkeypatch.setattr(graph_api.requests, "get", graph)
    return graph


@pytest.fixture
def session():
    return Session(
        subject_id="user-1",
        display_name="Pat Doe",
        avatar_url="https://example.com/pat.png",
        access_token="user-token",
        expires_at=datetime.now(timezone.utc) + timedelta(days=30),
    )
