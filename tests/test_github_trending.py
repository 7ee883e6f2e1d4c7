import json
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

import pytest

from lodestone.ingest.github_trending import GithubTrending
from lodestone.ingest.retry import DEFAULT_MAX_RETRIES, MaxRetriesExceeded
from lodestone.ingest.source import signal_id

NOW = datetime(2026, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


def no_sleep(_):
    pass


@contextmanager
def serve(handler):
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            status, body = handler(self)
            try:
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)
            except OSError:
                pass

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def test_name():
    assert GithubTrending().name() == "github_trending"


def test_fetch_success():
    payload = {
        "items": [
            {
                "full_name": "example/repo",
                "html_url": "https://github.com/example/repo",
                "description": "An example",
                "language": "Go",
                "stargazers_count": 421,
                "license": {"key": "mit"},
                "pushed_at": "2026-05-19T10:00:00Z",
                "topics": ["ai", "cli"],
            },
            {
                "full_name": "another/thing",
                "html_url": "https://github.com/another/thing",
                "description": "",
                "language": "JavaScript",
                "stargazers_count": 75,
                "license": None,
                "pushed_at": "2026-05-18T08:30:00Z",
                "topics": [],
            },
        ]
    }

    def handler(request):
        parsed = urlparse(request.path)
        if parsed.path != "/search/repositories":
            return 400, b"wrong path"
        query = parse_qs(parsed.query).get("q", [""])[0]
        if "stars:" not in query:
            return 400, b"bad query"
        return 200, json.dumps(payload).encode()

    with serve(handler) as base:
        src = GithubTrending(base_url=base, now=lambda: NOW, sleep=no_sleep)
        sigs = src.fetch()

    assert len(sigs) == 2
    first = sigs[0]
    assert first.url == "https://github.com/example/repo"
    assert first.title == "example/repo"
    assert first.stars == 421
    assert first.language == "Go"
    assert first.license == "mit"
    assert first.source == "github_trending"
    assert first.topic_tags == ["ai", "cli"]
    assert first.captured_at == NOW
    assert first.last_commit == datetime(2026, 5, 19, 10, 0, 0, tzinfo=timezone.utc)
    assert first.id == signal_id("github_trending", first.url)
    assert sigs[1].license == ""


def test_fetch_empty():
    with serve(lambda request: (200, b'{"items":[]}')) as base:
        sigs = GithubTrending(base_url=base, sleep=no_sleep).fetch()
    assert sigs == []


def test_fetch_timeout_retries():
    hits = []

    def handler(request):
        hits.append(1)
        time.sleep(0.15)
        return 200, b'{"items":[]}'

    with serve(handler) as base:
        src = GithubTrending(base_url=base, timeout=0.025, sleep=no_sleep)
        with pytest.raises(MaxRetriesExceeded):
            src.fetch()
        assert len(hits) == DEFAULT_MAX_RETRIES


def test_cache_roundtrip(tmp_path):
    hits = []
    body = (
        b'{"items":[{"full_name":"a/b","html_url":"https://github.com/a/b",'
        b'"language":"Go","stargazers_count":100,"pushed_at":"2026-05-19T00:00:00Z"}]}'
    )

    def handler(request):
        hits.append(1)
        return 200, body

    with serve(handler) as base:
        src = GithubTrending(base_url=base, cache_dir=tmp_path, now=lambda: NOW, sleep=no_sleep)
        first = src.fetch()
        assert len(hits) == 1
        assert (tmp_path / "github_trending-2026-05-20.json").is_file()
        second = src.fetch()
    assert len(hits) == 1
    assert len(first) == len(second)
    assert first[0].url == second[0].url


def test_token_header(monkeypatch):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return 200, b'{"items":[]}'

    monkeypatch.setenv("GITHUB_TOKEN", "token")
    with serve(handler) as base:
        sigs = GithubTrending(base_url=base, sleep=no_sleep).fetch()
    assert sigs == []
    assert seen["auth"] == "Bearer token"


def test_server_error_retries():
    hits = []

    def handler(request):
        hits.append(1)
        return 500, b"boom"

    with serve(handler) as base:
        with pytest.raises(MaxRetriesExceeded):
            GithubTrending(base_url=base, sleep=no_sleep).fetch()
    assert len(hits) == DEFAULT_MAX_RETRIES