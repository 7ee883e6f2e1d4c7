import contextlib
import json
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

import pytest

from lodestone.ingest.npm_trending import NPMTrending
from lodestone.ingest.retry import HttpStatusError

NOW = datetime(2026, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


def _no_sleep(_seconds):
    return None


@contextlib.contextmanager
def _serve(route):
    requests = []

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            parsed = urlsplit(self.path)
            query = parse_qs(parsed.query)
            requests.append((parsed.path, query))
            status, body = route(parsed.path, query)
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_port}", requests
    finally:
        server.shutdown()
        server.server_close()


PAYLOAD = {
    "objects": [
        {
            "package": {
                "name": "@anthropic-ai/sdk",
                "version": "0.30.0",
                "description": "Anthropic Claude SDK",
                "date": "2026-05-18T12:00:00.000Z",
                "links": {"npm": "https://www.npmjs.com/package/@anthropic-ai/sdk"},
                "keywords": ["ai", "anthropic", "claude"],
            },
            "score": {"final": 0.92},
        },
        {
            "package": {
                "name": "@modelcontextprotocol/sdk",
                "description": "MCP SDK",
                "date": "2026-05-17T08:00:00.000Z",
                "links": {"npm": "https://www.npmjs.com/package/@modelcontextprotocol/sdk"},
                "keywords": ["mcp", "ai"],
            },
            "score": {"final": 0.71},
        },
    ]
}


def _search_route(path, query):
    if path != "/-/v1/search":
        return 400, b"wrong path"
    text = query.get("text", [""])[0]
    if "keywords:" not in text:
        return 400, b"bad query"
    return 200, json.dumps(PAYLOAD).encode()


def test_name():
    assert NPMTrending().name() == "npm_trending"


def test_fetch_maps_packages():
    with _serve(_search_route) as (base, _requests):
        src = NPMTrending(base_url=base, now=lambda: NOW, sleep=_no_sleep)
        signals = src.fetch()

    assert len(signals) == 2
    first = signals[0]
    assert first.title == "@anthropic-ai/sdk"
    assert first.language == "JavaScript"
    assert first.stars == 920
    assert 0.91 < first.maintenance_score < 0.93
    assert len(first.topic_tags) == 3
    assert first.last_commit == datetime(2026, 5, 18, 12, 0, 0, tzinfo=timezone.utc)
    assert first.url == "https://www.npmjs.com/package/@anthropic-ai/sdk"
    assert first.source == "npm_trending"
    assert first.captured_at == NOW
    assert signals[1].stars == 710


def test_request_parameters():
    with _serve(_search_route) as (base, requests):
        signals = NPMTrending(base_url=base, keywords="ai,mcp", size=5, sleep=_no_sleep).fetch()
    assert [s.title for s in signals] == ["@anthropic-ai/sdk", "@modelcontextprotocol/sdk"]
    path, query = requests[0]
    assert path == "/-/v1/search"
    assert query["text"] == ["keywords:ai keywords:mcp"]
    assert query["popularity"] == ["1.0"]
    assert query["size"] == ["5"]


def test_fetch_empty():
    with _serve(lambda path, query: (200, b'{"objects":[]}')) as (base, _requests):
        src = NPMTrending(base_url=base, sleep=_no_sleep)
        assert src.fetch() == []


def test_fallback_url_without_npm_link():
    body = json.dumps(
        {"objects": [{"package": {"name": "left-pad"}, "score": {"final": 0.5}}]}
    ).encode()
    with _serve(lambda path, query: (200, body)) as (base, _requests):
        signals = NPMTrending(base_url=base, sleep=_no_sleep).fetch()
    assert signals[0].url == "https://www.npmjs.com/package/left-pad"
    assert signals[0].stars == 500


def test_client_error_not_retried():
    with _serve(lambda path, query: (404, b"missing")) as (base, requests):
        src = NPMTrending(base_url=base, sleep=_no_sleep)
        with pytest.raises(HttpStatusError) as info:
            src.fetch()
        assert len(requests) == 1
    assert info.value.status == 404


def test_cache_roundtrip(tmp_path):
    with _serve(_search_route) as (base, requests):
        src = NPMTrending(base_url=base, cache_dir=tmp_path, now=lambda: NOW, sleep=_no_sleep)
        first = src.fetch()
        second = src.fetch()
        assert len(requests) == 1
    assert (tmp_path / "npm_trending-2026-05-20.json").is_file()
    assert [s.url for s in second] == [s.url for s in first]


def test_build_query():
    assert NPMTrending(keywords="ai, mcp").build_query() == "keywords:ai keywords:mcp"


def test_build_query_empty_keywords():
    assert NPMTrending(keywords=" , ").build_query() == ""