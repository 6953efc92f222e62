import asyncio

import pytest
from fastapi.testclient import TestClient

from wsfn.app import create_app
from wsfn.config import WebService
from wsfn.services.cors import CORSPolicy

from conftest import basic_auth


def _client(htdocs, **kwargs) -> TestClient:
    ws = WebService(htdocs=str(htdocs), **kwargs)
    return TestClient(create_app(ws))


def test_serves_static_files(htdocs):
    client = _client(htdocs)
    r = client.get("/public/data")
    assert r.status_code == 200
    assert r.text == "public data"
    r = client.get("/")
    assert r.status_code == 200
    assert "home" in r.text


def test_dot_paths_are_forbidden(htdocs):
    client = _client(htdocs)
    assert client.get("/.git/config").status_code == 403
    assert client.get("/.htaccess").status_code == 403
    assert client.get("/public/../.git/config").status_code in (403, 404)


def test_content_type_tweaks(htdocs):
    client = _client(htdocs, content_types={".toml": "text/plain+x-toml"})
    assert client.get("/app.wasm").headers["content-type"] == "application/wasm"
    assert client.get("/data.json.gz").headers["content-encoding"] == "gzip"
    assert client.get("/notes.toml").headers["content-type"] == "text/plain+x-toml"


def test_access_gate_in_front_of_static_files(htdocs, store):
    client = _client(htdocs, access=store)
    r = client.get("/secure/data")
    assert r.status_code == 401
    assert 'realm="Staff only"' in r.headers["www-authenticate"]
    assert client.get("/public/data").status_code == 200
    r = client.get("/secure/data", headers=basic_auth("alice", "secret123"))
    assert r.status_code == 200
    assert r.text == "secure data"


def _raw_get(app, path: str, headers=()):
    """Send one GET with path exactly as given, bypassing client URL cleanup."""
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver"), *headers],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }
    sent = []

    async def call():
        done = asyncio.Event()
        request_sent = False

        async def receive():
            nonlocal request_sent
            if not request_sent:
                request_sent = True
                return {"type": "http.request", "body": b"", "more_body": False}
            await done.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                done.set()

        await app(scope, receive, send)

    asyncio.run(call())
    status = next(m["status"] for m in sent if m["type"] == "http.response.start")
    body = b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body")
    return status, body


@pytest.mark.parametrize("path", ["//secure/data", "/./secure/data", "/public/../secure/data"])
def test_uncleaned_paths_cannot_skip_the_gate(htdocs, store, path):
    app = create_app(WebService(htdocs=str(htdocs), access=store))
    assert _raw_get(app, "/secure/data") == (401, b"Unauthorized")
    assert _raw_get(app, path) == (401, b"Unauthorized")
    auth = [(b"authorization", basic_auth("alice", "secret123")["Authorization"].encode())]
    assert _raw_get(app, path, auth) == (200, b"secure data")


def test_cors_headers_and_preflight(htdocs):
    cors = CORSPolicy(origin="http://foo.example:8000", options=["POST", "GET"], allow_credentials=True)
    client = _client(htdocs, cors=cors)
    r = client.get("/public/data")
    assert r.headers["access-control-allow-origin"] == "http://foo.example:8000"
    assert r.headers["access-control-allow-methods"] == "POST,GET"
    assert r.headers["access-control-allow-credentials"] == "true"
    pre = client.options("/public/data")
    assert pre.status_code == 200
    assert pre.content == b""
    assert pre.headers["access-control-allow-origin"] == "http://foo.example:8000"


def test_redirects(htdocs, tmp_path):
    csv_path = tmp_path / "redirects.csv"
    csv_path.write_text("/old-csv/,/public/\n", encoding="utf-8")
    client = _client(htdocs, redirects={"/bad-path/": "/public/"}, redirects_csv=str(csv_path))
    r = client.get("/bad-path/data?x=1", follow_redirects=False)
    assert r.status_code == 301
    assert r.headers["location"] == "/public/data?x=1"
    r = client.get("/old-csv/data", follow_redirects=False)
    assert r.status_code == 301
    assert r.headers["location"] == "/public/data"
    assert client.get("/bad-path/data").text == "public data"


def test_each_app_owns_its_tables(htdocs):
    a = create_app(WebService(htdocs=str(htdocs), redirects={"/a/": "/public/"}))
    b = create_app(WebService(htdocs=str(htdocs)))
    assert a.state.redirects.has_route("/a/")
    assert not b.state.redirects.has_redirect_routes()
    assert TestClient(b).get("/a/data", follow_redirects=False).status_code == 404


def test_reverse_proxy_table_is_attached(htdocs):
    app = create_app(WebService(htdocs=str(htdocs), reverse_proxy={"/api/": "http://localhost:9000/"}))
    assert app.state.reverse_proxy.lookup("/api/items") == "http://localhost:9000/items"
