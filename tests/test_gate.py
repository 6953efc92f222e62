import base64

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from wsfn.auth.gate import AccessGate, AccessPolicy, Decision, authorize, parse_basic_auth

from conftest import basic_auth


def _downstream_app(policy: AccessPolicy) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AccessGate, policy=policy)

    @app.get("/{path:path}")
    def echo(path: str):
        return PlainTextResponse(f"reached /{path}")

    return app


def test_parse_basic_auth():
    assert parse_basic_auth(basic_auth("alice", "a:b")["Authorization"]) == ("alice", "a:b")
    assert parse_basic_auth("basic " + base64.b64encode(b"bob:").decode()) == ("bob", "")
    assert parse_basic_auth(None) is None
    assert parse_basic_auth("Bearer abc") is None
    assert parse_basic_auth("Basic !!!") is None
    assert parse_basic_auth("Basic " + base64.b64encode(b"no-colon").decode()) is None


def test_authorize_decisions(store):
    policy = AccessPolicy.enforced(store)
    assert authorize(policy, "/public/data", None) is Decision.NOT_PROTECTED
    assert authorize(policy, "/secure/data", None) is Decision.CREDENTIALS_ABSENT
    good = basic_auth("alice", "secret123")["Authorization"]
    bad = basic_auth("alice", "wrong")["Authorization"]
    assert authorize(policy, "/secure/data", good) is Decision.AUTHORIZED
    assert authorize(policy, "/secure/data", bad) is Decision.UNAUTHORIZED
    assert authorize(AccessPolicy.none(), "/secure/data", None) is Decision.NOT_PROTECTED


@pytest.mark.parametrize(
    "path", ["//secure/data", "/./secure/data", "/public/../secure/data", "/secure//data", "/public/../../secure/"]
)
def test_uncleaned_paths_are_still_protected(store, path):
    policy = AccessPolicy.enforced(store)
    assert authorize(policy, path, None) is Decision.CREDENTIALS_ABSENT


def test_policy_from_store(store):
    assert not AccessPolicy.from_store(None).is_enforced
    assert AccessPolicy.from_store(store).is_enforced
    with pytest.raises(ValueError):
        AccessPolicy.enforced(None)


def test_no_store_passes_everything_through():
    client = TestClient(_downstream_app(AccessPolicy.from_store(None)))
    for path in ("/secure/data", "/public/data", "/"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.text == f"reached {path}"


def test_protected_path_without_credentials_is_challenged(store):
    client = TestClient(_downstream_app(AccessPolicy.enforced(store)))
    r = client.get("/secure/data")
    assert r.status_code == 401
    assert 'realm="Staff only"' in r.headers["WWW-Authenticate"]
    assert r.headers["WWW-Authenticate"].startswith("Basic ")
    assert "reached" not in r.text


def test_public_path_needs_no_credentials(store):
    client = TestClient(_downstream_app(AccessPolicy.enforced(store)))
    r = client.get("/public/data")
    assert r.status_code == 200
    assert r.text == "reached /public/data"


def test_valid_credentials_reach_downstream(store):
    client = TestClient(_downstream_app(AccessPolicy.enforced(store)))
    r = client.get("/secure/data", headers=basic_auth("alice", "secret123"))
    assert r.status_code == 200
    assert r.text == "reached /secure/data"


def test_unknown_user_and_wrong_password_look_the_same(store):
    client = TestClient(_downstream_app(AccessPolicy.enforced(store)))
    wrong_pw = client.get("/secure/data", headers=basic_auth("alice", "wrong"))
    unknown = client.get("/secure/data", headers=basic_auth("nobody", "secret123"))
    missing = client.get("/secure/data")
    for r in (wrong_pw, unknown, missing):
        assert r.status_code == 401
    assert wrong_pw.content == unknown.content == missing.content
    assert wrong_pw.headers["WWW-Authenticate"] == unknown.headers["WWW-Authenticate"]


def test_removed_user_is_rejected(store):
    client = TestClient(_downstream_app(AccessPolicy.enforced(store)))
    store.remove("alice")
    r = client.get("/secure/data", headers=basic_auth("alice", "secret123"))
    assert r.status_code == 401
