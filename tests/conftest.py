import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import base64
import gzip
from pathlib import Path

import pytest

from wsfn.auth.store import CredentialStore


def basic_auth(username: str, password: str) -> dict:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture()
def store() -> CredentialStore:
    """argon2id store with one user (alice/secret123) protecting /secure/."""
    s = CredentialStore(auth_type="basic", auth_name="Staff only", encryption="argon2id")
    assert s.enroll("alice", "secret123")
    s.add_route("/secure/")
    return s


@pytest.fixture()
def htdocs(tmp_path: Path) -> Path:
    """
    A small document root:
      index.html, public/data, secure/data, .git/config, app.wasm, data.json.gz
    """
    root = tmp_path / "htdocs"
    (root / "public").mkdir(parents=True)
    (root / "secure").mkdir()
    (root / ".git").mkdir()
    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "public" / "data").write_text("public data", encoding="utf-8")
    (root / "secure" / "data").write_text("secure data", encoding="utf-8")
    (root / ".git" / "config").write_text("[core]", encoding="utf-8")
    (root / ".htaccess").write_text("deny from all", encoding="utf-8")
    (root / "app.wasm").write_bytes(b"\x00asm\x01\x00\x00\x00")
    (root / "data.json.gz").write_bytes(gzip.compress(b'{"a": 1}'))
    (root / "notes.toml").write_text('a = "b"', encoding="utf-8")
    return root
