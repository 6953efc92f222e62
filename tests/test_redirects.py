import pytest

from wsfn.errors import FormatError, RouteCollisionError
from wsfn.services.proxy import ReverseProxyTable
from wsfn.services.redirects import RedirectService, load_redirects_csv


def test_redirect_table_lookups():
    r = RedirectService.from_mapping({"/bad-path/": "/good-path/"})
    assert r.has_redirect_routes()
    assert r.has_route("/bad-path/")
    assert r.route("/bad-path/") == ("/good-path/", True)
    assert r.route("/missing/") == ("", False)


def test_redirect_targets_collide():
    r = RedirectService()
    r.add_redirect_route("/docs/", "/manual/")
    with pytest.raises(RouteCollisionError):
        r.add_redirect_route("/docs/v1/", "/old/")


def test_resolve_rewrites_prefix():
    r = RedirectService.from_mapping({"/old/": "/new/", "/site/": "https://example.edu/"})
    assert r.resolve("/old/a/b.html") == "/new/a/b.html"
    assert r.resolve("/old/") == "/new/"
    assert r.resolve("/old/dir/?q=1") == "/new/dir/?q=1"
    assert r.resolve("/site/x") == "https://example.edu/x"
    assert r.resolve("/other/x") is None


def test_load_redirects_csv(tmp_path):
    p = tmp_path / "redirects.csv"
    p.write_text("# target,destination\n/a/,/b/\n\n/c/, /d/\n", encoding="utf-8")
    assert load_redirects_csv(p) == {"/a/": "/b/", "/c/": "/d/"}
    p.write_text("/a/\n", encoding="utf-8")
    with pytest.raises(FormatError):
        load_redirects_csv(p)


def test_reverse_proxy_table():
    t = ReverseProxyTable.from_mapping({"/api/": "http://localhost:9000/"})
    assert len(t) == 1
    assert t.lookup("/api/v1/items") == "http://localhost:9000/v1/items"
    assert t.lookup("/static/x") is None
    with pytest.raises(RouteCollisionError):
        t.add("/api/v2/", "http://localhost:9001/")
    with pytest.raises(ValueError):
        t.add("/files/", "ftp://example.edu/")
    assert t.add("search", "http://localhost:9002") == "/search"
    assert t.lookup("/search/q") == "http://localhost:9002/q"
    assert t.remove("/search")
    assert t.to_dict() == {"/api/": "http://localhost:9000/"}
