import pytest

from wsfn.auth.routes import RouteTable
from wsfn.core.utils import canonical_path
from wsfn.errors import RouteCollisionError


def test_add_route_normalizes_slashes():
    t = RouteTable()
    assert t.add_route("private") == "/private/"
    assert t.add_route("/api/") == "/api/"
    assert t.as_list() == ["/api/", "/private/"]


def test_nested_routes_collide_both_ways():
    t = RouteTable()
    t.add_route("/api/")
    with pytest.raises(RouteCollisionError):
        t.add_route("/api/v1/")
    t2 = RouteTable()
    t2.add_route("/api/v1/")
    with pytest.raises(RouteCollisionError) as exc:
        t2.add_route("/api/")
    assert exc.value.existing == "/api/v1/"
    assert t2.add_route("/other/") == "/other/"


def test_routes_stay_sorted():
    t = RouteTable()
    for prefix in ("/zeta/", "/alpha/", "/mid/"):
        t.add_route(prefix)
    assert list(t) == ["/alpha/", "/mid/", "/zeta/"]


def test_remove_route_is_exact():
    t = RouteTable(["/api/"])
    assert t.remove_route("/api") is False
    assert t.remove_route("api/") is True
    assert len(t) == 0
    assert t.remove_route("/api/") is False


def test_matches_is_a_plain_prefix_test():
    t = RouteTable(["/api/", "/apiary"])
    assert t.matches("/api/private")
    assert t.matches("/apiary-hives")
    assert not t.matches("/ap")
    assert not t.matches("/public/data")


def test_stored_routes_keep_their_form():
    t = RouteTable(["private"])
    assert "/private" in t
    assert t.matches("/private-notes")


def test_canonical_path():
    assert canonical_path("//secure/data") == "/secure/data"
    assert canonical_path("/./secure/data") == "/secure/data"
    assert canonical_path("/public/../secure/") == "/secure/"
    assert canonical_path("/../../etc") == "/etc"
    assert canonical_path("") == "/"
    assert canonical_path("/a//b/") == "/a/b/"
