"""
Tests for the FastAPI routes. The data source is replaced with an in-memory
directory so no test reaches the network.
"""
from __future__ import annotations

import importlib

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDirectory
from orgchart.services.hierarchy import Record
from orgchart.services.source import parse_users

# orgchart.web re-exports `app`, which shadows the submodule attribute
app_module = importlib.import_module("orgchart.web.app")


@pytest.fixture()
def directory(org_records):
    return FakeDirectory(org_records)


@pytest.fixture()
def client(monkeypatch, directory):
    monkeypatch.setattr(app_module, "get_directory", lambda: directory)
    app_module.store.clear()
    with TestClient(app_module.app) as test_client:
        yield test_client
    app_module.store.clear()


def tree_ids(forest):
    return [(node["id"], tree_ids(node["children"])) for node in forest]


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_startup_loads_directory(client, directory):
    assert directory.calls == 1
    assert len(client.get("/api/users").json()) == 7


def test_startup_failure_leaves_empty_hierarchy(monkeypatch):
    monkeypatch.setattr(app_module, "get_directory", lambda: FakeDirectory(error=RuntimeError("offline")))
    app_module.store.clear()

    with TestClient(app_module.app) as test_client:
        assert test_client.get("/api/hierarchy").json() == []
        page = test_client.get("/")

    assert page.status_code == 200
    assert "No users found" in page.text


def test_api_users_uses_wire_names(client):
    users = client.get("/api/users").json()

    assert users[1]["id"] == 2
    assert users[1]["managerId"] == 1
    assert "managerId" not in users[0]
    assert users[0]["firstName"] == "John"


def test_api_hierarchy(client):
    forest = client.get("/api/hierarchy").json()

    assert tree_ids(forest) == [
        (1, [(2, [(4, []), (5, [])]), (3, [])]),
        (6, []),
        (7, []),
    ]


def test_api_diagnostics_lists_orphans(client):
    assert client.get("/api/diagnostics").json() == {"orphans": [7]}


def test_api_remove_reparents(client):
    resp = client.delete("/api/users/2")

    assert resp.status_code == 200
    body = resp.json()
    assert body["removed"] is True
    assert tree_ids(body["hierarchy"])[0] == (1, [(3, []), (4, []), (5, [])])
    assert [u["id"] for u in client.get("/api/users").json()] == [1, 3, 4, 5, 6, 7]


def test_api_remove_unknown_is_noop(client):
    resp = client.delete("/api/users/404")

    assert resp.status_code == 200
    assert resp.json()["removed"] is False
    assert len(client.get("/api/users").json()) == 7


def test_api_remove_logs_event(client):
    client.delete("/api/users/3")

    events = client.get("/api/events", params={"event_type": "remove"}).json()
    assert events[0]["record_id"] == "3"
    assert "Ali Khan" in events[0]["message"]


def test_api_replace_users(client):
    resp = client.post("/api/users", json={"users": [{"id": "a"}, {"id": "b", "managerId": "a"}]})

    assert resp.status_code == 200
    assert tree_ids(resp.json()) == [("a", [("b", [])])]


def test_api_replace_rejects_cycle(client):
    resp = client.post("/api/users", json=[{"id": 1, "managerId": 2}, {"id": 2, "managerId": 1}])

    assert resp.status_code == 422
    assert "cycle" in resp.json()["detail"]
    assert len(client.get("/api/users").json()) == 7


def test_api_replace_rejects_duplicates(client):
    resp = client.post("/api/users", json=[{"id": 1}, {"id": 1}])

    assert resp.status_code == 422


def test_index_renders_tree(client):
    resp = client.get("/")

    assert resp.status_code == 200
    assert "John Doe" in resp.text
    assert 'data-id="4"' in resp.text
    assert "7 users" in resp.text


def test_form_remove_redirects(client):
    resp = client.post("/users/1/remove", follow_redirects=False)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert [n["id"] for n in client.get("/api/hierarchy").json()] == [2, 3, 6, 7]


def test_reload_refetches(client, directory):
    client.delete("/api/users/1")

    resp = client.post("/reload", follow_redirects=False)

    assert resp.status_code == 303
    assert directory.calls == 2
    assert len(client.get("/api/users").json()) == 7


def test_reload_failure_returns_502(client, directory):
    directory.error = RuntimeError("offline")

    resp = client.post("/reload")

    assert resp.status_code == 502
    assert len(client.get("/api/users").json()) == 7


def test_logs_page(client):
    client.delete("/api/users/5")

    resp = client.get("/logs")

    assert resp.status_code == 200
    assert "remove" in resp.text


def test_api_replace_with_unhashable_manager_is_root(client):
    resp = client.post("/api/users", json=[{"id": 1}, {"id": 2, "managerId": {"x": 1}}])

    assert resp.status_code == 200
    assert tree_ids(resp.json()) == [(1, []), (2, [])]
    assert client.get("/api/diagnostics").json() == {"orphans": [2]}


def test_api_replace_with_unhashable_id_is_rejected(client):
    resp = client.post("/api/users", json=[{"id": [1]}])

    assert resp.status_code == 422
    assert len(client.get("/api/users").json()) == 7


class UnhashableIdDirectory:
    def fetch_records(self):
        return parse_users({"users": [{"id": {"x": 1}}]})


def test_startup_with_unhashable_id_starts_empty(monkeypatch):
    monkeypatch.setattr(app_module, "get_directory", UnhashableIdDirectory)
    app_module.store.clear()

    with TestClient(app_module.app) as test_client:
        assert test_client.get("/api/users").json() == []


def test_deep_chain_page_and_form_remove(client):
    chain = [Record(1)] + [Record(i, i - 1) for i in range(2, 3001)]
    app_module.store.set_records(chain)

    page = client.get("/")

    assert page.status_code == 200
    assert page.text.count("<details") == 2999

    resp = client.post("/users/1500/remove", follow_redirects=False)

    assert resp.status_code == 303
    assert app_module.store.get(1501).manager_id == 1499

    tree = client.get("/api/hierarchy")
    assert tree.status_code == 200
    assert tree.text.count('"children": [') == 2999
    assert client.delete("/api/users/3000").status_code == 200


def test_form_remove_id_with_slash(client):
    client.post("/api/users", json=[{"id": "a/b"}, {"id": "c", "managerId": "a/b"}])
    page = client.get("/").text
    assert 'action="/users/a%2Fb/remove"' in page

    resp = client.post("/users/a%2Fb/remove", follow_redirects=False)

    assert resp.status_code == 303
    assert tree_ids(client.get("/api/hierarchy").json()) == [("c", [])]


def test_api_remove_id_with_query_chars(client):
    client.post("/api/users", json=[{"id": "x?y#z"}, {"id": "w", "managerId": "x?y#z"}])

    resp = client.delete("/api/users/x%3Fy%23z")

    assert resp.json()["removed"] is True
    assert tree_ids(resp.json()["hierarchy"]) == [("w", [])]


def test_remove_ambiguous_id_is_refused(client):
    client.post("/api/users", json=[{"id": 1}, {"id": "1"}])

    resp = client.delete("/api/users/1")

    assert resp.status_code == 409
    assert len(client.get("/api/users").json()) == 2
    assert client.post("/users/1/remove", follow_redirects=False).status_code == 409
