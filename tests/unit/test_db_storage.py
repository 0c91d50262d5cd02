import pytest
import psycopg.errors
import psycopg.rows

from slink_dashboard.errors import CollaboratorTimeout
from slink_dashboard.storage.db_storage import DBStorage


class DummyCursor:
    def __init__(self, results=None, error=None):
        self._results = results or []
        self._index = 0
        self._error = error
        self.executed = []

    def execute(self, query, params=None):
        if self._error is not None:
            raise self._error
        self.executed.append((query, params))
        return True

    def fetchone(self):
        if self._results and self._index < len(self._results):
            row = self._results[self._index]
            self._index += 1
            return row
        return None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class DummyConnection:
    def __init__(self, results=None, error=None):
        self.cursor_obj = DummyCursor(results=results, error=error)
        self.autocommit = False
        self.row_factory = None
        self.closed = False

    def cursor(self, row_factory=None):
        self.row_factory = row_factory
        return self.cursor_obj

    def close(self):
        self.closed = True


def _connect_returning(conn, captured=None):
    def _connect(dsn, **kwargs):
        if captured is not None:
            captured["dsn"] = dsn
            captured.update(kwargs)
        return conn
    return _connect


# ---------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------

def test_get_link_with_project(monkeypatch):
    row = {
        "id": "link_1",
        "domain": "example.com",
        "key": "abc",
        "dashboard": True,
        "project_id": "ws_1",
        "plan": "pro",
        "usage": 12,
        "usage_limit": 5000,
        "conversion_enabled": False,
    }
    conn = DummyConnection(results=[row])
    monkeypatch.setattr("psycopg.connect", _connect_returning(conn))

    record = DBStorage("fake").get_link("example.com", "abc")
    assert record.id == "link_1"
    assert record.dashboard is True
    assert record.project.plan == "pro"
    assert record.project.usage_limit == 5000
    assert conn.row_factory is psycopg.rows.dict_row
    assert conn.cursor_obj.executed[0][1] == ("example.com", "abc")
    assert conn.closed


def test_get_link_without_project(monkeypatch):
    row = {"id": "link_2", "domain": "example.com", "key": "x", "dashboard": None,
           "project_id": None, "plan": None, "usage": None, "usage_limit": None,
           "conversion_enabled": None}
    monkeypatch.setattr("psycopg.connect", _connect_returning(DummyConnection(results=[row])))

    record = DBStorage("fake").get_link("example.com", "x")
    assert record.project is None
    assert record.dashboard is False


def test_get_link_missing(monkeypatch):
    monkeypatch.setattr("psycopg.connect", _connect_returning(DummyConnection()))
    assert DBStorage("fake").get_link("example.com", "nope") is None


def test_timeout_bounds_connection(monkeypatch):
    captured = {}
    monkeypatch.setattr("psycopg.connect", _connect_returning(DummyConnection(), captured))
    DBStorage("fake").get_link("example.com", "abc", timeout=1.5)
    assert captured["connect_timeout"] == 2
    assert captured["options"] == "-c statement_timeout=1500"


def test_cancelled_statement_is_collaborator_timeout(monkeypatch):
    conn = DummyConnection(error=psycopg.errors.QueryCanceled("canceling statement due to statement timeout"))
    monkeypatch.setattr("psycopg.connect", _connect_returning(conn))
    with pytest.raises(CollaboratorTimeout):
        DBStorage("fake").get_link("example.com", "abc", timeout=0.2)
    assert conn.closed


def test_connect_timeout_is_collaborator_timeout(monkeypatch):
    def _connect(dsn, **kwargs):
        raise psycopg.errors.ConnectionTimeout("connection timeout expired")

    monkeypatch.setattr("psycopg.connect", _connect)
    with pytest.raises(CollaboratorTimeout):
        DBStorage("fake").get_link("example.com", "abc", timeout=0.5)
