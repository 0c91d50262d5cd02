"""
Integration tests for link store backends (in-memory and Postgres).

These tests parameterize over available backends:
- Always "memory"
- "postgres" only if SLINK_DB_DSN is set; tables are created and seeded here

The same assertions run against both, so the resolver can rely on one contract.
"""

import os

import pytest

from slink_dashboard.storage.base import LinkRecord, ProjectRecord
from slink_dashboard.storage.storage_factory import get_storage

ROWS = [
    # link id, key, dashboard, project id, plan, usage, usage_limit, conversion
    ("link_it_open", "it-open", True, "ws_it_a", "pro", 10, 1000, False),
    ("link_it_private", "it-private", False, "ws_it_a", "pro", 10, 1000, False),
    ("link_it_orphan", "it-orphan", True, None, None, None, None, None),
]


def available_backends():
    backends = ["memory"]
    if os.getenv("SLINK_DB_DSN"):
        backends.append("postgres")
    return backends


def _seed_postgres(dsn: str) -> None:
    import psycopg

    with psycopg.connect(dsn, autocommit=True) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS projects (
              id VARCHAR(64) PRIMARY KEY,
              plan VARCHAR(32) NOT NULL DEFAULT 'free',
              usage BIGINT NOT NULL DEFAULT 0,
              usage_limit BIGINT NOT NULL DEFAULT 1000,
              conversion_enabled BOOLEAN NOT NULL DEFAULT FALSE
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS links (
              id VARCHAR(64) PRIMARY KEY,
              domain VARCHAR(255) NOT NULL,
              key VARCHAR(190) NOT NULL,
              dashboard BOOLEAN NOT NULL DEFAULT FALSE,
              project_id VARCHAR(64) REFERENCES projects (id),
              UNIQUE (domain, key)
            )
        """)
        for link_id, key, dashboard, project_id, plan, usage, limit, conversion in ROWS:
            if project_id:
                conn.execute(
                    "INSERT INTO projects (id, plan, usage, usage_limit, conversion_enabled) "
                    "VALUES (%s, %s, %s, %s, %s) ON CONFLICT (id) DO NOTHING",
                    (project_id, plan, usage, limit, conversion),
                )
            conn.execute(
                "INSERT INTO links (id, domain, key, dashboard, project_id) "
                "VALUES (%s, 'it.example', %s, %s, %s) ON CONFLICT (domain, key) DO NOTHING",
                (link_id, key, dashboard, project_id),
            )


def _seed_memory(storage) -> None:
    for link_id, key, dashboard, project_id, plan, usage, limit, conversion in ROWS:
        project = ProjectRecord(plan, usage, limit, conversion) if project_id else None
        storage.save_link(LinkRecord(link_id, "it.example", key, dashboard, project_id, project))


@pytest.fixture(params=available_backends())
def storage(request):
    if request.param == "postgres":
        dsn = os.environ["SLINK_DB_DSN"]
        _seed_postgres(dsn)
        return get_storage("postgres", dsn=dsn)
    store = get_storage("memory")
    _seed_memory(store)
    return store


def test_get_link_with_project(storage):
    record = storage.get_link("it.example", "it-open", timeout=5)
    assert record.id == "link_it_open"
    assert record.dashboard is True
    assert record.project_id == "ws_it_a"
    assert record.project.plan == "pro"
    assert record.project.usage == 10
    assert record.project.usage_limit == 1000
    assert record.project.conversion_enabled is False


def test_private_dashboard_flag(storage):
    assert storage.get_link("it.example", "it-private", timeout=5).dashboard is False


def test_link_without_project(storage):
    record = storage.get_link("it.example", "it-orphan", timeout=5)
    assert record.project_id is None
    assert record.project is None


def test_missing_link(storage):
    assert storage.get_link("it.example", "it-nope", timeout=5) is None
    assert storage.get_link("other.example", "it-open", timeout=5) is None
