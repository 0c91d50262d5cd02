"""
Storage factory – switch link storage backend from config (lazy env version)
============================================================================

Centralizes selection of the link store (in-memory vs PostgreSQL) so the rest
of the app can stay ignorant of where links live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SLINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- SLINK_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from slink_dashboard.storage.base import BaseLinkStore
from slink_dashboard.storage.storage import Storage

log = logging.getLogger("slink.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseLinkStore:
    """
    Return a link store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads SLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor. For postgres, use dsn="...".
    """
    be = (backend or os.getenv("SLINK_STORAGE_BACKEND", "memory")).lower()
    log.debug("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SLINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from slink_dashboard.storage.db_storage import DBStorage
        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
