"""
Storage module for the dashboard (in-memory implementation).

Responsibilities:
    - Hold link records keyed by (domain, key)
    - Answer read-only lookups for the link resolver
    - Count lookups so tests can assert which paths touched persistence

Design:
    - This is an in-memory reference implementation that satisfies the BaseLinkStore contract.
    - It is intentionally simple to keep unit/integration tests fast and deterministic.
    - For production, use the PostgreSQL backend (see `db_storage.py`).

LLM Prompt Example:
    "Explain how this in-memory storage can be swapped for a database-backed layer
     without changing the resolver or API code, by adhering to a narrow BaseLinkStore interface."
"""

from typing import Dict, Optional, Tuple

from .base import BaseLinkStore, LinkRecord


class Storage(BaseLinkStore):
    def __init__(self):
        """
        Initialize an empty link table.

        Internal schema:
            self.links = { (domain, key): LinkRecord }
        """
        self.links: Dict[Tuple[str, str], LinkRecord] = {}
        self.lookups = 0

    def save_link(self, record: LinkRecord) -> None:
        """
        Insert or replace a link record.

        Only used to seed fixtures; the dashboard itself never writes.
        """
        self.links[(record.domain, record.key)] = record

    def get_link(self, domain: str, key: str, timeout: Optional[float] = None) -> Optional[LinkRecord]:
        """
        Retrieve a link by (domain, key).

        Returns:
            Optional[LinkRecord]: The record or None if not found.
        """
        self.lookups += 1
        return self.links.get((domain, key))
