"""
Base storage interface for the dashboard's link lookups.

Purpose:
    Define a small, stable contract that multiple persistence backends
    (in-memory, PostgreSQL) can implement without requiring changes to
    the resolver or the pipeline.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface enables dependency
    injection and easy backend swapping without touching service code."
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProjectRecord:
    """Plan and usage columns of the workspace owning a link."""
    plan: str
    usage: int
    usage_limit: int
    conversion_enabled: bool = False


@dataclass(frozen=True)
class LinkRecord:
    """A stored link as seen by the dashboard gate."""
    id: str
    domain: str
    key: str
    dashboard: bool
    project_id: Optional[str] = None
    project: Optional[ProjectRecord] = None


class BaseLinkStore(ABC):
    """Abstract base class for link persistence backends (read-only here)."""

    @abstractmethod  # pragma: no cover
    def get_link(self, domain: str, key: str, timeout: Optional[float] = None) -> Optional[LinkRecord]:
        """
        Look up a link and its project by (domain, key).

        Args:
            domain (str): Short-link domain.
            key (str): Short-link key within the domain.
            timeout (Optional[float]): Seconds the lookup may take.

        Returns:
            Optional[LinkRecord]: The record, or None when no such link exists.

        Raises:
            CollaboratorTimeout: If the lookup exceeded `timeout`.

        LLM Prompt Example:
            "Discuss how to bound a database read by the caller's remaining deadline."
        """
        raise NotImplementedError
