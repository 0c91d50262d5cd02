"""
Link identities produced by the resolver.

A dashboard request is served either for a demo link (fixed, never stored,
no plan or quota) or for a persisted link backed by a workspace policy.
Downstream stages branch on the variant with isinstance, never on missing
fields.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..storage.base import ProjectRecord

DEFAULT_PLAN = "free"


@dataclass(frozen=True)
class ProjectPolicy:
    """Read-only plan and usage snapshot of the workspace owning a link."""

    plan: str
    usage: int
    usage_limit: int
    conversion_enabled: bool = False

    @classmethod
    def from_record(cls, project: Optional[ProjectRecord]) -> "ProjectPolicy":
        # Links without a project fall back to the free plan with nothing consumed
        if project is None:
            return cls(plan=DEFAULT_PLAN, usage=0, usage_limit=0)
        return cls(
            plan=project.plan or DEFAULT_PLAN,
            usage=project.usage,
            usage_limit=project.usage_limit,
            conversion_enabled=project.conversion_enabled,
        )


@dataclass(frozen=True)
class DemoIdentity:
    link_id: str
    workspace_id: Optional[str] = None


@dataclass(frozen=True)
class PersistedIdentity:
    link_id: str
    workspace_id: Optional[str]
    policy: ProjectPolicy


LinkIdentity = Union[DemoIdentity, PersistedIdentity]
