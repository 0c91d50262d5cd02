"""
Usage quota check for persisted links.

Pure comparison of the workspace's usage counter against its ceiling. The
counter is owned by the persistence layer; this module only reads it.
"""

from typing import Union

from ..errors import ErrorKind, Failure
from ..links.identity import ProjectPolicy
from .plans import PlanLookbackTable


def exceeded_limit_message(plan_label: str, limit: int, unit: str = "clicks") -> str:
    return (
        f"You have exceeded your {plan_label} plan's usage limit of {limit} {unit}. "
        f"Upgrade to a higher plan to keep viewing analytics."
    )


def check_usage(policy: ProjectPolicy, table: PlanLookbackTable) -> Union[None, Failure]:
    """
    Refuse when usage is strictly above the limit; reaching it exactly is allowed.

    Returns:
        Union[None, Failure]: None when within quota, else FORBIDDEN.
    """
    if policy.usage > policy.usage_limit:
        label = table.get(policy.plan).label
        return Failure(ErrorKind.FORBIDDEN, exceeded_limit_message(label, policy.usage_limit))
    return None
