"""
Link resolver: (domain, key) -> demo or persisted identity.

Responsibilities:
    - Serve demo fixtures from memory, without touching the link store
    - Look up everything else in the injected store, bounded by the request deadline
    - Refuse links that have no public analytics dashboard

LLM Prompt Example:
    "Show how a resolver can short-circuit a static fixture table before
    falling back to a database lookup, and return a typed failure instead
    of raising."
"""

import logging
from typing import Iterable, Union

from ..deadline import Deadline
from ..errors import CollaboratorTimeout, ErrorKind, Failure
from ..storage.base import BaseLinkStore
from .demo import DEMO_LINKS, DemoLink, find_demo_link
from .identity import DemoIdentity, LinkIdentity, PersistedIdentity, ProjectPolicy

log = logging.getLogger("slink.links")

NO_DASHBOARD_MESSAGE = "This link does not have a public analytics dashboard"


class LinkResolver:
    """
    Resolve dashboard links against demo fixtures, then the link store.

    Args:
        store (BaseLinkStore): Persistence backend for non-demo links.
        demo_workspace_id (str): Workspace id reported for demo links.
        demo_links (Iterable[DemoLink], optional): Fixture table; defaults to DEMO_LINKS.
    """

    def __init__(
        self,
        store: BaseLinkStore,
        demo_workspace_id: str,
        demo_links: Iterable[DemoLink] = DEMO_LINKS,
    ):
        self.store = store
        self.demo_workspace_id = demo_workspace_id
        self.demo_links = tuple(demo_links)

    def resolve(self, domain: str, key: str, deadline: Deadline) -> Union[LinkIdentity, Failure]:
        """
        Resolve a link for the dashboard.

        Returns:
            Union[LinkIdentity, Failure]: DemoIdentity, PersistedIdentity,
            FORBIDDEN when the link has no public dashboard, or TIMEOUT.
        """
        demo = find_demo_link(domain, key, self.demo_links)
        if demo is not None:
            return DemoIdentity(link_id=demo.id, workspace_id=self.demo_workspace_id)

        if deadline.expired():
            return Failure(ErrorKind.TIMEOUT, "Request deadline exceeded before link lookup")
        try:
            record = self.store.get_link(domain, key, timeout=deadline.remaining())
        except CollaboratorTimeout:
            return Failure(ErrorKind.TIMEOUT, "Link lookup timed out")
        if deadline.expired():
            return Failure(ErrorKind.TIMEOUT, "Request deadline exceeded during link lookup")

        if record is None or not record.dashboard:
            log.info("Dashboard refused for %s/%s: no public dashboard", domain, key)
            return Failure(ErrorKind.FORBIDDEN, NO_DASHBOARD_MESSAGE)

        return PersistedIdentity(
            link_id=record.id,
            workspace_id=record.project_id,
            policy=ProjectPolicy.from_record(record.project),
        )
