"""
Demo link fixtures.

Public showcase links whose dashboards are always open. They never touch
the link store and are exempt from plan and quota checks; rate limiting
still applies.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class DemoLink:
    domain: str
    key: str
    id: str


DEMO_LINKS: Tuple[DemoLink, ...] = (
    DemoLink(domain="slk.sh", key="try", id="link_demo_try"),
    DemoLink(domain="slk.sh", key="github", id="link_demo_github"),
    DemoLink(domain="slk.sh", key="docs", id="link_demo_docs"),
    DemoLink(domain="slk.sh", key="pricing", id="link_demo_pricing"),
    DemoLink(domain="go.slk.sh", key="launch", id="link_demo_launch"),
)


def find_demo_link(domain: str, key: str, links: Iterable[DemoLink] = DEMO_LINKS) -> Optional[DemoLink]:
    """Exact (domain, key) match against the fixture table, or None."""
    for link in links:
        if link.domain == domain and link.key == key:
            return link
    return None
