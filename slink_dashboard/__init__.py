"""
slink_dashboard package initializer.
"""

from . import analytics
from . import links
from . import pipeline
from . import policy
from . import ratelimit
from . import storage

__all__ = ["analytics", "links", "pipeline", "policy", "ratelimit", "storage"]
