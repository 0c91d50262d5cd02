"""
Abstract Base Class for analytics engines.

Responsibilities:
    - Define the one call the dashboard makes: fetch(query) -> result
    - Support easy substitution (in-memory click logs, remote HTTP engine)

LLM Prompt Example:
    "Create an abstract base class for an analytics engine that a gateway
    forwards validated queries to, and explain how to mark abstract methods
    to be excluded from coverage."
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

__all__ = ["BaseAnalyticsEngine"]


class BaseAnalyticsEngine(ABC):
    """Abstract base for pluggable analytics engines."""

    @abstractmethod
    def fetch(self, query: Dict[str, Any], timeout: Optional[float] = None) -> Any:  # pragma: no cover
        """
        Compute analytics for a validated dashboard query.

        Args:
            query (Dict[str, Any]): camelCase query including groupBy, linkId and,
                when known, workspaceId; extra dimensions pass through untouched.
            timeout (Optional[float]): Seconds the computation may take.

        Returns:
            Any: JSON-serializable result, returned to the caller verbatim.

        Raises:
            CollaboratorTimeout: If the engine did not answer in time.
            UpstreamError: For any other engine failure.
        """
        raise NotImplementedError
