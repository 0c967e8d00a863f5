"""
Error taxonomy for flow network processing.

All errors raised by the rank, cycle and stream order engines derive from
FlowGraphError so that callers can translate them at a single boundary.
"""

from typing import Hashable, List, Optional


class FlowGraphError(Exception):
    """Base class for all flow network errors."""


class StructuralError(FlowGraphError):
    """
    The network structure cannot be processed.

    Raised when a divergence nexus has no scoreable outgoing flowpath, when a
    flowpath references a missing nexus, or when input attributes are invalid.
    """

    def __init__(self, message: str, nexus_id: Optional[Hashable] = None):
        super().__init__(message)
        self.nexus_id = nexus_id


class CycleError(FlowGraphError):
    """A back-edge was found; ordering computations must not run."""

    def __init__(self, message: str, nexus_id: Optional[Hashable] = None):
        super().__init__(message)
        self.nexus_id = nexus_id


class UnreachableWarning(FlowGraphError, UserWarning):
    """Nexuses were left unvisited by a traversal rooted at the sinks."""

    def __init__(self, message: str, nexus_ids: Optional[List[Hashable]] = None):
        super().__init__(message)
        self.nexus_ids = list(nexus_ids or [])


class ConfigurationError(FlowGraphError, ValueError):
    """Invalid channel weight, unknown mainstem policy or unknown unit system."""
