"""
Nexus (confluence/divergence point) representation in the flow network.
"""

from typing import Hashable, List, Optional, Tuple


class pynexus:
    """
    A point where flowpaths meet or split.

    Incoming and outgoing flowpaths are kept in insertion order so that
    tie-breaks at divergences and confluences are deterministic.
    """

    def __init__(self, lNexusID: Hashable, pPoint: Optional[Tuple[float, float]] = None):
        self.lNexusID = lNexusID
        self.pPoint = tuple(pPoint) if pPoint is not None else None
        self.aFlowpath_in: List = []
        self.aFlowpath_out: List = []

    @property
    def in_degree(self) -> int:
        return len(self.aFlowpath_in)

    @property
    def out_degree(self) -> int:
        return len(self.aFlowpath_out)

    @property
    def is_divergence(self) -> bool:
        return self.out_degree > 1

    @property
    def is_confluence(self) -> bool:
        return self.in_degree > 1

    @property
    def is_source(self) -> bool:
        return self.in_degree == 0

    @property
    def is_sink(self) -> bool:
        return self.out_degree == 0

    def get_upstream_nexuses(self) -> List["pynexus"]:
        """Nexuses at the tail of each incoming flowpath, in order."""
        return [pFlowpath.pNexus_start for pFlowpath in self.aFlowpath_in]

    def __repr__(self):
        return f"pynexus({self.lNexusID!r}, in={self.in_degree}, out={self.out_degree})"
