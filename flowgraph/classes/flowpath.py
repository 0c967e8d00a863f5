"""
Flowpath (edge) representation in the flow network.
"""

import logging
from enum import Enum, IntEnum
from typing import Hashable, Optional

import numpy as np
from shapely.geometry import LineString

from .exceptions import StructuralError

logger = logging.getLogger(__name__)


class EfType(IntEnum):
    """Elementary flowpath types."""
    NORMAL = 1
    BANK = 2
    SKELETON = 3

    @classmethod
    def parse(cls, value) -> "EfType":
        """Parse a type from an EfType, its integer code or its name."""
        if isinstance(value, cls):
            return value
        try:
            if isinstance(value, str):
                return cls[value.strip().upper()]
            return cls(int(value))
        except (KeyError, ValueError, TypeError):
            raise StructuralError(f"The value {value!r} is not supported for the flowpath type") from None


class RankType(IntEnum):
    """Rank of a flowpath at a divergence."""
    PRIMARY = 1
    SECONDARY = 2

    @classmethod
    def parse(cls, value) -> "RankType":
        """Parse a rank from a RankType, its integer code or its name."""
        if isinstance(value, cls):
            return value
        try:
            if isinstance(value, str):
                return cls[value.strip().upper()]
            return cls(int(value))
        except (KeyError, ValueError, TypeError):
            raise StructuralError(f"The value {value!r} is not supported for the rank attribute") from None


class MainstemPolicy(str, Enum):
    """How the continuing branch of a mainstem is chosen at a confluence."""
    BASIC = "basic"
    NAMED = "named"


def _unit_vector(c0, c1) -> Optional[np.ndarray]:
    vector = np.asarray(c1[:2], dtype=float) - np.asarray(c0[:2], dtype=float)
    norm = np.hypot(vector[0], vector[1])
    if norm == 0.0:
        return None
    return vector / norm


class pyflowpath:
    """
    A directed flow segment between two nexuses.

    The flowpath references its nexuses but never owns them; the graph owns
    both. Only the rank and the stream order attributes are mutated by the
    engines.
    """

    def __init__(self, lFlowpathID: Hashable, pNexus_start, pNexus_end,
                 pLine: Optional[LineString] = None,
                 iType: EfType = EfType.NORMAL,
                 dLength: Optional[float] = None,
                 sName: Optional[str] = None,
                 iRank: RankType = RankType.PRIMARY):
        """
        Initialize a flowpath.

        Args:
            lFlowpathID: Stable flowpath identity
            pNexus_start: Upstream (from) nexus
            pNexus_end: Downstream (to) nexus
            pLine: Optional line geometry, first coordinate upstream
            iType: Flowpath type
            dLength: Length; defaults to the geometry length, or 0
            sName: Optional name
            iRank: Initial rank
        """
        self.lFlowpathID = lFlowpathID
        self.pNexus_start = pNexus_start
        self.pNexus_end = pNexus_end
        self.pLine = pLine
        self.iType = EfType.parse(iType)
        self.iRank = RankType.parse(iRank)
        self.sName = sName if sName else None

        if dLength is None:
            dLength = pLine.length if pLine is not None else 0.0
        dLength = float(dLength)
        if dLength < 0 or np.isnan(dLength):
            raise StructuralError(f"Flowpath {lFlowpathID} has an invalid length {dLength}")
        self.dLength = dLength

        # insertion index within the owning graph, used for deterministic tie-breaks
        self.lIndex: int = -1

        self.reset_stream_order()

    def reset_stream_order(self):
        """Clear every computed stream order attribute."""
        self.dUpstream_length: Optional[float] = None
        self.iStrahler_order: Optional[int] = None
        self.iHorton_order: Optional[int] = None
        self.iHack_order: Optional[int] = None
        self.iShreve_magnitude: Optional[int] = None
        self.sMainstemID: Optional[str] = None
        self.iMainstem_sequence: Optional[int] = None

    @property
    def is_qualifying(self) -> bool:
        """True if the flowpath takes part in stream ordering (primary, not bank)."""
        return self.iRank == RankType.PRIMARY and self.iType != EfType.BANK

    @property
    def dTotal_length(self) -> float:
        """Longest headwater-to-mouth length ending with this flowpath."""
        return (self.dUpstream_length or 0.0) + self.dLength

    def start_direction(self) -> Optional[np.ndarray]:
        """Unit direction of the first non-degenerate segment, or None."""
        if self.pLine is None or self.pLine.is_empty:
            return None
        coords = list(self.pLine.coords)
        for c in coords[1:]:
            vector = _unit_vector(coords[0], c)
            if vector is not None:
                return vector
        return None

    def end_direction(self) -> Optional[np.ndarray]:
        """Unit direction of the last non-degenerate segment, or None."""
        if self.pLine is None or self.pLine.is_empty:
            return None
        coords = list(self.pLine.coords)
        for c in reversed(coords[:-1]):
            vector = _unit_vector(c, coords[-1])
            if vector is not None:
                return vector
        return None

    def __repr__(self):
        return (f"pyflowpath({self.lFlowpathID!r}: {self.pNexus_start.lNexusID!r} -> "
                f"{self.pNexus_end.lNexusID!r}, {self.iType.name}, {self.iRank.name})")
