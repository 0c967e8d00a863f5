"""
Core graph data structure for flow network representation.

This module provides the fundamental graph structure without high-level operations.
"""

import logging
from typing import Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Tuple

from shapely import wkt
from shapely.geometry import LineString

from ..classes.exceptions import StructuralError
from ..classes.flowpath import EfType, RankType, pyflowpath
from ..classes.nexus import pynexus
from ..classes.utils import find_weak_components, round_coordinate

logger = logging.getLogger(__name__)


class FlowGraph:
    """
    Core graph data structure for flow networks.

    This class manages the fundamental graph representation without high-level
    operations like ranking or ordering. It provides:
    - Nexus and flowpath ID management
    - Adjacency maintenance on the nexuses (ordered in/out lists)
    - Degree derived queries (sources, sinks, divergences, confluences)
    - Component slicing for independent processing of drainage basins
    """

    def __init__(self):
        """Initialize an empty flow graph."""
        # Nexus mappings, insertion ordered
        self.id_to_nexus: Dict[Hashable, pynexus] = {}

        # Flowpath mappings, insertion ordered
        self.id_to_flowpath: Dict[Hashable, pyflowpath] = {}
        self.aFlowpath: List[pyflowpath] = []

        logger.debug("Initializing FlowGraph")

    # ========================================================================
    # CONSTRUCTION
    # ========================================================================

    def add_nexus(self, lNexusID: Hashable, pPoint: Optional[Tuple[float, float]] = None) -> pynexus:
        """
        Add a nexus, or return the existing nexus with the same id.

        Args:
            lNexusID: Stable nexus identity
            pPoint: Optional (x, y) coordinate

        Returns:
            The nexus object
        """
        pNexus = self.id_to_nexus.get(lNexusID)
        if pNexus is None:
            pNexus = pynexus(lNexusID, pPoint)
            self.id_to_nexus[lNexusID] = pNexus
        elif pNexus.pPoint is None and pPoint is not None:
            pNexus.pPoint = tuple(pPoint)
        return pNexus

    def add_flowpath(self, lFlowpathID: Hashable, lNexusID_start: Hashable, lNexusID_end: Hashable,
                     pLine: Optional[LineString] = None,
                     iType: EfType = EfType.NORMAL,
                     dLength: Optional[float] = None,
                     sName: Optional[str] = None,
                     iRank: RankType = RankType.PRIMARY) -> pyflowpath:
        """
        Add a flowpath between two existing nexuses.

        Args:
            lFlowpathID: Stable flowpath identity
            lNexusID_start: Id of the upstream nexus
            lNexusID_end: Id of the downstream nexus
            pLine: Optional line geometry
            iType: Flowpath type
            dLength: Optional length, defaults to the geometry length
            sName: Optional name
            iRank: Initial rank

        Returns:
            The new flowpath

        Raises:
            StructuralError: If a nexus is missing or the flowpath id is taken
        """
        if lFlowpathID in self.id_to_flowpath:
            raise StructuralError(f"Duplicate flowpath id {lFlowpathID!r}")

        pNexus_start = self.id_to_nexus.get(lNexusID_start)
        if pNexus_start is None:
            raise StructuralError(f"Flowpath {lFlowpathID!r} references missing nexus {lNexusID_start!r}",
                                  lNexusID_start)
        pNexus_end = self.id_to_nexus.get(lNexusID_end)
        if pNexus_end is None:
            raise StructuralError(f"Flowpath {lFlowpathID!r} references missing nexus {lNexusID_end!r}",
                                  lNexusID_end)

        pFlowpath = pyflowpath(lFlowpathID, pNexus_start, pNexus_end, pLine=pLine, iType=iType,
                               dLength=dLength, sName=sName, iRank=iRank)
        self._attach(pFlowpath)
        return pFlowpath

    def _attach(self, pFlowpath: pyflowpath):
        pFlowpath.lIndex = len(self.aFlowpath)
        self.aFlowpath.append(pFlowpath)
        self.id_to_flowpath[pFlowpath.lFlowpathID] = pFlowpath
        pFlowpath.pNexus_start.aFlowpath_out.append(pFlowpath)
        pFlowpath.pNexus_end.aFlowpath_in.append(pFlowpath)

    @classmethod
    def from_linestrings(cls, records: Iterable[Mapping], iPrecision: int = 6) -> "FlowGraph":
        """
        Build a graph from line geometries, creating nexuses at shared end points.

        Each record is a mapping with keys ``id`` and ``geometry`` (a LineString
        or WKT text) and optional ``type``, ``name``, ``length`` and ``rank``.
        End coordinates are matched after rounding to ``iPrecision`` digits.

        Args:
            records: Flowpath records
            iPrecision: Rounding digits for coordinate matching

        Returns:
            The constructed graph
        """
        graph = cls()
        for record in records:
            pLine = record['geometry']
            if isinstance(pLine, str):
                pLine = wkt.loads(pLine)
            if not isinstance(pLine, LineString) or pLine.is_empty:
                raise StructuralError(f"Flowpath {record.get('id')!r} does not have a line geometry")

            coords = list(pLine.coords)
            start_key = round_coordinate(coords[0], iPrecision)
            end_key = round_coordinate(coords[-1], iPrecision)
            graph.add_nexus(start_key, start_key)
            graph.add_nexus(end_key, end_key)

            graph.add_flowpath(record['id'], start_key, end_key, pLine=pLine,
                               iType=record.get('type', EfType.NORMAL),
                               dLength=record.get('length'),
                               sName=record.get('name'),
                               iRank=record.get('rank', RankType.PRIMARY))

        logger.debug(f"Built graph with {graph.get_nexus_count()} nexuses and {graph.get_flowpath_count()} flowpaths")
        return graph

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_nexus(self, lNexusID: Hashable) -> Optional[pynexus]:
        """Get a nexus by id, or None if not found."""
        return self.id_to_nexus.get(lNexusID)

    def get_flowpath(self, lFlowpathID: Hashable) -> Optional[pyflowpath]:
        """Get a flowpath by id, or None if not found."""
        return self.id_to_flowpath.get(lFlowpathID)

    def get_nexuses(self) -> List[pynexus]:
        """All nexuses in insertion order."""
        return list(self.id_to_nexus.values())

    def get_flowpaths(self) -> List[pyflowpath]:
        """All flowpaths in insertion order."""
        return self.aFlowpath.copy()

    def get_sources(self) -> List[Hashable]:
        """Get source nexuses (headwaters) with no incoming flowpaths."""
        return [nexus_id for nexus_id, pNexus in self.id_to_nexus.items() if pNexus.in_degree == 0]

    def get_sinks(self) -> List[Hashable]:
        """Get sink nexuses (outlets) with no outgoing flowpaths."""
        return [nexus_id for nexus_id, pNexus in self.id_to_nexus.items() if pNexus.out_degree == 0]

    def get_divergences(self) -> List[pynexus]:
        """Nexuses with more than one outgoing flowpath."""
        return [pNexus for pNexus in self.id_to_nexus.values() if pNexus.is_divergence]

    def get_confluences(self) -> List[pynexus]:
        """Nexuses with more than one incoming flowpath."""
        return [pNexus for pNexus in self.id_to_nexus.values() if pNexus.is_confluence]

    def get_nexus_count(self) -> int:
        return len(self.id_to_nexus)

    def get_flowpath_count(self) -> int:
        return len(self.aFlowpath)

    def __iter__(self) -> Iterator[pyflowpath]:
        return iter(self.aFlowpath)

    def __len__(self) -> int:
        return len(self.aFlowpath)

    # ========================================================================
    # COMPONENTS
    # ========================================================================

    def split_components(self) -> List["FlowGraph"]:
        """
        Split the graph into weakly connected components.

        The slices share the nexus and flowpath objects of this graph; since
        components are disjoint, slices never share mutable state. Flowpath
        insertion indices are left untouched so tie-breaks stay identical to
        processing the whole graph.

        Returns:
            One FlowGraph per component, in order of first nexus
        """
        adjacency = {nexus_id: [pFlowpath.pNexus_end.lNexusID for pFlowpath in pNexus.aFlowpath_out]
                     for nexus_id, pNexus in self.id_to_nexus.items()}
        components = find_weak_components(adjacency, list(self.id_to_nexus.keys()))

        aGraph = []
        for component in components:
            members = set(component)
            graph = FlowGraph()
            for nexus_id in self.id_to_nexus:
                if nexus_id in members:
                    graph.id_to_nexus[nexus_id] = self.id_to_nexus[nexus_id]
            for pFlowpath in self.aFlowpath:
                if pFlowpath.pNexus_start.lNexusID in members:
                    graph.aFlowpath.append(pFlowpath)
                    graph.id_to_flowpath[pFlowpath.lFlowpathID] = pFlowpath
            aGraph.append(graph)

        logger.debug(f"Split graph into {len(aGraph)} components")
        return aGraph
