"""
Path finding and ordering helpers for flow networks.

This module provides chain walking, upstream/downstream lookups and the
topological ordering used by the stream order engine.
"""

import logging
from typing import Iterator, List

from ..classes.exceptions import CycleError
from ..classes.flowpath import EfType, pyflowpath
from ..classes.nexus import pynexus
from ..classes.utils import topological_sort
from ..core.graph import FlowGraph

logger = logging.getLogger(__name__)


def is_bank_merge(pNexus: pynexus) -> bool:
    """
    True if the nexus joins exactly one bank flowpath to exactly one other flowpath.

    Such junctions are where a bank connector meets a channel inside a
    waterbody; flow continues through them as if they were pass-through.
    """
    if pNexus.in_degree < 2:
        return False
    nBank = sum(1 for pFlowpath in pNexus.aFlowpath_in if pFlowpath.iType == EfType.BANK)
    return nBank == 1 and pNexus.in_degree - nBank == 1


def is_pass_through(pNexus: pynexus) -> bool:
    """True if flow at the nexus continues into a single flowpath without a decision."""
    if pNexus.out_degree != 1:
        return False
    return pNexus.in_degree == 1 or is_bank_merge(pNexus)


class PathFinder:
    """
    Path finding algorithms for flow networks.

    This class provides methods for:
    - Walking simple downstream chains
    - Getting qualifying upstream/downstream connections
    - Topologically ordering qualifying flowpaths
    """

    def __init__(self, graph: FlowGraph):
        """
        Initialize the path finder.

        Args:
            graph: FlowGraph instance to analyze
        """
        self.graph = graph

    @staticmethod
    def walk_downstream_chain(pFlowpath: pyflowpath) -> Iterator[pyflowpath]:
        """
        Yield the flowpaths downstream of ``pFlowpath`` along a simple chain.

        The walk continues while the next nexus is pass-through (see
        ``is_pass_through``) and stops if it comes back to a flowpath already
        yielded, so it terminates on cyclic input.
        """
        visited = {pFlowpath.lFlowpathID}
        pNexus = pFlowpath.pNexus_end
        while is_pass_through(pNexus):
            pNext = pNexus.aFlowpath_out[0]
            if pNext.lFlowpathID in visited:
                logger.debug(f"Chain walk returned to flowpath {pNext.lFlowpathID}, stopping")
                return
            visited.add(pNext.lFlowpathID)
            yield pNext
            pNexus = pNext.pNexus_end

    @staticmethod
    def get_upstream_flowpaths(pFlowpath: pyflowpath, qualifying_only: bool = True) -> List[pyflowpath]:
        """Flowpaths ending where ``pFlowpath`` starts, in insertion order."""
        aUpstream = pFlowpath.pNexus_start.aFlowpath_in
        if qualifying_only:
            return [p for p in aUpstream if p.is_qualifying]
        return list(aUpstream)

    @staticmethod
    def get_downstream_flowpaths(pFlowpath: pyflowpath, qualifying_only: bool = True) -> List[pyflowpath]:
        """Flowpaths starting where ``pFlowpath`` ends, in insertion order."""
        aDownstream = pFlowpath.pNexus_end.aFlowpath_out
        if qualifying_only:
            return [p for p in aDownstream if p.is_qualifying]
        return list(aDownstream)

    def sort_qualifying_flowpaths(self) -> List[pyflowpath]:
        """
        Topologically order qualifying flowpaths, upstream before downstream.

        Returns:
            Qualifying flowpaths in a deterministic topological order

        Raises:
            CycleError: If the qualifying flowpaths contain a cycle
        """
        aQualifying = [p for p in self.graph.aFlowpath if p.is_qualifying]
        adjacency = {p.lIndex: [d.lIndex for d in self.get_downstream_flowpaths(p)] for p in aQualifying}
        by_index = {p.lIndex: p for p in aQualifying}

        try:
            order = topological_sort(adjacency, [p.lIndex for p in aQualifying])
        except CycleError as e:
            pFlowpath = by_index.get(e.nexus_id)
            nexus_id = pFlowpath.pNexus_start.lNexusID if pFlowpath is not None else None
            raise CycleError(f"Qualifying flowpaths contain a cycle near nexus id: {nexus_id}", nexus_id) from e

        logger.debug(f"Topologically sorted {len(order)} qualifying flowpaths")
        return [by_index[i] for i in order]
