"""
Stream order computation for flow networks.

This module computes Shreve magnitude, Strahler order and upstream length
bottom-up, then decomposes the network into mainstems top-down and derives
Horton and Hack orders from them.
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Union

from ..analysis.detection import CycleValidator
from ..analysis.pathfinding import PathFinder
from ..classes.flowpath import MainstemPolicy, pyflowpath
from ..config.settings import FlowGraphSettings, parse_mainstem_policy, validate_settings
from ..core.graph import FlowGraph

logger = logging.getLogger(__name__)

# mainstem ids are uuid5 values of the mouth flowpath id in this namespace
MAINSTEM_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_OID, "flowgraph.mainstem")


def mainstem_id(pFlowpath_mouth: pyflowpath) -> str:
    """Deterministic mainstem id derived from the mouth flowpath id."""
    return str(uuid.uuid5(MAINSTEM_NAMESPACE, str(pFlowpath_mouth.lFlowpathID)))


def select_dominant(aCandidate: Sequence[pyflowpath]) -> Optional[pyflowpath]:
    """
    The candidate with the longest headwater-to-end length.

    Ties go to the flowpath added to the graph first.
    """
    if not aCandidate:
        return None
    return min(aCandidate, key=lambda p: (-p.dTotal_length, p.lIndex))


class StreamOrderEngine:
    """
    Computes stream orders over qualifying flowpaths.

    This class provides methods for:
    - Gating the computation on an acyclic graph
    - Accumulating Shreve magnitude, Strahler order and upstream length
    - Decomposing the network into mainstems
    - Deriving Horton and Hack orders from the mainstems
    """

    def __init__(self, settings: Optional[FlowGraphSettings] = None,
                 validator: Optional[CycleValidator] = None):
        """
        Initialize the stream order engine.

        Args:
            settings: Settings providing the default mainstem policy
            validator: Cycle validator used as the gate
        """
        self.settings = validate_settings(settings)
        self.validator = validator if validator is not None else CycleValidator()

    def compute_orders(self, graph: FlowGraph,
                       policy: Union[MainstemPolicy, str, None] = None,
                       accept_unreachable: bool = False) -> FlowGraph:
        """
        Compute every stream order attribute in place.

        Args:
            graph: Ranked FlowGraph
            policy: Mainstem policy; defaults to the configured one
            accept_unreachable: Proceed when nexuses are unreachable from a sink

        Returns:
            The same graph

        Raises:
            ConfigurationError: If the policy is unknown
            CycleError: If the graph contains a cycle
            UnreachableWarning: If nexuses are unreachable and not accepted
        """
        policy = parse_mainstem_policy(policy) if policy is not None else self.settings.mainstem_policy

        self.validator.check(graph, accept_unreachable=accept_unreachable)

        for pFlowpath in graph:
            pFlowpath.reset_stream_order()

        aSorted = PathFinder(graph).sort_qualifying_flowpaths()
        logger.info(f"Computing stream orders for {len(aSorted)} qualifying flowpaths "
                    f"with the {policy.value} mainstem policy")

        self.accumulate(aSorted)
        nMainstem = self.decompose_mainstems(aSorted, policy)

        logger.info(f"Stream order computation completed: {nMainstem} mainstems")
        return graph

    # ========================================================================
    # BOTTOM-UP ACCUMULATION
    # ========================================================================

    @staticmethod
    def accumulate(aSorted: Sequence[pyflowpath]):
        """
        Shreve magnitude, Strahler order and upstream length, upstream first.

        The upstream length of a flowpath is the length of the longest path
        from a headwater to its start nexus.
        """
        for pFlowpath in aSorted:
            aUpstream = PathFinder.get_upstream_flowpaths(pFlowpath)

            if not aUpstream:
                pFlowpath.iShreve_magnitude = 1
                pFlowpath.iStrahler_order = 1
                pFlowpath.dUpstream_length = 0.0
                continue

            pFlowpath.iShreve_magnitude = sum(p.iShreve_magnitude for p in aUpstream)

            aOrder = [p.iStrahler_order for p in aUpstream]
            iMax = max(aOrder)
            pFlowpath.iStrahler_order = iMax + 1 if aOrder.count(iMax) > 1 else iMax

            pFlowpath.dUpstream_length = select_dominant(aUpstream).dTotal_length

    # ========================================================================
    # MAINSTEMS
    # ========================================================================

    @staticmethod
    def select_continuation(pFlowpath: pyflowpath, policy: MainstemPolicy) -> Optional[pyflowpath]:
        """
        The upstream flowpath continuing the mainstem of ``pFlowpath``.

        With the named policy an upstream flowpath carrying the same name is
        preferred; otherwise the dominant branch continues.
        """
        aUpstream = PathFinder.get_upstream_flowpaths(pFlowpath)
        if not aUpstream:
            return None

        if policy == MainstemPolicy.NAMED and pFlowpath.sName:
            aNamed = [p for p in aUpstream if p.sName == pFlowpath.sName]
            if aNamed:
                return select_dominant(aNamed)

        return select_dominant(aUpstream)

    def decompose_mainstems(self, aSorted: Sequence[pyflowpath], policy: MainstemPolicy) -> int:
        """
        Split the qualifying flowpaths into mainstems, outlets first.

        Returns:
            Number of mainstems created
        """
        nMainstem = 0
        for pMouth in reversed(aSorted):
            if pMouth.sMainstemID is not None:
                continue

            aMember = [pMouth]
            pCurrent = self.select_continuation(pMouth, policy)
            while pCurrent is not None and pCurrent.sMainstemID is None:
                aMember.append(pCurrent)
                pCurrent = self.select_continuation(pCurrent, policy)

            aHack = [p.iHack_order for p in PathFinder.get_downstream_flowpaths(pMouth)
                     if p.iHack_order is not None]
            iHack = min(aHack) + 1 if aHack else 1

            sMainstemID = mainstem_id(pMouth)
            nMember = len(aMember)
            for i, pFlowpath in enumerate(aMember):
                pFlowpath.sMainstemID = sMainstemID
                pFlowpath.iMainstem_sequence = nMember - i
                pFlowpath.iHorton_order = pMouth.iStrahler_order
                pFlowpath.iHack_order = iHack

            nMainstem += 1
            logger.debug(f"Mainstem {sMainstemID} from mouth {pMouth.lFlowpathID}: "
                         f"{nMember} flowpaths, hack order {iHack}")

        return nMainstem

    @staticmethod
    def get_mainstems(graph: FlowGraph) -> Dict[str, List[pyflowpath]]:
        """
        Group the flowpaths of a computed graph by mainstem.

        Returns:
            Mapping mainstem id -> flowpaths ordered from the most upstream
            member to the mouth
        """
        mainstems: Dict[str, List[pyflowpath]] = defaultdict(list)
        for pFlowpath in graph:
            if pFlowpath.sMainstemID is not None:
                mainstems[pFlowpath.sMainstemID].append(pFlowpath)
        for aMember in mainstems.values():
            aMember.sort(key=lambda p: p.iMainstem_sequence)
        return dict(mainstems)
