"""
Rank assignment at divergences.

Each divergence keeps exactly one PRIMARY outgoing flowpath: the one that
continues the incoming flow most directly, optionally weighed against its
share of the channel width. The other outgoing flowpaths become SECONDARY,
and so does every flowpath along the simple chain downstream of them.
"""

import logging
from typing import Dict, Hashable, List, Optional

from ..analysis.pathfinding import PathFinder
from ..classes.exceptions import StructuralError
from ..classes.flowpath import EfType, RankType, pyflowpath
from ..classes.nexus import pynexus
from ..classes.utils import normalized_deflection
from ..config.settings import FlowGraphSettings, validate_settings
from ..core.graph import FlowGraph
from .channel import ChannelWidthEstimator

logger = logging.getLogger(__name__)


class RankAssigner:
    """
    Assigns PRIMARY/SECONDARY rank to flowpaths.

    This class provides methods for:
    - Scoring outgoing flowpaths by deflection angle
    - Refining scores with channel widths inside waterbodies
    - Propagating SECONDARY rank down simple chains
    """

    def __init__(self, settings: Optional[FlowGraphSettings] = None,
                 width_estimator: Optional[ChannelWidthEstimator] = None):
        """
        Initialize the rank assigner.

        Args:
            settings: Settings providing the channel weight
            width_estimator: Optional estimator enabling the width refinement
        """
        self.settings = validate_settings(settings)
        self.width_estimator = width_estimator

    def assign_ranks(self, graph: FlowGraph) -> FlowGraph:
        """
        Assign ranks to every flowpath of the graph.

        All ranks are reset to PRIMARY first, then every divergence is
        decided in insertion order.

        Args:
            graph: FlowGraph to rank in place

        Returns:
            The same graph

        Raises:
            StructuralError: If a divergence has no scoreable outgoing flowpath.
                Ranks decided before the failing nexus are kept.
        """
        for pFlowpath in graph:
            pFlowpath.iRank = RankType.PRIMARY

        aDivergence = graph.get_divergences()
        logger.info(f"Assigning ranks at {len(aDivergence)} divergences")

        aSecondary: List[pyflowpath] = []
        for pNexus in aDivergence:
            aSecondary.extend(self.rank_divergence(pNexus))

        nPropagated = self._propagate_secondary(aSecondary)

        nSecondary = sum(1 for pFlowpath in graph if pFlowpath.iRank == RankType.SECONDARY)
        logger.info(f"Rank assignment completed: {nSecondary} secondary flowpaths "
                    f"({nPropagated} by propagation)")
        return graph

    def rank_divergence(self, pNexus: pynexus) -> List[pyflowpath]:
        """
        Choose the primary outgoing flowpath of one divergence.

        Returns:
            The outgoing flowpaths marked SECONDARY
        """
        scores = self.score_outgoing(pNexus)
        if not scores:
            raise StructuralError(f"No outgoing flowpath with a computable score at nexus: {pNexus.lNexusID}",
                                  pNexus.lNexusID)

        pPrimary = None
        for pFlowpath in pNexus.aFlowpath_out:
            dScore = scores.get(pFlowpath.lFlowpathID)
            if dScore is None:
                continue
            if pPrimary is None or dScore < scores[pPrimary.lFlowpathID]:
                pPrimary = pFlowpath

        aSecondary = []
        for pFlowpath in pNexus.aFlowpath_out:
            if pFlowpath is pPrimary:
                continue
            pFlowpath.iRank = RankType.SECONDARY
            aSecondary.append(pFlowpath)

        logger.debug(f"Nexus {pNexus.lNexusID}: primary {pPrimary.lFlowpathID} "
                     f"(score {scores[pPrimary.lFlowpathID]:.4f})")
        return aSecondary

    def score_outgoing(self, pNexus: pynexus) -> Dict[Hashable, float]:
        """
        Score the outgoing flowpaths of a divergence; lower is more primary.

        Returns:
            Mapping flowpath id -> score for every scoreable flowpath
        """
        deflections = self.compute_deflections(pNexus)
        if not deflections:
            return deflections

        widths = self._estimate_widths(pNexus)
        if widths is None or len(deflections) != pNexus.out_degree:
            return deflections

        dTotal = sum(widths.values())
        if dTotal <= 0.0:
            return deflections

        p = self.settings.channel_weight
        scores = {}
        for lFlowpathID, dDeflection in deflections.items():
            dShare = widths[lFlowpathID] / dTotal
            scores[lFlowpathID] = dDeflection * (1.0 - p) + (1.0 - dShare) * p
        return scores

    @staticmethod
    def compute_deflections(pNexus: pynexus) -> Dict[Hashable, float]:
        """
        Normalized deflection of each outgoing flowpath.

        The deflection of an outgoing flowpath is the largest angle it makes
        with any incoming flowpath, as a fraction of pi. Flowpaths without
        geometry are left out.
        """
        aDirection_in = [d for d in (p.end_direction() for p in pNexus.aFlowpath_in) if d is not None]
        if not aDirection_in:
            return {}

        deflections = {}
        for pFlowpath in pNexus.aFlowpath_out:
            aDirection_out = pFlowpath.start_direction()
            if aDirection_out is None:
                continue
            deflections[pFlowpath.lFlowpathID] = max(normalized_deflection(d, aDirection_out)
                                                     for d in aDirection_in)
        return deflections

    def _estimate_widths(self, pNexus: pynexus) -> Optional[Dict[Hashable, float]]:
        if self.width_estimator is None:
            return None
        if any(pFlowpath.iType != EfType.SKELETON for pFlowpath in pNexus.aFlowpath_out):
            return None
        widths = self.width_estimator.estimate_widths(pNexus)
        if widths is not None:
            logger.debug(f"Nexus {pNexus.lNexusID}: channel widths {widths}")
        return widths

    @staticmethod
    def _propagate_secondary(aSecondary: List[pyflowpath]) -> int:
        nPropagated = 0
        for pFlowpath in aSecondary:
            for pNext in PathFinder.walk_downstream_chain(pFlowpath):
                if pNext.iRank != RankType.SECONDARY:
                    pNext.iRank = RankType.SECONDARY
                    nPropagated += 1
        return nPropagated
