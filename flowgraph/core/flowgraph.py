"""
Main facade class for flow network processing.

This module provides the pyflowgraph class that runs the rank, validation
and stream order stages while delegating to specialized modules.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Union

from ..analysis.detection import CycleCheckResult, CycleValidator
from ..classes.flowpath import MainstemPolicy, pyflowpath
from ..classes.nexus import pynexus
from ..config.settings import FlowGraphSettings, validate_settings
from ..operations.channel import ChannelWidthEstimator
from ..operations.rank import RankAssigner
from ..operations.topology import StreamOrderEngine
from .graph import FlowGraph

logger = logging.getLogger(__name__)


class pyflowgraph:
    """
    Main facade class for flow network processing.

    The three stages always run in the same order on a component: ranks are
    fixed first, the graph is then validated, and only a validated graph
    gets stream orders.
    """

    def __init__(self, graph: FlowGraph,
                 settings: Optional[FlowGraphSettings] = None,
                 width_estimator: Optional[ChannelWidthEstimator] = None):
        """
        Initialize the facade.

        Args:
            graph: FlowGraph to process in place
            settings: Settings; packaged defaults when omitted
            width_estimator: Optional estimator enabling the width refinement

        Raises:
            ConfigurationError: If the settings are invalid
        """
        self._graph = graph
        self.settings = validate_settings(settings)

        # Initialize analysis components
        self._validator = CycleValidator()

        # Initialize operation components
        self._ranker = RankAssigner(self.settings, width_estimator)
        self._orders = StreamOrderEngine(self.settings, self._validator)

    @classmethod
    def from_linestrings(cls, records: Iterable[Mapping],
                         settings: Optional[FlowGraphSettings] = None,
                         width_estimator: Optional[ChannelWidthEstimator] = None) -> "pyflowgraph":
        """Build the graph from line records, matching end points at the configured precision."""
        settings = validate_settings(settings)
        graph = FlowGraph.from_linestrings(records, settings.coordinate_precision)
        return cls(graph, settings, width_estimator)

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    # ========================================================================
    # BASIC GRAPH OPERATIONS
    # ========================================================================

    def get_sources(self) -> List[Hashable]:
        """Get source nexuses (headwaters) with no incoming flowpaths."""
        return self._graph.get_sources()

    def get_sinks(self) -> List[Hashable]:
        """Get sink nexuses (outlets) with no outgoing flowpaths."""
        return self._graph.get_sinks()

    def get_nexus(self, lNexusID: Hashable) -> Optional[pynexus]:
        """Get a nexus by id."""
        return self._graph.get_nexus(lNexusID)

    def get_flowpath(self, lFlowpathID: Hashable) -> Optional[pyflowpath]:
        """Get a flowpath by id."""
        return self._graph.get_flowpath(lFlowpathID)

    def get_nexus_count(self) -> int:
        return self._graph.get_nexus_count()

    def get_flowpath_count(self) -> int:
        return self._graph.get_flowpath_count()

    # ========================================================================
    # PIPELINE STAGES
    # ========================================================================

    def assign_ranks(self) -> FlowGraph:
        """Assign PRIMARY/SECONDARY rank at every divergence."""
        return self._ranker.assign_ranks(self._graph)

    def find_cycle(self) -> CycleCheckResult:
        """Check the graph for cycles and unreachable nexuses."""
        return self._validator.find_cycle(self._graph)

    def compute_orders(self, policy: Union[MainstemPolicy, str, None] = None,
                       accept_unreachable: bool = False) -> FlowGraph:
        """Compute stream orders; refuses a graph that fails validation."""
        return self._orders.compute_orders(self._graph, policy, accept_unreachable)

    def get_mainstems(self) -> Dict[str, List[pyflowpath]]:
        """Flowpaths grouped by mainstem id, most upstream member first."""
        return self._orders.get_mainstems(self._graph)

    def run(self, policy: Union[MainstemPolicy, str, None] = None,
            accept_unreachable: bool = False, components: bool = True) -> FlowGraph:
        """
        Run rank assignment, validation and stream ordering.

        Args:
            policy: Mainstem policy; defaults to the configured one
            accept_unreachable: Proceed when nexuses are unreachable from a sink
            components: Process each weakly connected component on its own

        Returns:
            The processed graph

        Raises:
            StructuralError, CycleError, UnreachableWarning: From the failing
                component; components processed before it keep their results
        """
        aGraph = self._graph.split_components() if components else [self._graph]
        nComponent = len(aGraph)
        for i, graph in enumerate(aGraph, start=1):
            logger.info(f"Processing component {i}/{nComponent} "
                        f"({graph.get_flowpath_count()} flowpaths)")
            self._ranker.assign_ranks(graph)
            self._orders.compute_orders(graph, policy, accept_unreachable)

        logger.info(f"Processed {nComponent} components")
        return self._graph
