"""
Cycle detection for flow networks.

The validator walks the network backwards from every sink with an explicit
stack, so it runs in linear time and never recurses.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, List, Optional

from ..classes.exceptions import CycleError, UnreachableWarning
from ..core.graph import FlowGraph

logger = logging.getLogger(__name__)


class NexusState(Enum):
    """Traversal state of a nexus during one validator run."""
    OPEN = 0
    WORKING = 1
    CLOSED = 2


class _Visit(Enum):
    ENTER = 0
    EXIT = 1


@dataclass
class CycleCheckResult:
    """
    Outcome of a cycle check.

    Attributes:
        cycle_nexus_id: Id of a nexus found on a back-edge, or None
        unreachable: Ids of nexuses not reached from any sink; only computed
            when no back-edge was found
    """
    cycle_nexus_id: Optional[Hashable] = None
    unreachable: List[Hashable] = field(default_factory=list)

    @property
    def has_cycle(self) -> bool:
        return self.cycle_nexus_id is not None

    @property
    def is_valid(self) -> bool:
        """True if there is no cycle and every nexus was reached."""
        return not self.has_cycle and not self.unreachable


class CycleValidator:
    """
    Detects cycles in flow networks.

    The traversal state lives in a side-table created for each run, so
    repeated runs or runs over different components never interfere.
    """

    def find_cycle(self, graph: FlowGraph) -> CycleCheckResult:
        """
        Detect a cycle using an iterative DFS rooted at the sinks.

        Args:
            graph: FlowGraph to check

        Returns:
            CycleCheckResult with the back-edge nexus or the unreachable nexuses
        """
        state: Dict[Hashable, NexusState] = {nexus_id: NexusState.OPEN for nexus_id in graph.id_to_nexus}

        to_visit = [(nexus_id, _Visit.ENTER) for nexus_id in graph.get_sinks()]

        while to_visit:
            nexus_id, visit = to_visit.pop()

            if visit == _Visit.EXIT:
                state[nexus_id] = NexusState.CLOSED
                continue

            if state[nexus_id] == NexusState.CLOSED:
                continue

            state[nexus_id] = NexusState.WORKING
            to_visit.append((nexus_id, _Visit.EXIT))

            for pNexus_up in graph.id_to_nexus[nexus_id].get_upstream_nexuses():
                upstream_id = pNexus_up.lNexusID
                upstream_state = state[upstream_id]
                if upstream_state == NexusState.WORKING:
                    logger.error(f"Cycle detected around nexus id: {upstream_id}")
                    return CycleCheckResult(cycle_nexus_id=upstream_id)
                elif upstream_state == NexusState.OPEN:
                    to_visit.append((upstream_id, _Visit.ENTER))

        unreachable = [nexus_id for nexus_id, s in state.items() if s != NexusState.CLOSED]
        for nexus_id in unreachable:
            logger.warning(f"Nexus not visited: {nexus_id}")

        logger.info(f"Cycle detection completed. No cycles detected, "
                    f"{len(unreachable)} nexuses unreachable from a sink")
        return CycleCheckResult(unreachable=unreachable)

    def check(self, graph: FlowGraph, accept_unreachable: bool = False) -> CycleCheckResult:
        """
        Run the cycle check as a gate for ordering computations.

        Args:
            graph: FlowGraph to check
            accept_unreachable: Proceed when nexuses are unreachable from a sink

        Returns:
            The CycleCheckResult when the graph passes

        Raises:
            CycleError: If a back-edge was found
            UnreachableWarning: If nexuses are unreachable and not accepted
        """
        result = self.find_cycle(graph)
        if result.has_cycle:
            raise CycleError(f"Cycle detected around nexus id: {result.cycle_nexus_id}",
                             result.cycle_nexus_id)
        if result.unreachable and not accept_unreachable:
            raise UnreachableWarning(f"{len(result.unreachable)} nexuses are unreachable from a sink",
                                     result.unreachable)
        return result
