"""Tests for stream order computation."""

import pytest

from flowgraph.classes.exceptions import ConfigurationError, CycleError, UnreachableWarning
from flowgraph.classes.flowpath import EfType, MainstemPolicy, RankType
from flowgraph.config.settings import FlowGraphSettings
from flowgraph.core.graph import FlowGraph
from flowgraph.formats.export_flowpath import export_flowpath_attributes
from flowgraph.operations.topology import StreamOrderEngine, mainstem_id

from conftest import values

HEADWATERS = ["E-1", "E-2", "E-4", "E-5", "E-8", "E-10", "E-11", "E-13", "E-14"]


def expand(mapping, default=None):
    """Per-flowpath expectations from {id number: value}."""
    return {f"E-{i}": mapping.get(i, default) for i in range(1, 18)}


def mainstem_members(graph):
    mainstems = StreamOrderEngine.get_mainstems(graph)
    return sorted(sorted(int(p.lFlowpathID[2:]) for p in aMember) for aMember in mainstems.values())


class TestBasicPolicy:
    """Test the reference network with the basic mainstem policy."""

    @pytest.fixture
    def graph(self, reference_graph):
        return StreamOrderEngine().compute_orders(reference_graph, MainstemPolicy.BASIC)

    def test_strahler_order(self, graph):
        expected = expand({3: 2, 6: 2, 7: 3, 9: 3, 12: 2, 15: 2, 16: 3, 17: 4}, default=1)
        assert values(graph, "iStrahler_order") == expected

    def test_shreve_magnitude(self, graph):
        expected = expand({3: 2, 6: 2, 7: 4, 9: 5, 12: 2, 15: 2, 16: 4, 17: 9}, default=1)
        assert values(graph, "iShreve_magnitude") == expected

    def test_upstream_length(self, graph):
        result = values(graph, "dUpstream_length")
        expected = {"E-6": 6.0, "E-7": 14.0, "E-9": 15.0, "E-12": 8.0, "E-16": 13.0, "E-17": 17.0,
                    "E-3": 3.0, "E-15": 2.0}
        for lFlowpathID, dLength in expected.items():
            assert result[lFlowpathID] == pytest.approx(dLength)
        for lFlowpathID in HEADWATERS:
            assert result[lFlowpathID] == 0.0

    def test_mainstems(self, graph):
        assert mainstem_members(graph) == sorted([
            [5, 6, 7, 9, 17], [10, 12, 16], [14, 15], [2, 3],
            [1], [4], [8], [11], [13],
        ])

    def test_mainstem_id_comes_from_mouth(self, graph):
        sOutlet = mainstem_id(graph.get_flowpath("E-17"))
        for lFlowpathID in ["E-5", "E-6", "E-7", "E-9", "E-17"]:
            assert graph.get_flowpath(lFlowpathID).sMainstemID == sOutlet
        assert graph.get_flowpath("E-16").sMainstemID == mainstem_id(graph.get_flowpath("E-16"))

    def test_mainstem_sequence_increases_downstream(self, graph):
        expected = expand({5: 1, 6: 2, 7: 3, 9: 4, 17: 5, 10: 1, 12: 2, 16: 3, 14: 1, 15: 2, 2: 1, 3: 2},
                          default=1)
        assert values(graph, "iMainstem_sequence") == expected

    def test_horton_order(self, graph):
        expected = expand({1: 1, 2: 2, 3: 2, 4: 1, 5: 4, 6: 4, 7: 4, 8: 1, 9: 4, 10: 3, 11: 1,
                           12: 3, 13: 1, 14: 2, 15: 2, 16: 3, 17: 4})
        assert values(graph, "iHorton_order") == expected

    def test_hack_order(self, graph):
        expected = expand({1: 3, 2: 2, 3: 2, 4: 2, 5: 1, 6: 1, 7: 1, 8: 2, 9: 1, 10: 2, 11: 3,
                           12: 2, 13: 4, 14: 3, 15: 3, 16: 2, 17: 1})
        assert values(graph, "iHack_order") == expected

    def test_shreve_counts_headwaters(self, graph):
        # every flowpath's magnitude is the number of headwaters upstream of it
        assert graph.get_flowpath("E-17").iShreve_magnitude == len(HEADWATERS)
        assert all(p.iShreve_magnitude >= 1 for p in graph)


class TestNamedPolicy:
    """Test the reference network with the named mainstem policy."""

    @pytest.fixture
    def graph(self, reference_graph):
        return StreamOrderEngine().compute_orders(reference_graph, "named")

    def test_named_branch_continues_mainstem(self, graph):
        assert mainstem_members(graph) == sorted([
            [11, 12, 16, 17], [2, 3, 7, 9], [5, 6], [14, 15],
            [1], [4], [8], [10], [13],
        ])

    def test_bottom_up_orders_do_not_depend_on_policy(self, graph):
        assert graph.get_flowpath("E-17").iStrahler_order == 4
        assert graph.get_flowpath("E-17").iShreve_magnitude == 9
        assert graph.get_flowpath("E-17").dUpstream_length == pytest.approx(17.0)

    def test_mainstem_sequence(self, graph):
        expected = expand({11: 1, 12: 2, 16: 3, 17: 4, 2: 1, 3: 2, 7: 3, 9: 4, 5: 1, 6: 2, 14: 1, 15: 2},
                          default=1)
        assert values(graph, "iMainstem_sequence") == expected

    def test_horton_order(self, graph):
        expected = expand({1: 1, 2: 3, 3: 3, 4: 1, 5: 2, 6: 2, 7: 3, 8: 1, 9: 3, 10: 1, 11: 4,
                           12: 4, 13: 1, 14: 2, 15: 2, 16: 4, 17: 4})
        assert values(graph, "iHorton_order") == expected

    def test_hack_order(self, graph):
        expected = expand({1: 3, 2: 2, 3: 2, 4: 4, 5: 3, 6: 3, 7: 2, 8: 3, 9: 2, 10: 2, 11: 1,
                           12: 1, 13: 3, 14: 2, 15: 2, 16: 1, 17: 1})
        assert values(graph, "iHack_order") == expected

    def test_policy_from_settings(self, reference_graph):
        engine = StreamOrderEngine(FlowGraphSettings(mainstem_policy="named"))
        engine.compute_orders(reference_graph)
        assert reference_graph.get_flowpath("E-11").iHack_order == 1


class TestStreamOrderEngine:
    """Test exclusions, edge cases and the validation gate."""

    def test_secondary_flowpath_is_excluded(self, reference_graph):
        reference_graph.get_flowpath("E-9").iRank = RankType.SECONDARY
        StreamOrderEngine().compute_orders(reference_graph)

        pExcluded = reference_graph.get_flowpath("E-9")
        assert pExcluded.iStrahler_order is None
        assert pExcluded.sMainstemID is None

        pOutlet = reference_graph.get_flowpath("E-17")
        assert pOutlet.iShreve_magnitude == 4
        assert pOutlet.iStrahler_order == 3
        assert pOutlet.dUpstream_length == pytest.approx(16.0)

        # with its downstream flowpath excluded E-7 drains its own mainstem
        pCut = reference_graph.get_flowpath("E-7")
        assert pCut.iHack_order == 1
        assert pCut.iMainstem_sequence == 3

    def test_bank_flowpath_is_excluded(self, reference_graph):
        reference_graph.get_flowpath("E-6").iType = EfType.BANK
        StreamOrderEngine().compute_orders(reference_graph)

        assert reference_graph.get_flowpath("E-6").iShreve_magnitude is None
        pNext = reference_graph.get_flowpath("E-7")
        assert pNext.iShreve_magnitude == 2
        assert pNext.iStrahler_order == 2
        assert pNext.dUpstream_length == pytest.approx(12.0)

    def test_mid_graph_headwater(self, reference_graph):
        for lFlowpathID in ["E-1", "E-2"]:
            reference_graph.get_flowpath(lFlowpathID).iRank = RankType.SECONDARY
        StreamOrderEngine().compute_orders(reference_graph)

        pFlowpath = reference_graph.get_flowpath("E-3")
        assert pFlowpath.iShreve_magnitude == 1
        assert pFlowpath.iStrahler_order == 1
        assert pFlowpath.dUpstream_length == 0.0

    def test_isolated_flowpath(self):
        graph = FlowGraph()
        graph.add_nexus("a")
        graph.add_nexus("b")
        pFlowpath = graph.add_flowpath("only", "a", "b", dLength=4.0)
        StreamOrderEngine().compute_orders(graph)

        assert pFlowpath.iShreve_magnitude == 1
        assert pFlowpath.iStrahler_order == 1
        assert pFlowpath.dUpstream_length == 0.0
        assert pFlowpath.sMainstemID == mainstem_id(pFlowpath)
        assert pFlowpath.iMainstem_sequence == 1
        assert pFlowpath.iHorton_order == 1
        assert pFlowpath.iHack_order == 1

    @pytest.mark.parametrize("first, second", [("a", "b"), ("b", "a")])
    def test_ties_go_to_first_added(self, first, second):
        graph = FlowGraph()
        for nexus_id in ["a", "b", "c", "d"]:
            graph.add_nexus(nexus_id)
        graph.add_flowpath(first, first, "c", dLength=5.0)
        graph.add_flowpath(second, second, "c", dLength=5.0)
        graph.add_flowpath("out", "c", "d", dLength=1.0)
        StreamOrderEngine().compute_orders(graph)

        assert graph.get_flowpath(first).sMainstemID == graph.get_flowpath("out").sMainstemID
        assert graph.get_flowpath(second).iHack_order == 2

    def test_idempotent(self, reference_graph):
        engine = StreamOrderEngine()
        engine.compute_orders(reference_graph)
        first = export_flowpath_attributes(reference_graph)
        engine.compute_orders(reference_graph)
        assert export_flowpath_attributes(reference_graph) == first

    def test_refuses_cyclic_graph(self):
        graph = FlowGraph()
        for nexus_id in ["a", "b", "c"]:
            graph.add_nexus(nexus_id)
        graph.add_flowpath(1, "a", "b")
        graph.add_flowpath(2, "b", "a")
        graph.add_flowpath(3, "b", "c")
        with pytest.raises(CycleError):
            StreamOrderEngine().compute_orders(graph)
        assert all(p.iStrahler_order is None for p in graph)

    def test_unreachable_requires_acceptance(self, reference_graph):
        # a loop closed by a bank flowpath never reaches a sink
        for nexus_id in ["x", "y"]:
            reference_graph.add_nexus(nexus_id)
        reference_graph.add_flowpath("loop-1", "x", "y", dLength=1.0)
        reference_graph.add_flowpath("loop-2", "y", "x", iType=EfType.BANK, dLength=1.0)

        with pytest.raises(UnreachableWarning):
            StreamOrderEngine().compute_orders(reference_graph)

        StreamOrderEngine().compute_orders(reference_graph, accept_unreachable=True)
        assert reference_graph.get_flowpath("loop-1").iStrahler_order == 1
        assert reference_graph.get_flowpath("loop-2").iStrahler_order is None
        assert reference_graph.get_flowpath("E-17").iStrahler_order == 4

    def test_qualifying_cycle_is_refused_even_when_accepted(self, reference_graph):
        for nexus_id in ["x", "y"]:
            reference_graph.add_nexus(nexus_id)
        reference_graph.add_flowpath("loop-1", "x", "y")
        reference_graph.add_flowpath("loop-2", "y", "x")
        with pytest.raises(CycleError):
            StreamOrderEngine().compute_orders(reference_graph, accept_unreachable=True)

    def test_unknown_policy(self, reference_graph):
        with pytest.raises(ConfigurationError):
            StreamOrderEngine().compute_orders(reference_graph, "longest")
