"""Shared fixtures for flowgraph tests."""

import pytest
from shapely.geometry import LineString

from flowgraph.classes.flowpath import EfType
from flowgraph.core.graph import FlowGraph

# (id, from, to, length) of the 17 flowpaths draining to N18
REFERENCE_FLOWPATHS = [
    ("E-1", "N3", "N11", 2),
    ("E-2", "N4", "N11", 3),
    ("E-3", "N11", "N12", 9),
    ("E-4", "N1", "N10", 5),
    ("E-5", "N2", "N10", 6),
    ("E-6", "N10", "N12", 8),
    ("E-7", "N12", "N16", 1),
    ("E-8", "N5", "N16", 6),
    ("E-9", "N16", "N17", 2),
    ("E-10", "N6", "N13", 8),
    ("E-11", "N7", "N13", 7),
    ("E-12", "N13", "N15", 5),
    ("E-13", "N8", "N14", 1),
    ("E-14", "N9", "N14", 2),
    ("E-15", "N14", "N15", 2),
    ("E-16", "N15", "N17", 3),
    ("E-17", "N17", "N18", 3),
]

REFERENCE_NAMES = {
    "E-2": "RED",
    "E-3": "RED",
    "E-7": "RED",
    "E-11": "PURPLE",
    "E-12": "PURPLE",
    "E-16": "PURPLE",
    "E-17": "PURPLE",
}


def build_reference_graph() -> FlowGraph:
    graph = FlowGraph()
    for i in range(1, 19):
        graph.add_nexus(f"N{i}")
    for lFlowpathID, start, end, dLength in REFERENCE_FLOWPATHS:
        graph.add_flowpath(lFlowpathID, start, end, dLength=dLength, sName=REFERENCE_NAMES.get(lFlowpathID))
    return graph


def build_line_graph(aLine, iPrecision: int = 6) -> FlowGraph:
    """Graph from (id, coordinates[, type]) tuples, nexuses matched on end points."""
    records = []
    for item in aLine:
        record = {"id": item[0], "geometry": LineString(item[1])}
        if len(item) > 2:
            record["type"] = item[2]
        records.append(record)
    return FlowGraph.from_linestrings(records, iPrecision)


def values(graph: FlowGraph, sAttribute: str) -> dict:
    return {pFlowpath.lFlowpathID: getattr(pFlowpath, sAttribute) for pFlowpath in graph}


@pytest.fixture
def reference_graph():
    """The 18-nexus, 17-flowpath reference network rooted at N18."""
    return build_reference_graph()


@pytest.fixture
def divergence_graph():
    """
    A straight channel with a side channel splitting off to the south.

    in:   (0,0) -> (10,0)
    side: (10,0) -> (15,-5) -> (20,-10), then (20,-10) -> (30,-10) -> (40,-10)
    main: (10,0) -> (20,0) -> (40,0)
    out:  (40,-10) -> (40,0) joins the main channel, which ends at (50,0)

    The side channel is added before the main channel so that insertion
    order alone would pick the wrong one.
    """
    return build_line_graph([
        ("in", [(0, 0), (10, 0)]),
        ("side", [(10, 0), (15, -5), (20, -10)]),
        ("main", [(10, 0), (20, 0), (40, 0)]),
        ("side-2", [(20, -10), (30, -10), (40, -10)]),
        ("side-3", [(40, -10), (40, 0)]),
        ("out", [(40, 0), (50, 0)]),
    ])


@pytest.fixture
def bank_merge_graph():
    """A side channel whose chain passes a bank-merge junction."""
    return build_line_graph([
        ("in", [(0, 0), (10, 0)]),
        ("main", [(10, 0), (30, 0)]),
        ("side", [(10, 0), (20, -10)], EfType.SKELETON),
        ("bank", [(20, -30), (20, -10)], EfType.BANK),
        ("side-2", [(20, -10), (30, -10)]),
        ("side-3", [(30, -10), (30, 0)]),
        ("out", [(30, 0), (40, 0)]),
    ])
