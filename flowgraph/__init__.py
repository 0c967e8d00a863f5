"""
PyFlowgraph - Hydrographic Flow Network Ordering Library

A Python library for ranking and ordering hydrographic flow networks. It
assigns primary/secondary rank at divergences, validates that a network is
acyclic, and computes Strahler, Horton and Hack orders, Shreve magnitude,
upstream length and mainstems.

Main Classes:
    pyflowgraph: Main class for flow network processing (facade)
    FlowGraph: Graph of nexuses and flowpaths
    pynexus: Nexus (confluence/divergence point) representation
    pyflowpath: Flowpath (directed flow segment) representation

Example:
    >>> from flowgraph import FlowGraph, pyflowgraph
    >>> graph = FlowGraph.from_linestrings(records)
    >>> pyflowgraph(graph).run()
"""

__version__ = "0.1.0"

from flowgraph.classes.exceptions import (
    ConfigurationError,
    CycleError,
    FlowGraphError,
    StructuralError,
    UnreachableWarning,
)
from flowgraph.classes.flowpath import EfType, MainstemPolicy, RankType, pyflowpath
from flowgraph.classes.nexus import pynexus
from flowgraph.config.settings import FlowGraphSettings, load_settings
from flowgraph.core.graph import FlowGraph
from flowgraph.core.flowgraph import pyflowgraph

__all__ = [
    'pyflowgraph',
    'FlowGraph',
    'pynexus',
    'pyflowpath',
    'EfType',
    'RankType',
    'MainstemPolicy',
    'FlowGraphSettings',
    'load_settings',
    'FlowGraphError',
    'StructuralError',
    'CycleError',
    'UnreachableWarning',
    'ConfigurationError',
]
