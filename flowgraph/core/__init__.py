"""
Core graph data structures and the processing facade.

This module contains the fundamental graph representation and the facade
that runs rank assignment, validation and stream ordering.
"""

from .graph import FlowGraph
from .flowgraph import pyflowgraph

__all__ = ['FlowGraph', 'pyflowgraph']
