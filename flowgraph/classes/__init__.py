"""
Core data classes for flow network representation.

This module contains the fundamental data structures used throughout
the flowgraph library.
"""

from .exceptions import ConfigurationError, CycleError, FlowGraphError, StructuralError, UnreachableWarning
from .flowpath import EfType, MainstemPolicy, RankType, pyflowpath
from .nexus import pynexus

__all__ = [
    'pynexus',
    'pyflowpath',
    'EfType',
    'RankType',
    'MainstemPolicy',
    'FlowGraphError',
    'StructuralError',
    'CycleError',
    'UnreachableWarning',
    'ConfigurationError',
]
