"""
Network analysis modules for validating and traversing flow networks.

This module contains the cycle validator and the path finding helpers.
"""

from .detection import CycleCheckResult, CycleValidator, NexusState
from .pathfinding import PathFinder, is_bank_merge, is_pass_through

__all__ = [
    'CycleCheckResult',
    'CycleValidator',
    'NexusState',
    'PathFinder',
    'is_bank_merge',
    'is_pass_through',
]
