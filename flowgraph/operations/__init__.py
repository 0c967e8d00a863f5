"""
Network operation modules that annotate flow networks.

This module contains rank assignment, channel width estimation and stream
order computation.
"""

from .channel import ChannelWidthEstimator
from .rank import RankAssigner
from .topology import StreamOrderEngine

__all__ = ['ChannelWidthEstimator', 'RankAssigner', 'StreamOrderEngine']
