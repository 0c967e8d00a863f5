"""
Configuration for the rank and stream order engines.

Defaults are packaged per coordinate unit system (meter.json, degree.json).
"""

from .settings import (
    FlowGraphSettings,
    load_settings,
    parse_mainstem_policy,
    validate_settings,
)

__all__ = [
    'FlowGraphSettings',
    'load_settings',
    'parse_mainstem_policy',
    'validate_settings',
]
