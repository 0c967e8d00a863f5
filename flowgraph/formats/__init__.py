"""Serialization of computed flowpath attributes."""

from .export_flowpath import (
    export_flowpath_attributes,
    import_flowpath_attributes,
    load_flowpath_attributes,
    save_flowpath_attributes,
)

__all__ = [
    'export_flowpath_attributes',
    'import_flowpath_attributes',
    'load_flowpath_attributes',
    'save_flowpath_attributes',
]
