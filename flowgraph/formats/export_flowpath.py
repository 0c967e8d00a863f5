"""
Export and import of computed flowpath attributes.

Only the attributes written by the engines are serialized (rank and stream
orders), keyed by flowpath id; the graph structure itself is supplied by the
caller on reload.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

from ..classes.exceptions import StructuralError
from ..classes.flowpath import RankType
from ..core.graph import FlowGraph

logger = logging.getLogger(__name__)

# record key -> flowpath attribute
ATTRIBUTE_FIELDS = {
    "upstream_length": "dUpstream_length",
    "strahler_order": "iStrahler_order",
    "horton_order": "iHorton_order",
    "hack_order": "iHack_order",
    "shreve_magnitude": "iShreve_magnitude",
    "mainstem_id": "sMainstemID",
    "mainstem_sequence": "iMainstem_sequence",
}


def export_flowpath_attributes(graph: FlowGraph) -> List[Dict[str, Any]]:
    """One record per flowpath, in insertion order."""
    aRecord = []
    for pFlowpath in graph:
        record = {"id": pFlowpath.lFlowpathID, "rank": pFlowpath.iRank.name}
        for sKey, sAttribute in ATTRIBUTE_FIELDS.items():
            record[sKey] = getattr(pFlowpath, sAttribute)
        aRecord.append(record)
    return aRecord


def import_flowpath_attributes(graph: FlowGraph, records: Iterable[Mapping[str, Any]]) -> int:
    """
    Apply exported records to the flowpaths of a graph.

    Args:
        graph: Graph holding the flowpaths named by the records
        records: Records as produced by export_flowpath_attributes

    Returns:
        Number of flowpaths updated

    Raises:
        StructuralError: If a record names an unknown flowpath or rank
    """
    nUpdated = 0
    for record in records:
        lFlowpathID = record["id"]
        pFlowpath = graph.get_flowpath(lFlowpathID)
        if pFlowpath is None:
            raise StructuralError(f"Attribute record references missing flowpath {lFlowpathID!r}")

        if "rank" in record:
            pFlowpath.iRank = RankType.parse(record["rank"])
        for sKey, sAttribute in ATTRIBUTE_FIELDS.items():
            if sKey in record:
                setattr(pFlowpath, sAttribute, record[sKey])
        nUpdated += 1

    logger.debug(f"Imported attributes for {nUpdated} flowpaths")
    return nUpdated


def save_flowpath_attributes(graph: FlowGraph, sFilename_out: Union[str, Path]):
    """Write the flowpath attributes of a graph to a JSON file."""
    aRecord = export_flowpath_attributes(graph)
    with open(sFilename_out, "w", encoding="utf-8") as f:
        json.dump(aRecord, f, indent=2)
    logger.info(f"Saved attributes of {len(aRecord)} flowpaths to {sFilename_out}")


def load_flowpath_attributes(graph: FlowGraph, sFilename_in: Union[str, Path]) -> int:
    """Read a JSON file written by save_flowpath_attributes into a graph."""
    with open(sFilename_in, "r", encoding="utf-8") as f:
        aRecord = json.load(f)
    nUpdated = import_flowpath_attributes(graph, aRecord)
    logger.info(f"Loaded attributes of {nUpdated} flowpaths from {sFilename_in}")
    return nUpdated
