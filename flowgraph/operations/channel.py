"""
Channel width estimation for divergences inside waterbodies.

When every outgoing flowpath of a divergence is a skeleton line, the relative
width of each channel is used, together with the deflection angle, to decide
which channel is the primary one.
"""

import logging
import math
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import shapely
from rtree.index import Index as RTreeindex
from shapely.geometry import LineString, MultiPolygon, Point, Polygon
from shapely.ops import nearest_points

from ..analysis.pathfinding import is_pass_through
from ..classes.flowpath import EfType, pyflowpath
from ..classes.nexus import pynexus
from ..classes.utils import angle_between_segments
from ..config.settings import FlowGraphSettings, validate_settings

logger = logging.getLogger(__name__)


def _explode_lines(geometry) -> List[LineString]:
    """Split a geometry into its non-empty line parts."""
    aLine = []
    for part in shapely.get_parts(geometry):
        if isinstance(part, LineString) and not part.is_empty:
            aLine.append(LineString(part.coords))
    return aLine


class ChannelWidthEstimator:
    """
    Estimates channel widths at divergences from waterbody polygons.

    Waterbodies and coastlines are supplied by the caller; they are indexed
    with an R-tree so that lookups stay cheap on large datasets.
    """

    def __init__(self, aWaterbody: Sequence[Polygon],
                 aCoastline: Sequence[LineString] = (),
                 dOutside_tolerance: float = 0.1,
                 dAcute_angle_degrees: float = 50.0):
        """
        Initialize the estimator.

        Args:
            aWaterbody: Waterbody polygons (multipolygons are split into parts)
            aCoastline: Coastline lines removed from waterbody boundaries
            dOutside_tolerance: Largest share of a cross-section allowed outside the waterbody
            dAcute_angle_degrees: Cross-sections meeting the channel below this angle are reported
        """
        self.aWaterbody: List[Polygon] = []
        for pPolygon in aWaterbody:
            if isinstance(pPolygon, MultiPolygon):
                self.aWaterbody.extend(pPolygon.geoms)
            else:
                self.aWaterbody.append(pPolygon)
        self.aCoastline: List[LineString] = list(aCoastline)
        self.dOutside_tolerance = dOutside_tolerance
        self.dAcute_angle = math.radians(dAcute_angle_degrees)

        self._waterbody_index = RTreeindex()
        for i, pPolygon in enumerate(self.aWaterbody):
            self._waterbody_index.insert(i, pPolygon.bounds)

        self._coastline_index = RTreeindex()
        for i, pLine in enumerate(self.aCoastline):
            self._coastline_index.insert(i, pLine.bounds)

        self._boundary_cache: Dict[int, List[LineString]] = {}

        logger.debug(f"Indexed {len(self.aWaterbody)} waterbodies and {len(self.aCoastline)} coastlines")

    @classmethod
    def from_settings(cls, aWaterbody: Sequence[Polygon], aCoastline: Sequence[LineString] = (),
                      settings: Optional[FlowGraphSettings] = None) -> "ChannelWidthEstimator":
        """Build an estimator using the tolerances of a FlowGraphSettings."""
        settings = validate_settings(settings)
        return cls(aWaterbody, aCoastline,
                   dOutside_tolerance=settings.width_outside_tolerance,
                   dAcute_angle_degrees=settings.acute_angle_degrees)

    # ========================================================================
    # WATERBODY LOOKUP
    # ========================================================================

    def find_waterbody(self, pPoint: Point) -> Optional[int]:
        """Index of the first waterbody intersecting the point, or None."""
        for i in sorted(self._waterbody_index.intersection(pPoint.bounds)):
            if self.aWaterbody[i].intersects(pPoint):
                return i
        return None

    def get_boundary_parts(self, iWaterbody: int) -> List[LineString]:
        """
        Boundary rings of a waterbody, trimmed where they touch other
        waterbodies or a coastline.
        """
        if iWaterbody in self._boundary_cache:
            return self._boundary_cache[iWaterbody]

        pWaterbody = self.aWaterbody[iWaterbody]
        aPart = [LineString(pWaterbody.exterior.coords)]
        aPart.extend(LineString(ring.coords) for ring in pWaterbody.interiors)

        aOther = [self.aWaterbody[i] for i in sorted(self._waterbody_index.intersection(pWaterbody.bounds))
                  if i != iWaterbody]
        aOther.extend(self.aCoastline[i] for i in sorted(self._coastline_index.intersection(pWaterbody.bounds)))

        for pOther in aOther:
            aTemp = []
            for pLine in aPart:
                if pLine.intersects(pOther):
                    aTemp.extend(_explode_lines(pLine.difference(pOther)))
                else:
                    aTemp.append(pLine)
            aPart = aTemp

        self._boundary_cache[iWaterbody] = aPart
        return aPart

    # ========================================================================
    # WIDTHS
    # ========================================================================

    @staticmethod
    def build_centerline(pFlowpath: pyflowpath) -> Optional[LineString]:
        """
        Join a skeleton flowpath with its skeleton continuations.

        The walk passes through nexuses with a single outgoing flowpath that
        are either simple pass-through points or bank-merge junctions, and
        stops before any flowpath that is not a skeleton.
        """
        if pFlowpath.pLine is None:
            return None

        aCoordinate = list(pFlowpath.pLine.coords)
        visited = {pFlowpath.lFlowpathID}
        pNexus = pFlowpath.pNexus_end
        while is_pass_through(pNexus):
            pNext = pNexus.aFlowpath_out[0]
            if pNext.iType != EfType.SKELETON or pNext.pLine is None or pNext.lFlowpathID in visited:
                break
            visited.add(pNext.lFlowpathID)
            aCoordinate.extend(list(pNext.pLine.coords)[1:])
            pNexus = pNext.pNexus_end

        return LineString(aCoordinate)

    def estimate_width(self, pCenterline: LineString, iWaterbody: int) -> Optional[float]:
        """
        Width of the channel around the midpoint of a centerline.

        Returns:
            The cross-channel width, or None if no valid cross-section exists
        """
        pWaterbody = self.aWaterbody[iWaterbody]
        aPart = self.get_boundary_parts(iWaterbody)
        if len(aPart) < 2:
            # a single boundary component cannot straddle the channel
            return None

        pCenter = pCenterline.interpolate(0.5, normalized=True)
        aNearest = sorted(range(len(aPart)), key=lambda i: aPart[i].distance(pCenter))[:2]

        p1 = nearest_points(aPart[aNearest[0]], pCenterline)[0]
        p2 = nearest_points(aPart[aNearest[1]], pCenterline)[0]

        pCross = LineString([p1, p2])
        if pCross.length == 0.0:
            return None

        dOutside = pCross.difference(pWaterbody).length
        if dOutside > pCross.length * self.dOutside_tolerance:
            logger.debug(f"Cross-section {pCross.wkt} lies {dOutside / pCross.length:.0%} outside the waterbody")
            return None

        self._check_crossing_angle(pCross, pCenterline)
        return p1.distance(p2)

    def _check_crossing_angle(self, pCross: LineString, pCenterline: LineString):
        c1 = pCross.coords[0]
        coords = list(pCenterline.coords)
        for i in range(1, len(coords)):
            pSegment = LineString([coords[i - 1], coords[i]])
            pHit = pSegment.intersection(pCross)
            if pHit.is_empty or not isinstance(pHit, Point):
                continue
            dAngle = angle_between_segments(pHit.coords[0], c1, pHit.coords[0], coords[i])
            if dAngle is not None and (dAngle < self.dAcute_angle or dAngle > math.pi - self.dAcute_angle):
                logger.warning(f"Channel width intersects channel at acute angle: {pCross.wkt}")
            break

    def estimate_widths(self, pNexus: pynexus) -> Optional[Dict[Hashable, float]]:
        """
        Estimate the width of every outgoing channel at a divergence.

        Returns:
            Mapping flowpath id -> width if every outgoing flowpath has a
            valid width, otherwise None
        """
        coordinate = self._nexus_coordinate(pNexus)
        if coordinate is None:
            return None
        pPoint = Point(coordinate)
        iWaterbody = self.find_waterbody(pPoint)
        if iWaterbody is None:
            logger.warning(f"Waterbody could not be found for nexus: {pNexus.lNexusID}")
            return None

        widths: Dict[Hashable, float] = {}
        for pFlowpath in pNexus.aFlowpath_out:
            pCenterline = self.build_centerline(pFlowpath)
            if pCenterline is None:
                return None
            dWidth = self.estimate_width(pCenterline, iWaterbody)
            if dWidth is None:
                return None
            widths[pFlowpath.lFlowpathID] = dWidth

        return widths

    @staticmethod
    def _nexus_coordinate(pNexus: pynexus) -> Optional[Tuple[float, float]]:
        if pNexus.pPoint is not None:
            return pNexus.pPoint
        for pFlowpath in pNexus.aFlowpath_out:
            if pFlowpath.pLine is not None:
                return pFlowpath.pLine.coords[0][:2]
        for pFlowpath in pNexus.aFlowpath_in:
            if pFlowpath.pLine is not None:
                return pFlowpath.pLine.coords[-1][:2]
        return None
