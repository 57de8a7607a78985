from __future__ import annotations

import logging
from typing import Sequence

from .arcs import ArcTable, Point2D, Transform, apply_transform
from .errors import (
    DegenerateRingError,
    EmptyLineStringError,
    GeometryError,
    RecursionLimitExceededError,
    TopologyFormatError,
)
from .geometry import Geometry
from .topology import DEFAULT_MAX_DEPTH, GeometryObject

logger = logging.getLogger(__name__)

Line = tuple[Point2D, ...]


class Reconstructor:
    """Rebuild standalone geometries from the arcs of a single topology.

    With ``strict=True`` the first degenerate line or ring raises. With
    ``strict=False`` degenerate members are logged and dropped; a geometry
    left with nothing to draw becomes ``None``. Out-of-range arc references
    and the nesting limit raise in both modes.
    """

    def __init__(
        self,
        table: ArcTable,
        transform: Transform | None = None,
        *,
        strict: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.table = table
        self.transform = transform
        self.strict = strict
        self.max_depth = max_depth

    def reconstruct(self, obj: GeometryObject, context: str, depth: int = 0) -> Geometry | None:
        if depth > self.max_depth:
            raise RecursionLimitExceededError(context, self.max_depth)

        geom_type = obj.geom_type
        if geom_type is None:
            return None

        if geom_type == "Point":
            return Geometry(geom_type, apply_transform(obj.coordinates, self.transform))

        if geom_type == "MultiPoint":
            return Geometry(
                geom_type,
                tuple(apply_transform(position, self.transform) for position in obj.coordinates),
            )

        if geom_type == "LineString":
            line = self._line(obj.arcs, f"{context}/arcs")
            if line is None:
                return None
            return Geometry(geom_type, line)

        if geom_type == "MultiLineString":
            lines = [self._line(refs, f"{context}/arcs[{i}]") for i, refs in enumerate(obj.arcs)]
            kept = tuple(line for line in lines if line is not None)
            if lines and not kept:
                return None
            return Geometry(geom_type, kept)

        if geom_type == "Polygon":
            rings = self._polygon(obj.arcs, f"{context}/arcs")
            if rings is None:
                return None
            return Geometry(geom_type, rings)

        if geom_type == "MultiPolygon":
            polygons = [
                self._polygon(rings, f"{context}/arcs[{i}]") for i, rings in enumerate(obj.arcs)
            ]
            kept = tuple(polygon for polygon in polygons if polygon is not None)
            if polygons and not kept:
                return None
            return Geometry(geom_type, kept)

        if geom_type == "GeometryCollection":
            members = [
                self.reconstruct(child, f"{context}/geometries[{i}]", depth + 1)
                for i, child in enumerate(obj.geometries)
            ]
            return Geometry(
                geom_type,
                geometries=tuple(member for member in members if member is not None),
            )

        raise TopologyFormatError(f"{context}: unknown geometry type {geom_type!r}")

    def _line(self, refs: Sequence[int], context: str) -> Line | None:
        points = self.table.stitch(refs)
        if len(points) < 2:
            return self._reject(EmptyLineStringError(context, len(points)))
        return tuple(points)

    def _ring(self, refs: Sequence[int], context: str) -> Line | None:
        points = self.table.stitch(refs)
        if points and points[0] != points[-1]:
            points.append(points[0])
        distinct = len(set(points))
        if distinct < 3:
            return self._reject(DegenerateRingError(context, distinct))
        return tuple(points)

    def _polygon(self, rings: Sequence[Sequence[int]], context: str) -> tuple[Line, ...] | None:
        if not rings:
            return self._reject(DegenerateRingError(context, 0))
        closed: list[Line] = []
        for i, refs in enumerate(rings):
            ring = self._ring(refs, f"{context}[{i}]")
            if ring is None:
                if i == 0:
                    logger.warning(f"{context}: exterior ring dropped, skipping polygon.")
                    return None
                continue
            closed.append(ring)
        return tuple(closed)

    def _reject(self, error: GeometryError) -> None:
        if self.strict:
            raise error
        logger.warning(f"Skipping degenerate geometry: {error}")
        return None
