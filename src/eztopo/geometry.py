from __future__ import annotations

from dataclasses import dataclass
from typing import Any

Point2D = tuple[float, float]

GEOMETRY_TYPES = (
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
)


@dataclass(frozen=True)
class Geometry:
    geom_type: str
    coordinates: Any = None
    geometries: tuple["Geometry", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        if self.geom_type == "GeometryCollection":
            return {
                "type": self.geom_type,
                "geometries": [geometry.to_dict() for geometry in self.geometries],
            }
        return {"type": self.geom_type, "coordinates": _to_lists(self.coordinates)}

    @property
    def __geo_interface__(self) -> dict[str, Any]:
        return self.to_dict()

    def to_points(self) -> list[Point2D]:
        if self.geom_type == "Point":
            return [self.coordinates]
        if self.geom_type in {"MultiPoint", "LineString"}:
            return list(self.coordinates)
        if self.geom_type in {"MultiLineString", "Polygon"}:
            return [point for line in self.coordinates for point in line]
        if self.geom_type == "MultiPolygon":
            return [point for polygon in self.coordinates for ring in polygon for point in ring]
        if self.geom_type == "GeometryCollection":
            return [point for geometry in self.geometries for point in geometry.to_points()]
        raise NotImplementedError(f"to_points is not supported for {self.geom_type}")


def _to_lists(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_to_lists(item) for item in value]
    return value
