from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Mapping

from .arcs import ArcTable, Transform
from .errors import RecursionLimitExceededError, TopologyFormatError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

ARC_TYPES = {"LineString", "MultiLineString", "Polygon", "MultiPolygon"}
# Nesting of the "arcs" member per geometry type.
ARC_NESTING = {"LineString": 1, "MultiLineString": 2, "Polygon": 2, "MultiPolygon": 3}


@dataclass(frozen=True)
class GeometryObject:
    geom_type: str | None
    coordinates: Any = None
    arcs: Any = None
    geometries: tuple["GeometryObject", ...] = ()
    id: Any = None
    properties: dict[str, Any] | None = None

    def arc_refs(self) -> list[int]:
        if self.geom_type == "GeometryCollection":
            return [ref for child in self.geometries for ref in child.arc_refs()]
        if self.geom_type not in ARC_TYPES:
            return []
        return list(_flatten(self.arcs, ARC_NESTING[self.geom_type]))


@dataclass(frozen=True)
class Topology:
    arcs: tuple[tuple[tuple[int, int], ...], ...]
    objects: dict[str, GeometryObject]
    transform: Transform | None = None
    bbox: tuple[float, ...] | None = None
    source_path: str | None = field(default=None, compare=False)

    @cached_property
    def arc_table(self) -> ArcTable:
        table = ArcTable.build(self.arcs, self.transform)
        logger.debug(f"Decoded {len(table)} arcs (quantized={self.transform is not None}).")
        return table

    @property
    def quantized(self) -> bool:
        return self.transform is not None


def read(path: str | Path) -> Topology:
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TopologyFormatError(f"{file_path}: not UTF-8 text: {exc}") from exc
    return loads(text, source_path=str(file_path))


def loads(text: str | bytes, *, source_path: str | None = None) -> Topology:
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TopologyFormatError(f"invalid JSON: {exc}") from exc
    return from_dict(payload, source_path=source_path)


def from_dict(
    payload: Any,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    source_path: str | None = None,
) -> Topology:
    if not isinstance(payload, Mapping):
        raise TopologyFormatError("topology must be a JSON object")
    if payload.get("type") != "Topology":
        raise TopologyFormatError(f"expected type 'Topology', got {payload.get('type')!r}")

    raw_arcs = payload.get("arcs")
    if not isinstance(raw_arcs, list):
        raise TopologyFormatError("topology is missing the 'arcs' array")
    arcs = tuple(_parse_arc(arc, f"arcs[{i}]") for i, arc in enumerate(raw_arcs))

    raw_objects = payload.get("objects")
    if not isinstance(raw_objects, Mapping):
        raise TopologyFormatError("topology is missing the 'objects' member")
    objects = {
        str(name): _parse_geometry(value, str(name), depth=0, max_depth=max_depth)
        for name, value in raw_objects.items()
    }

    topology = Topology(
        arcs=arcs,
        objects=objects,
        transform=_parse_transform(payload.get("transform")),
        bbox=_parse_bbox(payload.get("bbox")),
        source_path=source_path,
    )
    logger.debug(f"Parsed topology with {len(arcs)} arcs and {len(objects)} objects.")
    return topology


def _parse_transform(value: Any) -> Transform | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise TopologyFormatError("'transform' must be an object")
    return Transform(
        scale=_number_pair(value.get("scale"), "transform.scale"),
        translate=_number_pair(value.get("translate"), "transform.translate"),
    )


def _parse_bbox(value: Any) -> tuple[float, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(_is_number(item) for item in value):
        raise TopologyFormatError("'bbox' must be an array of numbers")
    return tuple(float(item) for item in value)


def _parse_arc(value: Any, context: str) -> tuple[tuple[int, int], ...]:
    if not isinstance(value, list):
        raise TopologyFormatError(f"{context}: arc must be an array of positions")
    return tuple(_parse_position(position, f"{context}[{i}]") for i, position in enumerate(value))


def _parse_position(value: Any, context: str) -> tuple[Any, Any]:
    if not isinstance(value, list) or len(value) < 2:
        raise TopologyFormatError(f"{context}: position must have at least 2 numbers")
    if not (_is_number(value[0]) and _is_number(value[1])):
        raise TopologyFormatError(f"{context}: position must be numeric, got {value!r}")
    return (_integral(value[0]), _integral(value[1]))


def _parse_geometry(value: Any, context: str, *, depth: int, max_depth: int) -> GeometryObject:
    if depth > max_depth:
        raise RecursionLimitExceededError(context, max_depth)
    if not isinstance(value, Mapping):
        raise TopologyFormatError(f"{context}: geometry object must be a JSON object")

    geom_type = value.get("type")
    properties = value.get("properties")
    if properties is not None and not isinstance(properties, Mapping):
        raise TopologyFormatError(f"{context}: 'properties' must be an object")
    common = {
        "id": value.get("id"),
        "properties": dict(properties) if properties is not None else None,
    }

    if geom_type is None:
        return GeometryObject(geom_type=None, **common)
    if geom_type == "Point":
        coordinates = _parse_position(value.get("coordinates"), f"{context}/coordinates")
        return GeometryObject(geom_type=geom_type, coordinates=coordinates, **common)
    if geom_type == "MultiPoint":
        raw = value.get("coordinates")
        if not isinstance(raw, list):
            raise TopologyFormatError(f"{context}: MultiPoint requires a 'coordinates' array")
        coordinates = tuple(
            _parse_position(position, f"{context}/coordinates[{i}]")
            for i, position in enumerate(raw)
        )
        return GeometryObject(geom_type=geom_type, coordinates=coordinates, **common)
    if geom_type in ARC_TYPES:
        if "arcs" not in value:
            raise TopologyFormatError(f"{context}: {geom_type} requires an 'arcs' member")
        arcs = _parse_arc_refs(value["arcs"], ARC_NESTING[geom_type], f"{context}/arcs")
        return GeometryObject(geom_type=geom_type, arcs=arcs, **common)
    if geom_type == "GeometryCollection":
        raw = value.get("geometries")
        if not isinstance(raw, list):
            raise TopologyFormatError(f"{context}: GeometryCollection requires a 'geometries' array")
        geometries = tuple(
            _parse_geometry(item, f"{context}/geometries[{i}]", depth=depth + 1, max_depth=max_depth)
            for i, item in enumerate(raw)
        )
        return GeometryObject(geom_type=geom_type, geometries=geometries, **common)
    raise TopologyFormatError(f"{context}: unknown geometry type {geom_type!r}")


def _parse_arc_refs(value: Any, nesting: int, context: str) -> Any:
    if not isinstance(value, list):
        raise TopologyFormatError(f"{context}: expected an array of arc indexes")
    if nesting == 1:
        for i, ref in enumerate(value):
            if not _is_number(ref) or isinstance(_integral(ref), float):
                raise TopologyFormatError(f"{context}[{i}]: arc index must be an integer, got {ref!r}")
        return tuple(int(ref) for ref in value)
    return tuple(
        _parse_arc_refs(item, nesting - 1, f"{context}[{i}]") for i, item in enumerate(value)
    )


def _flatten(value: Any, nesting: int):
    if nesting == 1:
        yield from value
        return
    for item in value:
        yield from _flatten(item, nesting - 1)


def _number_pair(value: Any, context: str) -> tuple[float, float]:
    if not isinstance(value, list) or len(value) != 2 or not all(_is_number(item) for item in value):
        raise TopologyFormatError(f"{context} must be an array of 2 numbers")
    return (float(value[0]), float(value[1]))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _integral(value: int | float) -> int | float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
