from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .errors import ObjectNotFoundError
from .geometry import Geometry
from .reconstruct import Reconstructor
from .topology import DEFAULT_MAX_DEPTH, GeometryObject, Topology, read

logger = logging.getLogger(__name__)

_INVALID_LAYER_CHARS = re.compile(r'[<>/\\":;?*|=`]')


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    object_names: tuple[str, ...]
    total_features: int
    null_geometries: int


@dataclass(frozen=True)
class DxfResult:
    source_path: str
    output_path: str
    total_features: int
    written_features: int
    skipped_features: int
    skipped_by_type: dict[str, int]


def convert(
    topology: Topology,
    name: str,
    *,
    strict: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Geometry | None:
    obj = topology.objects.get(name)
    if obj is None:
        raise ObjectNotFoundError(name)
    return _reconstructor(topology, strict=strict, max_depth=max_depth).reconstruct(obj, name)


def convert_all(
    topology: Topology,
    *,
    strict: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Geometry | None]:
    reconstructor = _reconstructor(topology, strict=strict, max_depth=max_depth)
    return {name: reconstructor.reconstruct(obj, name) for name, obj in topology.objects.items()}


def feature_collection(
    topology: Topology,
    objects: str | Iterable[str] | None = None,
    *,
    strict: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    reconstructor = _reconstructor(topology, strict=strict, max_depth=max_depth)
    features: list[dict[str, Any]] = []
    for object_name in _resolve_names(topology, objects):
        features.extend(_object_features(reconstructor, topology.objects[object_name], object_name))
    return {"type": "FeatureCollection", "features": features}


def to_geojson(
    source: str | Path | Topology,
    output_path: str | Path,
    *,
    objects: str | Iterable[str] | None = None,
    strict: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ConvertResult:
    source_path, topology = _resolve_topology(source)
    names = _resolve_names(topology, objects)
    collection = feature_collection(topology, names, strict=strict, max_depth=max_depth)
    features = collection["features"]

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as handle:
        json.dump(collection, handle, ensure_ascii=False, separators=(",", ":"))
    logger.debug(f"Wrote {len(features)} features to {out_path}")

    return ConvertResult(
        source_path=source_path,
        output_path=str(out_path),
        object_names=tuple(names),
        total_features=len(features),
        null_geometries=sum(1 for feature in features if feature["geometry"] is None),
    )


def to_dxf(
    source: str | Path | Topology,
    output_path: str | Path,
    *,
    objects: str | Iterable[str] | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> DxfResult:
    ezdxf = _require_ezdxf()
    source_path, topology = _resolve_topology(source)
    reconstructor = _reconstructor(topology, strict=strict, max_depth=max_depth)

    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    modelspace = dxf_doc.modelspace()

    total = 0
    written = 0
    skipped_by_type: dict[str, int] = {}

    for object_name in _resolve_names(topology, objects):
        layer = _layer_name(object_name)
        if layer not in dxf_doc.layers:
            dxf_doc.layers.add(layer)
        for feature in _object_features(reconstructor, topology.objects[object_name], object_name):
            total += 1
            geometry = feature["geometry"]
            if geometry is not None and _write_geometry_to_modelspace(
                modelspace, geometry, {"layer": layer}
            ):
                written += 1
                continue
            geom_type = geometry["type"] if geometry is not None else "null"
            skipped_by_type[geom_type] = skipped_by_type.get(geom_type, 0) + 1

    skipped = total - written
    if strict and skipped > 0:
        summary = ", ".join(
            f"{geom_type}:{count}" for geom_type, count in sorted(skipped_by_type.items())
        )
        raise ValueError(f"failed to convert {skipped} features ({summary})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))
    logger.debug(f"Wrote {written} features to {out_path}")

    return DxfResult(
        source_path=source_path,
        output_path=str(out_path),
        total_features=total,
        written_features=written,
        skipped_features=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
    )


def to_shapely(geometry: Geometry):
    shapely_geometry = _require_shapely()
    return shapely_geometry.shape(geometry.to_dict())


def _require_ezdxf():
    try:
        import ezdxf
    except Exception as exc:
        raise ImportError(
            "ezdxf is required for TopoJSON->DXF conversion. "
            'Install it with `pip install "eztopo[dxf]"`.'
        ) from exc
    return ezdxf


def _require_shapely():
    try:
        import shapely.geometry
    except Exception as exc:
        raise ImportError(
            "shapely is required for shapely geometry output. "
            'Install it with `pip install "eztopo[shapely]"`.'
        ) from exc
    return shapely.geometry


def _reconstructor(topology: Topology, *, strict: bool, max_depth: int) -> Reconstructor:
    return Reconstructor(
        topology.arc_table,
        topology.transform,
        strict=strict,
        max_depth=max_depth,
    )


def _resolve_topology(source: str | Path | Topology) -> tuple[str, Topology]:
    if isinstance(source, Topology):
        return source.source_path or "<memory>", source
    topology = read(source)
    return str(source), topology


def _resolve_names(topology: Topology, names: str | Iterable[str] | None) -> list[str]:
    if names is None:
        return list(topology.objects)
    if isinstance(names, str):
        names = [names]
    out: list[str] = []
    for name in names:
        if name not in topology.objects:
            raise ObjectNotFoundError(name)
        if name not in out:
            out.append(name)
    return out


def _object_features(
    reconstructor: Reconstructor,
    obj: GeometryObject,
    name: str,
) -> list[dict[str, Any]]:
    if obj.geom_type == "GeometryCollection":
        return [
            _feature(child, reconstructor.reconstruct(child, f"{name}/geometries[{i}]", depth=1))
            for i, child in enumerate(obj.geometries)
        ]
    return [_feature(obj, reconstructor.reconstruct(obj, name))]


def _feature(obj: GeometryObject, geometry: Geometry | None) -> dict[str, Any]:
    feature: dict[str, Any] = {
        "type": "Feature",
        "properties": dict(obj.properties) if obj.properties is not None else {},
        "geometry": geometry.to_dict() if geometry is not None else None,
    }
    if obj.id is not None:
        feature["id"] = obj.id
    return feature


def _layer_name(name: str) -> str:
    layer = _INVALID_LAYER_CHARS.sub("_", name).strip()
    return layer or "0"


def _write_geometry_to_modelspace(
    modelspace: Any,
    geometry: dict[str, Any],
    dxfattribs: dict[str, Any],
) -> bool:
    try:
        return _write_geometry_to_modelspace_unsafe(modelspace, geometry, dxfattribs)
    except Exception as exc:
        logger.debug(f"Could not write {geometry.get('type')} geometry: {exc}")
        return False


def _write_geometry_to_modelspace_unsafe(
    modelspace: Any,
    geometry: dict[str, Any],
    dxfattribs: dict[str, Any],
) -> bool:
    geom_type = geometry["type"]

    if geom_type == "Point":
        modelspace.add_point(_point2(geometry["coordinates"]), dxfattribs=dxfattribs)
        return True

    if geom_type == "MultiPoint":
        points = geometry["coordinates"]
        if not points:
            return False
        for point in points:
            modelspace.add_point(_point2(point), dxfattribs=dxfattribs)
        return True

    if geom_type == "LineString":
        return _write_line(modelspace, geometry["coordinates"], dxfattribs)

    if geom_type == "MultiLineString":
        lines = geometry["coordinates"]
        return bool(lines) and all(_write_line(modelspace, line, dxfattribs) for line in lines)

    if geom_type == "Polygon":
        return _write_rings(modelspace, geometry["coordinates"], dxfattribs)

    if geom_type == "MultiPolygon":
        polygons = geometry["coordinates"]
        return bool(polygons) and all(
            _write_rings(modelspace, rings, dxfattribs) for rings in polygons
        )

    if geom_type == "GeometryCollection":
        members = geometry["geometries"]
        return bool(members) and all(
            _write_geometry_to_modelspace_unsafe(modelspace, member, dxfattribs)
            for member in members
        )

    return False


def _write_line(modelspace: Any, line: list[Any], dxfattribs: dict[str, Any]) -> bool:
    points = [_point2(point) for point in line]
    if len(points) < 2:
        return False
    modelspace.add_lwpolyline(points, format="xy", close=False, dxfattribs=dxfattribs)
    return True


def _write_rings(modelspace: Any, rings: list[Any], dxfattribs: dict[str, Any]) -> bool:
    if not rings:
        return False
    for ring in rings:
        points = [_point2(point) for point in ring]
        if len(points) > 1 and points[0] == points[-1]:
            points = points[:-1]
        if len(points) < 3:
            return False
        modelspace.add_lwpolyline(points, format="xy", close=True, dxfattribs=dxfattribs)
    return True


def _point2(value: Any) -> tuple[float, float]:
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return (float(value[0]), float(value[1]))
    raise ValueError(f"invalid point value: {value!r}")
