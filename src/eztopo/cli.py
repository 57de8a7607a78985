from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .conversion import to_dxf, to_geojson
from .topology import read


def _package_version() -> str:
    try:
        return version("eztopo")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eztopo",
        description="Inspect TopoJSON topologies and convert them to GeoJSON or DXF.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic topology information.")
    inspect_parser.add_argument("path", help="Path to TopoJSON file.")

    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert TopoJSON to a GeoJSON FeatureCollection.",
    )
    convert_parser.add_argument("input_path", help="Path to TopoJSON file.")
    convert_parser.add_argument("output_path", help="Path to output GeoJSON file.")
    convert_parser.add_argument(
        "--object",
        dest="objects",
        action="append",
        default=None,
        help="Object name to convert (repeatable). Defaults to every object.",
    )
    convert_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skip degenerate lines and rings with a warning instead of failing.",
    )

    dxf_parser = subparsers.add_parser(
        "dxf",
        help="Convert TopoJSON to DXF using ezdxf as the writing backend.",
    )
    dxf_parser.add_argument("input_path", help="Path to TopoJSON file.")
    dxf_parser.add_argument("output_path", help="Path to output DXF file.")
    dxf_parser.add_argument(
        "--object",
        dest="objects",
        action="append",
        default=None,
        help="Object name to convert (repeatable). Defaults to every object.",
    )
    dxf_parser.add_argument(
        "--dxf-version",
        default="R2010",
        help="DXF version for ezdxf.new(), e.g. R2000/R2010/R2018.",
    )
    dxf_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any feature cannot be converted.",
    )
    return parser


def _run_inspect(path: str) -> int:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return 2

    try:
        topology = read(file_path)
        table = topology.arc_table
    except Exception as exc:
        print(f"error: failed to read TopoJSON: {exc}", file=sys.stderr)
        return 2

    print(f"file: {file_path}")
    print(f"arcs: {len(table)}")
    print(f"points: {sum(len(arc) for arc in table)}")
    degenerate = table.degenerate_indices()
    if degenerate:
        print(f"degenerate_arcs: {len(degenerate)}")
    if topology.transform is None:
        print("transform: none")
    else:
        scale = topology.transform.scale
        translate = topology.transform.translate
        print(f"transform: scale=({scale[0]!r}, {scale[1]!r}) translate=({translate[0]!r}, {translate[1]!r})")
    print(f"objects: {len(topology.objects)}")
    for name, obj in topology.objects.items():
        if obj.geom_type == "GeometryCollection":
            member_types = Counter(child.geom_type or "null" for child in obj.geometries)
            members = ", ".join(f"{geom_type}:{count}" for geom_type, count in sorted(member_types.items()))
            print(f"object[{name}]: GeometryCollection geometries={len(obj.geometries)} ({members})")
        else:
            print(f"object[{name}]: {obj.geom_type or 'null'}")
        refs = obj.arc_refs()
        if refs:
            print(f"arc_refs[{name}]: {len(refs)} reversed={sum(1 for ref in refs if ref < 0)}")
    return 0


def _run_convert(
    input_path: str,
    output_path: str,
    *,
    objects: list[str] | None = None,
    strict: bool = True,
) -> int:
    topo_path = Path(input_path)
    if not topo_path.exists():
        print(f"error: file not found: {topo_path}", file=sys.stderr)
        return 2

    try:
        result = to_geojson(str(topo_path), output_path, objects=objects, strict=strict)
    except Exception as exc:
        print(f"error: failed to convert TopoJSON to GeoJSON: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"objects: {', '.join(result.object_names)}")
    print(f"total_features: {result.total_features}")
    print(f"null_geometries: {result.null_geometries}")
    return 0


def _run_dxf(
    input_path: str,
    output_path: str,
    *,
    objects: list[str] | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> int:
    topo_path = Path(input_path)
    if not topo_path.exists():
        print(f"error: file not found: {topo_path}", file=sys.stderr)
        return 2

    try:
        result = to_dxf(
            str(topo_path),
            output_path,
            objects=objects,
            dxf_version=dxf_version,
            strict=strict,
        )
    except Exception as exc:
        print(f"error: failed to convert TopoJSON to DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"total_features: {result.total_features}")
    print(f"written_features: {result.written_features}")
    print(f"skipped_features: {result.skipped_features}")
    for geom_type, count in result.skipped_by_type.items():
        print(f"skipped[{geom_type}]: {count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        return _run_inspect(args.path)
    if args.command == "convert":
        return _run_convert(
            args.input_path,
            args.output_path,
            objects=args.objects,
            strict=not bool(args.lenient),
        )
    if args.command == "dxf":
        return _run_dxf(
            args.input_path,
            args.output_path,
            objects=args.objects,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
        )

    parser.print_help()
    return 0
