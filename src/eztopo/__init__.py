from typing import Sequence

from .arcs import ArcTable, Transform, decode_arc
from .conversion import (
    ConvertResult,
    DxfResult,
    convert,
    convert_all,
    feature_collection,
    to_dxf,
    to_geojson,
    to_shapely,
)
from .errors import (
    DegenerateRingError,
    EmptyLineStringError,
    GeometryError,
    IndexOutOfRangeError,
    ObjectNotFoundError,
    RecursionLimitExceededError,
    TopoError,
    TopologyFormatError,
)
from .geometry import Geometry
from .topology import GeometryObject, Topology, from_dict, loads, read

__all__ = [
    "read",
    "loads",
    "from_dict",
    "Topology",
    "GeometryObject",
    "Geometry",
    "Transform",
    "ArcTable",
    "decode_arc",
    "convert",
    "convert_all",
    "feature_collection",
    "to_geojson",
    "to_dxf",
    "to_shapely",
    "ConvertResult",
    "DxfResult",
    "TopoError",
    "TopologyFormatError",
    "ObjectNotFoundError",
    "IndexOutOfRangeError",
    "GeometryError",
    "EmptyLineStringError",
    "DegenerateRingError",
    "RecursionLimitExceededError",
]


def main(argv: Sequence[str] | None = None) -> int:
    from eztopo.cli import main as cli_main

    return cli_main(argv)
