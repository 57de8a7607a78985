from __future__ import annotations


class TopoError(ValueError):
    pass


class TopologyFormatError(TopoError):
    pass


class ObjectNotFoundError(TopoError, KeyError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"object not found: {name!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class IndexOutOfRangeError(TopoError, IndexError):
    def __init__(self, index: int, arc_count: int) -> None:
        self.index = index
        self.arc_count = arc_count
        super().__init__(f"arc reference {index} is out of range for {arc_count} arcs")


class GeometryError(TopoError):
    """Referenced arcs decode to too few points for the requested geometry."""

    def __init__(self, context: str, message: str) -> None:
        self.context = context
        super().__init__(f"{context}: {message}")


class EmptyLineStringError(GeometryError):
    def __init__(self, context: str, point_count: int = 0) -> None:
        self.point_count = point_count
        super().__init__(context, f"line string has {point_count} point(s), at least 2 required")


class DegenerateRingError(GeometryError):
    def __init__(self, context: str, distinct_count: int = 0) -> None:
        self.distinct_count = distinct_count
        super().__init__(
            context,
            f"ring has {distinct_count} distinct point(s), at least 3 required",
        )


class RecursionLimitExceededError(TopoError):
    def __init__(self, context: str, max_depth: int) -> None:
        self.context = context
        self.max_depth = max_depth
        super().__init__(f"{context}: geometry nesting exceeds max_depth={max_depth}")
