from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from .errors import IndexOutOfRangeError

Point2D = tuple[float, float]
Arc = tuple[Point2D, ...]


@dataclass(frozen=True)
class Transform:
    """Quantization transform mapping integer grid positions to coordinates."""

    scale: tuple[float, float] = (1.0, 1.0)
    translate: tuple[float, float] = (0.0, 0.0)

    def apply(self, point: Sequence[float]) -> Point2D:
        return (
            point[0] * self.scale[0] + self.translate[0],
            point[1] * self.scale[1] + self.translate[1],
        )


def apply_transform(point: Sequence[float], transform: Transform | None = None) -> Point2D:
    if transform is None:
        return (float(point[0]), float(point[1]))
    return transform.apply(point)


def decode_arc(deltas: Iterable[Sequence[int]], transform: Transform | None = None) -> Arc:
    # Positions stay integral until the transform runs.
    x = 0
    y = 0
    points: list[Point2D] = []
    for delta in deltas:
        x += delta[0]
        y += delta[1]
        points.append(apply_transform((x, y), transform))
    return tuple(points)


def decode_arc_index(ref: int) -> tuple[int, bool]:
    if ref < 0:
        return ~ref, True
    return ref, False


class ArcTable:
    def __init__(self, arcs: Sequence[Arc]) -> None:
        self._arcs: tuple[Arc, ...] = tuple(arcs)

    @classmethod
    def build(
        cls,
        arcs: Iterable[Iterable[Sequence[int]]],
        transform: Transform | None = None,
    ) -> "ArcTable":
        return cls(decode_arc(arc, transform) for arc in arcs)

    def __len__(self) -> int:
        return len(self._arcs)

    def __getitem__(self, index: int) -> Arc:
        return self._arcs[index]

    def __iter__(self) -> Iterator[Arc]:
        return iter(self._arcs)

    def degenerate_indices(self) -> list[int]:
        return [index for index, arc in enumerate(self._arcs) if len(arc) < 2]

    def resolve(self, ref: int) -> tuple[Arc, bool]:
        index, reverse = decode_arc_index(ref)
        if index >= len(self._arcs):
            raise IndexOutOfRangeError(ref, len(self._arcs))
        return self._arcs[index], reverse

    def oriented(self, ref: int) -> Arc:
        arc, reverse = self.resolve(ref)
        if reverse:
            return arc[::-1]
        return arc

    def stitch(self, refs: Iterable[int]) -> list[Point2D]:
        points: list[Point2D] = []
        for ref in refs:
            arc = self.oriented(ref)
            # Consecutive arcs share their joint point.
            start = 1 if points else 0
            points.extend(arc[start:])
        return points
