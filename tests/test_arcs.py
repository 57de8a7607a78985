from __future__ import annotations

import pytest

from eztopo.arcs import ArcTable, Transform, apply_transform, decode_arc, decode_arc_index
from eztopo.errors import IndexOutOfRangeError


ARC = [[0, 0], [1, 0], [-1, 1]]


def test_apply_transform_without_transform_is_identity_as_float() -> None:
    point = apply_transform((3, -4))

    assert point == (3.0, -4.0)
    assert all(isinstance(value, float) for value in point)


def test_transform_scales_each_axis_independently() -> None:
    transform = Transform(scale=(2.0, 0.5), translate=(10.0, -1.0))

    assert transform.apply((3, 4)) == (16.0, 1.0)


def test_decode_arc_accumulates_deltas_without_transform() -> None:
    assert decode_arc(ARC) == ((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))


def test_decode_arc_applies_translate() -> None:
    transform = Transform(scale=(1.0, 1.0), translate=(100.0, 200.0))

    assert decode_arc(ARC, transform) == ((100.0, 200.0), (101.0, 200.0), (100.0, 201.0))


def test_decode_arc_empty_input_is_empty() -> None:
    assert decode_arc([]) == ()
    assert decode_arc([], Transform(scale=(2.0, 2.0), translate=(1.0, 1.0))) == ()


def test_decode_arc_is_deterministic() -> None:
    transform = Transform(scale=(0.1, 0.3), translate=(-7.0, 3.0))
    arc = [[5, 5]] + [[1, -2]] * 50

    assert decode_arc(arc, transform) == decode_arc(arc, transform)


def test_decode_arc_accumulates_in_integers_before_scaling() -> None:
    transform = Transform(scale=(0.1, 0.1), translate=(0.0, 0.0))
    arc = [[0, 0]] + [[1, 1]] * 1000

    last = decode_arc(arc, transform)[-1]

    assert last == (100.0, 100.0)
    assert sum([0.1] * 1000) != 100.0


@pytest.mark.parametrize(("ref", "expected"), [(0, (0, False)), (3, (3, False)), (-1, (0, True)), (-4, (3, True))])
def test_decode_arc_index_uses_bitwise_complement(ref: int, expected: tuple[int, bool]) -> None:
    assert decode_arc_index(ref) == expected


def test_arc_table_keeps_degenerate_arcs_in_place() -> None:
    table = ArcTable.build([ARC, [], [[5, 5]], [[1, 1], [1, 1]]])

    assert len(table) == 4
    assert table[1] == ()
    assert table[2] == ((5.0, 5.0),)
    assert table[3] == ((1.0, 1.0), (2.0, 2.0))
    assert table.degenerate_indices() == [1, 2]


def test_arc_table_decodes_each_arc_once(monkeypatch: pytest.MonkeyPatch) -> None:
    import eztopo.arcs as arcs_module

    calls: list[int] = []
    original = arcs_module.decode_arc

    def counting_decode(deltas, transform=None):  # noqa: ANN001
        calls.append(1)
        return original(deltas, transform)

    monkeypatch.setattr(arcs_module, "decode_arc", counting_decode)
    table = arcs_module.ArcTable.build([ARC, ARC])
    for _ in range(3):
        table.resolve(0)
        table.stitch([0, -2])

    assert len(calls) == 2


def test_resolve_and_complement_return_reversed_points() -> None:
    table = ArcTable.build([ARC, [[2, 2], [3, 0], [0, 3]]])

    for index in range(len(table)):
        forward, forward_reversed = table.resolve(index)
        backward, backward_reversed = table.resolve(~index)
        assert forward is backward
        assert forward_reversed is False
        assert backward_reversed is True
        assert table.oriented(~index) == tuple(reversed(table.oriented(index)))


@pytest.mark.parametrize("ref", [2, 99, -3, -100])
def test_resolve_out_of_range_raises_with_index(ref: int) -> None:
    table = ArcTable.build([ARC, ARC])

    with pytest.raises(IndexOutOfRangeError) as excinfo:
        table.resolve(ref)

    assert excinfo.value.index == ref
    assert excinfo.value.arc_count == 2
    assert isinstance(excinfo.value, ValueError)


def test_stitch_drops_shared_joint_points() -> None:
    table = ArcTable.build(
        [
            [[0, 0], [1, 0], [0, 1]],
            [[1, 1], [1, 0], [1, 0]],
            [[3, 1], [0, 2]],
        ]
    )

    line = table.stitch([0, 1, 2])

    assert line == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (2.0, 1.0), (3.0, 1.0), (3.0, 3.0)]
    assert len(line) == sum(len(table[i]) for i in range(3)) - 2


def test_stitch_arc_followed_by_its_reverse_is_palindrome() -> None:
    table = ArcTable.build([ARC])

    line = table.stitch([0, ~0])

    assert line == [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 0.0), (0.0, 0.0)]
    assert line == line[::-1]


def test_stitch_skips_leading_empty_arc_without_dropping_points() -> None:
    table = ArcTable.build([[], ARC])

    assert table.stitch([0, 1]) == [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]
