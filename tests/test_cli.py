from __future__ import annotations

import json
from pathlib import Path

import pytest

import eztopo.cli as cli_module
from eztopo.conversion import DxfResult
from tests._topo_helpers import QUANTIZED_EXAMPLE, topology_dict, write_topology


def test_cli_inspect_reports_arcs_and_objects(tmp_path: Path, capsys) -> None:
    path = write_topology(tmp_path / "example.topojson", QUANTIZED_EXAMPLE)

    code = cli_module.main(["inspect", str(path)])
    captured = capsys.readouterr()

    assert code == 0
    assert f"file: {path}" in captured.out
    assert "arcs: 2" in captured.out
    assert "points: 9" in captured.out
    assert "transform: scale=(0.0005000500050005, " in captured.out
    assert "translate=(100.0, 0.0)" in captured.out
    assert "object[example]: GeometryCollection geometries=3 (LineString:1, Point:1, Polygon:1)" in captured.out
    assert "arc_refs[example]: 2 reversed=0" in captured.out
    assert "degenerate_arcs" not in captured.out


def test_cli_inspect_reports_degenerate_arcs(tmp_path: Path, capsys) -> None:
    payload = topology_dict(
        [[[0, 0], [1, 1]], [[5, 5]], []],
        {"line": {"type": "LineString", "arcs": [0, ~1]}},
    )
    path = write_topology(tmp_path / "degenerate.topojson", payload)

    code = cli_module._run_inspect(str(path))
    captured = capsys.readouterr()

    assert code == 0
    assert "degenerate_arcs: 2" in captured.out
    assert "transform: none" in captured.out
    assert "object[line]: LineString" in captured.out
    assert "arc_refs[line]: 2 reversed=1" in captured.out


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module.main(["inspect", str(tmp_path / "missing.topojson")])
    captured = capsys.readouterr()

    assert code == 2
    assert "error: file not found" in captured.err


def test_cli_inspect_malformed_file(tmp_path: Path, capsys) -> None:
    path = tmp_path / "bad.topojson"
    path.write_text('{"type": "FeatureCollection"}', encoding="utf-8")

    code = cli_module._run_inspect(str(path))
    captured = capsys.readouterr()

    assert code == 2
    assert "error: failed to read TopoJSON: expected type 'Topology'" in captured.err


def test_cli_convert_writes_geojson(tmp_path: Path, capsys) -> None:
    source = write_topology(tmp_path / "example.topojson", QUANTIZED_EXAMPLE)
    output = tmp_path / "example.geojson"

    code = cli_module.main(["convert", str(source), str(output), "--object", "example"])
    captured = capsys.readouterr()

    assert code == 0
    assert "objects: example" in captured.out
    assert "total_features: 3" in captured.out
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["type"] == "FeatureCollection"
    assert len(payload["features"]) == 3


def test_cli_convert_strict_failure_and_lenient_retry(tmp_path: Path, capsys) -> None:
    payload = topology_dict(
        [[[0, 0], [2, 0], [-2, 0]]],
        {"sliver": {"type": "Polygon", "arcs": [[0]]}},
    )
    source = write_topology(tmp_path / "sliver.topojson", payload)
    output = tmp_path / "sliver.geojson"

    code = cli_module.main(["convert", str(source), str(output)])
    captured = capsys.readouterr()

    assert code == 2
    assert "error: failed to convert TopoJSON to GeoJSON: sliver/arcs[0]" in captured.err
    assert not output.exists()

    code = cli_module.main(["convert", str(source), str(output), "--lenient"])
    captured = capsys.readouterr()

    assert code == 0
    assert "null_geometries: 1" in captured.out


def test_cli_convert_unknown_object(tmp_path: Path, capsys) -> None:
    source = write_topology(tmp_path / "example.topojson", QUANTIZED_EXAMPLE)

    code = cli_module.main(["convert", str(source), str(tmp_path / "x.geojson"), "--object", "nope"])
    captured = capsys.readouterr()

    assert code == 2
    assert "object not found: 'nope'" in captured.err


def test_cli_dxf_passes_options(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys) -> None:
    source = write_topology(tmp_path / "example.topojson", QUANTIZED_EXAMPLE)
    calls: list[dict[str, object]] = []

    def fake_to_dxf(input_path, output_path, **kwargs):  # noqa: ANN001, ANN003
        calls.append({"input": input_path, "output": output_path, **kwargs})
        return DxfResult(
            source_path=input_path,
            output_path=output_path,
            total_features=3,
            written_features=2,
            skipped_features=1,
            skipped_by_type={"null": 1},
        )

    monkeypatch.setattr(cli_module, "to_dxf", fake_to_dxf)

    code = cli_module.main(
        ["dxf", str(source), "out.dxf", "--object", "example", "--dxf-version", "R2000", "--strict"]
    )
    captured = capsys.readouterr()

    assert code == 0
    assert calls == [
        {
            "input": str(source),
            "output": "out.dxf",
            "objects": ["example"],
            "dxf_version": "R2000",
            "strict": True,
        }
    ]
    assert "written_features: 2" in captured.out
    assert "skipped[null]: 1" in captured.out


def test_cli_without_command_prints_help(capsys) -> None:
    code = cli_module.main([])
    captured = capsys.readouterr()

    assert code == 0
    assert "usage: eztopo" in captured.out
