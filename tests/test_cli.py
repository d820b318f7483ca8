"""polyedit command line: convert and stats."""

from __future__ import annotations

import json

import pytest

from polyedit_core.cli import main


@pytest.fixture
def drawing_json(tmp_path):
    path = tmp_path / "drawing.json"
    path.write_text(json.dumps({"polylines": [[[0, 0], [10, 0], [10, 10]]]}), encoding="utf-8")
    return path


class TestConvert:
    def test_json_to_dxf_file(self, drawing_json, tmp_path, capsys):
        out = tmp_path / "out" / "drawing.dxf"
        assert main(["convert", str(drawing_json), "--to", "dxf", "--output", str(out)]) == 0
        text = out.read_text(encoding="utf-8")
        assert "LWPOLYLINE" in text
        assert "polylines=1" in capsys.readouterr().out

    def test_json_to_stdout(self, drawing_json, capsys):
        assert main(["convert", str(drawing_json)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["polylines"][0]["id"] == "P0001"

    def test_empty_input_is_an_error(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["convert", str(path)])
        assert exc.value.code == 2

    def test_missing_input_is_an_error(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["stats", str(tmp_path / "missing.dxf")])


class TestStats:
    def test_stats_output(self, drawing_json, capsys):
        assert main(["stats", str(drawing_json)]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["items"] == 1
        assert stats["points"] == 3
        assert stats["length"] == pytest.approx(20.0)
