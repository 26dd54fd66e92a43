"""Tests for the mapsplit command line."""

from __future__ import annotations

import pytest

from mapsplit.cli import EXIT_FATAL, EXIT_OK, EXIT_TILE_FAILED, main


@pytest.fixture
def quadrant_file(tmp_path, quadrant_svg):
    path = tmp_path / "quadrant.svg"
    path.write_text(quadrant_svg, encoding="utf-8")
    return path


def _split_args(src, out, *extra):
    return ["split", str(src), "--tile-width", "35", "--tile-height", "35", "--overlap", "2.5", "-o", str(out), *extra]


def test_split_writes_all_tiles(tmp_path, quadrant_file, capsys):
    out = tmp_path / "tiles"
    assert main(_split_args(quadrant_file, out)) == EXIT_OK
    assert len(list(out.glob("tile_*.svg"))) == 9
    assert "9/9 tiles" in capsys.readouterr().out


def test_split_with_prefix_and_open_policy(tmp_path, quadrant_file):
    out = tmp_path / "tiles"
    code = main(_split_args(quadrant_file, out, "--prefix", "sheet", "--close-policy", "open", "--workers", "1"))
    assert code == EXIT_OK
    assert (out / "sheet_2_2.svg").exists()
    assert 'fill:none' in (out / "sheet_0_0.svg").read_text(encoding="utf-8").replace(" ", "")


def test_split_hex_map(tmp_path, hex_map_file):
    out = tmp_path / "tiles"
    assert main(["split", str(hex_map_file), "--tile-width", "60", "--tile-height", "60", "-o", str(out)]) == EXIT_OK
    assert len(list(out.iterdir())) == 12


def test_failed_tile_exit_code(tmp_path, quadrant_file, capsys):
    out = tmp_path / "tiles"
    out.mkdir()
    (out / "tile_0_0.svg").mkdir()
    assert main(_split_args(quadrant_file, out)) == EXIT_TILE_FAILED
    captured = capsys.readouterr()
    assert "8/9 tiles" in captured.out
    assert "FAILED" in captured.err


def test_missing_input_is_fatal(tmp_path, capsys):
    assert main(_split_args(tmp_path / "nope.svg", tmp_path / "tiles")) == EXIT_FATAL
    assert capsys.readouterr().err.startswith("ERROR:")
    assert not (tmp_path / "tiles").exists()


def test_bad_overlap_is_fatal(tmp_path, quadrant_file, capsys):
    args = ["split", str(quadrant_file), "--tile-width", "10", "--tile-height", "10", "--overlap", "6", "-o", str(tmp_path / "t")]
    assert main(args) == EXIT_FATAL
    assert "overlap" in capsys.readouterr().err


def test_grid_command(quadrant_file, capsys):
    code = main(["grid", str(quadrant_file), "--tile-width", "35", "--tile-height", "35", "--overlap", "2.5"])
    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "3 rows x 3 cols" in out
    assert "[1,1] x 30..65  y 30..65" in out


def test_unknown_close_policy_exits_through_argparse(tmp_path, quadrant_file):
    with pytest.raises(SystemExit) as exc:
        main(_split_args(quadrant_file, tmp_path / "t", "--close-policy", "stitch"))
    assert exc.value.code == 2


def test_undecodable_input_is_fatal(tmp_path, capsys):
    src = tmp_path / "latin1.svg"
    src.write_bytes(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 90 90"><text x="5" y="5">Caf\xe9</text></svg>'
        .encode("latin-1")
    )
    assert main(_split_args(src, tmp_path / "tiles")) == EXIT_FATAL
    assert capsys.readouterr().err.startswith("ERROR:")


def test_percentage_sized_map_splits(tmp_path):
    src = tmp_path / "fluid.svg"
    src.write_text(
        '<svg xmlns="http://www.w3.org/2000/svg" width="100%" height="100%" viewBox="0 0 90 90">'
        '<rect x="5" y="5" width="50%" height="50%"/></svg>',
        encoding="utf-8",
    )
    out = tmp_path / "tiles"
    assert main(_split_args(src, out)) == EXIT_OK
    assert 'width="35"' in (out / "tile_0_0.svg").read_text(encoding="utf-8")


def test_pyramid_command(tmp_path, quadrant_file, capsys):
    out = tmp_path / "pyramid"
    assert main(["pyramid", str(quadrant_file), "--min-zoom", "0", "--max-zoom", "1", "-o", str(out)]) == EXIT_OK
    assert "5/5 tiles" in capsys.readouterr().out
    assert sorted(str(p.relative_to(out)) for p in out.rglob("*.svg")) == [
        "0/0/0.svg", "1/0/0.svg", "1/0/1.svg", "1/1/0.svg", "1/1/1.svg",
    ]


def test_pyramid_with_empty_bounds_is_fatal(tmp_path, quadrant_file, capsys):
    args = ["pyramid", str(quadrant_file), "--bounds", "0", "0", "-5", "-o", str(tmp_path / "p")]
    assert main(args) == EXIT_FATAL
    assert "bounds" in capsys.readouterr().err
