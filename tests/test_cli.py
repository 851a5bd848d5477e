"""Tests for the command-line interface."""

import json

import pytest

from quadcluster.cli import create_parser, main


@pytest.fixture
def points_csv(tmp_path):
    path = tmp_path / "points.csv"
    rows = ["id,lat,lng"]
    rows += [f"{i},{0.0001 * i},{0.0001 * i}" for i in range(5)]
    rows += ["99,40.0,40.0"]
    path.write_text("\n".join(rows) + "\n")
    return path


class TestParser:
    def test_cluster_defaults(self):
        args = create_parser().parse_args(["cluster", "points.csv", "-z", "15"])
        assert args.zoom == 15.0
        assert tuple(args.center) == (0.0, 0.0)
        assert tuple(args.size) == (1080, 1920)
        assert args.density == 1.0
        assert args.viewport is None

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestClusterCommand:
    """Tests for `quadcluster cluster`."""

    def test_world_viewport(self, points_csv, capsys):
        code = main([
            "cluster", str(points_csv), "-z", "15",
            "--viewport", "-85", "-180", "85", "180",
        ])
        assert code == 0
        output = json.loads(capsys.readouterr().out)

        assert output["grid_px"] == 64
        assert output["points_in_viewport"] == 6
        (cluster,) = output["clusters"]
        assert cluster["weight"] == 5
        (single,) = output["singletons"]
        assert (single["lat"], single["lng"]) == (40.0, 40.0)
        assert single["payload"] == {"id": 99}

    def test_camera_viewport(self, points_csv, capsys):
        """Without --viewport only the points on screen are clustered."""
        code = main(["cluster", str(points_csv), "-z", "15", "--size", "400", "400"])
        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["points_in_viewport"] == 5
        assert output["singletons"] == []

    def test_density(self, points_csv, capsys):
        main(["cluster", str(points_csv), "-z", "19", "--density", "2", "--viewport", "-1", "-1", "1", "1"])
        output = json.loads(capsys.readouterr().out)
        assert output["grid_px"] == 32

    def test_output_file(self, points_csv, tmp_path, capsys):
        out = tmp_path / "result.json"
        code = main(["cluster", str(points_csv), "-z", "3", "-o", str(out)])
        assert code == 0
        assert "Wrote" in capsys.readouterr().out
        assert "clusters" in json.loads(out.read_text())

    def test_missing_file(self, tmp_path, capsys):
        code = main(["cluster", str(tmp_path / "nope.csv"), "-z", "10"])
        assert code == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_viewport(self, points_csv, capsys):
        code = main(["cluster", str(points_csv), "-z", "10", "--viewport", "10", "0", "0", "10"])
        assert code == 1
        assert "Error" in capsys.readouterr().err


class TestStatsCommand:
    def test_stats(self, points_csv, capsys):
        code = main(["stats", str(points_csv), "--node-capacity", "2"])
        assert code == 0
        out = capsys.readouterr().out
        assert "Points: 6" in out
        assert "Node capacity: 2" in out
        assert "Depth:" in out
