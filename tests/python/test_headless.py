import csv
import json

import pytest

from hextrail.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "time",
        "population",
        "spawned",
        "retired",
        "moves",
        "conflicts",
        "tick_ms",
    ]
    assert rows[1][0] == "1"
    assert rows[1][-1] == "0.000"


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    sim = run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == [
        "tick",
        "time",
        "population",
        "spawned",
        "retired",
        "moves",
        "conflicts",
        "head_on",
        "commit_races",
        "segments",
        "occupied_cells",
        "occupancy_ratio",
        "dead_traces",
        "pruned",
        "evicted",
        "tick_ms",
        "tick_ms_per_agent",
        "wall_follower_count",
        "wanderer_count",
        "explorer_count",
        "spiral_count",
        "wall_follower_weight",
        "wanderer_weight",
        "explorer_weight",
        "spiral_weight",
    ]

    lattice_size = sum(1 for _ in sim.grid.iter_lattice())
    idx = {name: i for i, name in enumerate(header)}
    for row in rows[1:]:
        occupied = int(row[idx["occupied_cells"]])
        assert float(row[idx["occupancy_ratio"]]) == pytest.approx(occupied / lattice_size, abs=1e-4)
        assert float(row[idx["tick_ms"]]) == 0.0
        assert float(row[idx["tick_ms_per_agent"]]) == 0.0
        assert int(row[idx["population"]]) <= sim.config.max_agents


def test_headless_is_reproducible_for_a_seed(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"
    run_headless(steps=120, seed=5, log_path=first, deterministic_log=True)
    run_headless(steps=120, seed=5, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    log_path = tmp_path / "summary.csv"
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=log_path,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["log_format"] == "basic"
    assert payload["lifecycle"] == "fading"
    assert "tick_ms" in payload
    assert "population" in payload
    assert "segments" in payload
    assert set(payload["fitness"]) == {"wall-follower", "wanderer", "explorer", "spiral"}
    assert payload["tail_window"]["window"] == 2


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "infinite.yaml"
    config_path.write_text("hex_size: 50\nwidth: 500\nheight: 400\ninfinite_lifetime: true\n")
    summary_path = tmp_path / "summary.json"
    sim = run_headless(steps=10, seed=None, log_path=None, summary_path=summary_path, config_path=config_path)
    assert sim.config.hex_size == 50
    assert json.loads(summary_path.read_text())["lifecycle"] == "infinite"


def test_headless_rejects_unknown_log_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="verbose")
