import io
import json

import pandas as pd

from conftest import make_household_inputs
from engine.monte_carlo import run_ensemble
from engine.simulator import run_simulation
from models import YEAR_RESULT_FIELDS
from utils.export import (
    export_run_csv,
    export_run_json,
    export_stats_csv,
    read_run_csv,
    read_run_json,
    run_to_frame,
)


def test_frame_has_one_row_per_year(household_inputs):
    run = run_simulation(household_inputs)
    frame = run_to_frame(run)
    assert len(frame) == len(run.years)
    assert list(frame.columns[2:]) == list(YEAR_RESULT_FIELDS)
    assert (frame["strategy"] == "standard").all()


def test_csv_round_trip_is_exact(household_inputs, tmp_path):
    run = run_simulation(household_inputs, "taxable_first")
    path = tmp_path / "run.csv"
    text = export_run_csv(run, path)

    assert path.read_text(encoding="utf-8") == text
    restored = read_run_csv(path)
    assert restored == run
    assert read_run_csv(io.StringIO(text)) == run


def test_csv_round_trip_single_person(single_inputs):
    run = run_simulation(single_inputs)
    restored = read_run_csv(io.StringIO(export_run_csv(run)))
    assert all(y.p2_age is None for y in restored.years)
    assert restored.years == run.years


def test_json_round_trip_is_exact(tmp_path):
    run = run_simulation(make_household_inputs(spend_goal=240_000))
    text = export_run_json(run)
    assert json.loads(text)["strategy"] == "standard"

    assert read_run_json(text) == run

    path = tmp_path / "run.json"
    export_run_json(run, path)
    assert read_run_json(path) == run


def test_stats_csv(household_inputs, tmp_path):
    ensemble = run_ensemble(household_inputs, 0.1, 20, seed=4, max_workers=1)
    path = tmp_path / "stats.csv"
    export_stats_csv(ensemble, path)

    frame = pd.read_csv(path)
    assert len(frame) == len(ensemble.stats)
    assert {"net_worth_p10", "net_worth_median", "net_worth_p90", "market_return_max"} <= set(frame.columns)
