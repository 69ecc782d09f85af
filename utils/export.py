# utils/export.py
#
# CSV / JSON export of simulation runs and Monte Carlo statistics.
# CSV goes through pandas; re-import uses round-trip float parsing so values
# come back bit-for-bit.
#

import io
import json
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from models import MonteCarloEnsemble, SimulationRun, YEAR_RESULT_FIELDS, YearResult

PathLike = Union[str, Path]

INT_FIELDS = ("year_index", "year", "p1_age")
OPTIONAL_INT_FIELDS = ("p2_age",)
RUN_COLUMNS = ("run_id", "strategy")


def run_to_frame(run: SimulationRun) -> pd.DataFrame:
    """One row per simulated year; columns follow YearResult field order."""
    frame = pd.DataFrame([asdict(y) for y in run.years], columns=list(YEAR_RESULT_FIELDS))
    frame.insert(0, "strategy", run.strategy)
    frame.insert(0, "run_id", run.run_id)
    return frame


def _write_or_return(text: str, path: Optional[PathLike]) -> str:
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
    return text


def _year_from_row(row: Dict[str, Any]) -> YearResult:
    values = {}
    for name in YEAR_RESULT_FIELDS:
        value = row[name]
        if name in INT_FIELDS:
            value = int(value)
        elif name in OPTIONAL_INT_FIELDS:
            value = None if value is None or (isinstance(value, float) and math.isnan(value)) else int(value)
        else:
            value = float(value)
        values[name] = value
    return YearResult(**values)


def _run_from_years(years, run_id: int, strategy: str) -> SimulationRun:
    years = tuple(years)
    return SimulationRun(
        run_id=run_id,
        strategy=strategy,
        years=years,
        final_net_worth=years[-1].net_worth if years else 0.0,
    )


# =============================================================================
# CSV
# =============================================================================

def export_run_csv(run: SimulationRun, path: Optional[PathLike] = None) -> str:
    """Write the run as CSV (to path if given) and return the CSV text."""
    text = run_to_frame(run).to_csv(index=False)
    return _write_or_return(text, path)


def read_run_csv(source: Union[PathLike, io.StringIO]) -> SimulationRun:
    """
    Rebuild a SimulationRun from export_run_csv output.

    Args:
        source: A file path or a text buffer holding the CSV.
    """
    frame = pd.read_csv(source, float_precision="round_trip")
    if frame.empty:
        raise ValueError("CSV holds no simulated years")

    records = frame.to_dict(orient="records")
    run_id = int(records[0]["run_id"])
    strategy = str(records[0]["strategy"])
    return _run_from_years((_year_from_row(r) for r in records), run_id, strategy)


# =============================================================================
# JSON
# =============================================================================

def run_to_dict(run: SimulationRun) -> Dict[str, Any]:
    return {
        "run_id": run.run_id,
        "strategy": run.strategy,
        "final_net_worth": run.final_net_worth,
        "years": [asdict(y) for y in run.years],
    }


def export_run_json(run: SimulationRun, path: Optional[PathLike] = None) -> str:
    text = json.dumps(run_to_dict(run), indent=2)
    return _write_or_return(text, path)


def read_run_json(source: Union[PathLike, str]) -> SimulationRun:
    """Accepts a path to a JSON file or the JSON text itself."""
    if isinstance(source, Path) or (isinstance(source, str) and not source.lstrip().startswith("{")):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = source
    payload = json.loads(text)
    run = _run_from_years(
        (_year_from_row(row) for row in payload["years"]),
        int(payload["run_id"]),
        str(payload["strategy"]),
    )
    if "final_net_worth" in payload:
        run = SimulationRun(run.run_id, run.strategy, run.years, float(payload["final_net_worth"]))
    return run


# =============================================================================
# Monte Carlo statistics
# =============================================================================

def export_stats_csv(ensemble: MonteCarloEnsemble, path: Optional[PathLike] = None) -> str:
    """Per-year P10 / median / P90 table for an ensemble."""
    text = ensemble.stats_frame().to_csv(index=False)
    return _write_or_return(text, path)
