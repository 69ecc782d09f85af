# engine/monte_carlo.py

import logging
import multiprocessing as mp
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from engine.errors import ConfigurationError, EnsembleError
from engine.market_generator import generate_return_sequences
from engine.simulator import RetirementSimulation, run_scenarios
from engine.validation import _finite, validate_inputs
from engine.withdrawal_engine import get_strategy
from models import MonteCarloEnsemble, PlannerInputs, STAT_METRICS, SimulationRun, YearStats

logger = logging.getLogger(__name__)

# (trial_id, run or None, error message or None)
TrialOutcome = Tuple[int, Optional[SimulationRun], Optional[str]]


def default_worker_count() -> int:
    # leave 1 core free
    return max(1, mp.cpu_count() - 1)


def _run_trial(payload) -> TrialOutcome:
    """Worker entry point: one independent trial. Numeric failures are reported, not raised."""
    inputs, strategy_name, trial_id, sequence = payload
    try:
        run = RetirementSimulation(inputs, strategy_name).run(sequence, run_id=trial_id)
    except (ArithmeticError, ValueError) as exc:
        return trial_id, None, f"{type(exc).__name__}: {exc}"
    return trial_id, run, None


def _metric_matrix(runs: Sequence[SimulationRun], metric: str) -> np.ndarray:
    if metric == "bal_pretax_total":
        return np.array([[y.bal_pretax_p1 + y.bal_pretax_p2 for y in r.years] for r in runs])
    if metric == "bal_roth_total":
        return np.array([[y.bal_roth_p1 + y.bal_roth_p2 for y in r.years] for r in runs])
    return np.array([[getattr(y, metric) for y in r.years] for r in runs])


def summarize_runs(runs: Sequence[SimulationRun]) -> Tuple[YearStats, ...]:
    """
    Per-year P10 / median / P90 across runs (numpy linear interpolation),
    plus min / median / max of the year's market return.
    """
    if not runs:
        return ()

    reference = runs[0].years
    percentiles: Dict[str, np.ndarray] = {
        metric: np.percentile(_metric_matrix(runs, metric), [10, 50, 90], axis=0)
        for metric in STAT_METRICS
    }
    market = _metric_matrix(runs, "market_return")

    stats = []
    for j, year in enumerate(reference):
        stats.append(
            YearStats(
                year_index=year.year_index,
                year=year.year,
                p1_age=year.p1_age,
                percentiles={
                    metric: (float(values[0, j]), float(values[1, j]), float(values[2, j]))
                    for metric, values in percentiles.items()
                },
                market_return_min=float(np.min(market[:, j])),
                market_return_median=float(np.median(market[:, j])),
                market_return_max=float(np.max(market[:, j])),
            )
        )
    return tuple(stats)


class MonteCarloEngine:
    """
    Runs N independent retirement simulations with randomized annual returns
    and aggregates them into a MonteCarloEnsemble.
    """

    def __init__(
        self,
        inputs: PlannerInputs,
        strategy="standard",
        max_workers: Optional[int] = None,
        seed: Optional[int] = None,
    ):
        self.inputs = validate_inputs(inputs)
        # Selected once per request; workers receive the name
        self.strategy = get_strategy(strategy)
        self.max_workers = max_workers if max_workers is not None else default_worker_count()
        self.seed = seed
        self.num_years = inputs.household.num_years

    # =========================================================================
    # 1. TRIAL EXECUTION
    # =========================================================================
    def _run_serial(self, payloads, deadline: Optional[float]) -> Tuple[List[TrialOutcome], bool]:
        outcomes: List[TrialOutcome] = []
        for payload in payloads:
            if deadline is not None and time.monotonic() >= deadline:
                return outcomes, True
            outcomes.append(_run_trial(payload))
        return outcomes, False

    def _run_pool(self, payloads, deadline: Optional[float]) -> Tuple[List[TrialOutcome], bool]:
        outcomes: List[TrialOutcome] = []
        timed_out = False

        with mp.Pool(processes=self.max_workers) as pool:
            pending = [pool.apply_async(_run_trial, (payload,)) for payload in payloads]

            for async_result in pending:
                if timed_out:
                    # Keep whatever already finished before the deadline
                    if async_result.ready():
                        outcomes.append(async_result.get())
                    continue

                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    outcomes.append(async_result.get(timeout=remaining))
                except mp.TimeoutError:
                    timed_out = True
            # Leaving the block terminates any trial still running

        return outcomes, timed_out

    # =========================================================================
    # 2. ENSEMBLE
    # =========================================================================
    def run_ensemble(self, volatility: float, num_trials: int, timeout: Optional[float] = None) -> MonteCarloEnsemble:
        """
        Args:
            volatility: Standard deviation of the annual market return.
            num_trials: Number of independent trials.
            timeout: Seconds after which unfinished trials are abandoned and the
                ensemble is built from completed ones (marked partial).
        """
        errors = []
        if not _finite(volatility) or float(volatility) < 0:
            errors.append("volatility must be a non-negative number")
        if not _finite(num_trials) or int(num_trials) < 1:
            errors.append("num_trials must be at least 1")
        if errors:
            raise ConfigurationError(errors)
        volatility = float(volatility)
        num_trials = int(num_trials)

        deadline = time.monotonic() + timeout if timeout is not None else None

        sequences = generate_return_sequences(
            growth_rates=self.inputs.accounts.growth_rates(),
            volatility=volatility,
            num_years=self.num_years,
            num_trials=num_trials,
            seed=self.seed,
        )
        payloads = [
            (self.inputs, self.strategy.name, trial_id, sequence)
            for trial_id, sequence in enumerate(sequences)
        ]

        start_time = time.time()
        if self.max_workers <= 1 or num_trials == 1:
            outcomes, timed_out = self._run_serial(payloads, deadline)
        else:
            outcomes, timed_out = self._run_pool(payloads, deadline)
        elapsed = time.time() - start_time

        runs = sorted((run for _, run, _ in outcomes if run is not None), key=lambda r: r.run_id)
        failed = sorted(trial_id for trial_id, run, _ in outcomes if run is None)

        for trial_id, run, message in outcomes:
            if run is None:
                logger.warning("Trial %d failed and is excluded: %s", trial_id, message)

        if not runs:
            raise EnsembleError(
                f"no Monte Carlo trial completed ({len(failed)} failed, "
                f"{num_trials - len(outcomes)} unfinished)"
            )

        if timed_out:
            logger.warning(
                "Monte Carlo deadline reached: %d of %d trials completed", len(outcomes), num_trials
            )

        successes = sum(1 for run in runs if run.success)
        success_rate = successes / len(runs) * 100

        ensemble = MonteCarloEnsemble(
            runs=tuple(runs),
            stats=summarize_runs(runs),
            success_rate=success_rate,
            num_trials=num_trials,
            failed_trial_count=len(failed),
            failed_trial_ids=tuple(failed),
            partial=timed_out,
            volatility=volatility,
            seed=self.seed,
            strategy=self.strategy.name,
            baselines=run_scenarios(self.inputs),
        )

        logger.info(
            "Monte Carlo (%s, vol %.2f%%): %d trials in %.2fs, success %.1f%%, %d failed",
            self.strategy.name, volatility * 100, len(runs), elapsed, success_rate, len(failed),
        )
        return ensemble


def run_ensemble(
    base_inputs: PlannerInputs,
    volatility: float,
    num_trials: int,
    strategy="standard",
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> MonteCarloEnsemble:
    engine = MonteCarloEngine(base_inputs, strategy=strategy, max_workers=max_workers, seed=seed)
    return engine.run_ensemble(volatility, num_trials, timeout=timeout)
