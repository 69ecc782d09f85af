# app.py
import argparse
import logging
import multiprocessing as mp
from pathlib import Path
from typing import List, Optional

# -----------------------------------------------------------
# Core Imports
# -----------------------------------------------------------

from config import market_assumptions
from engine.errors import PlannerError
from engine.monte_carlo import MonteCarloEngine
from engine.simulator import run_scenarios
from utils.currency import clean_currency, clean_percent, format_currency_output, format_percent_output
from utils.export import export_run_csv, export_run_json, export_stats_csv
from utils.input_adapter import get_planner_inputs, get_simulation_settings
from utils.xml_loader import DEFAULT_SETUP, parse_setup_xml

logger = logging.getLogger("retirement_planner")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Household retirement drawdown simulator with Monte Carlo stress testing."
    )
    parser.add_argument("--setup", type=Path, default=None, help="Household setup XML (defaults to config/default_setup.xml)")
    parser.add_argument("--spend", type=str, default=None, help="Override the annual spend goal, e.g. 140000 or $140k")
    parser.add_argument("--inflation", type=str, default=None, help="Override inflation, e.g. 3 or 0.03 or 3%%")
    parser.add_argument("--target-bracket", type=str, default=None, help="Override the target bracket rate, e.g. 24%%")
    parser.add_argument("--roth-conversions", action="store_true", help="Fill the target bracket with Roth conversions")
    parser.add_argument("--standard-deduction", action="store_true", help="Apply the filing status standard deduction")
    parser.add_argument(
        "--volatility",
        type=str,
        default=None,
        help="Annual return volatility (number or one of: " + ", ".join(market_assumptions.volatility_presets) + ")",
    )
    parser.add_argument("--trials", type=int, default=None, help="Number of Monte Carlo trials (0 skips Monte Carlo)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible ensemble")
    parser.add_argument("--strategy", choices=["standard", "taxable_first"], default=None, help="Strategy for the Monte Carlo ensemble")
    parser.add_argument("--workers", type=int, default=None, help="Worker processes (1 runs serially)")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds before unfinished trials are abandoned")
    parser.add_argument("--output-dir", type=Path, default=None, help="Write CSV/JSON results here")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO detail, -vv for per-year DEBUG")
    return parser.parse_args(argv)


def _resolve_volatility(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    if raw.lower() in market_assumptions.volatility_presets:
        return market_assumptions.volatility_presets[raw.lower()]
    return clean_percent(raw)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # The summary below is always shown
    logger.setLevel(logging.INFO)

    # -----------------------------------------------------------
    # Inputs
    # -----------------------------------------------------------
    setup = parse_setup_xml(args.setup) if args.setup else DEFAULT_SETUP

    overrides = {}
    if args.spend is not None:
        overrides["annual_spend_goal"] = clean_currency(args.spend)
    if args.inflation is not None:
        overrides["inflation_rate"] = clean_percent(args.inflation)
    if args.target_bracket is not None:
        overrides["target_bracket_rate"] = clean_percent(args.target_bracket)
    if args.roth_conversions:
        overrides["roth_conversions"] = True
    if args.standard_deduction:
        overrides["use_standard_deduction"] = True

    settings = get_simulation_settings(
        setup,
        volatility=_resolve_volatility(args.volatility),
        num_trials=args.trials,
        seed=args.seed,
        strategy=args.strategy,
    )

    try:
        inputs = get_planner_inputs(setup, **overrides)

        # -----------------------------------------------------------
        # Deterministic runs: both strategies
        # -----------------------------------------------------------
        comparison = run_scenarios(inputs)
        for name, run in comparison.as_dict().items():
            logger.info(
                "%-14s final net worth %s | success %s | first shortfall age %s",
                name,
                format_currency_output(run.final_net_worth),
                run.success,
                run.first_shortfall_age if run.first_shortfall_age is not None else "-",
            )

        # -----------------------------------------------------------
        # Monte Carlo
        # -----------------------------------------------------------
        ensemble = None
        if settings["num_trials"] > 0:
            engine = MonteCarloEngine(
                inputs,
                strategy=settings["strategy"],
                max_workers=args.workers,
                seed=settings["seed"],
            )
            ensemble = engine.run_ensemble(settings["volatility"], settings["num_trials"], timeout=args.timeout)
            logger.info(
                "Monte Carlo %s at %s volatility: success rate %s over %d trials%s",
                ensemble.strategy,
                format_percent_output(ensemble.volatility),
                format_percent_output(ensemble.success_rate / 100),
                ensemble.completed_trials,
                " (partial)" if ensemble.partial else "",
            )
            final_stats = ensemble.stats[-1]
            logger.info(
                "Final-year net worth P10 %s / median %s / P90 %s",
                format_currency_output(final_stats.p10("net_worth")),
                format_currency_output(final_stats.median("net_worth")),
                format_currency_output(final_stats.p90("net_worth")),
            )
    except PlannerError as exc:
        logger.error("%s", exc)
        return 2

    # -----------------------------------------------------------
    # Output
    # -----------------------------------------------------------
    if args.output_dir is not None:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        for name, run in comparison.as_dict().items():
            export_run_csv(run, args.output_dir / f"{name}.csv")
            export_run_json(run, args.output_dir / f"{name}.json")
        if ensemble is not None:
            export_stats_csv(ensemble, args.output_dir / "monte_carlo_stats.csv")
            export_run_csv(ensemble.run_at_percentile(50), args.output_dir / "monte_carlo_median_run.csv")
        logger.info("Results written to %s", args.output_dir)

    return 0


if __name__ == "__main__":
    mp.freeze_support()
    raise SystemExit(main())
