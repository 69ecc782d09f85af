# engine/simulator.py

import logging
import math
from typing import Dict, List, Optional, Sequence

from engine.errors import ConfigurationError, NumericTrialError
from engine.ledger import AccountLedger
from engine.real_estate import RealEstatePortfolio
from engine.validation import validate_inputs
from engine.withdrawal_engine import WithdrawalStrategy, get_strategy
from engine.year_simulator import YearSimulator
from models import AccountSet, PlannerInputs, ScenarioComparison, SimulationRun, YearResult

logger = logging.getLogger(__name__)

ReturnSequence = Sequence[Dict[str, float]]


def build_return_sequence(accounts: AccountSet, num_years: int) -> List[Dict[str, float]]:
    """Deterministic sequence: every year earns the configured growth rate per account."""
    rates = accounts.growth_rates()
    return [dict(rates) for _ in range(num_years)]


class RetirementSimulation:
    """
    Drives the YearSimulator over the full age range for one return sequence.
    Inputs are assumed validated (see run_simulation).
    """

    def __init__(self, inputs: PlannerInputs, strategy="standard"):
        self.inputs = inputs
        self.strategy: WithdrawalStrategy = get_strategy(strategy)
        self.year_simulator = YearSimulator(inputs, self.strategy)
        self.num_years = inputs.household.num_years

    def run(self, return_sequence: Optional[ReturnSequence] = None, run_id: int = 0) -> SimulationRun:
        if return_sequence is None:
            return_sequence = build_return_sequence(self.inputs.accounts, self.num_years)
        if len(return_sequence) < self.num_years:
            raise ConfigurationError(
                [f"return sequence has {len(return_sequence)} years, horizon needs {self.num_years}"]
            )

        # Fresh state for this path
        ledger = AccountLedger(self.inputs.accounts.balances())
        real_estate = RealEstatePortfolio(self.inputs.real_estate)
        previous_taxes = self.inputs.tax_context.previous_year_taxes

        years: List[YearResult] = []
        depleted_logged = False

        # Keep recording zero-balance years through the horizon so consumers see when depletion hit
        for t in range(self.num_years):
            result = self.year_simulator.simulate_year(
                year_index=t,
                ledger=ledger,
                real_estate=real_estate,
                previous_taxes=previous_taxes,
                returns=return_sequence[t],
            )
            if not all(math.isfinite(v) for v in result.numeric_values()):
                raise NumericTrialError(f"non-finite value in run {run_id} year {result.year}")

            if result.shortfall > 0 and not depleted_logged:
                logger.debug(
                    "Run %d (%s): first shortfall at P1 age %d (%.0f unfunded)",
                    run_id, self.strategy.name, result.p1_age, result.shortfall,
                )
                depleted_logged = True

            years.append(result)
            previous_taxes = result.tax_bill

        final_net_worth = years[-1].net_worth if years else ledger.net_worth()

        return SimulationRun(
            run_id=run_id,
            strategy=self.strategy.name,
            years=tuple(years),
            final_net_worth=final_net_worth,
        )


def run_simulation(
    inputs: PlannerInputs,
    strategy="standard",
    return_sequence: Optional[ReturnSequence] = None,
    run_id: int = 0,
) -> SimulationRun:
    """Validate, then run one deterministic simulation."""
    validate_inputs(inputs)
    run = RetirementSimulation(inputs, strategy).run(return_sequence, run_id=run_id)
    logger.info(
        "Simulation %s finished: %d years, final net worth %.0f, success=%s",
        run.strategy, len(run.years), run.final_net_worth, run.success,
    )
    return run


def run_scenarios(inputs: PlannerInputs, return_sequence: Optional[ReturnSequence] = None) -> ScenarioComparison:
    """Run both withdrawal strategies on the same inputs so callers can compare them."""
    validate_inputs(inputs)
    standard = RetirementSimulation(inputs, "standard").run(return_sequence, run_id=0)
    taxable_first = RetirementSimulation(inputs, "taxable_first").run(return_sequence, run_id=1)
    logger.info(
        "Scenarios finished: standard %.0f, taxable_first %.0f final net worth",
        standard.final_net_worth, taxable_first.final_net_worth,
    )
    return ScenarioComparison(standard=standard, taxable_first=taxable_first)
