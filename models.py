# models.py
import math
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pandas as pd

from utils.tax_utils import BracketTable, DEFAULT_CAPITAL_GAINS_RATE

ACCOUNT_NAMES: Tuple[str, ...] = ("taxable", "pretax_p1", "pretax_p2", "roth_p1", "roth_p2")
PRETAX_ACCOUNTS: Tuple[str, ...] = ("pretax_p1", "pretax_p2")
ROTH_ACCOUNTS: Tuple[str, ...] = ("roth_p1", "roth_p2")

# Metrics aggregated per year by the Monte Carlo engine
STAT_METRICS: Tuple[str, ...] = (
    "net_worth",
    "bal_taxable",
    "bal_pretax_p1",
    "bal_pretax_p2",
    "bal_roth_p1",
    "bal_roth_p2",
    "bal_pretax_total",
    "bal_roth_total",
)


# =============================================================================
# Inputs
# =============================================================================

@dataclass
class Person:
    current_age: int
    retirement_age: int
    employment_income: float = 0.0

    ss_amount: float = 0.0
    ss_start_age: int = 67

    pension_amount: float = 0.0
    pension_start_age: int = 65
    pension_cola: bool = False


@dataclass
class Household:
    person1: Person
    person2: Optional[Person] = None
    end_simulation_age: int = 95
    start_year: Optional[int] = None

    business_income: float = 0.0
    business_income_until_age: Optional[int] = None

    def __post_init__(self):
        if self.start_year is None:
            self.start_year = datetime.now().year

    @property
    def num_years(self) -> int:
        return max(0, self.end_simulation_age - self.person1.current_age + 1)


@dataclass
class AccountSet:
    taxable: float = 0.0
    pretax_p1: float = 0.0
    pretax_p2: float = 0.0
    roth_p1: float = 0.0
    roth_p2: float = 0.0

    growth_rate_taxable: float = 0.06
    growth_rate_pretax_p1: float = 0.06
    growth_rate_pretax_p2: float = 0.06
    growth_rate_roth_p1: float = 0.06
    growth_rate_roth_p2: float = 0.06

    # Fraction of a taxable withdrawal that is return of principal
    basis_ratio: float = 1.0

    def balances(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in ACCOUNT_NAMES}

    def growth_rates(self) -> Dict[str, float]:
        return {name: float(getattr(self, f"growth_rate_{name}")) for name in ACCOUNT_NAMES}


@dataclass
class SpendPlan:
    annual_spend_goal: float
    inflation_rate: float = 0.03

    def goal_for_year(self, year_index: int) -> float:
        return self.annual_spend_goal * (1 + self.inflation_rate) ** year_index


@dataclass
class TaxContext:
    bracket_table: BracketTable
    target_bracket_rate: float = 0.24
    filing_status: str = "married_filing_jointly"
    state_tax_rate: float = 0.0
    capital_gains_rate: float = DEFAULT_CAPITAL_GAINS_RATE
    standard_deduction: float = 0.0
    index_brackets: bool = False
    previous_year_taxes: float = 0.0
    roth_conversions: bool = False
    apply_rmds: bool = True


@dataclass
class RealEstateHolding:
    name: str
    value: float = 0.0
    growth_rate: float = 0.03
    mortgage_principal: float = 0.0
    mortgage_rate: float = 0.0
    mortgage_years: int = 0
    rental_income: float = 0.0
    rental_income_growth_rate: float = 0.0
    is_rental: bool = False


@dataclass
class PlannerInputs:
    household: Household
    accounts: AccountSet
    spend_plan: SpendPlan
    tax_context: TaxContext
    real_estate: Tuple[RealEstateHolding, ...] = ()


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class WithdrawalPlan:
    ordinary_withdrawal: float
    preferred_withdrawal: float

    @property
    def total(self) -> float:
        return self.ordinary_withdrawal + self.preferred_withdrawal


@dataclass(frozen=True)
class YearResult:
    year_index: int
    year: int
    p1_age: int
    p2_age: Optional[int]

    # Income by source
    employment_p1: float
    employment_p2: float
    ss_p1: float
    ss_p2: float
    pension_p1: float
    pension_p2: float
    rmd_p1: float
    rmd_p2: float
    rental_income: float
    business_income: float
    total_income: float

    # Need
    spend_goal: float
    mortgage_payment: float
    previous_taxes: float
    cash_need: float

    # Withdrawals
    wd_taxable: float
    wd_pretax_p1: float
    wd_pretax_p2: float
    wd_roth_p1: float
    wd_roth_p2: float
    conv_p1: float
    conv_p2: float

    # Taxes
    ordinary_income: float
    capital_gains: float
    federal_tax: float
    state_tax: float
    tax_bill: float
    marginal_rate: float

    # Ending balances
    bal_taxable: float
    bal_pretax_p1: float
    bal_pretax_p2: float
    bal_roth_p1: float
    bal_roth_p2: float
    net_worth: float

    # Real estate, reported outside net_worth
    home_value: float
    home_equity: float
    mortgage_liability: float
    rental_home_value: float
    rental_home_equity: float
    rental_mortgage_liability: float
    total_home_equity: float

    market_return: float
    shortfall: float

    def balances(self) -> Dict[str, float]:
        return {name: getattr(self, f"bal_{name}") for name in ACCOUNT_NAMES}

    def withdrawals(self) -> Dict[str, float]:
        return {name: getattr(self, f"wd_{name}") for name in ACCOUNT_NAMES}

    @property
    def total_withdrawal(self) -> float:
        return sum(self.withdrawals().values())

    @property
    def has_shortfall(self) -> bool:
        return self.shortfall > 0

    def numeric_values(self) -> List[float]:
        return [v for v in (getattr(self, f.name) for f in fields(self)) if isinstance(v, (int, float))]


YEAR_RESULT_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(YearResult))


@dataclass(frozen=True)
class SimulationRun:
    run_id: int
    strategy: str
    years: Tuple[YearResult, ...]
    final_net_worth: float

    @property
    def had_shortfall(self) -> bool:
        return any(y.shortfall > 0 for y in self.years)

    @property
    def success(self) -> bool:
        return self.final_net_worth > 0 and not self.had_shortfall

    @property
    def first_shortfall_age(self) -> Optional[int]:
        for y in self.years:
            if y.shortfall > 0:
                return y.p1_age
        return None

    @property
    def depletion_age(self) -> Optional[int]:
        """P1 age in the first year that ends with every account at zero."""
        for y in self.years:
            if y.net_worth <= 0:
                return y.p1_age
        return None

    def by_year(self) -> Dict[int, YearResult]:
        return {y.year: y for y in self.years}


@dataclass(frozen=True)
class ScenarioComparison:
    standard: SimulationRun
    taxable_first: SimulationRun

    def as_dict(self) -> Dict[str, SimulationRun]:
        return {"standard": self.standard, "taxable_first": self.taxable_first}


@dataclass(frozen=True)
class YearStats:
    year_index: int
    year: int
    p1_age: int
    # metric -> (p10, median, p90)
    percentiles: Dict[str, Tuple[float, float, float]]
    market_return_min: float
    market_return_median: float
    market_return_max: float

    def p10(self, metric: str) -> float:
        return self.percentiles[metric][0]

    def median(self, metric: str) -> float:
        return self.percentiles[metric][1]

    def p90(self, metric: str) -> float:
        return self.percentiles[metric][2]


@dataclass(frozen=True)
class MonteCarloEnsemble:
    runs: Tuple[SimulationRun, ...]
    stats: Tuple[YearStats, ...]
    success_rate: float
    num_trials: int
    failed_trial_count: int = 0
    failed_trial_ids: Tuple[int, ...] = ()
    partial: bool = False
    volatility: float = 0.0
    seed: Optional[int] = None
    strategy: str = "standard"
    # Constant-rate runs of both strategies on the same inputs
    baselines: Optional[ScenarioComparison] = None
    _ranked: Tuple[SimulationRun, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Stable rank: final net worth ascending, trial id breaks ties
        ranked = tuple(sorted(self.runs, key=lambda r: (r.final_net_worth, r.run_id)))
        object.__setattr__(self, "_ranked", ranked)

    @property
    def completed_trials(self) -> int:
        return len(self.runs)

    @property
    def incomplete_trials(self) -> int:
        return self.num_trials - self.completed_trials - self.failed_trial_count

    def ranked_runs(self) -> Tuple[SimulationRun, ...]:
        return self._ranked

    def run_at_percentile(self, percentile: float) -> SimulationRun:
        """Return the trial at a 'luck' percentile (0 = worst final net worth, 100 = best)."""
        if not self._ranked:
            raise ValueError("ensemble holds no runs")
        if not (0 <= percentile <= 100) or math.isnan(percentile):
            raise ValueError(f"percentile must be within [0, 100], got {percentile}")
        index = math.floor(percentile / 100 * (len(self._ranked) - 1))
        return self._ranked[index]

    def run_by_id(self, run_id: int) -> SimulationRun:
        for run in self.runs:
            if run.run_id == run_id:
                return run
        raise KeyError(run_id)

    def stats_frame(self) -> pd.DataFrame:
        """Per-year statistics as a flat DataFrame (one row per simulated year)."""
        rows = []
        for s in self.stats:
            row = {"year_index": s.year_index, "year": s.year, "p1_age": s.p1_age}
            for metric, (p10, med, p90) in s.percentiles.items():
                row[f"{metric}_p10"] = p10
                row[f"{metric}_median"] = med
                row[f"{metric}_p90"] = p90
            row["market_return_min"] = s.market_return_min
            row["market_return_median"] = s.market_return_median
            row["market_return_max"] = s.market_return_max
            rows.append(row)
        return pd.DataFrame(rows)
