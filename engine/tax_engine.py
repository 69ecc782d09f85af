"""
Federal bracket resolver and annual tax bill for the drawdown planner.
It contains the final tax calculation formulas; bracket tables themselves
are configuration supplied through TaxContext (see utils.tax_utils).
"""
from dataclasses import dataclass
from typing import Tuple
import numpy as np
import logging

from models import TaxContext
from utils.tax_utils import BracketTable, index_brackets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxBill:
    federal_ordinary: float
    capital_gains_tax: float
    state_tax: float
    marginal_rate: float
    taxable_ordinary_income: float

    @property
    def federal_tax(self) -> float:
        return self.federal_ordinary + self.capital_gains_tax

    @property
    def total(self) -> float:
        return self.federal_ordinary + self.capital_gains_tax + self.state_tax


# --- 1. Bracket Resolver ---

def resolve_tax(taxable_ordinary_income: float, bracket_table: BracketTable) -> Tuple[float, float]:
    """
    Apply the piecewise-marginal formula to ordinary income.

    Returns:
        tuple[float, float]: (marginal_rate, tax_owed)
    """
    first_rate = bracket_table[0][0]
    if taxable_ordinary_income <= 0:
        return first_rate, 0.0

    tax_owed = 0.0
    floor = 0.0
    marginal_rate = first_rate

    for rate, ceiling in bracket_table:
        marginal_rate = rate
        if taxable_ordinary_income <= ceiling or not np.isfinite(ceiling):
            tax_owed += (taxable_ordinary_income - floor) * rate
            break
        tax_owed += (ceiling - floor) * rate
        floor = ceiling

    return marginal_rate, tax_owed


def effective_rate(taxable_ordinary_income: float, bracket_table: BracketTable) -> float:
    if taxable_ordinary_income <= 0:
        return 0.0
    _, tax_owed = resolve_tax(taxable_ordinary_income, bracket_table)
    return tax_owed / taxable_ordinary_income


# --- 2. Year Helpers ---

def year_tax_parameters(tax_context: TaxContext, inflation_index: float) -> Tuple[BracketTable, float]:
    """Bracket table and standard deduction in effect for a year (indexed when configured)."""
    if tax_context.index_brackets:
        return (
            index_brackets(tax_context.bracket_table, inflation_index),
            tax_context.standard_deduction * inflation_index,
        )
    return list(tax_context.bracket_table), tax_context.standard_deduction


def calculate_year_taxes(
    ordinary_income: float,
    realized_gains: float,
    tax_context: TaxContext,
    bracket_table: BracketTable,
    deduction: float = 0.0,
) -> TaxBill:
    """
    Calculates the year's tax bill: ordinary federal tax on income above the
    deduction, a flat capital-gains rate on realized gains, and the optional
    flat state add-on applied to both.
    """
    taxable_ordinary = max(0.0, ordinary_income - deduction)
    marginal_rate, federal_ordinary = resolve_tax(taxable_ordinary, bracket_table)

    gains = max(0.0, realized_gains)
    capital_gains_tax = gains * tax_context.capital_gains_rate
    state_tax = (taxable_ordinary + gains) * tax_context.state_tax_rate

    logger.debug(
        "Tax: ordinary %.0f (taxable %.0f) gains %.0f -> federal %.0f cap gains %.0f state %.0f",
        ordinary_income, taxable_ordinary, gains, federal_ordinary, capital_gains_tax, state_tax,
    )

    return TaxBill(
        federal_ordinary=federal_ordinary,
        capital_gains_tax=capital_gains_tax,
        state_tax=state_tax,
        marginal_rate=marginal_rate,
        taxable_ordinary_income=taxable_ordinary,
    )
