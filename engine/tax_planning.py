# tax_planning.py
#
# Sizes the year's portfolio draw against a target tax bracket.
# Separate tax_engine.py computes the actual year-end bill.
#

from models import WithdrawalPlan
from utils.tax_utils import BracketTable


def get_target_bracket_ceiling(bracket_table: BracketTable, target_rate: float) -> float:
    """
    Returns the income ceiling of the target bracket.

    An exact rate match wins; otherwise the highest bracket whose rate is
    below the target is used. A target below the first bracket leaves no room.
    """
    ceiling = 0.0
    for rate, bracket_ceiling in bracket_table:
        if abs(rate - target_rate) < 1e-12:
            return bracket_ceiling
        if rate < target_rate:
            ceiling = bracket_ceiling
    return ceiling


def size_withdrawal(
    net_cash_need: float,
    guaranteed_taxable_income: float,
    target_bracket_ceiling: float,
    bracket_table: BracketTable,
) -> WithdrawalPlan:
    """
    Splits the year's net cash need into an ordinary-income draw (pre-tax
    accounts, kept under the target bracket ceiling) and a tax-preferred draw
    (Roth / taxable basis) for whatever the bracket room cannot cover.

    Args:
        net_cash_need: Cash the household must pull from the portfolio.
        guaranteed_taxable_income: Ordinary income already recognized this year.
        target_bracket_ceiling: Top of the bracket the plan tries not to exceed.
        bracket_table: Year's bracket table (kept for the caller's contract;
            the ceiling has already been resolved from it).

    Returns:
        WithdrawalPlan(ordinary_withdrawal, preferred_withdrawal)
    """
    # Surplus years draw nothing; surplus cash is not reinvested
    if net_cash_need <= 0:
        return WithdrawalPlan(ordinary_withdrawal=0.0, preferred_withdrawal=0.0)

    headroom = max(0.0, target_bracket_ceiling - guaranteed_taxable_income)
    ordinary = min(net_cash_need, headroom)

    return WithdrawalPlan(
        ordinary_withdrawal=ordinary,
        preferred_withdrawal=net_cash_need - ordinary,
    )


def remaining_headroom(taxable_income: float, target_bracket_ceiling: float) -> float:
    """Ordinary income that can still be recognized before crossing the target ceiling."""
    return max(0.0, target_bracket_ceiling - taxable_income)
