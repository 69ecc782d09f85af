# engine/roth_optimizer.py

import math
from typing import Dict

from engine.tax_planning import remaining_headroom


def optimal_roth_conversion(
    taxable_income: float,
    target_bracket_ceiling: float,
    pretax_balances: Dict[str, float],
) -> Dict[str, float]:
    """
    Calculates the Roth conversion that fills the target tax bracket.

    Args:
        taxable_income: Taxable ordinary income BEFORE this conversion.
        target_bracket_ceiling: Top of the bracket the plan is willing to fill.
        pretax_balances: Remaining pre-tax balances by account, after this
            year's withdrawals.

    Returns:
        Mapping pre-tax account -> amount to convert, split in proportion to
        balance and capped by each balance. A target in the top bracket
        (infinite ceiling) converts nothing rather than the whole balance.
    """
    if math.isinf(target_bracket_ceiling):
        return {name: 0.0 for name in pretax_balances}

    room = remaining_headroom(taxable_income, target_bracket_ceiling)
    total_pretax = sum(max(0.0, b) for b in pretax_balances.values())

    if room <= 0 or total_pretax <= 0:
        return {name: 0.0 for name in pretax_balances}

    conversion = min(room, total_pretax)
    return {
        name: min(balance, conversion * balance / total_pretax) if balance > 0 else 0.0
        for name, balance in pretax_balances.items()
    }
