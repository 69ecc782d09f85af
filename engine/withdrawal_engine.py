# withdrawal_engine.py

import logging
from typing import Dict, Mapping, Sequence

from engine.errors import ConfigurationError
from models import PRETAX_ACCOUNTS, ROTH_ACCOUNTS

logger = logging.getLogger(__name__)

# Handles logic for ordering account withdrawals
#


def _proportional_split(amount: float, balances: Mapping[str, float], accounts: Sequence[str]) -> Dict[str, float]:
    """
    Splits `amount` across `accounts` weighted by current balance.
    Each share is clipped to its account's balance.
    """
    draws = {name: 0.0 for name in accounts}
    total = sum(max(0.0, balances.get(name, 0.0)) for name in accounts)
    if amount <= 0 or total <= 0:
        return draws

    amount = min(amount, total)
    for name in accounts:
        bal = max(0.0, balances.get(name, 0.0))
        if bal > 0:
            draws[name] = min(bal, amount * bal / total)
    return draws


class WithdrawalStrategy:
    """
    Decides which accounts fund the year's draw once the sizer has fixed
    the ordinary / tax-preferred totals.
    """
    name = "base"
    preferred_accounts = ("taxable",) + ROTH_ACCOUNTS

    def allocate_ordinary(self, ordinary_withdrawal: float, balances: Mapping[str, float]) -> Dict[str, float]:
        """Pre-tax draws split between pretax_p1 / pretax_p2 by balance."""
        return _proportional_split(ordinary_withdrawal, balances, PRETAX_ACCOUNTS)

    def allocate(self, preferred_withdrawal: float, balances: Mapping[str, float]) -> Dict[str, float]:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class StandardStrategy(WithdrawalStrategy):
    """Tax-preferred draws spread across taxable and both Roth accounts by balance."""
    name = "standard"

    def allocate(self, preferred_withdrawal: float, balances: Mapping[str, float]) -> Dict[str, float]:
        return _proportional_split(preferred_withdrawal, balances, self.preferred_accounts)


class TaxableFirstStrategy(WithdrawalStrategy):
    """Taxable account is drained before any Roth money is touched."""
    name = "taxable_first"

    def allocate(self, preferred_withdrawal: float, balances: Mapping[str, float]) -> Dict[str, float]:
        draws = {name: 0.0 for name in self.preferred_accounts}
        if preferred_withdrawal <= 0:
            return draws

        taxable_draw = min(preferred_withdrawal, max(0.0, balances.get("taxable", 0.0)))
        draws["taxable"] = taxable_draw

        remaining = preferred_withdrawal - taxable_draw
        if remaining > 0:
            draws.update(_proportional_split(remaining, balances, ROTH_ACCOUNTS))
        return draws


STRATEGIES = {
    "standard": StandardStrategy,
    "taxable_first": TaxableFirstStrategy,
}


def get_strategy(strategy) -> WithdrawalStrategy:
    """
    Resolve a strategy selector once per request.
    Accepts an instance, 'standard', 'taxable_first' or 'taxable-first'.
    """
    if isinstance(strategy, WithdrawalStrategy):
        return strategy
    key = str(strategy).strip().lower().replace("-", "_")
    if key not in STRATEGIES:
        raise ConfigurationError([f"unknown withdrawal strategy '{strategy}'"])
    return STRATEGIES[key]()
