# engine/ledger.py
#
# Holds the five account balances for one simulation path.
# Withdrawals are capped at the available balance, so no balance ever goes negative.
#
from typing import Dict, Mapping

from models import ACCOUNT_NAMES


class AccountLedger:
    """
    Per-account balances (taxable, pre-tax and Roth for up to two people).
    Each simulation run owns its own ledger instance.
    """

    def __init__(self, balances: Mapping[str, float]):
        self._balances: Dict[str, float] = {name: 0.0 for name in ACCOUNT_NAMES}
        for name, value in balances.items():
            self._check(name)
            self._balances[name] = max(0.0, float(value))

    def _check(self, account: str):
        if account not in self._balances:
            raise KeyError(f"Unknown account '{account}'")

    def balance(self, account: str) -> float:
        self._check(account)
        return self._balances[account]

    def balances(self) -> Dict[str, float]:
        return dict(self._balances)

    def net_worth(self) -> float:
        # Real-estate equity is tracked outside the ledger
        return sum(self._balances[name] for name in ACCOUNT_NAMES)

    def withdraw(self, account: str, amount: float) -> float:
        """Subtract min(amount, balance) and return what was actually withdrawn."""
        self._check(account)
        if amount <= 0:
            return 0.0
        actual = min(amount, self._balances[account])
        self._balances[account] -= actual
        return actual

    def deposit(self, account: str, amount: float) -> float:
        self._check(account)
        if amount <= 0:
            return 0.0
        self._balances[account] += amount
        return amount

    def transfer(self, source: str, destination: str, amount: float) -> float:
        moved = self.withdraw(source, amount)
        self.deposit(destination, moved)
        return moved

    def apply_growth(self, returns_by_account: Mapping[str, float]):
        """Multiply each balance by (1 + return). Accounts without a return stay flat."""
        for name, rate in returns_by_account.items():
            self._check(name)
            self._balances[name] = self._balances[name] * (1 + rate)

    def __repr__(self):
        inner = ", ".join(f"{k}={v:,.0f}" for k, v in self._balances.items())
        return f"AccountLedger({inner})"
