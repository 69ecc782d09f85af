# engine/real_estate.py
#
# Primary home and rental holdings: property appreciation, fixed-rate mortgage
# amortization and rental income. Equity is reported next to, never inside,
# the account ledger's net worth.
#
from dataclasses import dataclass
from typing import Iterable, List

from models import RealEstateHolding


def annual_mortgage_payment(principal: float, rate: float, years: int) -> float:
    """Level annual payment on a fixed-rate loan (annuity formula)."""
    if principal <= 0:
        return 0.0
    if rate == 0:
        return principal / years
    return principal * rate / (1 - (1 + rate) ** -years)


@dataclass(frozen=True)
class RealEstateYear:
    mortgage_payment: float
    rental_income: float
    property_value: float
    mortgage_balance: float

    @property
    def equity(self) -> float:
        return self.property_value - self.mortgage_balance


class _PropertyState:
    def __init__(self, holding: RealEstateHolding):
        self.holding = holding
        self.value = holding.value
        self.loan_balance = max(0.0, holding.mortgage_principal)
        self.years_left = holding.mortgage_years if self.loan_balance > 0 else 0
        self.payment = (
            annual_mortgage_payment(self.loan_balance, holding.mortgage_rate, holding.mortgage_years)
            if self.loan_balance > 0 else 0.0
        )

    def advance(self, year_index: int) -> RealEstateYear:
        h = self.holding
        payment = 0.0
        if self.years_left > 0 and self.loan_balance > 0:
            interest = self.loan_balance * h.mortgage_rate
            payment = min(self.payment, self.loan_balance + interest)
            self.loan_balance = max(0.0, self.loan_balance + interest - payment)
            self.years_left -= 1
            if self.years_left == 0:
                self.loan_balance = 0.0

        rent = 0.0
        if h.is_rental and h.rental_income > 0:
            rent = h.rental_income * (1 + h.rental_income_growth_rate) ** year_index

        self.value *= (1 + h.growth_rate)
        return RealEstateYear(
            mortgage_payment=payment,
            rental_income=rent,
            property_value=self.value,
            mortgage_balance=self.loan_balance,
        )


@dataclass(frozen=True)
class PortfolioYear:
    """One year of the whole portfolio, with primary and rental subtotals kept apart."""
    primary: RealEstateYear
    rental: RealEstateYear

    @property
    def mortgage_payment(self) -> float:
        return self.primary.mortgage_payment + self.rental.mortgage_payment

    @property
    def rental_income(self) -> float:
        return self.primary.rental_income + self.rental.rental_income

    @property
    def property_value(self) -> float:
        return self.primary.property_value + self.rental.property_value

    @property
    def mortgage_balance(self) -> float:
        return self.primary.mortgage_balance + self.rental.mortgage_balance

    @property
    def equity(self) -> float:
        return self.primary.equity + self.rental.equity


def _subtotal(years: List[RealEstateYear]) -> RealEstateYear:
    return RealEstateYear(
        mortgage_payment=sum(y.mortgage_payment for y in years),
        rental_income=sum(y.rental_income for y in years),
        property_value=sum(y.property_value for y in years),
        mortgage_balance=sum(y.mortgage_balance for y in years),
    )


class RealEstatePortfolio:
    """Year-by-year state of every holding; one instance per simulation run."""

    def __init__(self, holdings: Iterable[RealEstateHolding]):
        self._states: List[_PropertyState] = [_PropertyState(h) for h in holdings]

    def advance(self, year_index: int) -> PortfolioYear:
        primary, rental = [], []
        for state in self._states:
            year = state.advance(year_index)
            (rental if state.holding.is_rental else primary).append(year)
        return PortfolioYear(primary=_subtotal(primary), rental=_subtotal(rental))
