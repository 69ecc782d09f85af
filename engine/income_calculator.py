# income_calculator.py
#
# Guaranteed income per person (Salary, Social Security, Pension), business
# income and Required Minimum Distributions.
#

from dataclasses import dataclass
from typing import Optional

from engine.rmd_tables import required_minimum_distribution
from models import Household, Person
from utils.tax_utils import SS_TAXABLE_FRACTION


@dataclass(frozen=True)
class PersonIncome:
    employment: float = 0.0
    social_security: float = 0.0
    pension: float = 0.0

    @property
    def total(self) -> float:
        return self.employment + self.social_security + self.pension

    @property
    def ordinary(self) -> float:
        """Portion counted as ordinary income (85% of Social Security)."""
        return self.employment + self.pension + SS_TAXABLE_FRACTION * self.social_security


NO_INCOME = PersonIncome()


def calculate_person_income(person: Optional[Person], age: Optional[int], inflation_index: float) -> PersonIncome:
    """
    Calculates one person's guaranteed income for a simulated year.

    Args:
        person: The person (None when the household has no second person).
        age: Their age this year.
        inflation_index: Cumulative inflation multiplier (Year 0 = 1.0).
    """
    if person is None or age is None:
        return NO_INCOME

    employment = 0.0
    if age < person.retirement_age:
        # Salary is adjusted for cumulative inflation (COLA)
        employment = person.employment_income * inflation_index

    social_security = 0.0
    if age >= person.ss_start_age:
        social_security = person.ss_amount * inflation_index

    pension = 0.0
    if age >= person.pension_start_age:
        pension = person.pension_amount * (inflation_index if person.pension_cola else 1.0)

    return PersonIncome(employment=employment, social_security=social_security, pension=pension)


def calculate_business_income(household: Household, p1_age: int, inflation_index: float) -> float:
    until = household.business_income_until_age
    if household.business_income <= 0 or (until is not None and p1_age >= until):
        return 0.0
    return household.business_income * inflation_index


def calculate_rmd(person: Optional[Person], age: Optional[int], start_year: int, balance: float) -> float:
    """RMD owed on one person's pre-tax account; birth year is inferred from the start year."""
    if person is None or age is None:
        return 0.0
    birth_year = start_year - person.current_age
    return required_minimum_distribution(balance, age, birth_year)
