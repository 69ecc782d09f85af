import pytest

from models import AccountSet, Household, Person, PlannerInputs, SpendPlan, TaxContext
from utils.tax_utils import get_bracket_table


def make_household_inputs(spend_goal: float = 120_000, **tax_overrides) -> PlannerInputs:
    """The reference couple: 65/63 through 95, $3.32M saved, 24% target bracket."""
    household = Household(
        person1=Person(current_age=65, retirement_age=66, ss_amount=42_000, ss_start_age=67,
                       pension_amount=24_000, pension_start_age=65),
        person2=Person(current_age=63, retirement_age=64, ss_amount=30_000, ss_start_age=67),
        end_simulation_age=95,
        start_year=2026,
    )
    accounts = AccountSet(
        taxable=700_000,
        pretax_p1=1_500_000,
        pretax_p2=1_000_000,
        roth_p1=60_000,
        roth_p2=60_000,
        basis_ratio=0.75,
    )
    tax_context = TaxContext(
        bracket_table=get_bracket_table("married_filing_jointly"),
        target_bracket_rate=0.24,
        **tax_overrides,
    )
    return PlannerInputs(
        household=household,
        accounts=accounts,
        spend_plan=SpendPlan(annual_spend_goal=spend_goal, inflation_rate=0.03),
        tax_context=tax_context,
    )


def make_single_inputs(**account_overrides) -> PlannerInputs:
    """One retiree with a tight 10% target bracket, so most of the draw is tax-preferred."""
    balances = dict(taxable=150_000, pretax_p1=100_000, roth_p1=500_000)
    balances.update(account_overrides)
    return PlannerInputs(
        household=Household(
            person1=Person(current_age=60, retirement_age=61),
            end_simulation_age=75,
            start_year=2026,
        ),
        accounts=AccountSet(**balances),
        spend_plan=SpendPlan(annual_spend_goal=100_000, inflation_rate=0.0),
        tax_context=TaxContext(
            bracket_table=get_bracket_table("single"),
            filing_status="single",
            target_bracket_rate=0.10,
        ),
    )


@pytest.fixture
def household_inputs() -> PlannerInputs:
    return make_household_inputs()


@pytest.fixture
def single_inputs() -> PlannerInputs:
    return make_single_inputs()


@pytest.fixture
def mfj_table():
    return get_bracket_table("married_filing_jointly")
