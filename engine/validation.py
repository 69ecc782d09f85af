# engine/validation.py
#
# Fail-fast structural checks run before any simulated year.
#
import math
from typing import List

from engine.errors import ConfigurationError
from models import ACCOUNT_NAMES, Person, PlannerInputs
from utils.tax_utils import FILING_STATUSES, BracketTable, normalize_filing_status


def _finite(value) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def check_bracket_table(bracket_table: BracketTable) -> List[str]:
    errors: List[str] = []
    if not bracket_table:
        return ["bracket table is empty"]

    previous = -math.inf
    for i, row in enumerate(bracket_table):
        try:
            rate, ceiling = float(row[0]), float(row[1])
        except (TypeError, ValueError, IndexError):
            errors.append(f"bracket {i} is not a (rate, ceiling) pair")
            continue
        if not (0 <= rate <= 1):
            errors.append(f"bracket {i} rate {rate} outside [0, 1]")
        if math.isnan(ceiling) or ceiling <= previous:
            errors.append(f"bracket ceilings must be strictly increasing (bracket {i})")
        previous = ceiling

    try:
        last_ceiling = float(bracket_table[-1][1])
    except (TypeError, ValueError, IndexError):
        last_ceiling = 0.0
    if last_ceiling != math.inf:
        errors.append("last bracket ceiling must be infinite")
    return errors


def _check_person(label: str, person: Person) -> List[str]:
    errors: List[str] = []
    if person.current_age < 0:
        errors.append(f"{label} current age must be non-negative")
    if person.retirement_age <= person.current_age:
        errors.append(f"{label} retirement age must be greater than current age")
    if not (62 <= person.ss_start_age <= 70):
        errors.append(f"{label} Social Security claiming age must be between 62 and 70")
    for name in ("employment_income", "ss_amount", "pension_amount"):
        value = getattr(person, name)
        if not _finite(value) or value < 0:
            errors.append(f"{label} {name} must be a non-negative number")
    return errors


def collect_errors(inputs: PlannerInputs) -> List[str]:
    errors: List[str] = []
    household = inputs.household

    # People and horizon
    errors += _check_person("person1", household.person1)
    if household.person2 is not None:
        errors += _check_person("person2", household.person2)
    if household.end_simulation_age < household.person1.current_age:
        errors.append("end_simulation_age must not be before person1's current age")
    if not _finite(household.business_income) or household.business_income < 0:
        errors.append("business income must be a non-negative number")

    # Accounts
    accounts = inputs.accounts
    for name in ACCOUNT_NAMES:
        balance = getattr(accounts, name)
        if not _finite(balance) or balance < 0:
            errors.append(f"{name} balance must be a non-negative number")
        rate = getattr(accounts, f"growth_rate_{name}")
        if not _finite(rate) or rate <= -1:
            errors.append(f"{name} growth rate must be a number above -100%")
    if not _finite(accounts.basis_ratio) or not (0 <= accounts.basis_ratio <= 1):
        errors.append("basis ratio must be between 0 and 1")

    # Spending
    plan = inputs.spend_plan
    if not _finite(plan.annual_spend_goal) or plan.annual_spend_goal < 0:
        errors.append("annual spend goal must be a non-negative number")
    if not _finite(plan.inflation_rate) or plan.inflation_rate <= -1:
        errors.append("inflation rate must be a number above -100%")

    # Taxes
    ctx = inputs.tax_context
    errors += check_bracket_table(ctx.bracket_table)
    if normalize_filing_status(ctx.filing_status) not in FILING_STATUSES:
        errors.append(f"unknown filing status '{ctx.filing_status}'")
    for name in ("target_bracket_rate", "state_tax_rate", "capital_gains_rate"):
        value = getattr(ctx, name)
        if not _finite(value) or not (0 <= value <= 1):
            errors.append(f"{name} must be between 0 and 1")
    if not _finite(ctx.standard_deduction) or ctx.standard_deduction < 0:
        errors.append("standard deduction must be a non-negative number")
    if not _finite(ctx.previous_year_taxes) or ctx.previous_year_taxes < 0:
        errors.append("previous year taxes must be a non-negative number")

    # Real estate
    for holding in inputs.real_estate:
        label = f"property '{holding.name}'"
        for name in ("value", "mortgage_principal", "rental_income"):
            value = getattr(holding, name)
            if not _finite(value) or value < 0:
                errors.append(f"{label} {name} must be a non-negative number")
        if holding.mortgage_principal > 0 and holding.mortgage_years < 1:
            errors.append(f"{label} mortgage term must be at least one year")
        if not _finite(holding.mortgage_rate) or holding.mortgage_rate < 0:
            errors.append(f"{label} mortgage rate must be non-negative")

    return errors


def validate_inputs(inputs: PlannerInputs) -> PlannerInputs:
    """Raise ConfigurationError listing every problem; return the inputs unchanged otherwise."""
    errors = collect_errors(inputs)
    if errors:
        raise ConfigurationError(errors)
    return inputs
