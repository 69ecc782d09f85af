from dataclasses import fields
from typing import Any, Dict, Optional

from config import expense_assumptions, market_assumptions
from engine.errors import ConfigurationError
from models import (
    ACCOUNT_NAMES, PRETAX_ACCOUNTS, ROTH_ACCOUNTS,
    AccountSet, Household, Person, PlannerInputs, RealEstateHolding, SpendPlan, TaxContext,
)
from utils.tax_utils import bracket_table_from_rows, get_bracket_table, get_standard_deduction
from utils.xml_loader import DEFAULT_SETUP


def _field_values(cls, source: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Pick the keys of a flat setup dict that match the dataclass's init fields
    (reflection via dataclasses.fields). Missing or None values are left to the
    dataclass defaults.
    """
    values = {}
    for f in fields(cls):
        if not f.init:
            continue
        value = source.get(prefix + f.name)
        if value is not None:
            values[f.name] = value
    return values


def _build_holding(row: Any) -> RealEstateHolding:
    if isinstance(row, RealEstateHolding):
        return row
    values = _field_values(RealEstateHolding, row)
    values.setdefault("growth_rate", expense_assumptions.home_growth_rate)
    values.setdefault("rental_income_growth_rate", expense_assumptions.rental_income_growth_rate)
    if values.get("mortgage_principal"):
        values.setdefault("mortgage_rate", expense_assumptions.mortgage_rate)
        values.setdefault("mortgage_years", expense_assumptions.mortgage_years)
    return RealEstateHolding(**values)


def get_planner_inputs(setup: Optional[Dict[str, Any]] = None, **overrides: Any) -> PlannerInputs:
    """
    Generates PlannerInputs by merging setup defaults (DEFAULT_SETUP unless a
    parsed setup dict is given) with caller overrides.

    Override keys use the same flat names as the setup file, e.g.
    annual_spend_goal=240_000 or person1_ss_amount=45_000.
    """

    # 1. Start with defaults loaded from the XML setup file
    inputs_dict = dict(DEFAULT_SETUP if setup is None else setup)

    # 2. Merge overrides; they win over any matching setup field
    inputs_dict.update(overrides)

    # 3. People
    person1 = Person(**_field_values(Person, inputs_dict, "person1_"))
    person2 = None
    if inputs_dict.get("person2_current_age") is not None:
        person2 = Person(**_field_values(Person, inputs_dict, "person2_"))

    household_values = _field_values(Household, inputs_dict)
    household_values.pop("person1", None)
    household_values.pop("person2", None)
    household = Household(person1=person1, person2=person2, **household_values)

    # 4. Accounts and spending
    account_values = _field_values(AccountSet, inputs_dict)
    for name in ACCOUNT_NAMES:
        default_rate = market_assumptions.taxable_growth_rate
        if name in PRETAX_ACCOUNTS:
            default_rate = market_assumptions.pretax_growth_rate
        elif name in ROTH_ACCOUNTS:
            default_rate = market_assumptions.roth_growth_rate
        account_values.setdefault(f"growth_rate_{name}", default_rate)
    accounts = AccountSet(**account_values)

    spend_values = _field_values(SpendPlan, inputs_dict)
    spend_values.setdefault("annual_spend_goal", expense_assumptions.annual_spend_goal)
    spend_values.setdefault("inflation_rate", expense_assumptions.inflation_rate)
    spend_plan = SpendPlan(**spend_values)

    # 5. Taxes: the bracket table follows the filing status unless given explicitly
    tax_values = _field_values(TaxContext, inputs_dict)
    tax_values.setdefault("filing_status", TaxContext.filing_status)
    try:
        if tax_values.get("bracket_table"):
            tax_values["bracket_table"] = bracket_table_from_rows(tax_values["bracket_table"])
        else:
            tax_values["bracket_table"] = get_bracket_table(tax_values["filing_status"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError([f"invalid tax brackets: {exc}"]) from exc

    if inputs_dict.get("use_standard_deduction") and "standard_deduction" not in overrides:
        tax_values["standard_deduction"] = get_standard_deduction(tax_values["filing_status"])
    tax_values.setdefault("target_bracket_rate", expense_assumptions.target_bracket_rate)
    tax_values.setdefault("state_tax_rate", expense_assumptions.state_tax_rate)
    tax_values.setdefault("previous_year_taxes", expense_assumptions.previous_year_taxes)
    tax_context = TaxContext(**tax_values)

    # 6. Real estate
    real_estate = tuple(_build_holding(row) for row in inputs_dict.get("real_estate") or ())

    return PlannerInputs(
        household=household,
        accounts=accounts,
        spend_plan=spend_plan,
        tax_context=tax_context,
        real_estate=real_estate,
    )


def get_simulation_settings(setup: Optional[Dict[str, Any]] = None, **overrides: Any) -> Dict[str, Any]:
    """Monte Carlo settings from the <simulation> section, falling back to config defaults."""
    source = dict(DEFAULT_SETUP if setup is None else setup)
    settings = {
        "volatility": source.get("simulation_volatility"),
        "num_trials": source.get("simulation_num_trials"),
        "seed": source.get("simulation_seed"),
        "strategy": source.get("simulation_strategy"),
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})

    if settings["volatility"] is None:
        settings["volatility"] = market_assumptions.default_volatility
    if settings["num_trials"] is None:
        settings["num_trials"] = market_assumptions.default_num_trials
    if settings["seed"] is None:
        settings["seed"] = market_assumptions.default_seed
    if settings["strategy"] is None:
        settings["strategy"] = "standard"
    return settings
