from dataclasses import replace

import numpy as np
import pytest

from engine.errors import ConfigurationError
from engine.simulator import run_simulation
from engine.validation import check_bracket_table, collect_errors, validate_inputs
from models import Person, RealEstateHolding


def test_reference_household_is_valid(household_inputs):
    assert collect_errors(household_inputs) == []
    assert validate_inputs(household_inputs) is household_inputs


def test_bracket_table_checks():
    assert check_bracket_table([]) == ["bracket table is empty"]
    errors = check_bracket_table([(0.10, 50_000), (0.20, 40_000)])
    assert any("strictly increasing" in e for e in errors)
    assert any("infinite" in e for e in errors)
    assert check_bracket_table([(0.10, 10_000), (1.5, np.inf)]) != []


def test_every_problem_is_reported_together(household_inputs):
    bad = replace(
        household_inputs,
        household=replace(household_inputs.household, person1=Person(current_age=70, retirement_age=65, ss_start_age=72)),
        accounts=replace(household_inputs.accounts, taxable=-1.0, basis_ratio=1.5),
        tax_context=replace(household_inputs.tax_context, target_bracket_rate=2.0),
    )
    with pytest.raises(ConfigurationError) as exc_info:
        validate_inputs(bad)

    errors = exc_info.value.errors
    assert len(errors) >= 5
    assert any("retirement age" in e for e in errors)
    assert any("Social Security" in e for e in errors)
    assert any("taxable balance" in e for e in errors)
    assert any("basis ratio" in e for e in errors)
    assert any("target_bracket_rate" in e for e in errors)


def test_zero_term_mortgage_is_rejected(household_inputs):
    bad = replace(
        household_inputs,
        real_estate=(RealEstateHolding(name="Home", value=500_000, mortgage_principal=200_000, mortgage_rate=0.05),),
    )
    with pytest.raises(ConfigurationError, match="mortgage term"):
        run_simulation(bad)


def test_configuration_error_is_a_value_error(household_inputs):
    bad = replace(household_inputs, spend_plan=replace(household_inputs.spend_plan, annual_spend_goal=float("nan")))
    with pytest.raises(ValueError):
        run_simulation(bad)
