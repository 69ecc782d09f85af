from dataclasses import replace

import pytest

from engine.errors import ConfigurationError
from models import RealEstateHolding
from utils.currency import clean_currency, clean_percent, format_currency_output, format_percent_output
from utils.input_adapter import get_planner_inputs, get_simulation_settings
from utils.xml_loader import DEFAULT_SETUP, parse_setup_xml, parse_setup_xml_content, try_cast
from utils.xml_writer import create_setup_xml
from utils.tax_utils import get_standard_deduction


def test_default_setup_is_the_reference_household():
    assert DEFAULT_SETUP["person1_current_age"] == 65
    assert DEFAULT_SETUP["person2_current_age"] == 63
    assert DEFAULT_SETUP["basis_ratio"] == 0.75
    assert DEFAULT_SETUP["apply_rmds"] is True

    inputs = get_planner_inputs()
    assert inputs.household.num_years == 31
    assert inputs.accounts.taxable == 700_000
    assert inputs.accounts.pretax_p1 + inputs.accounts.pretax_p2 == 2_500_000
    assert inputs.accounts.roth_p1 + inputs.accounts.roth_p2 == 120_000
    assert inputs.spend_plan.annual_spend_goal == 120_000
    assert inputs.tax_context.target_bracket_rate == 0.24
    assert inputs.tax_context.bracket_table[3] == (0.24, 403_550)


def test_overrides_win_over_setup():
    inputs = get_planner_inputs(annual_spend_goal=240_000, person1_ss_amount=45_000, filing_status="single")
    assert inputs.spend_plan.annual_spend_goal == 240_000
    assert inputs.household.person1.ss_amount == 45_000
    assert inputs.tax_context.bracket_table[0] == (0.10, 12_400)


def test_standard_deduction_option():
    inputs = get_planner_inputs(use_standard_deduction=True)
    assert inputs.tax_context.standard_deduction == get_standard_deduction("married_filing_jointly")


def test_unknown_filing_status_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        get_planner_inputs(filing_status="sovereign")


def test_setup_xml_round_trip():
    inputs = get_planner_inputs()
    inputs = replace(
        inputs,
        real_estate=(
            RealEstateHolding(name="Home", value=650_000, growth_rate=0.03,
                              mortgage_principal=180_000, mortgage_rate=0.055, mortgage_years=15),
            RealEstateHolding(name="Cabin", value=250_000, rental_income=18_000,
                              rental_income_growth_rate=0.02, is_rental=True),
        ),
    )
    xml_text = create_setup_xml(inputs, simulation={"volatility": 0.2, "num_trials": 500, "seed": 7})

    setup = parse_setup_xml_content(xml_text)
    assert get_planner_inputs(setup) == inputs

    settings = get_simulation_settings(setup)
    assert settings == {"volatility": 0.2, "num_trials": 500, "seed": 7, "strategy": "standard"}


def test_setup_xml_file_round_trip(tmp_path):
    inputs = get_planner_inputs(person2_current_age=None, roth_conversions=True)
    assert inputs.household.person2 is None

    path = tmp_path / "setup.xml"
    path.write_text(create_setup_xml(inputs), encoding="utf-8")
    assert get_planner_inputs(parse_setup_xml(path)) == inputs


def test_try_cast():
    assert try_cast(" 42 ") == 42
    assert try_cast("0.06") == 0.06
    assert try_cast("inf") == float("inf")
    assert try_cast("TRUE") is True
    assert try_cast("married_filing_jointly") == "married_filing_jointly"
    assert try_cast("None") is None


def test_currency_helpers():
    assert clean_currency("$140,000.00") == 140_000.0
    assert clean_currency("120k") == 120_000.0
    assert clean_currency("") == 0.0
    with pytest.raises(ValueError):
        clean_currency("lots")
    assert clean_percent("24%") == 0.24
    assert clean_percent("0.5%") == 0.005
    assert clean_percent(3) == 0.03
    assert clean_percent("0.12") == 0.12
    assert format_currency_output(1_234_567.891) == "$1,234,568"
    assert format_currency_output(-500) == "-$500"
    assert format_percent_output(0.234) == "23.4%"


def test_filing_status_lives_on_the_tax_context():
    inputs = get_planner_inputs(filing_status="single")
    assert not hasattr(inputs.household, "filing_status")
    assert inputs.tax_context.filing_status == "single"

    restored = get_planner_inputs(parse_setup_xml_content(create_setup_xml(inputs)))
    assert restored.tax_context.filing_status == "single"
    assert restored.tax_context.bracket_table == inputs.tax_context.bracket_table
