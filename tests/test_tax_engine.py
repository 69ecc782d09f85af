import math

import numpy as np
import pytest

from engine.tax_engine import calculate_year_taxes, effective_rate, resolve_tax, year_tax_parameters
from models import TaxContext
from utils.tax_utils import get_bracket_table, index_brackets, normalize_filing_status


def test_zero_and_negative_income_owe_nothing(mfj_table):
    assert resolve_tax(0, mfj_table) == (0.10, 0.0)
    assert resolve_tax(-5_000, mfj_table) == (0.10, 0.0)


def test_income_inside_first_bracket(mfj_table):
    rate, tax = resolve_tax(10_000, mfj_table)
    assert rate == 0.10
    assert math.isclose(tax, 1_000.0)


def test_income_exactly_at_ceiling_stays_in_bracket(mfj_table):
    rate, tax = resolve_tax(24_800, mfj_table)
    assert rate == 0.10
    assert math.isclose(tax, 2_480.0)


def test_piecewise_marginal_tax(mfj_table):
    rate, tax = resolve_tax(100_000, mfj_table)
    # 10% of 24,800 plus 12% of the remaining 75,200
    assert rate == 0.12
    assert math.isclose(tax, 2_480 + 75_200 * 0.12)


def test_top_bracket_is_unbounded(mfj_table):
    rate, tax = resolve_tax(2_000_000, mfj_table)
    assert rate == 0.37
    assert tax > 0.30 * 2_000_000


def test_tax_is_monotone_in_income(mfj_table):
    incomes = np.linspace(0, 1_000_000, 101)
    taxes = [resolve_tax(x, mfj_table)[1] for x in incomes]
    assert all(b >= a for a, b in zip(taxes, taxes[1:]))


def test_effective_rate_below_marginal(mfj_table):
    assert effective_rate(0, mfj_table) == 0.0
    assert effective_rate(100_000, mfj_table) < 0.12


def test_year_taxes_include_gains_and_state(mfj_table):
    ctx = TaxContext(bracket_table=mfj_table, state_tax_rate=0.05, capital_gains_rate=0.15)
    bill = calculate_year_taxes(
        ordinary_income=100_000, realized_gains=20_000, tax_context=ctx, bracket_table=mfj_table
    )
    assert math.isclose(bill.federal_ordinary, 2_480 + 75_200 * 0.12)
    assert math.isclose(bill.capital_gains_tax, 3_000.0)
    assert math.isclose(bill.state_tax, 0.05 * 120_000)
    assert math.isclose(bill.total, bill.federal_tax + bill.state_tax)


def test_deduction_reduces_taxable_income(mfj_table):
    ctx = TaxContext(bracket_table=mfj_table)
    bill = calculate_year_taxes(50_000, 0.0, ctx, mfj_table, deduction=30_000)
    assert bill.taxable_ordinary_income == 20_000
    assert math.isclose(bill.federal_ordinary, 2_000.0)


def test_indexed_brackets_scale_finite_ceilings(mfj_table):
    indexed = index_brackets(mfj_table, 1.5)
    assert indexed[0] == (0.10, 24_800 * 1.5)
    assert indexed[-1][1] == np.inf

    ctx = TaxContext(bracket_table=mfj_table, index_brackets=True, standard_deduction=10_000)
    table, deduction = year_tax_parameters(ctx, 1.5)
    assert table == indexed
    assert deduction == 15_000


def test_filing_status_aliases():
    assert normalize_filing_status("MFJ") == "married_filing_jointly"
    assert get_bracket_table("hoh")[0] == (0.10, 18_600)
    with pytest.raises(KeyError):
        get_bracket_table("widowed_with_cat")
