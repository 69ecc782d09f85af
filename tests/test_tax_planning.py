import math

from engine.roth_optimizer import optimal_roth_conversion
from engine.tax_planning import get_target_bracket_ceiling, size_withdrawal


def test_target_ceiling_exact_match(mfj_table):
    assert get_target_bracket_ceiling(mfj_table, 0.24) == 403_550


def test_target_ceiling_between_rates_uses_lower_bracket(mfj_table):
    assert get_target_bracket_ceiling(mfj_table, 0.25) == 403_550
    assert get_target_bracket_ceiling(mfj_table, 0.05) == 0.0


def test_no_need_means_no_draw(mfj_table):
    plan = size_withdrawal(0, 50_000, 403_550, mfj_table)
    assert plan.ordinary_withdrawal == 0 and plan.preferred_withdrawal == 0
    plan = size_withdrawal(-10_000, 50_000, 403_550, mfj_table)
    assert plan.total == 0


def test_need_within_headroom_is_all_ordinary(mfj_table):
    plan = size_withdrawal(80_000, 100_000, 403_550, mfj_table)
    assert plan.ordinary_withdrawal == 80_000
    assert plan.preferred_withdrawal == 0


def test_need_beyond_headroom_spills_to_preferred(mfj_table):
    plan = size_withdrawal(50_000, 390_000, 403_550, mfj_table)
    assert math.isclose(plan.ordinary_withdrawal, 13_550)
    assert math.isclose(plan.preferred_withdrawal, 36_450)
    assert math.isclose(plan.total, 50_000)


def test_income_above_ceiling_leaves_no_headroom(mfj_table):
    plan = size_withdrawal(40_000, 500_000, 403_550, mfj_table)
    assert plan.ordinary_withdrawal == 0
    assert plan.preferred_withdrawal == 40_000


def test_roth_conversion_fills_bracket_proportionally():
    conversions = optimal_roth_conversion(
        taxable_income=100_000,
        target_bracket_ceiling=130_000,
        pretax_balances={"pretax_p1": 300_000, "pretax_p2": 100_000},
    )
    assert math.isclose(conversions["pretax_p1"], 22_500)
    assert math.isclose(conversions["pretax_p2"], 7_500)


def test_roth_conversion_capped_by_balance():
    conversions = optimal_roth_conversion(0, 100_000, {"pretax_p1": 10_000, "pretax_p2": 0.0})
    assert conversions == {"pretax_p1": 10_000, "pretax_p2": 0.0}


def test_no_conversion_above_ceiling():
    conversions = optimal_roth_conversion(150_000, 100_000, {"pretax_p1": 10_000, "pretax_p2": 5_000})
    assert conversions == {"pretax_p1": 0.0, "pretax_p2": 0.0}


def test_top_bracket_target_converts_nothing():
    conversions = optimal_roth_conversion(50_000, math.inf, {"pretax_p1": 1_442_400, "pretax_p2": 961_600})
    assert conversions == {"pretax_p1": 0.0, "pretax_p2": 0.0}
