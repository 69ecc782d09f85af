import math

from engine.income_calculator import NO_INCOME, calculate_business_income, calculate_person_income, calculate_rmd
from engine.real_estate import RealEstatePortfolio, annual_mortgage_payment
from engine.rmd_tables import get_rmd_factor, required_minimum_distribution, rmd_start_age
from models import Household, Person, RealEstateHolding

WORKER = Person(
    current_age=64,
    retirement_age=66,
    employment_income=50_000,
    ss_amount=30_000,
    ss_start_age=67,
    pension_amount=20_000,
    pension_start_age=65,
)


def test_salary_and_pension_before_social_security():
    income = calculate_person_income(WORKER, 65, inflation_index=1.1)
    assert math.isclose(income.employment, 55_000)
    assert income.social_security == 0
    # No COLA on the pension by default
    assert income.pension == 20_000
    assert math.isclose(income.ordinary, 75_000)


def test_social_security_is_85_percent_taxable():
    income = calculate_person_income(WORKER, 67, inflation_index=1.2)
    assert income.employment == 0
    assert math.isclose(income.social_security, 36_000)
    assert math.isclose(income.total, 56_000)
    assert math.isclose(income.ordinary, 20_000 + 0.85 * 36_000)


def test_missing_second_person_has_no_income():
    assert calculate_person_income(None, None, 1.0) is NO_INCOME
    assert calculate_rmd(None, None, 2026, 500_000) == 0.0


def test_business_income_stops_at_age():
    household = Household(person1=WORKER, business_income=10_000, business_income_until_age=70, start_year=2026)
    assert math.isclose(calculate_business_income(household, 65, 1.05), 10_500)
    assert calculate_business_income(household, 70, 1.05) == 0.0


def test_rmd_start_ages():
    assert rmd_start_age(1950) == 72
    assert rmd_start_age(1955) == 73
    assert rmd_start_age(1962) == 75
    assert get_rmd_factor(74, 1960) == 0.0
    assert get_rmd_factor(74, 1955) == 25.5


def test_required_minimum_distribution():
    assert math.isclose(required_minimum_distribution(265_000, 73, 1955), 10_000)
    assert required_minimum_distribution(0, 80, 1940) == 0.0

    retiree = Person(current_age=73, retirement_age=74)
    # Born 1953 when the simulation starts in 2026
    assert math.isclose(calculate_rmd(retiree, 73, 2026, 265_000), 10_000)


def test_mortgage_payment():
    assert annual_mortgage_payment(100_000, 0.0, 10) == 10_000
    assert math.isclose(annual_mortgage_payment(100_000, 0.05, 30), 6_505.14, abs_tol=0.01)
    assert annual_mortgage_payment(0, 0.05, 30) == 0.0


def test_mortgage_is_paid_off_after_term():
    portfolio = RealEstatePortfolio([
        RealEstateHolding(name="Home", value=400_000, growth_rate=0.0,
                          mortgage_principal=100_000, mortgage_rate=0.0, mortgage_years=10),
    ])
    years = [portfolio.advance(t) for t in range(12)]
    assert all(y.mortgage_payment == 10_000 for y in years[:10])
    assert years[9].mortgage_balance == 0.0
    assert years[10].mortgage_payment == 0.0
    assert years[11].equity == 400_000


def test_rental_income_grows():
    portfolio = RealEstatePortfolio([
        RealEstateHolding(name="Duplex", value=300_000, rental_income=12_000,
                          rental_income_growth_rate=0.02, is_rental=True),
    ])
    incomes = [portfolio.advance(t).rental_income for t in range(3)]
    assert math.isclose(incomes[2], 12_000 * 1.02 ** 2)


def test_primary_and_rental_holdings_are_reported_apart():
    portfolio = RealEstatePortfolio([
        RealEstateHolding(name="Home", value=500_000, growth_rate=0.0,
                          mortgage_principal=50_000, mortgage_rate=0.0, mortgage_years=5),
        RealEstateHolding(name="Duplex", value=300_000, growth_rate=0.0, rental_income=12_000,
                          mortgage_principal=100_000, mortgage_rate=0.0, mortgage_years=10, is_rental=True),
    ])
    year = portfolio.advance(0)

    assert year.primary.property_value == 500_000
    assert year.primary.mortgage_balance == 40_000
    assert year.rental.property_value == 300_000
    assert year.rental.mortgage_balance == 90_000
    assert year.rental.rental_income == 12_000
    assert year.equity == 460_000 + 210_000
    assert year.mortgage_payment == 20_000
