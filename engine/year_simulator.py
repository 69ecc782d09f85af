# engine/year_simulator.py

import logging
from typing import Dict, Mapping, Optional

from engine.income_calculator import calculate_business_income, calculate_person_income, calculate_rmd
from engine.ledger import AccountLedger
from engine.real_estate import RealEstatePortfolio
from engine.roth_optimizer import optimal_roth_conversion
from engine.tax_engine import calculate_year_taxes, year_tax_parameters
from engine.tax_planning import get_target_bracket_ceiling, size_withdrawal
from engine.withdrawal_engine import WithdrawalStrategy
from models import PRETAX_ACCOUNTS, PlannerInputs, YearResult

logger = logging.getLogger(__name__)

# Unfunded amounts below half a cent are float noise from proportional splits
SHORTFALL_EPSILON = 0.005


class YearSimulator:
    """
    Runs one simulated year as a fixed pipeline:
    income -> spend target -> size draw -> allocate draw -> tax -> growth -> emit.
    """

    def __init__(self, inputs: PlannerInputs, strategy: WithdrawalStrategy):
        self.inputs = inputs
        self.strategy = strategy

        self.household = inputs.household
        self.person1 = inputs.household.person1
        self.person2 = inputs.household.person2
        self.tax_context = inputs.tax_context
        self.spend_plan = inputs.spend_plan
        self.basis_ratio = inputs.accounts.basis_ratio

    def _withdraw_all(self, ledger: AccountLedger, draws: Mapping[str, float], taken: Dict[str, float]) -> float:
        total = 0.0
        for account, amount in draws.items():
            actual = ledger.withdraw(account, amount)
            taken[account] = taken.get(account, 0.0) + actual
            total += actual
        return total

    def simulate_year(
        self,
        year_index: int,
        ledger: AccountLedger,
        real_estate: RealEstatePortfolio,
        previous_taxes: float,
        returns: Mapping[str, float],
    ) -> YearResult:
        t = year_index
        current_year = self.household.start_year + t
        p1_age = self.person1.current_age + t
        p2_age: Optional[int] = self.person2.current_age + t if self.person2 is not None else None
        inflation_index = (1 + self.spend_plan.inflation_rate) ** t

        # =========================================================================
        # --- STEP 1: GUARANTEED INCOME AND RMDs ---
        # =========================================================================
        income_p1 = calculate_person_income(self.person1, p1_age, inflation_index)
        income_p2 = calculate_person_income(self.person2, p2_age, inflation_index)
        business_income = calculate_business_income(self.household, p1_age, inflation_index)
        property_year = real_estate.advance(t)
        rental_income = property_year.rental_income

        rmd_p1 = rmd_p2 = 0.0
        if self.tax_context.apply_rmds:
            rmd_p1 = ledger.withdraw(
                "pretax_p1",
                calculate_rmd(self.person1, p1_age, self.household.start_year, ledger.balance("pretax_p1")),
            )
            rmd_p2 = ledger.withdraw(
                "pretax_p2",
                calculate_rmd(self.person2, p2_age, self.household.start_year, ledger.balance("pretax_p2")),
            )
        rmd_total = rmd_p1 + rmd_p2

        total_income = income_p1.total + income_p2.total + business_income + rental_income + rmd_total
        guaranteed_ordinary = income_p1.ordinary + income_p2.ordinary + business_income + rental_income + rmd_total

        # =========================================================================
        # --- STEP 2: SPEND TARGET AND NET CASH NEED ---
        # --- Last year's tax bill is paid out of this year's cash
        # =========================================================================
        spend_goal = self.spend_plan.goal_for_year(t)
        mortgage_payment = property_year.mortgage_payment
        raw_need = spend_goal + mortgage_payment + previous_taxes - total_income
        cash_need = max(0.0, raw_need)

        if raw_need < 0 and rmd_total > 0:
            # Required distributions nobody needed to spend move to the brokerage account
            ledger.deposit("taxable", min(-raw_need, rmd_total))

        # =========================================================================
        # --- STEP 3: SIZE THE DRAW AGAINST THE TARGET BRACKET ---
        # =========================================================================
        bracket_table, deduction = year_tax_parameters(self.tax_context, inflation_index)
        target_ceiling = get_target_bracket_ceiling(bracket_table, self.tax_context.target_bracket_rate)
        guaranteed_taxable = max(0.0, guaranteed_ordinary - deduction)

        plan = size_withdrawal(cash_need, guaranteed_taxable, target_ceiling, bracket_table)

        # =========================================================================
        # --- STEP 4: ALLOCATE ACROSS ACCOUNTS ---
        # =========================================================================
        taken: Dict[str, float] = {}

        ordinary_draws = self.strategy.allocate_ordinary(plan.ordinary_withdrawal, ledger.balances())
        ordinary_taken = self._withdraw_all(ledger, ordinary_draws, taken)

        # Bracket room the pre-tax accounts could not fill falls to tax-preferred money
        preferred_target = plan.preferred_withdrawal + (plan.ordinary_withdrawal - ordinary_taken)
        preferred_draws = self.strategy.allocate(preferred_target, ledger.balances())
        withdrawn = ordinary_taken + self._withdraw_all(ledger, preferred_draws, taken)

        remaining = cash_need - withdrawn
        if remaining > SHORTFALL_EPSILON:
            # Last resort: pre-tax money above the target bracket
            last_resort = self.strategy.allocate_ordinary(remaining, ledger.balances())
            withdrawn += self._withdraw_all(ledger, last_resort, taken)

        shortfall = cash_need - withdrawn
        if shortfall <= SHORTFALL_EPSILON:
            shortfall = 0.0

        # =========================================================================
        # --- STEP 5: OPTIONAL ROTH CONVERSIONS ---
        # =========================================================================
        wd_pretax_total = taken.get("pretax_p1", 0.0) + taken.get("pretax_p2", 0.0)
        conv_p1 = conv_p2 = 0.0
        if self.tax_context.roth_conversions:
            taxable_so_far = max(0.0, guaranteed_ordinary + wd_pretax_total - deduction)
            conversions = optimal_roth_conversion(
                taxable_income=taxable_so_far,
                target_bracket_ceiling=target_ceiling,
                pretax_balances={name: ledger.balance(name) for name in PRETAX_ACCOUNTS},
            )
            conv_p1 = ledger.transfer("pretax_p1", "roth_p1", conversions["pretax_p1"])
            conv_p2 = ledger.transfer("pretax_p2", "roth_p2", conversions["pretax_p2"])

        # =========================================================================
        # --- STEP 6: TAXES (paid next year) ---
        # =========================================================================
        wd_taxable = taken.get("taxable", 0.0)
        ordinary_income = guaranteed_ordinary + wd_pretax_total + conv_p1 + conv_p2
        capital_gains = wd_taxable * (1 - self.basis_ratio)
        bill = calculate_year_taxes(
            ordinary_income=ordinary_income,
            realized_gains=capital_gains,
            tax_context=self.tax_context,
            bracket_table=bracket_table,
            deduction=deduction,
        )

        # =========================================================================
        # --- STEP 7: GROWTH (withdraw-then-grow) ---
        # =========================================================================
        ledger.apply_growth(returns)
        balances = ledger.balances()
        net_worth = ledger.net_worth()

        logger.debug(
            "Year %d (P1 %d): need %.0f withdrawn %.0f shortfall %.0f tax %.0f net worth %.0f",
            current_year, p1_age, cash_need, withdrawn, shortfall, bill.total, net_worth,
        )

        # =========================================================================
        # --- STEP 8: EMIT ---
        # =========================================================================
        return YearResult(
            year_index=t,
            year=current_year,
            p1_age=p1_age,
            p2_age=p2_age,
            employment_p1=income_p1.employment,
            employment_p2=income_p2.employment,
            ss_p1=income_p1.social_security,
            ss_p2=income_p2.social_security,
            pension_p1=income_p1.pension,
            pension_p2=income_p2.pension,
            rmd_p1=rmd_p1,
            rmd_p2=rmd_p2,
            rental_income=rental_income,
            business_income=business_income,
            total_income=total_income,
            spend_goal=spend_goal,
            mortgage_payment=mortgage_payment,
            previous_taxes=previous_taxes,
            cash_need=cash_need,
            wd_taxable=wd_taxable,
            wd_pretax_p1=taken.get("pretax_p1", 0.0),
            wd_pretax_p2=taken.get("pretax_p2", 0.0),
            wd_roth_p1=taken.get("roth_p1", 0.0),
            wd_roth_p2=taken.get("roth_p2", 0.0),
            conv_p1=conv_p1,
            conv_p2=conv_p2,
            ordinary_income=ordinary_income,
            capital_gains=capital_gains,
            federal_tax=bill.federal_tax,
            state_tax=bill.state_tax,
            tax_bill=bill.total,
            marginal_rate=bill.marginal_rate,
            bal_taxable=balances["taxable"],
            bal_pretax_p1=balances["pretax_p1"],
            bal_pretax_p2=balances["pretax_p2"],
            bal_roth_p1=balances["roth_p1"],
            bal_roth_p2=balances["roth_p2"],
            net_worth=net_worth,
            home_value=property_year.primary.property_value,
            home_equity=property_year.primary.equity,
            mortgage_liability=property_year.primary.mortgage_balance,
            rental_home_value=property_year.rental.property_value,
            rental_home_equity=property_year.rental.equity,
            rental_mortgage_liability=property_year.rental.mortgage_balance,
            total_home_equity=property_year.equity,
            market_return=sum(returns.values()) / len(returns) if returns else 0.0,
            shortfall=shortfall,
        )
