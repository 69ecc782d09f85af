# config/expense_assumptions.py
# These are **reasonable defaults**; the setup XML or CLI can override them

# Spending
annual_spend_goal = 120_000
inflation_rate = 0.03

# Taxes owed for the year before the simulation starts (paid in year 1)
previous_year_taxes = 0.0

# Tax planning
target_bracket_rate = 0.24
state_tax_rate = 0.0

# Housing
home_growth_rate = 0.03
mortgage_rate = 0.065
mortgage_years = 30

# Rentals
rental_income_growth_rate = 0.025
