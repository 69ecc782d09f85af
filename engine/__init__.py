# engine/__init__.py

# Expose the simulation entry points used by app.py and callers
from .simulator import RetirementSimulation, run_scenarios, run_simulation
from .monte_carlo import MonteCarloEngine, run_ensemble

# Per-year tax bill and strategy lookup for callers composing their own runs
from .tax_engine import calculate_year_taxes, resolve_tax
from .withdrawal_engine import get_strategy
from .errors import ConfigurationError, EnsembleError, NumericTrialError, PlannerError
