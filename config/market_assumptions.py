# =============================================================================
# Market Info used in simulations
# =============================================================================

# Mean annual return per account class (deterministic runs use these as-is)
taxable_growth_rate = 0.06
pretax_growth_rate = 0.06
roth_growth_rate = 0.06

# Monte Carlo defaults
# One market shock per year moves every account; sigma is the annual std dev
default_volatility = 0.12
default_num_trials = 1000
default_seed = None

# Named volatility regimes offered by the CLI
volatility_presets = {
    "low": 0.05,
    "moderate": 0.12,
    "high": 0.20,
    "extreme": 0.35,
}
