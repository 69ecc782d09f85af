# market_generator.py
#
# This code generates annual market returns for Monte Carlo trials.
# One market factor drives every account class in a given year; years are
# independent (no serial correlation). Correlated asset classes are not modeled.
#

from typing import Dict, List, Mapping, Optional

import numpy as np
from numpy.typing import NDArray

# A year can lose at most everything
MIN_ANNUAL_RETURN = -1.0


def generate_market_shocks(
    num_trials: int,
    num_years: int,
    seed: Optional[int] = None,
) -> NDArray[np.float64]:
    """
    Draw standard-normal market shocks.

    Args:
        num_trials: The number of Monte Carlo trials.
        num_years: The number of simulated years per trial.
        seed: Seed for numpy's default generator; None draws fresh entropy.

    Returns:
        A 2D numpy array [num_trials, num_years].
    """
    rng = np.random.default_rng(seed)
    return rng.standard_normal((num_trials, num_years))


def generate_return_sequences(
    growth_rates: Mapping[str, float],
    volatility: float,
    num_years: int,
    num_trials: int,
    seed: Optional[int] = None,
) -> List[List[Dict[str, float]]]:
    """
    Generate per-trial, per-year, per-account annual returns.

    Each account earns its configured mean plus the same scaled shock that
    year: r = mean + volatility * z, z ~ N(0, 1). With volatility 0 every
    trial reproduces the deterministic growth rates exactly.

    Args:
        growth_rates: Mean annual return by account name.
        volatility: Standard deviation of the annual return.
        num_years: Years per trial.
        num_trials: Number of trials.
        seed: Seed for reproducible ensembles.

    Returns:
        sequences[trial][year] -> {account: return}
    """
    if volatility == 0:
        base = {name: float(rate) for name, rate in growth_rates.items()}
        return [[dict(base) for _ in range(num_years)] for _ in range(num_trials)]

    shocks = generate_market_shocks(num_trials, num_years, seed) * volatility

    names = list(growth_rates.keys())
    means = np.array([growth_rates[n] for n in names], dtype=float)

    # [trial, year, account]
    returns = np.maximum(means[None, None, :] + shocks[:, :, None], MIN_ANNUAL_RETURN)

    return [
        [dict(zip(names, returns[i, y].tolist())) for y in range(num_years)]
        for i in range(num_trials)
    ]
