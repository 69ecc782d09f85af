# engine/rmd_tables.py

"""
RMD factor lookup supporting:
- 2022+ Uniform Lifetime Table
- SECURE Act 1.0/2.0 start ages (72 → 73 → 75)
"""

from typing import Dict, Optional

# =============================================================================
# FULL 2022+ IRS UNIFORM LIFETIME TABLE (AGES 72–120)
# =============================================================================
UNIFORM_LIFETIME_TABLE_2022: Dict[int, float] = {
    72: 27.4, 73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
    78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
    84: 16.9, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
    90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
    96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4, 101: 6.0,
    102: 5.6, 103: 5.2, 104: 4.9, 105: 4.6, 106: 4.3, 107: 4.1,
    108: 3.9, 109: 3.7, 110: 3.5, 111: 3.4, 112: 3.3, 113: 3.1,
    114: 3.0, 115: 2.9, 116: 2.8, 117: 2.7, 118: 2.5, 119: 2.3,
    120: 2.0,
}


def rmd_start_age(birth_year: Optional[int]) -> int:
    """SECURE 2.0 start age; 72 when the birth year is unknown."""
    if birth_year is None:
        return 72
    if birth_year >= 1960:
        return 75
    if 1951 <= birth_year <= 1959:
        return 73
    return 72


def get_rmd_factor(age: int, birth_year: Optional[int] = None) -> float:
    """
    Returns the IRS divisor for RMD calculations.

    Parameters
    ----------
    age : int
        Age in the distribution calendar year.
    birth_year : int | None
        Used to determine SECURE Act RMD starting age.

    Returns
    -------
    float
        RMD divisor for the given age, 0.0 before the start age.
    """
    if age < rmd_start_age(birth_year):
        return 0.0

    for max_age in sorted(UNIFORM_LIFETIME_TABLE_2022.keys()):
        if age <= max_age:
            return UNIFORM_LIFETIME_TABLE_2022[max_age]

    # If they somehow exceed table bounds
    return 2.0  # IRS default for 120+


def required_minimum_distribution(balance: float, age: int, birth_year: Optional[int] = None) -> float:
    factor = get_rmd_factor(age, birth_year)
    if factor <= 0 or balance <= 0:
        return 0.0
    return balance / factor


__all__ = ["get_rmd_factor", "rmd_start_age", "required_minimum_distribution"]
