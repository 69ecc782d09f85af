# utils/tax_utils.py
import numpy as np
from typing import List, Tuple, Dict, Literal

# Define the acceptable set of filing statuses for type hinting
TaxFilingStatus = Literal["single", "married_filing_jointly", "married_separate", "head_of_household"]
BASE_YEAR = 2026 # Base year for all estimated Federal constants

# A bracket table is an ordered list of (rate, income ceiling) pairs.
# Ceilings are strictly increasing and the last one is always +inf.
BracketTable = List[Tuple[float, float]]

# =============================================================================
# 1. Federal Ordinary Income Tax Brackets (2026 Estimated)
# =============================================================================

ORDINARY_BRACKETS_2026: Dict[TaxFilingStatus, BracketTable] = {
    "married_filing_jointly": [
        (0.10, 24_800), (0.12, 100_800), (0.22, 211_400), (0.24, 403_550),
        (0.32, 512_450), (0.35, 768_700), (0.37, np.inf),
    ],
    "single": [
        (0.10, 12_400), (0.12, 50_400), (0.22, 110_650), (0.24, 196_150),
        (0.32, 250_000), (0.35, 622_050), (0.37, np.inf),
    ],
    "head_of_household": [
        (0.10, 18_600), (0.12, 72_000), (0.22, 148_000), (0.24, 258_000),
        (0.32, 321_450), (0.35, 622_050), (0.37, np.inf),
    ],
    "married_separate": [
        (0.10, 12_400), (0.12, 50_400), (0.22, 105_700), (0.24, 201_775),
        (0.32, 256_225), (0.35, 384_350), (0.37, np.inf),
    ],
}

# =============================================================================
# 2. Federal Deduction (Indexed)
# =============================================================================
STANDARD_DEDUCTION_2026: Dict[TaxFilingStatus, float] = {
    "single": 15050,
    "married_filing_jointly": 30100,
    "married_separate": 15050,
    "head_of_household": 22600,
}

# =============================================================================
# 3. Fixed / Non-Indexed Parameters
# =============================================================================

# Share of Social Security benefits treated as ordinary income (upper statutory tier)
SS_TAXABLE_FRACTION = 0.85

# Flat rate applied to realized gains on taxable-account sales
DEFAULT_CAPITAL_GAINS_RATE = 0.15

FILING_STATUSES = tuple(ORDINARY_BRACKETS_2026.keys())


# =============================================================================
# 4. Core Utility Functions
# =============================================================================

def normalize_filing_status(filing_status: str) -> str:
    """Map loose spellings ('mfj', 'married_joint', 'Single') onto the table keys."""
    key = str(filing_status or "").strip().lower().replace("-", "_").replace(" ", "_")
    aliases = {
        "mfj": "married_filing_jointly",
        "married_joint": "married_filing_jointly",
        "married": "married_filing_jointly",
        "mfs": "married_separate",
        "married_filing_separately": "married_separate",
        "hoh": "head_of_household",
    }
    return aliases.get(key, key)


def get_bracket_table(filing_status: str) -> BracketTable:
    """Return a copy of the base ordinary-income bracket table for a filing status."""
    status = normalize_filing_status(filing_status)
    if status not in ORDINARY_BRACKETS_2026:
        raise KeyError(f"No bracket table for filing status '{filing_status}'")
    return list(ORDINARY_BRACKETS_2026[status])


def get_standard_deduction(filing_status: str) -> float:
    return STANDARD_DEDUCTION_2026.get(normalize_filing_status(filing_status), 0.0)


def index_brackets(bracket_table: BracketTable, inflation_factor: float) -> BracketTable:
    """Scale every finite ceiling by the cumulative inflation factor."""
    if inflation_factor == 1.0:
        return list(bracket_table)
    return [
        (rate, ceiling * inflation_factor if np.isfinite(ceiling) else np.inf)
        for rate, ceiling in bracket_table
    ]


def bracket_table_from_rows(rows) -> BracketTable:
    """
    Build a bracket table from loosely typed rows, e.g. parsed from XML:
    [("0.10", "24800"), ("0.37", "inf")] or [{"rate": .., "ceiling": ..}, ...].
    A missing/blank/'inf' ceiling becomes +inf.
    """
    table: BracketTable = []
    for row in rows:
        if isinstance(row, dict):
            rate, ceiling = row.get("rate"), row.get("ceiling")
        else:
            rate, ceiling = row
        if ceiling is None or str(ceiling).strip().lower() in ("", "inf", "infinity", "none"):
            ceiling = np.inf
        table.append((float(rate), float(ceiling)))
    return table
