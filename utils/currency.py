# utils/currency.py
from typing import Union

# ----------------------------------------------------------------------
# Parsing helpers for user-entered money and rates
# ----------------------------------------------------------------------

def clean_currency(val):
    """
    Cleans a currency string (e.g., "$140,000.00") into a float (140000.0).
    Also accepts a "k" / "m" suffix ("120k" -> 120000.0).
    """
    if not val:
        return 0.0

    if isinstance(val, (int, float)):
        return float(val)

    cleaned_val = str(val).replace('$', '').replace(',', '').replace(' ', '').strip().lower()
    if not cleaned_val:
        return 0.0

    multiplier = 1.0
    if cleaned_val.endswith('k'):
        multiplier, cleaned_val = 1_000.0, cleaned_val[:-1]
    elif cleaned_val.endswith('m'):
        multiplier, cleaned_val = 1_000_000.0, cleaned_val[:-1]

    try:
        return float(cleaned_val) * multiplier
    except ValueError:
        raise ValueError(f"not a currency amount: {val!r}") from None


def clean_percent(raw_input: Union[str, float, int]) -> Union[float, None]:
    """
    Cleans raw input (e.g., '0.23', '23%', '23') and converts it to a float
    where 1.0 represents 100%. Handles flexible user input.
    """
    if raw_input is None:
        return None

    if isinstance(raw_input, (float, int)):
        # If the input is a number between 1 and 100, treat it as a percentage
        # e.g., 23 -> 0.23
        if 1.0 <= float(raw_input) <= 100.0:
            return float(raw_input) / 100.0
        # Otherwise, treat it as a decimal, e.g., 0.23 -> 0.23
        return float(raw_input)

    s = str(raw_input).strip()
    if not s:
        return None

    explicit_percent = s.endswith('%')
    s = s.replace('%', '').replace(',', '').replace(' ', '').strip()

    try:
        numeric_val = float(s)
    except ValueError:
        return None

    # "0.5%" means half a percent, not 50%
    if explicit_percent or 1.0 <= numeric_val <= 100.0:
        return numeric_val / 100.0

    # Already a decimal like 0.23
    return numeric_val


def format_percent_output(value: Union[float, None], decimal_places: int = 1) -> str:
    """Formats a float (0.23) to a display string ('23.0%')."""
    if value is None:
        return ""
    value=float(value)
    return f"{value * 100:.{decimal_places}f}%"


def format_currency_output(val, decimals=0):
    """
    Formats a float/int into a clean currency string ($1,234,567.00).

    Args:
        val (float): The numerical value to format.
        decimals (int): Number of decimal places.
    """
    if val is None:
        val = 0.0
    if val < 0:
        return f"-${-val:,.{decimals}f}"
    return f"${val:,.{decimals}f}"
