# engine/errors.py
#
# Exception taxonomy for the planner.
#   - configuration problems fail fast, before any simulated year
#   - numeric failures are isolated per Monte Carlo trial
#   - an ensemble with no surviving trial is a hard error
#
from typing import Iterable, List


class PlannerError(Exception):
    """Base class for every error raised by the planning engine."""


class ConfigurationError(PlannerError, ValueError):
    """Structurally invalid inputs. Carries every problem found, not just the first."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors) or ["invalid configuration"]
        super().__init__("; ".join(self.errors))


class NumericTrialError(PlannerError, ArithmeticError):
    """A simulation produced a NaN/inf value."""


class EnsembleError(PlannerError, RuntimeError):
    """No Monte Carlo trial completed successfully."""
