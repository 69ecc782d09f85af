# engine/scenario_store.py
#
# In-memory store of named what-if scenarios, each holding the inputs and the
# result they produced. Capacity is small on purpose: it backs side-by-side
# comparison of a handful of saved plans.
#

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional

from engine.errors import PlannerError
from models import PlannerInputs

logger = logging.getLogger(__name__)

MAX_SCENARIOS = 5
MAX_SELECTED = 3


class ScenarioStoreFull(PlannerError):
    """Raised when saving a new scenario name into a full store."""


@dataclass(frozen=True)
class SavedScenario:
    name: str
    inputs: PlannerInputs
    result: Any = None


class ScenarioStore:
    def __init__(self, max_scenarios: int = MAX_SCENARIOS, max_selected: int = MAX_SELECTED):
        self.max_scenarios = max_scenarios
        self.max_selected = max_selected
        self._scenarios: "OrderedDict[str, SavedScenario]" = OrderedDict()
        self._selected: List[str] = []

    def __len__(self) -> int:
        return len(self._scenarios)

    def __contains__(self, name: str) -> bool:
        return name in self._scenarios

    def save(self, name: str, inputs: PlannerInputs, result: Any = None) -> SavedScenario:
        """Save or overwrite a scenario. Overwriting an existing name never counts against capacity."""
        name = name.strip()
        if not name:
            raise ValueError("scenario name must not be empty")
        if name not in self._scenarios and len(self._scenarios) >= self.max_scenarios:
            raise ScenarioStoreFull(
                f"cannot save '{name}': store already holds {self.max_scenarios} scenarios"
            )

        scenario = SavedScenario(name=name, inputs=inputs, result=result)
        self._scenarios[name] = scenario
        logger.info("Saved scenario '%s' (%d/%d)", name, len(self._scenarios), self.max_scenarios)
        return scenario

    def get(self, name: str) -> Optional[SavedScenario]:
        return self._scenarios.get(name)

    def delete(self, name: str) -> bool:
        if name not in self._scenarios:
            return False
        del self._scenarios[name]
        if name in self._selected:
            self._selected.remove(name)
        return True

    def names(self) -> List[str]:
        return list(self._scenarios.keys())

    def toggle_selection(self, name: str) -> bool:
        """
        Flip a scenario in or out of the comparison set.

        Returns:
            True if the scenario is selected afterwards. Selecting beyond the
            limit leaves the selection unchanged and returns False.
        """
        if name not in self._scenarios:
            raise KeyError(f"unknown scenario: {name}")
        if name in self._selected:
            self._selected.remove(name)
            return False
        if len(self._selected) >= self.max_selected:
            return False
        self._selected.append(name)
        return True

    def selected(self) -> List[SavedScenario]:
        return [self._scenarios[name] for name in self._selected]

    def clear_selection(self) -> None:
        self._selected.clear()
