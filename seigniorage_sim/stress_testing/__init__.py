"""Scenario testing framework"""

from .scenarios import TreasuryScenario, TreasuryScenarioSuite
from .runner import ScenarioRunner

__all__ = ["TreasuryScenario", "TreasuryScenarioSuite", "ScenarioRunner"]
