#!/usr/bin/env python3
"""
Treasury Scenario Definitions

Named market conditions the treasury is run through: launch, sustained
premium, depeg and recovery, oracle outage and a prolonged debt build-up.
"""

import logging
from typing import Any, Dict, List, Optional

from ..engine.config import OracleFault, SimulationConfig, TreasuryParameters, create_default_parameters
from ..simulation.engine import TreasurySimulationEngine

logger = logging.getLogger(__name__)


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class TreasuryScenario:
    """Individual treasury scenario"""

    def __init__(self, name: str, description: str, config_overrides: Dict[str, Any],
                 parameter_overrides: Optional[Dict[str, Any]] = None):
        self.name = name
        self.description = description
        self.config_overrides = config_overrides
        self.parameter_overrides = parameter_overrides or {}
        self.results = None

    def build_config(self, base: SimulationConfig, seed: Optional[int] = None) -> SimulationConfig:
        data = _merge(base.model_dump(), self.config_overrides)
        data["name"] = self.name
        if seed is not None:
            data["random_seed"] = seed
        return SimulationConfig.model_validate(data)

    def build_parameters(self) -> TreasuryParameters:
        data = _merge(create_default_parameters().model_dump(), self.parameter_overrides)
        return TreasuryParameters.model_validate(data)

    def run(self, base: SimulationConfig, seed: Optional[int] = None,
            epochs: Optional[int] = None) -> dict:
        """Run the scenario on a fresh deployment"""
        config = self.build_config(base, seed)
        logger.info("Running scenario %s: %s", self.name, self.description)

        engine = TreasurySimulationEngine(config, self.build_parameters())
        self.results = engine.run_simulation(epochs)
        return self.results


class TreasuryScenarioSuite:
    """Complete scenario suite for the treasury"""

    def __init__(self):
        self.scenarios = self._create_scenarios()

    def _create_scenarios(self) -> List[TreasuryScenario]:
        return [
            TreasuryScenario(
                "Bootstrap_Launch",
                "Launch above peg through the fixed-rate bootstrap window and beyond",
                {"epochs": 40, "initial_price": 1.10}
            ),
            TreasuryScenario(
                "Sustained_Premium",
                "Strong demand keeps price above the ceiling; tiered expansion only",
                {"epochs": 90, "initial_price": 1.20, "demand_drift": 0.02},
                {"expansion": {"bootstrap_epochs": 0}}
            ),
            TreasuryScenario(
                "Depeg_Recovery",
                "25% price shock after bootstrap, bonds absorb the contraction",
                {"epochs": 120, "initial_price": 1.02, "price_shocks": {35: -0.25}}
            ),
            TreasuryScenario(
                "Oracle_Outage",
                "Oracle reads fail for two epochs and updates fail for two more",
                {
                    "epochs": 60,
                    "oracle_faults": {
                        30: OracleFault.READ, 31: OracleFault.READ,
                        40: OracleFault.UPDATE, 41: OracleFault.UPDATE
                    }
                }
            ),
            TreasuryScenario(
                "Debt_Spiral",
                "Repeated shocks with falling demand push bond supply toward the debt cap",
                {
                    "epochs": 120,
                    "initial_price": 1.0,
                    "demand_drift": -0.01,
                    "num_bond_buyers": 10,
                    "price_shocks": {30: -0.30, 45: -0.20}
                },
                {"max_debt_ratio_percent": 3500, "max_supply_contraction_percent": 500}
            ),
        ]

    def get_scenario_names(self) -> List[str]:
        return [scenario.name for scenario in self.scenarios]

    def get_scenario(self, scenario_name: str) -> TreasuryScenario:
        for scenario in self.scenarios:
            if scenario.name == scenario_name:
                return scenario
        raise ValueError(f"Unknown scenario: {scenario_name}. Available: {', '.join(self.get_scenario_names())}")

    def run_scenario(self, scenario_name: str, base: Optional[SimulationConfig] = None,
                     seed: Optional[int] = None, epochs: Optional[int] = None) -> dict:
        return self.get_scenario(scenario_name).run(base or SimulationConfig(), seed, epochs)
