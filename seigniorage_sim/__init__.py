"""
Seigniorage Treasury Simulation

Epoch-gated bond and seigniorage treasury for an algorithmically stabilized
token, with an agent-driven epoch simulator and scenario tooling.
"""

__version__ = "1.0.0"

# Core components (before engine: the config schemas import the tier table)
from .core.treasury import Treasury, TreasuryStatus, TreasuryEvent, EpochReport
from .core.epoch import ChainClock, EpochClock
from .core.oracle import Oracle, PriceOracleAdapter, RefreshOutcome, SimulatedOracle
from .core.bonds import BondPricer
from .core.expansion import SupplyTierTable, SupplyExpansionPolicy
from .core.allocator import SeigniorageAllocator
from .core.tokens import BasisAsset
from .core.masonry import Masonry, VestingFund
from .core.errors import TreasuryError, PreconditionFailed, ParameterOutOfRange, OracleUnavailable

# Configuration
from .engine.config import TreasuryParameters, SimulationConfig, create_default_parameters

# Simulation
from .simulation.engine import TreasurySimulationEngine
from .simulation.price_path import PegPriceManager

# Agents
from .agents.bond_traders import BondBuyer, BondRedeemer

# Scenarios
from .stress_testing.scenarios import TreasuryScenarioSuite
from .stress_testing.runner import ScenarioRunner

# Analysis
from .analysis.metrics import TreasuryMetricsCalculator

__all__ = [
    # Core
    "Treasury", "TreasuryStatus", "TreasuryEvent", "EpochReport",
    "ChainClock", "EpochClock",
    "Oracle", "PriceOracleAdapter", "RefreshOutcome", "SimulatedOracle",
    "BondPricer", "SupplyTierTable", "SupplyExpansionPolicy", "SeigniorageAllocator",
    "BasisAsset", "Masonry", "VestingFund",
    "TreasuryError", "PreconditionFailed", "ParameterOutOfRange", "OracleUnavailable",

    # Configuration
    "TreasuryParameters", "SimulationConfig", "create_default_parameters",

    # Simulation
    "TreasurySimulationEngine", "PegPriceManager",

    # Agents
    "BondBuyer", "BondRedeemer",

    # Scenarios
    "TreasuryScenarioSuite", "ScenarioRunner",

    # Analysis
    "TreasuryMetricsCalculator"
]
