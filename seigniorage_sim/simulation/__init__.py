"""Epoch simulation of the treasury"""

from .engine import TreasurySimulationEngine
from .price_path import PegPriceManager
from .state import SimulationState

__all__ = ["TreasurySimulationEngine", "PegPriceManager", "SimulationState"]
