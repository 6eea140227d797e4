"""Treasury and simulation configuration"""

from .config import (
    BondRateConfig, FundAllocationConfig, ExpansionConfig, TreasuryParameters,
    SimulationConfig, OracleFault, create_default_parameters
)

__all__ = [
    "BondRateConfig", "FundAllocationConfig", "ExpansionConfig", "TreasuryParameters",
    "SimulationConfig", "OracleFault", "create_default_parameters"
]
