"""Core treasury components"""

from .math import FixedPointMath, ONE, BASIS_POINTS
from .errors import TreasuryError, PreconditionFailed, ParameterOutOfRange, OracleUnavailable
from .epoch import ChainClock, EpochClock, PERIOD
from .oracle import Oracle, PriceOracleAdapter, RefreshOutcome, SimulatedOracle
from .bonds import BondPricer
from .expansion import SupplyTierTable, SupplyExpansionPolicy
from .allocator import SeigniorageAllocator, SeigniorageAllocation, DistributionSplit
from .tokens import BasisAsset
from .masonry import Masonry, VestingFund
from .treasury import Treasury, TreasuryStatus, TreasuryEvent, EpochReport

__all__ = [
    "FixedPointMath", "ONE", "BASIS_POINTS",
    "TreasuryError", "PreconditionFailed", "ParameterOutOfRange", "OracleUnavailable",
    "ChainClock", "EpochClock", "PERIOD",
    "Oracle", "PriceOracleAdapter", "RefreshOutcome", "SimulatedOracle",
    "BondPricer", "SupplyTierTable", "SupplyExpansionPolicy",
    "SeigniorageAllocator", "SeigniorageAllocation", "DistributionSplit",
    "BasisAsset", "Masonry", "VestingFund",
    "Treasury", "TreasuryStatus", "TreasuryEvent", "EpochReport"
]
