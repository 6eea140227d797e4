#!/usr/bin/env python3
"""
Configuration schemas for the seigniorage treasury.

Pydantic schemas for every governable treasury parameter and for the epoch
simulation. Field bounds are the setter bounds; the treasury revalidates the
whole parameter set on each change.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.expansion import SupplyTierTable
from ..core.math import ONE

DEFAULT_SUPPLY_TIERS = [
    0,
    500_000 * ONE,
    1_000_000 * ONE,
    1_500_000 * ONE,
    2_000_000 * ONE,
    5_000_000 * ONE,
    10_000_000 * ONE,
    20_000_000 * ONE,
    50_000_000 * ONE,
]
DEFAULT_MAX_EXPANSION_TIERS = [400, 300, 225, 150, 100, 75, 50, 25, 10]

MAX_PRICE_CEILING = ONE * 120 // 100
MAX_SUPPLY_EXPANSION_PERCENT_BOUNDS = (10, 1000)
MAX_PREMIUM_THRESHOLD = 150


class BondRateConfig(BaseModel):
    """Bond discount and premium parameters"""
    discount_percent: int = Field(default=0, ge=0, le=20_000, description="Discount applied to bond purchases (bps)")
    premium_percent: int = Field(default=7_000, ge=0, le=20_000, description="Share of price excess paid on redemption (bps)")
    premium_threshold: int = Field(default=110, ge=100, le=MAX_PREMIUM_THRESHOLD, description="Premium starts at peg * threshold / 100")
    max_discount_rate: int = Field(default=13 * ONE // 10, ge=0, description="Discount rate clamp, 0 disables")
    max_premium_rate: int = Field(default=13 * ONE // 10, ge=0, description="Premium rate clamp, 0 disables")


class FundAllocationConfig(BaseModel):
    """Shares of each seigniorage mint diverted before the staking pool"""
    dao_fund: Optional[str] = Field(default=None, description="DAO fund address")
    dao_fund_shared_percent: int = Field(default=0, ge=0, le=3_000, description="DAO share (bps)")
    dev_fund: Optional[str] = Field(default=None, description="Dev fund address")
    dev_fund_shared_percent: int = Field(default=0, ge=0, le=1_000, description="Dev share (bps)")
    bond_treasury: Optional[str] = Field(default=None, description="Vesting bond treasury address")
    bond_supply_expansion_percent: int = Field(default=0, ge=0, le=1_000, description="Top-up cap as a share of supply (bps)")

    @model_validator(mode="after")
    def validate_fund_addresses(self):
        """A non-zero share needs somewhere to go"""
        if self.dao_fund_shared_percent > 0 and not self.dao_fund:
            raise ValueError("dao_fund must be set when dao_fund_shared_percent > 0")
        if self.dev_fund_shared_percent > 0 and not self.dev_fund:
            raise ValueError("dev_fund must be set when dev_fund_shared_percent > 0")
        return self


class ExpansionConfig(BaseModel):
    """Supply tiers, bootstrap window and reserve rebuilding parameters"""
    supply_tiers: List[int] = Field(default_factory=lambda: list(DEFAULT_SUPPLY_TIERS))
    max_expansion_tiers: List[int] = Field(default_factory=lambda: list(DEFAULT_MAX_EXPANSION_TIERS))
    bootstrap_epochs: int = Field(default=28, ge=0, le=120, description="Epochs using the fixed bootstrap rate")
    bootstrap_supply_expansion_percent: int = Field(default=450, ge=100, le=1_000, description="Bootstrap expansion (bps)")
    bond_depletion_floor_percent: int = Field(default=10_000, ge=500, le=10_000, description="Reserve target as a share of bonds (bps)")
    seigniorage_expansion_floor_percent: int = Field(default=3_500, ge=0, le=10_000, description="Minimum share distributed while rebuilding the reserve (bps)")
    minting_factor_for_paying_debt: int = Field(default=0, ge=0, le=20_000, description="Reserve mint multiplier (bps), 0 disables")

    @field_validator("minting_factor_for_paying_debt")
    @classmethod
    def validate_minting_factor(cls, v):
        if v != 0 and v < 10_000:
            raise ValueError("minting_factor_for_paying_debt must be 0 or within [10000, 20000]")
        return v

    @model_validator(mode="after")
    def validate_tiers(self):
        SupplyTierTable(self.supply_tiers, self.max_expansion_tiers)
        return self

    @property
    def tier_table(self) -> SupplyTierTable:
        return SupplyTierTable(self.supply_tiers, self.max_expansion_tiers)


class TreasuryParameters(BaseModel):
    """Complete governable treasury configuration"""
    price_ceiling: int = Field(default=ONE * 101 // 100, ge=ONE, le=MAX_PRICE_CEILING, description="Expansion/redemption trigger price")
    max_supply_contraction_percent: int = Field(default=300, ge=10, le=1_500, description="Per-epoch bond purchase budget (bps of supply)")
    max_debt_ratio_percent: int = Field(default=3_500, ge=1_000, le=10_000, description="Maximum bonds as a share of supply (bps)")

    bonds: BondRateConfig = Field(default_factory=BondRateConfig)
    expansion: ExpansionConfig = Field(default_factory=ExpansionConfig)
    funds: FundAllocationConfig = Field(default_factory=FundAllocationConfig)


def create_default_parameters() -> TreasuryParameters:
    """Parameters a freshly initialized treasury starts with"""
    return TreasuryParameters()


class OracleFault(str, Enum):
    """Oracle failure injected into a simulated epoch"""
    UPDATE = "update"
    READ = "read"


class SimulationConfig(BaseModel):
    """Epoch simulation configuration"""
    name: str = Field(default="Seigniorage Treasury Simulation", description="Simulation name")
    epochs: int = Field(default=120, gt=0, description="Epochs to simulate")
    random_seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")
    genesis_time: int = Field(default=1_700_000_000, ge=0, description="Ledger time at deployment")
    start_delay: int = Field(default=0, ge=0, description="Seconds between deployment and program start")

    # Supply
    initial_supply: float = Field(default=1_000_000.0, gt=0, description="Circulating main token at start")
    genesis_pool_supply: float = Field(default=0.0, ge=0, description="Main token held by excluded reward pools")

    # Price model
    initial_price: float = Field(default=1.05, gt=0, description="Opening price")
    price_volatility: float = Field(default=0.03, ge=0, le=1, description="Per-epoch log price standard deviation")
    mean_reversion: float = Field(default=0.10, ge=0, le=1, description="Pull of log price toward peg per epoch")
    supply_elasticity: float = Field(default=1.0, ge=0, description="Log price response to supply growth")
    demand_drift: float = Field(default=0.004, description="Per-epoch log demand growth")
    price_shocks: Dict[int, float] = Field(default_factory=dict, description="Epoch -> multiplicative price shock")
    oracle_faults: Dict[int, OracleFault] = Field(default_factory=dict, description="Epoch -> injected oracle failure")

    # Agents
    num_bond_buyers: int = Field(default=5, ge=0)
    bond_buyer_balance: float = Field(default=20_000.0, ge=0)
    bond_buy_fraction: float = Field(default=0.25, gt=0, le=1)
    num_bond_redeemers: int = Field(default=2, ge=0)
    redeemer_bond_balance: float = Field(default=10_000.0, ge=0)
    redeemer_min_rate: float = Field(default=1.0, gt=0, description="Minimum premium rate a redeemer accepts")

    # Funds
    dao_fund_shared_percent: int = Field(default=1_500, ge=0, le=3_000)
    dev_fund_shared_percent: int = Field(default=500, ge=0, le=1_000)
    bond_treasury_allocation: float = Field(default=0.0, ge=0, description="Tokens vested to the bond treasury")
    bond_treasury_vesting_epochs: int = Field(default=120, gt=0)
    bond_supply_expansion_percent: int = Field(default=50, ge=0, le=1_000)

    @field_validator("price_shocks")
    @classmethod
    def validate_price_shocks(cls, v):
        for epoch, shock in v.items():
            if epoch < 0:
                raise ValueError(f"shock epoch must be non-negative: {epoch}")
            if shock <= -1:
                raise ValueError(f"price shock at epoch {epoch} must be greater than -100%")
        return v
