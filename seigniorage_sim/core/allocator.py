#!/usr/bin/env python3
"""
Seigniorage Allocation

Computes how much new supply an epoch mints when price is above the ceiling,
how much of it rebuilds the bond reserve, and how the distributed part fans
out to the dao fund, the dev fund and the staking pool.
"""

from dataclasses import dataclass

from .expansion import SupplyExpansionPolicy
from .math import FixedPointMath, ONE, TOKEN_PRICE_ONE


@dataclass(frozen=True)
class SeigniorageAllocation:
    """Expansion plan for one epoch"""
    price_excess: int           # price - peg
    max_expansion_percent: int  # tier value in basis points
    capped_excess: int          # min(price_excess, tier cap)
    gross_mint: int
    to_distribution: int
    to_reserve: int
    reserve_adequate: bool

    @property
    def total_minted(self) -> int:
        return self.to_distribution + self.to_reserve


@dataclass(frozen=True)
class DistributionSplit:
    """dao + dev + staking always sums to the distributed amount"""
    dao: int
    dev: int
    staking: int

    @property
    def total(self) -> int:
        return self.dao + self.dev + self.staking


class SeigniorageAllocator:
    """Seigniorage waterfall over TreasuryParameters"""

    @staticmethod
    def plan_expansion(price: int, supply: int, reserve: int, bond_supply: int,
                       params, peg: int = TOKEN_PRICE_ONE) -> SeigniorageAllocation:
        """
        Plan an above-ceiling expansion

        Args:
            price: Epoch price (1e18 scale), must be above peg
            supply: Circulating supply net of the reserve
            reserve: seigniorage saved for bond redemptions
            bond_supply: Outstanding bonds
            params: TreasuryParameters
        """
        if price <= peg:
            raise ValueError(f"expansion requires price above peg: {price} <= {peg}")

        expansion = params.expansion
        price_excess = price - peg
        max_percent = SupplyExpansionPolicy.max_expansion_percent(supply, expansion.tier_table)
        cap = max_percent * FixedPointMath.BPS_TO_PRICE_SCALE
        capped_excess = min(price_excess, cap)

        gross_mint = supply * capped_excess // ONE
        depletion_floor = FixedPointMath.apply_bps(bond_supply, expansion.bond_depletion_floor_percent)
        reserve_adequate = reserve >= depletion_floor

        if reserve_adequate:
            to_distribution = gross_mint
            to_reserve = 0
        else:
            to_distribution = FixedPointMath.apply_bps(
                gross_mint, expansion.seigniorage_expansion_floor_percent
            )
            to_reserve = gross_mint - to_distribution
            if expansion.minting_factor_for_paying_debt > 0:
                to_reserve = FixedPointMath.apply_bps(
                    to_reserve, expansion.minting_factor_for_paying_debt
                )

        return SeigniorageAllocation(
            price_excess=price_excess,
            max_expansion_percent=max_percent,
            capped_excess=capped_excess,
            gross_mint=gross_mint,
            to_distribution=to_distribution,
            to_reserve=to_reserve,
            reserve_adequate=reserve_adequate
        )

    @staticmethod
    def bootstrap_mint(supply: int, expansion) -> int:
        return FixedPointMath.apply_bps(supply, expansion.bootstrap_supply_expansion_percent)

    @staticmethod
    def split_distribution(amount: int, funds) -> DistributionSplit:
        """Cut dao and dev shares; the staking pool takes the remainder"""
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")

        dao = FixedPointMath.apply_bps(amount, funds.dao_fund_shared_percent) if funds.dao_fund else 0
        dev = FixedPointMath.apply_bps(amount, funds.dev_fund_shared_percent) if funds.dev_fund else 0
        return DistributionSplit(dao=dao, dev=dev, staking=amount - dao - dev)

    @staticmethod
    def bond_treasury_top_up(vested: int, balance: int, supply: int, funds) -> int:
        """Shortfall between vested and held amounts, capped at a percent of supply"""
        if vested <= balance:
            return 0
        cap = FixedPointMath.apply_bps(supply, funds.bond_supply_expansion_percent)
        return min(vested - balance, cap)
