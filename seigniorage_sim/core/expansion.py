#!/usr/bin/env python3
"""
Supply Expansion Policy

Maps circulating supply onto a tiered maximum expansion percentage, with a
fixed bootstrap rate for the first epochs of the program.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class SupplyTier:
    """Supply bracket starting at threshold (inclusive)"""
    threshold: int
    max_expansion_percent: int  # basis points


class SupplyTierTable:
    """Ordered tier table; first threshold is 0 and thresholds strictly increase"""

    MIN_PERCENT = 10      # 0.1%
    MAX_PERCENT = 1000    # 10%

    def __init__(self, thresholds: Sequence[int], percents: Sequence[int]):
        thresholds = tuple(thresholds)
        percents = tuple(percents)

        if not thresholds:
            raise ValueError("supply tier table cannot be empty")
        if len(thresholds) != len(percents):
            raise ValueError(
                f"tier thresholds ({len(thresholds)}) and percents ({len(percents)}) differ in length"
            )
        if thresholds[0] != 0:
            raise ValueError(f"first supply tier must start at 0, got {thresholds[0]}")
        for lower, upper in zip(thresholds, thresholds[1:]):
            if upper <= lower:
                raise ValueError(f"supply tiers must strictly increase: {lower} >= {upper}")
        for percent in percents:
            if not self.MIN_PERCENT <= percent <= self.MAX_PERCENT:
                raise ValueError(
                    f"tier expansion percent {percent} outside [{self.MIN_PERCENT}, {self.MAX_PERCENT}]"
                )

        self._tiers: Tuple[SupplyTier, ...] = tuple(
            SupplyTier(threshold, percent) for threshold, percent in zip(thresholds, percents)
        )

    def __len__(self) -> int:
        return len(self._tiers)

    def __iter__(self):
        return iter(self._tiers)

    @property
    def thresholds(self) -> Tuple[int, ...]:
        return tuple(tier.threshold for tier in self._tiers)

    @property
    def percents(self) -> Tuple[int, ...]:
        return tuple(tier.max_expansion_percent for tier in self._tiers)

    def lookup(self, supply: int) -> SupplyTier:
        """Tier with the largest threshold <= supply"""
        if supply < 0:
            raise ValueError(f"supply must be non-negative: {supply}")
        # The zero threshold of the first tier always matches
        return next(tier for tier in reversed(self._tiers) if tier.threshold <= supply)

    def with_threshold(self, index: int, value: int) -> "SupplyTierTable":
        """Copy with one threshold replaced; ordering is revalidated"""
        self._check_index(index)
        thresholds = list(self.thresholds)
        thresholds[index] = value
        return SupplyTierTable(thresholds, self.percents)

    def with_percent(self, index: int, value: int) -> "SupplyTierTable":
        """Copy with one tier percent replaced"""
        self._check_index(index)
        percents = list(self.percents)
        percents[index] = value
        return SupplyTierTable(self.thresholds, percents)

    def _check_index(self, index: int):
        if not 0 <= index < len(self._tiers):
            raise ValueError(f"tier index {index} out of range [0, {len(self._tiers) - 1}]")


@dataclass(frozen=True)
class ExpansionDecision:
    """Expansion percent chosen for an epoch"""
    percent: int
    bootstrap: bool
    tier: Optional[SupplyTier] = None


class SupplyExpansionPolicy:
    """Pure expansion-percent queries over an expansion configuration"""

    @staticmethod
    def max_expansion_percent(supply: int, table: SupplyTierTable) -> int:
        return table.lookup(supply).max_expansion_percent

    @staticmethod
    def in_bootstrap(epoch_index: int, bootstrap_epochs: int) -> bool:
        return epoch_index < bootstrap_epochs

    @staticmethod
    def decide(epoch_index: int, supply: int, expansion) -> ExpansionDecision:
        """
        Pick the expansion percent for an epoch

        Args:
            epoch_index: Current epoch index
            supply: Circulating supply net of the reserve
            expansion: ExpansionConfig carrying the tier table and bootstrap settings
        """
        if SupplyExpansionPolicy.in_bootstrap(epoch_index, expansion.bootstrap_epochs):
            return ExpansionDecision(
                percent=expansion.bootstrap_supply_expansion_percent,
                bootstrap=True
            )

        tier = expansion.tier_table.lookup(supply)
        return ExpansionDecision(percent=tier.max_expansion_percent, bootstrap=False, tier=tier)
