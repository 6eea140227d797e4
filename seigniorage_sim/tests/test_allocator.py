#!/usr/bin/env python3
"""
Seigniorage Allocation Tests

Expansion plans, the reserve waterfall, fund splits and bond treasury top-ups.
"""

import pytest

from seigniorage_sim.core.allocator import SeigniorageAllocator
from seigniorage_sim.core.math import ONE
from seigniorage_sim.engine.config import FundAllocationConfig

from .deployment import parameters, price


class TestPlanExpansion:
    """Above-ceiling expansion plans"""

    def setup_method(self):
        self.params = parameters()
        self.supply = 1_000_000 * ONE

    def test_underfunded_reserve_takes_most_of_the_mint(self):
        plan = SeigniorageAllocator.plan_expansion(price(105), self.supply, 1_000 * ONE, 20_000 * ONE, self.params)

        assert plan.max_expansion_percent == 225
        assert plan.capped_excess == 225 * 10 ** 14, "excess should be capped at the tier value"
        assert plan.gross_mint == 22_500 * ONE
        assert not plan.reserve_adequate
        assert plan.to_distribution == 7_875 * ONE
        assert plan.to_reserve == 14_625 * ONE
        assert plan.total_minted == plan.gross_mint

    def test_adequate_reserve_distributes_everything(self):
        plan = SeigniorageAllocator.plan_expansion(price(105), self.supply, 20_000 * ONE, 20_000 * ONE, self.params)
        assert plan.reserve_adequate
        assert plan.to_distribution == 22_500 * ONE
        assert plan.to_reserve == 0

    def test_small_excess_is_not_capped(self):
        plan = SeigniorageAllocator.plan_expansion(price(101), self.supply, 0, 0, self.params)
        assert plan.capped_excess == ONE // 100
        assert plan.gross_mint == 10_000 * ONE

    def test_minting_factor_scales_reserve_share(self):
        params = parameters(expansion__minting_factor_for_paying_debt=15_000)
        plan = SeigniorageAllocator.plan_expansion(price(105), self.supply, 1_000 * ONE, 20_000 * ONE, params)
        assert plan.to_distribution == 7_875 * ONE
        assert plan.to_reserve == 21_937_500 * ONE // 1_000

    def test_requires_price_above_peg(self):
        with pytest.raises(ValueError):
            SeigniorageAllocator.plan_expansion(ONE, self.supply, 0, 0, self.params)


class TestDistribution:

    def setup_method(self):
        self.funds = FundAllocationConfig(
            dao_fund="dao", dao_fund_shared_percent=1_500,
            dev_fund="dev", dev_fund_shared_percent=500
        )

    def test_split(self):
        split = SeigniorageAllocator.split_distribution(10_000 * ONE, self.funds)
        assert (split.dao, split.dev, split.staking) == (1_500 * ONE, 500 * ONE, 8_000 * ONE)

    def test_split_sums_exactly(self):
        for amount in [0, 1, 7, 9_999, 123_456_789_123]:
            assert SeigniorageAllocator.split_distribution(amount, self.funds).total == amount

    def test_unset_funds_receive_nothing(self):
        split = SeigniorageAllocator.split_distribution(10_000 * ONE, FundAllocationConfig())
        assert split.dao == 0 and split.dev == 0
        assert split.staking == 10_000 * ONE

    def test_bootstrap_mint(self):
        assert SeigniorageAllocator.bootstrap_mint(1_000_000 * ONE, parameters().expansion) == 45_000 * ONE


class TestBondTreasuryTopUp:

    def setup_method(self):
        self.funds = FundAllocationConfig(bond_treasury="bond_treasury", bond_supply_expansion_percent=50)

    def test_shortfall_below_cap(self):
        amount = SeigniorageAllocator.bond_treasury_top_up(1_000 * ONE, 400 * ONE, 1_000_000 * ONE, self.funds)
        assert amount == 600 * ONE

    def test_cap_binds(self):
        amount = SeigniorageAllocator.bond_treasury_top_up(100_000 * ONE, 0, 1_000_000 * ONE, self.funds)
        assert amount == 5_000 * ONE

    def test_fully_funded(self):
        assert SeigniorageAllocator.bond_treasury_top_up(400 * ONE, 400 * ONE, 1_000_000 * ONE, self.funds) == 0
