#!/usr/bin/env python3
"""
Treasury Test Suite

Lifecycle, bond purchase and redemption, epoch allocation, atomicity and the
operator governance surface.
"""

import logging

import pytest

from seigniorage_sim.core.epoch import PERIOD, ChainClock
from seigniorage_sim.core.errors import (
    AlreadyInitialized, DebtRatioExceeded, EpochNotOpen, InsufficientBalance, InsufficientBudget,
    InsufficientTreasuryBalance, InvalidAddress, InvalidAmount, MissingPermission, NotInitialized,
    NotOperator, NotStarted, OracleUnavailable, ParameterOutOfRange, PreconditionFailed, PriceMoved,
    PriceNotEligible, ReentrantCall, UnsupportedToken,
)
from seigniorage_sim.core.masonry import Masonry, VestingFund
from seigniorage_sim.core.math import ONE
from seigniorage_sim.core.tokens import BasisAsset
from seigniorage_sim.core.treasury import Treasury, TreasuryStatus

from .deployment import (
    ALICE, BOB, GENESIS, MARKET, OPERATOR, TREASURY, default_balances, deploy, parameters, price,
)


class TestLifecycle:

    def test_uninitialized_rejects_everything(self):
        treasury = Treasury(ChainClock(GENESIS))
        assert treasury.status is TreasuryStatus.UNINITIALIZED
        assert not treasury.is_initialized
        with pytest.raises(NotInitialized):
            treasury.buy_bonds(ALICE, ONE, ONE)
        with pytest.raises(NotInitialized):
            treasury.allocate_seigniorage()
        with pytest.raises(NotInitialized):
            treasury.get_token_price()

    def test_initialize_once(self):
        d = deploy()
        assert d.treasury.is_initialized
        assert d.treasury.operator == OPERATOR
        assert d.treasury.epoch == 0
        assert [event.name for event in d.treasury.events] == ["Initialized"]

        with pytest.raises(AlreadyInitialized):
            d.treasury.initialize(OPERATOR, d.main_token, d.bond_token, d.share_token,
                                  d.oracle, d.masonry, GENESIS)

    def test_reserve_starts_at_treasury_balance(self):
        balances = default_balances()
        balances[TREASURY] = 5_000 * ONE
        d = deploy(main_balances=balances)
        assert d.treasury.get_reserve() == 5_000 * ONE
        assert d.treasury.epoch_supply_contraction_left == 0

    def test_not_started(self):
        d = deploy(parameters(expansion__bootstrap_epochs=0), initial_price=price(90))
        with pytest.raises(NotStarted):
            d.treasury.buy_bonds(ALICE, ONE, price(90))
        with pytest.raises(NotStarted):
            d.treasury.allocate_seigniorage()


class TestBuyBonds:
    """Bond purchases below peg"""

    def setup_method(self):
        self.d = deploy(parameters(expansion__bootstrap_epochs=0), initial_price=price(90))
        self.d.start()
        self.d.treasury.allocate_seigniorage()
        self.treasury = self.d.treasury

    def test_budget_opened_below_ceiling(self):
        assert self.treasury.epoch_supply_contraction_left == 30_000 * ONE
        assert self.treasury.get_burnable_token_left() == 30_000 * ONE

    def test_two_purchases_within_budget(self):
        updates = self.d.oracle.update_count

        assert self.treasury.buy_bonds(ALICE, 10_000 * ONE, price(90)) == 10_000 * ONE
        assert self.treasury.buy_bonds(ALICE, 10_000 * ONE, price(90)) == 10_000 * ONE

        assert self.d.main_token.balance_of(ALICE) == 80_000 * ONE
        assert self.d.bond_token.balance_of(ALICE) == 20_000 * ONE
        assert self.treasury.epoch_supply_contraction_left == 10_000 * ONE
        assert self.d.main_token.total_supply() == 980_000 * ONE
        assert self.d.oracle.update_count == updates + 2, "each purchase refreshes the oracle"
        assert [e.amount for e in self.treasury.events if e.name == "BoughtBonds"] == [10_000 * ONE] * 2

        with pytest.raises(InsufficientBudget):
            self.treasury.buy_bonds(ALICE, 10_000 * ONE + 1, price(90))

    def test_price_moved(self):
        with pytest.raises(PriceMoved):
            self.treasury.buy_bonds(ALICE, ONE, price(91))
        assert self.d.main_token.balance_of(ALICE) == 100_000 * ONE

    def test_price_not_eligible_at_peg(self):
        self.d.set_price(ONE)
        with pytest.raises(PriceNotEligible):
            self.treasury.buy_bonds(ALICE, ONE, ONE)

    def test_zero_amount(self):
        with pytest.raises(InvalidAmount):
            self.treasury.buy_bonds(ALICE, 0, price(90))

    def test_insufficient_balance(self):
        with pytest.raises(InsufficientBalance):
            self.treasury.buy_bonds("carol", ONE, price(90))
        assert self.treasury.epoch_supply_contraction_left == 30_000 * ONE

    def test_debt_ratio(self):
        d = deploy(
            parameters(expansion__bootstrap_epochs=0, max_debt_ratio_percent=1_000,
                       max_supply_contraction_percent=1_500),
            bond_balances={BOB: 95_000 * ONE},
            initial_price=price(90)
        )
        d.start()
        d.treasury.allocate_seigniorage()

        with pytest.raises(DebtRatioExceeded):
            d.treasury.buy_bonds(ALICE, 10_000 * ONE, price(90))
        assert d.bond_token.total_supply() == 95_000 * ONE
        assert d.treasury.get_burnable_token_left() == 5_000 * ONE


class TestRedeemBonds:
    """Bond redemptions above the ceiling"""

    def setup_method(self):
        balances = default_balances()
        balances[TREASURY] = 20_000 * ONE
        self.d = deploy(
            parameters(expansion__bootstrap_epochs=0),
            main_balances=balances,
            bond_balances={BOB: 30_000 * ONE},
            initial_price=price(115)
        )
        self.d.start()
        self.treasury = self.d.treasury

    def test_redeem_at_premium(self):
        paid = self.treasury.redeem_bonds(BOB, 10_000 * ONE, price(115))

        assert paid == 11_050 * ONE
        assert self.d.main_token.balance_of(BOB) == 111_050 * ONE
        assert self.d.bond_token.balance_of(BOB) == 20_000 * ONE
        assert self.d.main_token.balance_of(TREASURY) == 8_950 * ONE
        assert self.treasury.get_reserve() == 8_950 * ONE
        assert self.treasury.events[-1].name == "RedeemedBonds"

    def test_redeem_between_ceiling_and_threshold_at_peg(self):
        self.d.set_price(price(105))
        assert self.treasury.redeem_bonds(BOB, 1_000 * ONE, price(105)) == 1_000 * ONE

    def test_treasury_cannot_cover(self):
        with pytest.raises(InsufficientTreasuryBalance):
            self.treasury.redeem_bonds(BOB, 20_000 * ONE, price(115))
        assert self.d.bond_token.balance_of(BOB) == 30_000 * ONE

    def test_not_eligible_at_ceiling(self):
        self.d.set_price(price(101))
        with pytest.raises(PriceNotEligible):
            self.treasury.redeem_bonds(BOB, ONE, price(101))

    def test_insufficient_bonds(self):
        with pytest.raises(InsufficientBalance):
            self.treasury.redeem_bonds(ALICE, ONE, price(115))

    def test_redeemable_bonds_are_payable(self):
        redeemable = self.treasury.get_redeemable_bonds()
        rate = self.treasury.get_bond_premium_rate()
        assert redeemable * rate // ONE <= self.d.main_token.balance_of(TREASURY)
        assert self.treasury.redeem_bonds(BOB, redeemable, price(115)) <= 20_000 * ONE


class TestAllocateSeigniorage:
    """Epoch allocation"""

    def test_bootstrap_allocation(self):
        d = deploy()
        d.start()
        report = d.treasury.allocate_seigniorage()

        assert report.bootstrap
        assert report.epoch == 0
        assert report.distribution.staking == 45_000 * ONE
        assert d.main_token.balance_of(d.masonry.address) == 45_000 * ONE
        assert d.masonry.total_allocated == 45_000 * ONE
        assert d.treasury.epoch == 1
        assert d.treasury.epoch_supply_contraction_left == 31_350 * ONE

    def test_bootstrap_with_extra_funds(self):
        d = deploy()
        d.treasury.set_extra_funds(OPERATOR, "dao", 1_500, "dev", 500)
        d.start()
        report = d.treasury.allocate_seigniorage()

        assert d.main_token.balance_of("dao") == 6_750 * ONE
        assert d.main_token.balance_of("dev") == 2_250 * ONE
        assert d.main_token.balance_of(d.masonry.address) == 36_000 * ONE
        assert report.distribution.total == 45_000 * ONE
        assert [e.name for e in d.treasury.events[1:]] == ["DaoFundFunded", "DevFundFunded", "MasonryFunded"]

    def test_expansion_rebuilds_underfunded_reserve(self):
        balances = default_balances()
        balances[TREASURY] = 1_000 * ONE
        d = deploy(
            parameters(expansion__bootstrap_epochs=0),
            main_balances=balances,
            bond_balances={BOB: 20_000 * ONE},
            initial_price=price(105)
        )
        d.start()
        report = d.treasury.allocate_seigniorage()

        assert report.supply == 1_000_000 * ONE
        assert report.allocation.gross_mint == 22_500 * ONE
        assert d.main_token.balance_of(d.masonry.address) == 7_875 * ONE
        assert d.treasury.get_reserve() == 15_625 * ONE
        assert d.main_token.balance_of(TREASURY) == 15_625 * ONE
        assert d.treasury.max_supply_expansion_percent == 225
        assert d.treasury.epoch_supply_contraction_left == 0
        assert d.treasury.previous_epoch_price == price(105)

    def test_no_expansion_at_or_below_ceiling(self):
        d = deploy(parameters(expansion__bootstrap_epochs=0), initial_price=price(101))
        d.start()
        report = d.treasury.allocate_seigniorage()
        assert report.total_minted == 0
        assert d.main_token.total_supply() == 1_000_000 * ONE

    def test_once_per_epoch(self):
        d = deploy()
        d.start()
        d.treasury.allocate_seigniorage()
        state = d.treasury.get_state()
        supply = d.main_token.total_supply()

        with pytest.raises(EpochNotOpen):
            d.treasury.allocate_seigniorage()
        assert d.treasury.get_state() == state
        assert d.main_token.total_supply() == supply

        d.next_epoch()
        assert d.treasury.allocate_seigniorage().epoch == 1
        assert d.treasury.epoch == 2

    def test_bond_treasury_top_up(self):
        d = deploy(parameters(expansion__bootstrap_epochs=0))
        start = GENESIS + PERIOD
        fund = VestingFund("bond_treasury", 100_000 * ONE, start, 10 * PERIOD, d.clock)
        d.treasury.set_bond_treasury(OPERATOR, fund, 50)
        d.start()

        assert d.treasury.allocate_seigniorage().bond_treasury_minted == 0
        d.next_epoch()
        report = d.treasury.allocate_seigniorage()
        assert report.bond_treasury_minted == 5_000 * ONE
        assert d.main_token.balance_of("bond_treasury") == 5_000 * ONE
        assert d.treasury.events[-1].name == "BondTreasuryFunded"

    def test_oracle_read_failure_aborts(self):
        d = deploy()
        d.start()
        d.oracle.fail_reads = True
        with pytest.raises(OracleUnavailable):
            d.treasury.allocate_seigniorage()
        assert d.treasury.epoch == 0
        assert d.main_token.total_supply() == 1_000_000 * ONE
        assert d.oracle.update_count == 0, "refresh must be rolled back with the failed call"

    def test_oracle_refresh_failure_is_logged_not_raised(self, caplog):
        d = deploy()
        d.start()
        d.oracle.fail_updates = True
        with caplog.at_level(logging.WARNING, logger="seigniorage_sim.core.treasury"):
            report = d.treasury.allocate_seigniorage()
        assert not report.refresh.ok
        assert d.treasury.epoch == 1
        assert "oracle refresh failed" in caplog.text


class TestPriceViews:

    def setup_method(self):
        self.d = deploy(initial_price=price(90))
        self.treasury = self.d.treasury

    def test_spot_and_twap(self):
        assert self.treasury.get_token_price() == price(90)
        assert self.treasury.get_token_updated_price() == price(90)

        self.d.set_price(price(110))
        assert self.treasury.get_token_price() == price(110)
        assert self.treasury.get_token_updated_price() == price(90), "twap moves only on update"

        self.d.oracle.update()
        assert self.treasury.get_token_updated_price() == ONE

    def test_twap_read_failure(self):
        self.d.oracle.fail_reads = True
        with pytest.raises(OracleUnavailable):
            self.treasury.get_token_updated_price()

    def test_twap_requires_initialization(self):
        with pytest.raises(NotInitialized):
            Treasury(ChainClock(GENESIS)).get_token_updated_price()


class ReentrantMasonry(Masonry):
    """Masonry that calls back into the treasury while being funded"""

    treasury = None

    def allocate_seigniorage(self, caller, amount):
        super().allocate_seigniorage(caller, amount)
        self.treasury.buy_bonds(ALICE, ONE, self.treasury.get_token_price())


class TestAtomicity:

    def test_reentrant_call_rejected_and_rolled_back(self):
        d = deploy(masonry_class=ReentrantMasonry)
        d.masonry.treasury = d.treasury
        d.start()
        events = list(d.treasury.events)

        with pytest.raises(ReentrantCall):
            d.treasury.allocate_seigniorage()

        assert d.treasury.epoch == 0
        assert d.main_token.total_supply() == 1_000_000 * ONE
        assert d.main_token.balance_of(d.masonry.address) == 0
        assert d.masonry.snapshots == []
        assert d.treasury.events == events

        # The guard is released after the failed call
        with pytest.raises(PriceNotEligible):
            d.treasury.buy_bonds(ALICE, ONE, ONE)

    def test_missing_permission(self):
        d = deploy(initial_price=price(90))
        d.start()
        d.main_token.transfer_operator(OPERATOR, "someone_else")

        with pytest.raises(MissingPermission):
            d.treasury.allocate_seigniorage()
        with pytest.raises(MissingPermission):
            d.treasury.buy_bonds(ALICE, ONE, price(90))

    def test_masonry_operator_moved_away(self):
        d = deploy()
        d.start()
        d.treasury.masonry_set_operator(OPERATOR, "someone_else")
        with pytest.raises(MissingPermission):
            d.treasury.allocate_seigniorage()

    def test_errors_are_preconditions(self):
        d = deploy()
        with pytest.raises(PreconditionFailed):
            d.treasury.allocate_seigniorage()


class TestGovernance:
    """Operator-only setters and recovery"""

    def setup_method(self):
        self.d = deploy()
        self.treasury = self.d.treasury

    def test_operator_only(self):
        with pytest.raises(NotOperator):
            self.treasury.set_price_ceiling(ALICE, price(105))
        with pytest.raises(NotOperator):
            self.treasury.set_operator(ALICE, ALICE)

    def test_set_operator(self):
        self.treasury.set_operator(OPERATOR, ALICE)
        assert self.treasury.operator == ALICE
        with pytest.raises(InvalidAddress):
            self.treasury.set_operator(ALICE, "")

    @pytest.mark.parametrize("setter,value", [
        ("set_price_ceiling", ONE * 121 // 100),
        ("set_price_ceiling", ONE - 1),
        ("set_max_supply_expansion_percent", 9),
        ("set_max_supply_expansion_percent", 1_001),
        ("set_bond_depletion_floor_percent", 499),
        ("set_max_supply_contraction_percent", 1_501),
        ("set_max_debt_ratio_percent", 999),
        ("set_discount_percent", 20_001),
        ("set_premium_percent", 20_001),
        ("set_premium_threshold", 100),
        ("set_premium_threshold", 151),
        ("set_minting_factor_for_paying_debt", 5_000),
        ("set_seigniorage_expansion_floor_percent", 10_001),
    ])
    def test_out_of_range_leaves_state_unchanged(self, setter, value):
        before = self.treasury.get_state()
        with pytest.raises(ParameterOutOfRange) as excinfo:
            getattr(self.treasury, setter)(OPERATOR, value)
        assert isinstance(excinfo.value, ValueError)
        assert self.treasury.get_state() == before

    def test_in_range_setters(self):
        self.treasury.set_price_ceiling(OPERATOR, price(105))
        self.treasury.set_max_supply_expansion_percent(OPERATOR, 500)
        self.treasury.set_premium_threshold(OPERATOR, 120)
        self.treasury.set_minting_factor_for_paying_debt(OPERATOR, 15_000)
        self.treasury.set_bootstrap(OPERATOR, 10, 300)

        params = self.treasury.params
        assert params.price_ceiling == price(105)
        assert self.treasury.max_supply_expansion_percent == 500
        assert params.bonds.premium_threshold == 120
        assert params.expansion.minting_factor_for_paying_debt == 15_000
        assert params.expansion.bootstrap_epochs == 10

    def test_contraction_percent_lower_edge(self):
        """Contraction budget may go down to 0.1% of supply"""
        self.treasury.set_max_supply_contraction_percent(OPERATOR, 50)
        assert self.treasury.params.max_supply_contraction_percent == 50

        self.treasury.set_max_supply_contraction_percent(OPERATOR, 10)
        assert self.treasury.params.max_supply_contraction_percent == 10

        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_max_supply_contraction_percent(OPERATOR, 9)
        assert self.treasury.params.max_supply_contraction_percent == 10

    def test_small_contraction_percent_sets_budget(self):
        d = deploy(parameters(expansion__bootstrap_epochs=0, max_supply_contraction_percent=10),
                   initial_price=price(90))
        d.start()
        d.treasury.allocate_seigniorage()
        assert d.treasury.epoch_supply_contraction_left == 1_000 * ONE

    def test_bootstrap_bounds(self):
        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_bootstrap(OPERATOR, 121, 450)
        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_bootstrap(OPERATOR, 28, 99)

    def test_tier_entries(self):
        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_supply_tiers_entry(OPERATOR, 1, 0)
        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_max_expansion_tiers_entry(OPERATOR, 0, 1_001)

        self.treasury.set_supply_tiers_entry(OPERATOR, 1, 400_000 * ONE)
        self.treasury.set_max_expansion_tiers_entry(OPERATOR, 0, 350)
        assert self.treasury.params.expansion.supply_tiers[1] == 400_000 * ONE
        assert self.treasury.params.expansion.max_expansion_tiers[0] == 350

    def test_extra_funds(self):
        with pytest.raises(InvalidAddress):
            self.treasury.set_extra_funds(OPERATOR, "", 100, "dev", 100)
        with pytest.raises(ParameterOutOfRange):
            self.treasury.set_extra_funds(OPERATOR, "dao", 3_001, "dev", 100)
        self.treasury.set_extra_funds(OPERATOR, "dao", 3_000, "dev", 1_000)
        assert self.treasury.params.funds.dao_fund == "dao"

    def test_exclude_from_total_supply(self):
        self.treasury.exclude_from_total_supply(OPERATOR, MARKET)
        assert self.treasury.get_circulating_supply() == 200_000 * ONE
        with pytest.raises(InvalidAddress):
            self.treasury.exclude_from_total_supply(OPERATOR, MARKET)

    def test_recover_unsupported(self):
        stray = BasisAsset("USDC", OPERATOR, {TREASURY: 500 * ONE})
        for token in (self.d.main_token, self.d.bond_token, self.d.share_token):
            with pytest.raises(UnsupportedToken):
                self.treasury.governance_recover_unsupported(OPERATOR, token, ONE, OPERATOR)

        self.treasury.governance_recover_unsupported(OPERATOR, stray, 500 * ONE, OPERATOR)
        assert stray.balance_of(OPERATOR) == 500 * ONE

    def test_masonry_passthroughs(self):
        self.treasury.masonry_set_lock_up(OPERATOR, 8, 4)
        assert (self.d.masonry.withdraw_lockup_epochs, self.d.masonry.reward_lockup_epochs) == (8, 4)
        with pytest.raises(PreconditionFailed):
            self.treasury.masonry_set_lock_up(OPERATOR, 57, 4)

        stray = BasisAsset("USDC", OPERATOR, {self.d.masonry.address: 10 * ONE})
        self.treasury.masonry_governance_recover_unsupported(OPERATOR, stray, 10 * ONE, BOB)
        assert stray.balance_of(BOB) == 10 * ONE
        with pytest.raises(UnsupportedToken):
            self.treasury.masonry_governance_recover_unsupported(OPERATOR, self.d.main_token, ONE, BOB)

    def test_masonry_allocate_from_treasury_balance(self):
        balances = default_balances()
        balances[TREASURY] = 1_000 * ONE
        d = deploy(main_balances=balances)
        d.treasury.masonry_allocate_seigniorage(OPERATOR, 400 * ONE)
        assert d.masonry.total_allocated == 400 * ONE
        assert d.main_token.balance_of(TREASURY) == 600 * ONE
