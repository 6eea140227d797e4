#!/usr/bin/env python3
"""
Seigniorage Treasury

Epoch-gated monetary policy for a bond-stabilized token. The treasury owns the
reserve ledger and the governable parameters, and composes the epoch clock,
oracle adapter, bond pricer, expansion policy and seigniorage allocator behind
three mutating entrypoints:

- buy_bonds: burn main token below peg in exchange for discounted bonds
- redeem_bonds: burn bonds above the ceiling in exchange for main token
- allocate_seigniorage: once per epoch, mint and distribute new supply

Each entrypoint checks every precondition before touching state, rejects
nested re-entry, and rolls back every participating ledger if a collaborator
fails part way through.
"""

import functools
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .allocator import DistributionSplit, SeigniorageAllocation, SeigniorageAllocator
from .bonds import BondPricer
from .epoch import ChainClock, EpochClock
from .errors import (
    AlreadyInitialized, DebtRatioExceeded, EpochNotOpen, InsufficientBalance,
    InsufficientBudget, InsufficientTreasuryBalance, InvalidAddress, InvalidAmount,
    InvalidBondRate, MissingPermission, NotInitialized, NotOperator, NotStarted,
    ParameterOutOfRange, PriceMoved, PriceNotEligible, ReentrantCall, UnsupportedToken,
)
from .expansion import SupplyExpansionPolicy
from .masonry import Masonry, VestingFund
from .math import FixedPointMath, TOKEN_PRICE_ONE
from .oracle import Oracle, PriceOracleAdapter, RefreshOutcome
from .tokens import BasisAsset
from ..engine.config import (
    MAX_SUPPLY_EXPANSION_PERCENT_BOUNDS, TreasuryParameters, create_default_parameters,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUPPLY_EXPANSION_PERCENT = 400


class TreasuryStatus(Enum):
    """Treasury lifecycle"""
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass(frozen=True)
class TreasuryEvent:
    """Observability record for a treasury action"""
    name: str
    amount: int
    timestamp: int
    account: Optional[str] = None


@dataclass
class EpochReport:
    """What a successful allocate_seigniorage call did"""
    epoch: int
    timestamp: int
    price: int
    supply: int
    bootstrap: bool
    refresh: RefreshOutcome
    expansion_percent: int
    allocation: Optional[SeigniorageAllocation]
    distribution: DistributionSplit
    reserve_added: int
    bond_treasury_minted: int
    contraction_budget: int

    @property
    def total_minted(self) -> int:
        return self.distribution.total + self.reserve_added + self.bond_treasury_minted


def _guarded(method):
    """Initialized, non-reentrant and all-or-nothing"""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._require_ready()
        if self._entered:
            raise ReentrantCall(f"Treasury: reentrant call to {method.__name__}")
        self._entered = True
        try:
            with self._atomic(method.__name__):
                return method(self, *args, **kwargs)
        finally:
            self._entered = False
    return wrapper


class Treasury:
    """Epoch-gated seigniorage and bond state machine"""

    def __init__(self, clock: ChainClock, address: str = "treasury"):
        self.address = address
        self.clock = clock
        self.status = TreasuryStatus.UNINITIALIZED
        self.operator: Optional[str] = None

        # Collaborators
        self.main_token: Optional[BasisAsset] = None
        self.bond_token: Optional[BasisAsset] = None
        self.share_token: Optional[BasisAsset] = None
        self.oracle: Optional[PriceOracleAdapter] = None
        self.masonry: Optional[Masonry] = None
        self.bond_treasury: Optional[VestingFund] = None

        self.params: TreasuryParameters = create_default_parameters()
        self.epoch_clock: Optional[EpochClock] = None
        self.excluded_from_total_supply: List[str] = []

        # Reserve ledger
        self.seigniorage_saved = 0
        self.epoch_supply_contraction_left = 0
        self.previous_epoch_price = 0
        self.max_supply_expansion_percent = 0

        self.events: List[TreasuryEvent] = []
        self._entered = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, caller: str, main_token: BasisAsset, bond_token: BasisAsset,
                   share_token: BasisAsset, oracle: Oracle, masonry: Masonry,
                   start_time: int, params: Optional[TreasuryParameters] = None):
        """One-time transition to READY; the caller becomes the operator"""
        if self.status is TreasuryStatus.READY:
            raise AlreadyInitialized("Treasury: already initialized")
        if not caller:
            raise InvalidAddress("Treasury: operator cannot be the zero address")

        self.main_token = main_token
        self.bond_token = bond_token
        self.share_token = share_token
        self.oracle = PriceOracleAdapter(oracle, main_token.symbol)
        self.masonry = masonry
        self.params = params if params is not None else create_default_parameters()
        self.epoch_clock = EpochClock(start_time=start_time)

        self.max_supply_expansion_percent = DEFAULT_MAX_SUPPLY_EXPANSION_PERCENT
        self.seigniorage_saved = main_token.balance_of(self.address)
        self.epoch_supply_contraction_left = 0

        self.operator = caller
        self.status = TreasuryStatus.READY
        self._emit("Initialized", 0, caller)

    @property
    def is_initialized(self) -> bool:
        return self.status is TreasuryStatus.READY

    @property
    def epoch(self) -> int:
        self._require_ready()
        return self.epoch_clock.index

    def next_epoch_point(self) -> int:
        self._require_ready()
        return self.epoch_clock.next_epoch_point()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_token_price(self) -> int:
        self._require_ready()
        return self.oracle.spot_price()

    def get_token_updated_price(self) -> int:
        self._require_ready()
        return self.oracle.twap_price()

    def get_reserve(self) -> int:
        return self.seigniorage_saved

    def get_circulating_supply(self) -> int:
        self._require_ready()
        excluded = sum(self.main_token.balance_of(account) for account in self.excluded_from_total_supply)
        return self.main_token.total_supply() - excluded

    def get_bond_discount_rate(self) -> int:
        return BondPricer.discount_rate(self.get_token_price(), self.params.bonds)

    def get_bond_premium_rate(self) -> int:
        return BondPricer.premium_rate(self.get_token_price(), self.params.price_ceiling, self.params.bonds)

    def get_burnable_token_left(self) -> int:
        """Main token that can still be burned for bonds this epoch"""
        price = self.get_token_price()
        if price > self.params.price_ceiling:
            return 0

        rate = BondPricer.discount_rate(price, self.params.bonds)
        if rate <= 0:
            return 0

        bond_max_supply = FixedPointMath.apply_bps(self.get_circulating_supply(), self.params.max_debt_ratio_percent)
        bond_supply = self.bond_token.total_supply()
        if bond_max_supply <= bond_supply:
            return 0

        max_burnable = FixedPointMath.div_price(bond_max_supply - bond_supply, rate)
        return min(self.epoch_supply_contraction_left, max_burnable)

    def get_redeemable_bonds(self) -> int:
        """Bonds the treasury's main-token balance can currently pay out"""
        price = self.get_token_price()
        rate = BondPricer.premium_rate(price, self.params.price_ceiling, self.params.bonds)
        if rate <= 0:
            return 0
        return FixedPointMath.div_price(self.main_token.balance_of(self.address), rate)

    # ------------------------------------------------------------------
    # Mutating entrypoints
    # ------------------------------------------------------------------

    @_guarded
    def buy_bonds(self, caller: str, amount: int, expected_price: int) -> int:
        """Burn amount of main token from caller for bonds; returns bonds minted"""
        self._require_started()
        self._require_permissions()

        if amount <= 0:
            raise InvalidAmount("Treasury: cannot purchase bonds with zero amount")

        price = self.oracle.spot_price()
        if price != expected_price:
            raise PriceMoved(f"Treasury: price moved ({price} != {expected_price})")
        if price >= TOKEN_PRICE_ONE:
            raise PriceNotEligible("Treasury: price not eligible for bond purchase")
        if amount > self.epoch_supply_contraction_left:
            raise InsufficientBudget(
                f"Treasury: not enough bond left to purchase ({amount} > {self.epoch_supply_contraction_left})"
            )

        rate = BondPricer.discount_rate(price, self.params.bonds)
        if rate <= 0:
            raise InvalidBondRate("Treasury: invalid bond rate")

        bond_amount = BondPricer.bonds_for_tokens(amount, rate)
        new_bond_supply = self.bond_token.total_supply() + bond_amount
        max_bond_supply = FixedPointMath.apply_bps(self.get_circulating_supply(), self.params.max_debt_ratio_percent)
        if new_bond_supply > max_bond_supply:
            raise DebtRatioExceeded("Treasury: over max debt ratio")
        if self.main_token.balance_of(caller) < amount:
            raise InsufficientBalance(f"Treasury: {caller} does not hold {amount} {self.main_token.symbol}")

        self.main_token.burn_from(self.address, caller, amount)
        self.bond_token.mint(self.address, caller, bond_amount)
        self.epoch_supply_contraction_left -= amount
        self._refresh_price()

        self._emit("BoughtBonds", amount, caller)
        return bond_amount

    @_guarded
    def redeem_bonds(self, caller: str, bond_amount: int, expected_price: int) -> int:
        """Burn caller's bonds for main token; returns main token paid"""
        self._require_started()
        self._require_permissions()

        if bond_amount <= 0:
            raise InvalidAmount("Treasury: cannot redeem bonds with zero amount")

        price = self.oracle.spot_price()
        if price != expected_price:
            raise PriceMoved(f"Treasury: price moved ({price} != {expected_price})")
        if price <= self.params.price_ceiling:
            raise PriceNotEligible("Treasury: price not eligible for bond redemption")

        rate = BondPricer.premium_rate(price, self.params.price_ceiling, self.params.bonds)
        if rate <= 0:
            raise InvalidBondRate("Treasury: invalid bond rate")

        token_amount = BondPricer.tokens_for_bonds(bond_amount, rate)
        if self.main_token.balance_of(self.address) < token_amount:
            raise InsufficientTreasuryBalance("Treasury: treasury has no more budget")
        if self.bond_token.balance_of(caller) < bond_amount:
            raise InsufficientBalance(f"Treasury: {caller} does not hold {bond_amount} {self.bond_token.symbol}")

        self.seigniorage_saved -= min(self.seigniorage_saved, token_amount)
        self.bond_token.burn_from(self.address, caller, bond_amount)
        self.main_token.transfer(self.address, caller, token_amount)
        self._refresh_price()

        self._emit("RedeemedBonds", token_amount, caller)
        return token_amount

    @_guarded
    def allocate_seigniorage(self) -> EpochReport:
        """Run the epoch's expansion decision, then advance the epoch"""
        self._require_started()
        self._require_permissions()
        now = self.clock.now()
        if not self.epoch_clock.is_open(now):
            raise EpochNotOpen(
                f"Treasury: not opened yet (next epoch at {self.epoch_clock.next_epoch_point()}, now {now})"
            )

        refresh = self._refresh_price()
        price = self.oracle.spot_price()
        self.previous_epoch_price = price

        epoch = self.epoch_clock.index
        expansion = self.params.expansion
        supply = max(0, self.get_circulating_supply() - self.seigniorage_saved)
        decision = SupplyExpansionPolicy.decide(epoch, supply, expansion)

        allocation = None
        distribution = DistributionSplit(0, 0, 0)
        reserve_added = 0
        expansion_percent = decision.percent

        if decision.bootstrap:
            distribution = self._send_to_masonry(SeigniorageAllocator.bootstrap_mint(supply, expansion))
        elif price > self.params.price_ceiling:
            allocation = SeigniorageAllocator.plan_expansion(
                price, supply, self.seigniorage_saved, self.bond_token.total_supply(), self.params
            )
            self.max_supply_expansion_percent = allocation.max_expansion_percent
            expansion_percent = allocation.max_expansion_percent

            if allocation.to_distribution > 0:
                distribution = self._send_to_masonry(allocation.to_distribution)
            if allocation.to_reserve > 0:
                self.seigniorage_saved += allocation.to_reserve
                self.main_token.mint(self.address, self.address, allocation.to_reserve)
                self._emit("TreasuryFunded", allocation.to_reserve)
                reserve_added = allocation.to_reserve

        bond_treasury_minted = self._top_up_bond_treasury(supply)

        self.epoch_clock.advance(now)
        if price > self.params.price_ceiling:
            self.epoch_supply_contraction_left = 0
        else:
            self.epoch_supply_contraction_left = FixedPointMath.apply_bps(
                self.get_circulating_supply(), self.params.max_supply_contraction_percent
            )

        logger.debug(
            "epoch %s allocated: price=%s supply=%s bootstrap=%s minted=%s",
            epoch, price, supply, decision.bootstrap, distribution.total + reserve_added
        )
        return EpochReport(
            epoch=epoch,
            timestamp=now,
            price=price,
            supply=supply,
            bootstrap=decision.bootstrap,
            refresh=refresh,
            expansion_percent=expansion_percent,
            allocation=allocation,
            distribution=distribution,
            reserve_added=reserve_added,
            bond_treasury_minted=bond_treasury_minted,
            contraction_budget=self.epoch_supply_contraction_left
        )

    # ------------------------------------------------------------------
    # Operator governance
    # ------------------------------------------------------------------

    def set_operator(self, caller: str, new_operator: str):
        self._require_operator(caller)
        if not new_operator:
            raise InvalidAddress("Treasury: operator cannot be the zero address")
        self.operator = new_operator

    def set_masonry(self, caller: str, masonry: Masonry):
        self._require_operator(caller)
        self.masonry = masonry

    def set_oracle(self, caller: str, oracle: Oracle):
        self._require_operator(caller)
        self.oracle = PriceOracleAdapter(oracle, self.main_token.symbol)

    def set_price_ceiling(self, caller: str, price_ceiling: int):
        self._update_parameters(caller, price_ceiling=price_ceiling)

    def set_max_supply_expansion_percent(self, caller: str, percent: int):
        self._require_operator(caller)
        low, high = MAX_SUPPLY_EXPANSION_PERCENT_BOUNDS
        if not low <= percent <= high:
            raise ParameterOutOfRange(f"max_supply_expansion_percent {percent} outside [{low}, {high}]")
        self.max_supply_expansion_percent = percent

    def set_supply_tiers_entry(self, caller: str, index: int, value: int):
        self._require_operator(caller)
        try:
            table = self.params.expansion.tier_table.with_threshold(index, value)
        except ValueError as exc:
            raise ParameterOutOfRange(str(exc)) from exc
        self._update_parameters(caller, "expansion", supply_tiers=list(table.thresholds))

    def set_max_expansion_tiers_entry(self, caller: str, index: int, value: int):
        self._require_operator(caller)
        try:
            table = self.params.expansion.tier_table.with_percent(index, value)
        except ValueError as exc:
            raise ParameterOutOfRange(str(exc)) from exc
        self._update_parameters(caller, "expansion", max_expansion_tiers=list(table.percents))

    def set_bond_depletion_floor_percent(self, caller: str, percent: int):
        self._update_parameters(caller, "expansion", bond_depletion_floor_percent=percent)

    def set_seigniorage_expansion_floor_percent(self, caller: str, percent: int):
        self._update_parameters(caller, "expansion", seigniorage_expansion_floor_percent=percent)

    def set_max_supply_contraction_percent(self, caller: str, percent: int):
        self._update_parameters(caller, max_supply_contraction_percent=percent)

    def set_max_debt_ratio_percent(self, caller: str, percent: int):
        self._update_parameters(caller, max_debt_ratio_percent=percent)

    def set_bootstrap(self, caller: str, bootstrap_epochs: int, bootstrap_supply_expansion_percent: int):
        self._update_parameters(
            caller, "expansion",
            bootstrap_epochs=bootstrap_epochs,
            bootstrap_supply_expansion_percent=bootstrap_supply_expansion_percent
        )

    def set_extra_funds(self, caller: str, dao_fund: str, dao_fund_shared_percent: int,
                        dev_fund: str, dev_fund_shared_percent: int):
        if not dao_fund or not dev_fund:
            self._require_operator(caller)
            raise InvalidAddress("Treasury: fund address cannot be the zero address")
        self._update_parameters(
            caller, "funds",
            dao_fund=dao_fund, dao_fund_shared_percent=dao_fund_shared_percent,
            dev_fund=dev_fund, dev_fund_shared_percent=dev_fund_shared_percent
        )

    def set_bond_treasury(self, caller: str, bond_treasury: Optional[VestingFund], percent: int):
        self._update_parameters(
            caller, "funds",
            bond_treasury=bond_treasury.address if bond_treasury else None,
            bond_supply_expansion_percent=percent
        )
        self.bond_treasury = bond_treasury

    def set_max_discount_rate(self, caller: str, rate: int):
        self._update_parameters(caller, "bonds", max_discount_rate=rate)

    def set_max_premium_rate(self, caller: str, rate: int):
        self._update_parameters(caller, "bonds", max_premium_rate=rate)

    def set_discount_percent(self, caller: str, percent: int):
        self._update_parameters(caller, "bonds", discount_percent=percent)

    def set_premium_threshold(self, caller: str, threshold: int):
        self._require_operator(caller)
        if TOKEN_PRICE_ONE * threshold // 100 < self.params.price_ceiling:
            raise ParameterOutOfRange("Treasury: premium threshold is below the price ceiling")
        self._update_parameters(caller, "bonds", premium_threshold=threshold)

    def set_premium_percent(self, caller: str, percent: int):
        self._update_parameters(caller, "bonds", premium_percent=percent)

    def set_minting_factor_for_paying_debt(self, caller: str, factor: int):
        self._update_parameters(caller, "expansion", minting_factor_for_paying_debt=factor)

    def exclude_from_total_supply(self, caller: str, account: str):
        self._require_operator(caller)
        if not account:
            raise InvalidAddress("Treasury: cannot exclude the zero address")
        if account in self.excluded_from_total_supply:
            raise InvalidAddress(f"Treasury: {account} already excluded")
        self.excluded_from_total_supply.append(account)

    def governance_recover_unsupported(self, caller: str, token: BasisAsset, amount: int, recipient: str):
        """Sweep a stray token; governed tokens cannot be drained"""
        self._require_operator(caller)
        if token is self.main_token or token is self.bond_token or token is self.share_token:
            raise UnsupportedToken(f"Treasury: cannot recover {token.symbol}")
        token.transfer(self.address, recipient, amount)

    def masonry_set_operator(self, caller: str, new_operator: str):
        self._require_operator(caller)
        self.masonry.set_operator(self.address, new_operator)

    def masonry_set_lock_up(self, caller: str, withdraw_lockup_epochs: int, reward_lockup_epochs: int):
        self._require_operator(caller)
        self.masonry.set_lock_up(self.address, withdraw_lockup_epochs, reward_lockup_epochs)

    def masonry_allocate_seigniorage(self, caller: str, amount: int):
        self._require_operator(caller)
        self.masonry.allocate_seigniorage(self.address, amount)

    def masonry_governance_recover_unsupported(self, caller: str, token: BasisAsset, amount: int, recipient: str):
        self._require_operator(caller)
        self.masonry.governance_recover_unsupported(self.address, token, amount, recipient)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of the treasury ledger"""
        self._require_ready()
        return {
            "status": self.status.value,
            "operator": self.operator,
            "epoch": self.epoch_clock.index,
            "next_epoch_point": self.epoch_clock.next_epoch_point(),
            "seigniorage_saved": self.seigniorage_saved,
            "epoch_supply_contraction_left": self.epoch_supply_contraction_left,
            "previous_epoch_price": self.previous_epoch_price,
            "max_supply_expansion_percent": self.max_supply_expansion_percent,
            "circulating_supply": self.get_circulating_supply(),
            "bond_supply": self.bond_token.total_supply(),
            "treasury_balance": self.main_token.balance_of(self.address),
            "excluded_from_total_supply": list(self.excluded_from_total_supply),
            "parameters": self.params.model_dump(),
            "event_count": len(self.events)
        }

    def checkpoint(self):
        return (
            self.seigniorage_saved,
            self.epoch_supply_contraction_left,
            self.previous_epoch_price,
            self.max_supply_expansion_percent,
            self.epoch_clock.index,
            self.epoch_clock.last_epoch_time,
            len(self.events),
        )

    def rollback(self, state):
        (self.seigniorage_saved,
         self.epoch_supply_contraction_left,
         self.previous_epoch_price,
         self.max_supply_expansion_percent,
         self.epoch_clock.index,
         self.epoch_clock.last_epoch_time,
         event_count) = state
        del self.events[event_count:]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self, operation: str):
        """Restore every participating ledger if the operation raises"""
        participants = [
            party for party in (self, self.main_token, self.bond_token, self.share_token,
                                self.masonry, self.oracle.oracle)
            if party is not None and hasattr(party, "checkpoint")
        ]
        checkpoints = [(party, party.checkpoint()) for party in participants]
        try:
            yield
        except Exception as exc:
            for party, state in reversed(checkpoints):
                party.rollback(state)
            logger.debug("Treasury: %s reverted: %s", operation, exc)
            raise

    def _require_ready(self):
        if self.status is not TreasuryStatus.READY:
            raise NotInitialized("Treasury: not initialized")

    def _require_operator(self, caller: str):
        self._require_ready()
        if caller != self.operator:
            raise NotOperator("Treasury: caller is not the operator")

    def _require_started(self):
        if not self.epoch_clock.has_started(self.clock.now()):
            raise NotStarted("Treasury: not started yet")

    def _require_permissions(self):
        governed = (self.main_token, self.bond_token, self.share_token, self.masonry)
        if any(getattr(contract, "operator", None) != self.address for contract in governed):
            raise MissingPermission("Treasury: need more permission")

    def _refresh_price(self) -> RefreshOutcome:
        outcome = self.oracle.refresh()
        if not outcome.ok:
            logger.warning("oracle refresh failed, continuing with the last observation: %s", outcome.error)
        return outcome

    def _send_to_masonry(self, amount: int) -> DistributionSplit:
        if amount <= 0:
            return DistributionSplit(0, 0, 0)

        self.main_token.mint(self.address, self.address, amount)
        funds = self.params.funds
        split = SeigniorageAllocator.split_distribution(amount, funds)

        if split.dao > 0:
            self.main_token.transfer(self.address, funds.dao_fund, split.dao)
            self._emit("DaoFundFunded", split.dao, funds.dao_fund)
        if split.dev > 0:
            self.main_token.transfer(self.address, funds.dev_fund, split.dev)
            self._emit("DevFundFunded", split.dev, funds.dev_fund)
        if split.staking > 0:
            self.masonry.allocate_seigniorage(self.address, split.staking)
            self._emit("MasonryFunded", split.staking, self.masonry.address)
        return split

    def _top_up_bond_treasury(self, supply: int) -> int:
        funds = self.params.funds
        if self.bond_treasury is None or funds.bond_supply_expansion_percent == 0:
            return 0

        amount = SeigniorageAllocator.bond_treasury_top_up(
            self.bond_treasury.total_vested(),
            self.main_token.balance_of(self.bond_treasury.address),
            supply,
            funds
        )
        if amount > 0:
            self.main_token.mint(self.address, self.bond_treasury.address, amount)
            self._emit("BondTreasuryFunded", amount, self.bond_treasury.address)
        return amount

    def _update_parameters(self, caller: str, section: Optional[str] = None, **changes) -> TreasuryParameters:
        """Revalidate the full parameter set with changes applied"""
        self._require_operator(caller)
        data = self.params.model_dump()
        (data[section] if section else data).update(changes)
        try:
            updated = TreasuryParameters.model_validate(data)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
            )
            raise ParameterOutOfRange(f"Treasury: {details}") from exc
        self.params = updated
        logger.info("Treasury parameters updated: %s", changes)
        return updated

    def _emit(self, name: str, amount: int, account: Optional[str] = None):
        event = TreasuryEvent(name=name, amount=amount, timestamp=self.clock.now(), account=account)
        self.events.append(event)
        logger.info("%s amount=%s account=%s", name, amount, account)
