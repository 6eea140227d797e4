#!/usr/bin/env python3
"""
Staking Pool and Vesting Fund Collaborators

The Masonry receives the staking share of every seigniorage mint. Reward
accounting per staker is not modelled; the pool records what it was allocated
and when. The VestingFund is the bond treasury whose vested amount the
treasury tops up each epoch.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .epoch import ChainClock
from .errors import InvalidAddress, InvalidAmount, NotOperator, UnsupportedToken, PreconditionFailed
from .tokens import BasisAsset


@dataclass
class MasonrySnapshot:
    """One seigniorage allocation received by the staking pool"""
    timestamp: int
    reward_received: int


class Masonry:
    """Staking pool collaborator"""

    MAX_WITHDRAW_LOCKUP_EPOCHS = 56

    def __init__(self, main_token: BasisAsset, share_token: BasisAsset, operator: str,
                 clock: ChainClock, address: str = "masonry"):
        self.address = address
        self.main_token = main_token
        self.share_token = share_token
        self.operator = operator
        self.clock = clock

        self.withdraw_lockup_epochs = 6
        self.reward_lockup_epochs = 3
        self.snapshots: List[MasonrySnapshot] = []

    @property
    def total_allocated(self) -> int:
        return sum(snapshot.reward_received for snapshot in self.snapshots)

    def allocate_seigniorage(self, caller: str, amount: int):
        """Pull amount of main token from the caller and record a snapshot"""
        self._require_operator(caller)
        if amount <= 0:
            raise InvalidAmount("Masonry: cannot allocate 0")
        self.main_token.transfer(caller, self.address, amount)
        self.snapshots.append(MasonrySnapshot(timestamp=self.clock.now(), reward_received=amount))

    def set_operator(self, caller: str, new_operator: str):
        self._require_operator(caller)
        if not new_operator:
            raise InvalidAddress("Masonry: zero address given for new operator")
        self.operator = new_operator

    def set_lock_up(self, caller: str, withdraw_lockup_epochs: int, reward_lockup_epochs: int):
        self._require_operator(caller)
        if not (reward_lockup_epochs <= withdraw_lockup_epochs <= self.MAX_WITHDRAW_LOCKUP_EPOCHS):
            raise PreconditionFailed("Masonry: withdraw lockup epochs out of range")
        self.withdraw_lockup_epochs = withdraw_lockup_epochs
        self.reward_lockup_epochs = reward_lockup_epochs

    def governance_recover_unsupported(self, caller: str, token: BasisAsset, amount: int, recipient: str):
        self._require_operator(caller)
        if token is self.main_token or token is self.share_token:
            raise UnsupportedToken(f"Masonry: cannot recover {token.symbol}")
        token.transfer(self.address, recipient, amount)

    def checkpoint(self) -> Tuple[int, int, int, str]:
        return (len(self.snapshots), self.withdraw_lockup_epochs,
                self.reward_lockup_epochs, self.operator)

    def rollback(self, state: Tuple[int, int, int, str]):
        count, withdraw, reward, operator = state
        del self.snapshots[count:]
        self.withdraw_lockup_epochs = withdraw
        self.reward_lockup_epochs = reward
        self.operator = operator

    def _require_operator(self, caller: str):
        if caller != self.operator:
            raise NotOperator("Masonry: caller is not the operator")


class VestingFund:
    """Bond treasury vesting a fixed allocation linearly over a number of epochs"""

    def __init__(self, address: str, total_allocation: int, start_time: int,
                 duration: int, clock: ChainClock):
        if duration <= 0:
            raise ValueError(f"duration must be positive: {duration}")
        self.address = address
        self.total_allocation = total_allocation
        self.start_time = start_time
        self.duration = duration
        self.clock = clock

    def total_vested(self) -> int:
        elapsed = self.clock.now() - self.start_time
        if elapsed <= 0:
            return 0
        if elapsed >= self.duration:
            return self.total_allocation
        return self.total_allocation * elapsed // self.duration
