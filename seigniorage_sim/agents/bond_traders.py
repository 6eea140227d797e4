#!/usr/bin/env python3
"""
Bond Trading Agents

BondBuyer burns main token for bonds while price is below peg and optionally
cashes them out once price clears the ceiling. BondRedeemer holds bonds from
genesis and redeems once the premium rate is worth it.
"""

from typing import Optional

from .base_agent import BaseAgent, AgentAction
from ..core.math import FixedPointMath, TOKEN_PRICE_ONE


class BondBuyer(BaseAgent):
    """Buys bonds below peg with a fraction of its balance"""

    def __init__(self, agent_id: str, buy_fraction: float = 0.25, redeem_above_ceiling: bool = True):
        super().__init__(agent_id, "bond_buyer")
        if not 0 < buy_fraction <= 1:
            raise ValueError(f"buy_fraction must be in (0, 1]: {buy_fraction}")
        self.buy_fraction_bps = int(round(buy_fraction * FixedPointMath.BASIS_POINTS))
        self.redeem_above_ceiling = redeem_above_ceiling

    def decide_action(self, market: dict) -> tuple:
        price = market["price"]

        if price < TOKEN_PRICE_ONE and market["discount_rate"] > 0:
            amount = min(
                market["burnable_token_left"],
                FixedPointMath.apply_bps(self.state.main_balance, self.buy_fraction_bps)
            )
            if amount > 0:
                return (AgentAction.BUY_BONDS, {"amount": amount, "expected_price": price})

        if self.redeem_above_ceiling:
            redeem = _redeemable_amount(self.state.bond_balance, market)
            if redeem:
                return (AgentAction.REDEEM_BONDS, {"amount": redeem, "expected_price": price})

        return (AgentAction.HOLD, {})


class BondRedeemer(BaseAgent):
    """Redeems held bonds once the premium rate reaches min_rate"""

    def __init__(self, agent_id: str, min_rate: int = TOKEN_PRICE_ONE):
        super().__init__(agent_id, "bond_redeemer")
        self.min_rate = min_rate

    def decide_action(self, market: dict) -> tuple:
        if market["premium_rate"] >= self.min_rate:
            redeem = _redeemable_amount(self.state.bond_balance, market)
            if redeem:
                return (AgentAction.REDEEM_BONDS, {"amount": redeem, "expected_price": market["price"]})
        return (AgentAction.HOLD, {})


def _redeemable_amount(bond_balance: int, market: dict) -> Optional[int]:
    if market["price"] <= market["price_ceiling"] or market["premium_rate"] <= 0:
        return None
    amount = min(bond_balance, market["redeemable_bonds"])
    return amount if amount > 0 else None
