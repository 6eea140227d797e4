#!/usr/bin/env python3
"""
Minimal Agent Interface

Base class for market participants trading against the treasury. Agents only
decide; the simulation engine executes their actions through the treasury.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict

from ..core.math import FixedPointMath
from ..core.tokens import BasisAsset


class AgentAction(Enum):
    """Agent action types"""
    BUY_BONDS = "buy_bonds"
    REDEEM_BONDS = "redeem_bonds"
    HOLD = "hold"


class AgentState:
    """Ledger balances mirrored from the tokens plus lifetime trading totals"""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id

        # Synced from the token ledgers before each decision
        self.main_balance = 0
        self.bond_balance = 0

        # Lifetime totals (1e18 scale)
        self.tokens_burned = 0
        self.bonds_bought = 0
        self.bonds_redeemed = 0
        self.tokens_received = 0
        self.rejected_actions = 0

    def record_purchase(self, tokens_burned: int, bonds_bought: int):
        self.tokens_burned += tokens_burned
        self.bonds_bought += bonds_bought

    def record_redemption(self, bonds_redeemed: int, tokens_received: int):
        self.bonds_redeemed += bonds_redeemed
        self.tokens_received += tokens_received

    @property
    def realized_profit(self) -> int:
        """Main token received from redemptions minus main token burned for bonds"""
        return self.tokens_received - self.tokens_burned


class BaseAgent(ABC):
    """Minimal agent interface"""

    def __init__(self, agent_id: str, agent_type: str):
        self.agent_id = agent_id
        self.agent_type = agent_type
        self.state = AgentState(agent_id)
        self.active = True

    @abstractmethod
    def decide_action(self, market: dict) -> tuple:
        """
        Decide what action to take based on the treasury's current quotes

        Args:
            market: price, price_ceiling, discount_rate, premium_rate,
                burnable_token_left and redeemable_bonds, all 1e18 scaled

        Returns:
            Tuple of (action_type, params)
        """
        pass

    def sync_balances(self, main_token: BasisAsset, bond_token: BasisAsset):
        self.state.main_balance = main_token.balance_of(self.agent_id)
        self.state.bond_balance = bond_token.balance_of(self.agent_id)

    def get_portfolio_summary(self, price: int) -> Dict:
        """Get summary of agent's portfolio in whole tokens"""
        state = self.state
        return {
            "agent_id": self.agent_id,
            "agent_type": self.agent_type,
            "main_balance": FixedPointMath.from_wei(state.main_balance),
            "bond_balance": FixedPointMath.from_wei(state.bond_balance),
            "portfolio_value": FixedPointMath.from_wei(FixedPointMath.mul_price(state.main_balance, price)),
            "tokens_burned": FixedPointMath.from_wei(state.tokens_burned),
            "bonds_bought": FixedPointMath.from_wei(state.bonds_bought),
            "bonds_redeemed": FixedPointMath.from_wei(state.bonds_redeemed),
            "tokens_received": FixedPointMath.from_wei(state.tokens_received),
            "realized_profit": FixedPointMath.from_wei(state.realized_profit),
            "rejected_actions": state.rejected_actions
        }
