#!/usr/bin/env python3
"""
Simulation State Management

Market price plus per-epoch and lifetime bond flow counters.
"""

from typing import Dict, List


class SimulationState:
    """Global simulation state"""

    def __init__(self, initial_price: float = 1.0):
        self.current_price = initial_price
        self.previous_supply = 0

        # Per-epoch flows (1e18 scale)
        self.epoch_tokens_burned = 0
        self.epoch_bonds_bought = 0
        self.epoch_bonds_redeemed = 0
        self.epoch_tokens_paid = 0
        self.epoch_rejected_actions = 0

        # Lifetime totals
        self.total_tokens_burned = 0
        self.total_bonds_bought = 0
        self.total_bonds_redeemed = 0
        self.total_tokens_paid = 0
        self.total_minted = 0

        self.oracle_outages: List[int] = []
        self.epochs_above_ceiling = 0
        self.epochs_below_peg = 0

    def reset_epoch_counters(self):
        self.epoch_tokens_burned = 0
        self.epoch_bonds_bought = 0
        self.epoch_bonds_redeemed = 0
        self.epoch_tokens_paid = 0
        self.epoch_rejected_actions = 0

    def record_purchase(self, tokens_burned: int, bonds_bought: int):
        self.epoch_tokens_burned += tokens_burned
        self.epoch_bonds_bought += bonds_bought
        self.total_tokens_burned += tokens_burned
        self.total_bonds_bought += bonds_bought

    def record_redemption(self, bonds_redeemed: int, tokens_paid: int):
        self.epoch_bonds_redeemed += bonds_redeemed
        self.epoch_tokens_paid += tokens_paid
        self.total_bonds_redeemed += bonds_redeemed
        self.total_tokens_paid += tokens_paid

    def get_state_summary(self) -> Dict:
        """Get summary of current state"""
        return {
            "current_price": self.current_price,
            "total_tokens_burned": self.total_tokens_burned,
            "total_bonds_bought": self.total_bonds_bought,
            "total_bonds_redeemed": self.total_bonds_redeemed,
            "total_tokens_paid": self.total_tokens_paid,
            "total_minted": self.total_minted,
            "oracle_outages": len(self.oracle_outages),
            "epochs_above_ceiling": self.epochs_above_ceiling,
            "epochs_below_peg": self.epochs_below_peg
        }
