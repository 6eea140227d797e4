#!/usr/bin/env python3
"""
Peg Price Manager

Mean-reverting log-price model for the main token. Price is pulled toward the
peg, pushed up by demand growth, pushed down by supply growth, and hit by
scheduled multiplicative shocks.
"""

import math
from typing import Dict, Optional

import numpy as np


class PegPriceManager:
    """Epoch-by-epoch market price around a 1.0 peg"""

    def __init__(self, initial_price: float = 1.05, volatility: float = 0.03,
                 mean_reversion: float = 0.10, supply_elasticity: float = 1.0,
                 demand_drift: float = 0.004, price_shocks: Optional[Dict[int, float]] = None,
                 seed: Optional[int] = None, floor_price: float = 0.01):
        """
        Initialize peg price manager

        Args:
            initial_price: Opening price
            volatility: Standard deviation of the per-epoch log price innovation
            mean_reversion: Fraction of the log distance to peg closed each epoch
            supply_elasticity: Log price change per unit of log supply growth
            demand_drift: Per-epoch log demand growth
            price_shocks: Epoch -> multiplicative shock applied after the step
            seed: Random seed for reproducibility
            floor_price: Lowest price the model will report
        """
        if initial_price <= 0:
            raise ValueError(f"initial_price must be positive: {initial_price}")

        self.initial_price = initial_price
        self.volatility = volatility
        self.mean_reversion = mean_reversion
        self.supply_elasticity = supply_elasticity
        self.demand_drift = demand_drift
        self.price_shocks = dict(price_shocks or {})
        self.floor_price = floor_price

        self.rng = np.random.default_rng(seed)
        self.current_price = initial_price
        self.price_history = [initial_price]

    def update_price(self, epoch: int, supply_growth: float = 0.0) -> float:
        """
        Step the price for an epoch

        Args:
            epoch: Simulation epoch
            supply_growth: log(supply_now / supply_previous)

        Returns:
            Updated price
        """
        if epoch == 0:
            price = self.initial_price
        else:
            log_price = math.log(self.current_price)
            log_price += (
                - self.mean_reversion * log_price
                + self.demand_drift
                - self.supply_elasticity * supply_growth
                + self.volatility * self.rng.standard_normal()
            )
            price = math.exp(log_price)

        if epoch in self.price_shocks:
            price *= 1 + self.price_shocks[epoch]

        self.current_price = max(price, self.floor_price)
        self.price_history.append(self.current_price)
        return self.current_price

    def get_price_statistics(self) -> Dict[str, float]:
        """Summary statistics of the realized path"""
        history = np.asarray(self.price_history[1:] or self.price_history)
        return {
            "initial_price": self.initial_price,
            "final_price": float(history[-1]),
            "min_price": float(history.min()),
            "max_price": float(history.max()),
            "mean_price": float(history.mean()),
            "volatility": float(np.std(np.diff(np.log(history)))) if len(history) > 1 else 0.0,
            "epochs": len(self.price_history) - 1
        }

    def reset(self, initial_price: float = None, seed: Optional[int] = None):
        """Reset the price manager for a new simulation"""
        if initial_price is not None:
            self.initial_price = initial_price
        if seed is not None:
            self.rng = np.random.default_rng(seed)

        self.current_price = self.initial_price
        self.price_history = [self.initial_price]
