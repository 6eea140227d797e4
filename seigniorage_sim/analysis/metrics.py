#!/usr/bin/env python3
"""
Treasury Stability Metrics

Peg, expansion and contraction metrics computed from a simulation's epoch
history.
"""

from typing import Dict, List

import numpy as np
import pandas as pd


class TreasuryMetricsCalculator:
    """Treasury stability metrics calculator"""

    PEG = 1.0

    def __init__(self, results: Dict):
        self.results = results
        self.frame = self.to_dataframe(results.get("metrics_history", []))

    @staticmethod
    def to_dataframe(metrics_history: List[Dict]) -> pd.DataFrame:
        """Epoch history as a frame indexed by simulation epoch"""
        frame = pd.DataFrame(metrics_history)
        if frame.empty:
            return frame
        return frame.set_index("epoch").sort_index()

    def calculate_peg_metrics(self) -> Dict:
        """How far and how long price stayed away from peg"""
        if self.frame.empty:
            return {}

        price = self.frame["price"]
        deviation = (price - self.PEG).abs() / self.PEG
        above_ceiling = price > self.frame["price_ceiling"]
        below_peg = price < self.PEG

        return {
            "mean_price": float(price.mean()),
            "final_price": float(price.iloc[-1]),
            "min_price": float(price.min()),
            "max_price": float(price.max()),
            "mean_peg_deviation": float(deviation.mean()),
            "max_peg_deviation": float(deviation.max()),
            "epochs_above_ceiling_rate": float(above_ceiling.mean()),
            "epochs_below_peg_rate": float(below_peg.mean()),
            "longest_depeg_epochs": self._longest_run(below_peg),
            "peg_stability_score": max(0.0, 1.0 - float(deviation.mean()) / 0.10)
        }

    def calculate_expansion_metrics(self) -> Dict:
        """Where newly minted supply went"""
        if self.frame.empty:
            return {}

        frame = self.frame
        initial_supply = float(frame["circulating_supply"].iloc[0] - frame["minted"].iloc[0])
        final_supply = float(frame["circulating_supply"].iloc[-1])

        return {
            "total_minted_amount": float(frame["minted"].sum()),
            "masonry_amount": float(frame["to_masonry"].sum()),
            "dao_fund_amount": float(frame["to_dao_fund"].sum()),
            "dev_fund_amount": float(frame["to_dev_fund"].sum()),
            "reserve_amount": float(frame["to_reserve"].sum()),
            "bond_treasury_amount": float(frame["to_bond_treasury"].sum()),
            "expansion_epochs": int((frame["minted"] > 0).sum()),
            "bootstrap_epochs": int(frame["bootstrap"].sum()),
            "skipped_allocations": int((~frame["allocated"]).sum()),
            "supply_growth_rate": final_supply / initial_supply - 1 if initial_supply > 0 else 0.0
        }

    def calculate_contraction_metrics(self) -> Dict:
        """Bond market activity and debt levels"""
        if self.frame.empty:
            return {}

        frame = self.frame
        return {
            "tokens_burned_amount": float(frame["tokens_burned"].sum()),
            "bonds_bought_amount": float(frame["bonds_bought"].sum()),
            "bonds_redeemed_amount": float(frame["bonds_redeemed"].sum()),
            "tokens_paid_amount": float(frame["tokens_paid"].sum()),
            "final_bond_supply_amount": float(frame["bond_supply"].iloc[-1]),
            "final_reserve_balance": float(frame["seigniorage_saved"].iloc[-1]),
            "max_debt_ratio": float(frame["debt_ratio"].max()),
            "final_debt_ratio": float(frame["debt_ratio"].iloc[-1]),
            "rejected_actions": int(frame["rejected_actions"].sum())
        }

    def calculate_treasury_health_score(self) -> Dict:
        """Overall treasury health score (0-1)"""
        if self.frame.empty:
            return {"overall_health_score": 0.0, "component_scores": {}, "health_status": "unknown"}

        peg = self.calculate_peg_metrics()
        contraction = self.calculate_contraction_metrics()

        bond_supply = contraction["final_bond_supply_amount"]
        reserve_coverage = min(1.0, contraction["final_reserve_balance"] / bond_supply) if bond_supply > 0 else 1.0

        components = {
            "peg_stability": peg["peg_stability_score"],
            "reserve_coverage": reserve_coverage,
            "debt_safety": max(0.0, 1.0 - contraction["final_debt_ratio"] / 0.35),
            "oracle_availability": float(self.frame["allocated"].mean())
        }
        weights = {
            "peg_stability": 0.40,
            "reserve_coverage": 0.25,
            "debt_safety": 0.20,
            "oracle_availability": 0.15
        }

        score = sum(components[key] * weights[key] for key in components)
        return {
            "overall_health_score": score,
            "component_scores": components,
            "health_status": self._categorize_health(score)
        }

    def generate_summary(self) -> Dict:
        """Key metrics and risk assessment for a run summary"""
        health = self.calculate_treasury_health_score()
        key_metrics = {
            **self.calculate_peg_metrics(),
            **self.calculate_expansion_metrics(),
            **self.calculate_contraction_metrics()
        }

        concerns = []
        if key_metrics.get("longest_depeg_epochs", 0) >= 12:
            concerns.append(f"Price stayed below peg for {key_metrics['longest_depeg_epochs']} consecutive epochs")
        if key_metrics.get("skipped_allocations", 0) > 0:
            concerns.append(f"{key_metrics['skipped_allocations']} epochs skipped on oracle failure")
        if key_metrics.get("max_debt_ratio", 0.0) > 0.30:
            concerns.append("Bond supply approached the maximum debt ratio")

        return {
            "key_metrics": key_metrics,
            "risk_assessment": {
                "risk_level": self._risk_level(health["overall_health_score"]),
                "risk_score": 1.0 - health["overall_health_score"],
                "key_concerns": concerns
            },
            "health": health
        }

    @staticmethod
    def _longest_run(mask: pd.Series) -> int:
        values = mask.to_numpy(dtype=bool)
        if not values.any():
            return 0
        # Lengths of consecutive True runs
        padded = np.concatenate(([False], values, [False])).astype(int)
        edges = np.flatnonzero(np.diff(padded))
        return int((edges[1::2] - edges[::2]).max())

    @staticmethod
    def _categorize_health(score: float) -> str:
        if score >= 0.8:
            return "healthy"
        elif score >= 0.6:
            return "moderate"
        elif score >= 0.4:
            return "stressed"
        return "critical"

    @staticmethod
    def _risk_level(score: float) -> str:
        if score >= 0.8:
            return "Low"
        elif score >= 0.6:
            return "Medium"
        return "High"
