#!/usr/bin/env python3
"""
Epoch Chart Generator

Time-series charts of price, supply, bond flows and seigniorage distribution
for a single treasury simulation run.
"""

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .metrics import TreasuryMetricsCalculator

logger = logging.getLogger(__name__)


class EpochChartGenerator:
    """Generates per-run epoch charts"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        """Setup clean, professional chart styling"""
        plt.style.use('default')
        sns.set_palette("husl")

        plt.rcParams.update({
            'figure.figsize': (14, 10),
            'font.size': 11,
            'axes.titlesize': 13,
            'axes.labelsize': 11,
            'legend.fontsize': 9,
            'xtick.labelsize': 9,
            'ytick.labelsize': 9
        })

    def generate_charts(self, scenario_name: str, results: Dict, charts_dir: Path) -> List[Path]:
        """Write the run's charts into charts_dir and return their paths"""
        frame = TreasuryMetricsCalculator.to_dataframe(results.get("metrics_history", []))
        if frame.empty:
            logger.warning("no epoch history for %s, skipping charts", scenario_name)
            return []

        charts_dir.mkdir(parents=True, exist_ok=True)
        return [
            self._create_price_and_supply_chart(frame, charts_dir, scenario_name),
            self._create_seigniorage_chart(frame, charts_dir, scenario_name)
        ]

    def _create_price_and_supply_chart(self, frame: pd.DataFrame, charts_dir: Path, scenario_name: str) -> Path:
        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2)
        fig.suptitle(f"{scenario_name}: Price, Supply and Bonds", fontsize=15, fontweight='bold')

        # Price against peg and ceiling
        ax1.plot(frame.index, frame["price"], label="Price", linewidth=2)
        ax1.plot(frame.index, frame["price_ceiling"], linestyle="--", color="tab:red", label="Ceiling")
        ax1.axhline(1.0, linestyle=":", color="gray", label="Peg")
        ax1.set_title("Token Price")
        ax1.set_xlabel("Epoch")
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        ax2.plot(frame.index, frame["circulating_supply"], label="Circulating", linewidth=2)
        ax2.plot(frame.index, frame["seigniorage_saved"], label="Reserve", linewidth=2)
        ax2.set_title("Supply")
        ax2.set_xlabel("Epoch")
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        ax3.bar(frame.index, frame["tokens_burned"], label="Burned for bonds", alpha=0.7)
        ax3.bar(frame.index, -frame["tokens_paid"], label="Paid on redemption", alpha=0.7)
        ax3.set_title("Bond Market Flows")
        ax3.set_xlabel("Epoch")
        ax3.legend()
        ax3.grid(True, alpha=0.3)

        ax4.plot(frame.index, frame["bond_supply"], label="Bond supply", linewidth=2)
        ax4_ratio = ax4.twinx()
        ax4_ratio.plot(frame.index, frame["debt_ratio"] * 100, color="tab:purple", linestyle="--", label="Debt ratio %")
        ax4.set_title("Outstanding Debt")
        ax4.set_xlabel("Epoch")
        ax4.legend(loc="upper left")
        ax4_ratio.legend(loc="upper right")
        ax4.grid(True, alpha=0.3)

        plt.tight_layout()
        chart_path = charts_dir / "price_supply_bonds.png"
        plt.savefig(chart_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return chart_path

    def _create_seigniorage_chart(self, frame: pd.DataFrame, charts_dir: Path, scenario_name: str) -> Path:
        fig, (ax1, ax2) = plt.subplots(2, 1)
        fig.suptitle(f"{scenario_name}: Seigniorage Distribution", fontsize=15, fontweight='bold')

        columns = ["to_masonry", "to_dao_fund", "to_dev_fund", "to_reserve", "to_bond_treasury"]
        labels = ["Masonry", "DAO fund", "Dev fund", "Reserve", "Bond treasury"]
        ax1.stackplot(frame.index, *[frame[column] for column in columns], labels=labels, alpha=0.8)
        ax1.set_title("Minted per Epoch")
        ax1.set_xlabel("Epoch")
        ax1.legend(loc="upper left")
        ax1.grid(True, alpha=0.3)

        totals = frame[columns].sum()
        totals.index = labels
        sns.barplot(x=totals.index, y=totals.values, ax=ax2)
        ax2.set_title("Cumulative Distribution")
        ax2.set_ylabel("Tokens")
        ax2.grid(True, alpha=0.3, axis="y")

        plt.tight_layout()
        chart_path = charts_dir / "seigniorage_distribution.png"
        plt.savefig(chart_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return chart_path
