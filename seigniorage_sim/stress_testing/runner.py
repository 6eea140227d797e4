#!/usr/bin/env python3
"""
Scenario Execution Engine

Runs treasury scenarios once or as a seeded Monte Carlo batch, aggregates the
outcomes and optionally stores results and charts.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .scenarios import TreasuryScenarioSuite
from ..analysis.charts import EpochChartGenerator
from ..analysis.metrics import TreasuryMetricsCalculator
from ..analysis.results_manager import ResultsManager, RunMetadata
from ..core.errors import TreasuryError
from ..engine.config import SimulationConfig

logger = logging.getLogger(__name__)

MONTE_CARLO_METRICS = [
    "final_price",
    "mean_peg_deviation",
    "epochs_below_peg_rate",
    "total_minted_amount",
    "tokens_burned_amount",
    "max_debt_ratio",
    "overall_health_score",
]


class ScenarioRunner:
    """Scenario execution engine with Monte Carlo capabilities and results storage"""

    def __init__(self, config: Optional[SimulationConfig] = None, auto_save: bool = True,
                 output_dir: str = "results", generate_charts: bool = False):
        self.config = config or SimulationConfig()
        self.suite = TreasuryScenarioSuite()
        self.auto_save = auto_save
        self.generate_charts = generate_charts
        self.results_manager = ResultsManager(output_dir) if auto_save else None
        self.chart_generator = EpochChartGenerator() if generate_charts else None
        self.last_run_dir: Optional[Path] = None

    def run_scenario(self, scenario_name: str, seed: Optional[int] = None,
                     epochs: Optional[int] = None) -> Dict:
        """Run a single scenario and analyze it"""
        start_time = time.time()
        results = self.suite.run_scenario(scenario_name, self.config, seed, epochs)
        analysis = TreasuryMetricsCalculator(results).generate_summary()

        final_results = {"scenario_results": results, "analysis": analysis}
        if self.auto_save:
            self._save_scenario_results(scenario_name, final_results, time.time() - start_time, 1)
        return final_results

    def run_monte_carlo(self, scenario_name: str, num_runs: int = 50,
                        base_seed: Optional[int] = None, epochs: Optional[int] = None) -> Dict:
        """
        Run a scenario num_runs times with independent seeds

        Args:
            scenario_name: Name of the scenario
            num_runs: Number of Monte Carlo runs
            base_seed: Seed for the seed sequence; None draws fresh entropy
            epochs: Override the scenario's epoch count

        Returns:
            Aggregated statistics plus the last run as a sample
        """
        seeds = np.random.SeedSequence(base_seed).generate_state(num_runs)
        runs: List[Dict] = []
        failures = 0
        start_time = time.time()

        for run, seed in enumerate(seeds):
            try:
                results = self.suite.run_scenario(scenario_name, self.config, int(seed), epochs)
            except (TreasuryError, ValueError) as e:
                failures += 1
                logger.error("Run %s of %s failed: %s", run, scenario_name, e)
                continue

            runs.append(results)
            if (run + 1) % 10 == 0:
                logger.info("Completed %s/%s runs (%.1fs)", run + 1, num_runs, time.time() - start_time)

        aggregated = self.aggregate_runs(runs)
        aggregated.update({
            "scenario_name": scenario_name,
            "num_runs": num_runs,
            "failed_runs": failures,
            "sample_scenario_results": runs[-1] if runs else None
        })

        if self.auto_save:
            self._save_scenario_results(scenario_name, aggregated, time.time() - start_time, num_runs)
        return aggregated

    def run_all(self, num_runs: int = 1, base_seed: Optional[int] = None,
                epochs: Optional[int] = None) -> Dict:
        """Run every scenario in the suite"""
        suite_results = {}
        for scenario_name in self.suite.get_scenario_names():
            if num_runs > 1:
                suite_results[scenario_name] = self.run_monte_carlo(scenario_name, num_runs, base_seed, epochs)
            else:
                suite_results[scenario_name] = self.run_scenario(scenario_name, base_seed, epochs)
        return suite_results

    @staticmethod
    def aggregate_runs(runs: List[Dict]) -> Dict:
        """Mean, spread and tail percentiles of per-run outcome metrics"""
        samples = {metric: [] for metric in MONTE_CARLO_METRICS}
        for results in runs:
            calculator = TreasuryMetricsCalculator(results)
            flat = {
                **calculator.calculate_peg_metrics(),
                **calculator.calculate_expansion_metrics(),
                **calculator.calculate_contraction_metrics(),
                **calculator.calculate_treasury_health_score()
            }
            for metric in MONTE_CARLO_METRICS:
                if metric in flat:
                    samples[metric].append(flat[metric])

        statistics = {}
        for metric, values in samples.items():
            if not values:
                continue
            data = np.asarray(values, dtype=float)
            statistics[metric] = {
                "mean": float(data.mean()),
                "std": float(data.std()),
                "min": float(data.min()),
                "p5": float(np.percentile(data, 5)),
                "median": float(np.median(data)),
                "p95": float(np.percentile(data, 95)),
                "max": float(data.max())
            }

        return {"successful_runs": len(runs), "statistics": statistics}

    def _save_scenario_results(self, scenario_name: str, results: Dict, execution_time: float, num_runs: int):
        run_dir = self.results_manager.create_run_directory(scenario_name)
        metadata = RunMetadata(
            run_id=run_dir.name,
            scenario_name=scenario_name,
            timestamp=datetime.now().isoformat(),
            parameters={"num_runs": num_runs, **self.config.model_dump(mode="json")},
            execution_time=execution_time
        )
        self.results_manager.save_results(run_dir, results, metadata)

        sample = results.get("scenario_results") or results.get("sample_scenario_results")
        summary = {"metadata": {"scenario_name": scenario_name, "timestamp": metadata.timestamp,
                                "execution_time": execution_time}}
        if sample:
            summary.update(TreasuryMetricsCalculator(sample).generate_summary())
            if self.chart_generator:
                charts = self.chart_generator.generate_charts(scenario_name, sample, Path(run_dir) / "charts")
                summary["charts"] = [str(chart) for chart in charts]

        self.results_manager.save_summary_report(run_dir, summary)
        logger.info("Results saved to %s", run_dir)
        self.last_run_dir = run_dir
