#!/usr/bin/env python3
"""
Main entry point for the seigniorage treasury simulation.

Runs a named scenario, the whole suite or the baseline configuration once or
as a Monte Carlo batch and prints a summary.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .analysis.metrics import TreasuryMetricsCalculator
from .core.errors import TreasuryError
from .engine.config import SimulationConfig
from .simulation.engine import TreasurySimulationEngine
from .stress_testing.runner import ScenarioRunner
from .stress_testing.scenarios import TreasuryScenarioSuite


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seigniorage Treasury Simulation")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--scenario", type=str, help="Scenario to run (default: baseline configuration)")
    target.add_argument("--all", action="store_true", help="Run every scenario in the suite")
    parser.add_argument("--list-scenarios", action="store_true", help="List available scenarios and exit")
    parser.add_argument("--epochs", type=int, help="Number of epochs to simulate")
    parser.add_argument("--monte-carlo", type=int, metavar="RUNS", help="Run the scenario RUNS times")
    parser.add_argument("--seed", type=int, help="Random seed for reproducibility")
    parser.add_argument("--output", type=str, help="Directory to store results in")
    parser.add_argument("--charts", action="store_true", help="Generate charts (requires --output)")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    return parser


def list_scenarios():
    print("Available scenarios:")
    for scenario in TreasuryScenarioSuite().scenarios:
        print(f"  {scenario.name:<20} {scenario.description}")


def print_results_summary(summary: dict):
    """Print a formatted summary of a single run"""
    metrics = summary["key_metrics"]
    risk = summary["risk_assessment"]

    print("\n" + "=" * 70)
    print("TREASURY SIMULATION SUMMARY")
    print("=" * 70)
    print(f"Final Price:            {metrics.get('final_price', 0):.4f}")
    print(f"Mean Peg Deviation:     {metrics.get('mean_peg_deviation', 0):.2%}")
    print(f"Epochs Below Peg:       {metrics.get('epochs_below_peg_rate', 0):.1%}")
    print(f"Total Minted:           {metrics.get('total_minted_amount', 0):,.0f}")
    print(f"  to Masonry:           {metrics.get('masonry_amount', 0):,.0f}")
    print(f"  to Reserve:           {metrics.get('reserve_amount', 0):,.0f}")
    print(f"Burned for Bonds:       {metrics.get('tokens_burned_amount', 0):,.0f}")
    print(f"Paid on Redemption:     {metrics.get('tokens_paid_amount', 0):,.0f}")
    print(f"Final Bond Supply:      {metrics.get('final_bond_supply_amount', 0):,.0f}")
    print(f"Skipped Allocations:    {metrics.get('skipped_allocations', 0)}")
    print(f"Risk Level:             {risk['risk_level']} ({risk['risk_score']:.3f})")
    for concern in risk["key_concerns"]:
        print(f"  - {concern}")
    print("=" * 70)


def print_monte_carlo_summary(results: dict):
    print("\n" + "=" * 70)
    print(f"MONTE CARLO SUMMARY: {results['scenario_name']}")
    print("=" * 70)
    print(f"Successful Runs: {results['successful_runs']}/{results['num_runs']}")
    for metric, stats in results["statistics"].items():
        print(f"  {metric:<24} mean {stats['mean']:>14.4f}   p5 {stats['p5']:>14.4f}   p95 {stats['p95']:>14.4f}")
    print("=" * 70)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command-line interface"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.list_scenarios:
        list_scenarios()
        return 0

    if args.charts and args.output is None:
        print("--charts requires --output")
        return 2

    try:
        config = SimulationConfig(random_seed=args.seed)
        if args.epochs:
            config = SimulationConfig.model_validate({**config.model_dump(), "epochs": args.epochs})

        if args.scenario is None and not args.all:
            if args.monte_carlo or args.output is not None:
                print("--monte-carlo and --output require --scenario or --all")
                return 2
            results = TreasurySimulationEngine(config).run_simulation()
            print_results_summary(TreasuryMetricsCalculator(results).generate_summary())
            return 0

        runner = ScenarioRunner(
            config,
            auto_save=args.output is not None,
            output_dir=args.output or "results",
            generate_charts=args.charts
        )
        if args.all:
            suite_results = runner.run_all(args.monte_carlo or 1, args.seed, args.epochs)
            for scenario_name, results in suite_results.items():
                print(f"\n{scenario_name}")
                if args.monte_carlo and args.monte_carlo > 1:
                    print_monte_carlo_summary(results)
                else:
                    print_results_summary(results["analysis"])
        elif args.monte_carlo:
            results = runner.run_monte_carlo(args.scenario, args.monte_carlo, args.seed, args.epochs)
            print_monte_carlo_summary(results)
        else:
            results = runner.run_scenario(args.scenario, args.seed, args.epochs)
            print_results_summary(results["analysis"])

        if runner.last_run_dir is not None:
            print(f"Results saved to {runner.last_run_dir}")

    except (TreasuryError, ValueError) as e:
        print(f"Simulation failed: {e}")
        if args.verbose:
            logging.exception("simulation failed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
