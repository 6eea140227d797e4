#!/usr/bin/env python3
"""
Results Management System

Sequentially numbered run directories holding results, metadata and a
markdown summary.
"""

import json
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class RunMetadata:
    """Metadata for a single simulation run"""
    run_id: str
    scenario_name: str
    timestamp: str
    parameters: Dict[str, Any]
    execution_time: float
    status: str = "completed"


class ResultsManager:
    """Handles results storage and run numbering"""

    def __init__(self, base_results_dir: str = "results"):
        self.base_results_dir = Path(base_results_dir)
        self._lock = threading.Lock()
        self.base_results_dir.mkdir(parents=True, exist_ok=True)

    def create_run_directory(self, scenario_name: str) -> Path:
        """
        Create a new run directory with sequential numbering

        Args:
            scenario_name: Name of the scenario

        Returns:
            Path to the created run directory
        """
        with self._lock:
            scenario_dir = self.base_results_dir / scenario_name
            scenario_dir.mkdir(exist_ok=True)

            run_number = self._get_next_run_number(scenario_dir)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

            run_dir = scenario_dir / f"run_{run_number:03d}_{timestamp}"
            run_dir.mkdir(exist_ok=True)
            (run_dir / "charts").mkdir(exist_ok=True)
            return run_dir

    def _get_next_run_number(self, scenario_dir: Path) -> int:
        """Get the next sequential run number for a scenario"""
        run_numbers = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            parts = run_dir.name.split("_")
            if len(parts) >= 2 and parts[1].isdigit():
                run_numbers.append(int(parts[1]))

        return max(run_numbers) + 1 if run_numbers else 1

    def save_results(self, run_dir: Path, results: Dict[str, Any], metadata: RunMetadata) -> Path:
        """Write results.json and metadata.json; returns the results path"""
        results_file = run_dir / "results.json"
        with open(results_file, 'w') as f:
            json.dump(self._make_serializable(results), f, indent=2)

        with open(run_dir / "metadata.json", 'w') as f:
            json.dump(self._make_serializable(asdict(metadata)), f, indent=2)

        return results_file

    def save_summary_report(self, run_dir: Path, summary: Dict[str, Any]) -> Path:
        """Save a markdown summary report"""
        summary_file = run_dir / "summary.md"
        with open(summary_file, 'w') as f:
            f.write(self._generate_markdown_summary(summary))
        return summary_file

    def _generate_markdown_summary(self, summary: Dict[str, Any]) -> str:
        md_content = ["# Treasury Simulation Run Summary\n"]

        if "metadata" in summary:
            metadata = summary["metadata"]
            md_content.append("## Run Information")
            md_content.append(f"- **Scenario**: {metadata.get('scenario_name', 'Unknown')}")
            md_content.append(f"- **Timestamp**: {metadata.get('timestamp', 'Unknown')}")
            md_content.append(f"- **Execution Time**: {metadata.get('execution_time', 0):.2f}s")
            md_content.append("")

        if "key_metrics" in summary:
            md_content.append("## Key Metrics")
            for key, value in summary["key_metrics"].items():
                label = key.replace('_', ' ').title()
                if isinstance(value, float):
                    if key.endswith("_rate") or key.endswith("_deviation"):
                        md_content.append(f"- **{label}**: {value:.2%}")
                    elif key.endswith("_amount") or key.endswith("_balance"):
                        md_content.append(f"- **{label}**: {value:,.2f}")
                    else:
                        md_content.append(f"- **{label}**: {value:.4f}")
                else:
                    md_content.append(f"- **{label}**: {value}")
            md_content.append("")

        if "risk_assessment" in summary:
            assessment = summary["risk_assessment"]
            md_content.append("## Risk Assessment")
            md_content.append(f"- **Overall Risk Level**: {assessment.get('risk_level', 'Unknown')}")
            md_content.append(f"- **Risk Score**: {assessment.get('risk_score', 0):.3f}")
            if assessment.get("key_concerns"):
                md_content.append("\n### Key Concerns")
                for concern in assessment["key_concerns"]:
                    md_content.append(f"- {concern}")
            md_content.append("")

        if summary.get("charts"):
            md_content.append("## Generated Charts")
            for chart in summary["charts"]:
                md_content.append(f"- `charts/{Path(chart).name}`")

        return "\n".join(md_content)

    def list_scenario_runs(self, scenario_name: str) -> List[Dict[str, Any]]:
        """List all runs for a specific scenario"""
        scenario_dir = self.base_results_dir / scenario_name
        if not scenario_dir.exists():
            return []

        runs = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            metadata = self.load_metadata(run_dir)
            entry = {"run_id": run_dir.name, "path": str(run_dir)}
            entry.update(asdict(metadata) if metadata else {"scenario_name": scenario_name})
            entry["run_id"] = run_dir.name
            runs.append(entry)

        runs.sort(key=lambda x: x["run_id"])
        return runs

    def load_results(self, run_path: Path) -> Optional[Dict[str, Any]]:
        """Load results from a run directory"""
        results_file = run_path / "results.json"
        if not results_file.exists():
            return None
        try:
            with open(results_file, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError:
            return None

    def load_metadata(self, run_path: Path) -> Optional[RunMetadata]:
        """Load metadata from a run directory"""
        metadata_file = run_path / "metadata.json"
        if not metadata_file.exists():
            return None
        try:
            with open(metadata_file, 'r') as f:
                return RunMetadata(**json.load(f))
        except (json.JSONDecodeError, TypeError):
            return None

    def _make_serializable(self, obj: Any) -> Any:
        """Convert objects to JSON-serializable format"""
        if hasattr(obj, 'tolist'):  # numpy arrays
            return obj.tolist()
        elif hasattr(obj, 'item'):  # numpy scalars
            return obj.item()
        elif isinstance(obj, (set, frozenset)):
            return list(obj)
        elif isinstance(obj, dict):
            return {
                (str(k.value) if hasattr(k, 'value') else k if isinstance(k, (str, int, float)) else str(k)):
                self._make_serializable(v)
                for k, v in obj.items()
            }
        elif isinstance(obj, (list, tuple)):
            return [self._make_serializable(item) for item in obj]
        elif hasattr(obj, 'value'):  # Enum
            return obj.value
        return obj
