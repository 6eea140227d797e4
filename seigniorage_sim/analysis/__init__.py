"""Run analysis and reporting"""

from .metrics import TreasuryMetricsCalculator
from .charts import EpochChartGenerator
from .results_manager import ResultsManager, RunMetadata

__all__ = ["TreasuryMetricsCalculator", "EpochChartGenerator", "ResultsManager", "RunMetadata"]
