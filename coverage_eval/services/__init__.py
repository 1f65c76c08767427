"""
Services for Coverage Evaluation module.

These services wrap external collaborators (benchmark premium lookups)
and simulation inputs, keeping the calculators pure.

The analysis orchestrator lives in coverage_eval.services.analysis_service
and is imported from there directly.
"""

from .benchmark_service import (
    BenchmarkCache,
    BenchmarkQuote,
    BenchmarkService,
    BenchmarkSource,
    BenchmarkUnavailableError,
    InMemoryBenchmarkCache,
)
from .risk_service import (
    RiskService,
    estimate_base_medical_cost,
    get_cost_sharing,
)

__all__ = [
    'BenchmarkCache',
    'BenchmarkQuote',
    'BenchmarkService',
    'BenchmarkSource',
    'BenchmarkUnavailableError',
    'InMemoryBenchmarkCache',
    'RiskService',
    'estimate_base_medical_cost',
    'get_cost_sharing',
]
