"""
Metrics Module
==============

Path metrics, statistics, and run classification.
"""

from .path_metrics import (
    PathMetrics,
    compute_path_metrics,
    BacktrackingStats,
    compute_backtracking_stats,
    RunStatus,
    RunResult,
    RunClassifier,
)

__all__ = [
    'PathMetrics',
    'compute_path_metrics',
    'BacktrackingStats',
    'compute_backtracking_stats',
    'RunStatus',
    'RunResult',
    'RunClassifier',
]
