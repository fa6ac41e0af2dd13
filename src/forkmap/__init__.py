"""Dependency and consistency engine for a fork scheduling board.

Items live in ordered time-buckets ("forks") and functional layers and are
linked by dependency edges.  The engine:
  - answers transitive dependency queries (graph)
  - detects conflicts a proposed move would cause (conflicts)
  - proposes follow-up moves to resolve them (resolution)
  - scores items and buckets for criticality and risk (analytics)

Every call takes an explicit ``Board``; the engine keeps no hidden state.
"""

from forkmap.analytics import analytics_report, bucket_metrics, item_metrics, recommendations
from forkmap.board import Board
from forkmap.conflicts import analyze
from forkmap.graph import dependencies, dependents, items_in_bucket, items_in_bucket_and_layer
from forkmap.integrity import dependency_stats, validate_integrity
from forkmap.resolution import apply_move, execute, plan
from forkmap.snapshot import board_from_snapshot, import_snapshot, snapshot

__all__ = [
    "Board",
    "analytics_report",
    "analyze",
    "apply_move",
    "board_from_snapshot",
    "bucket_metrics",
    "dependencies",
    "dependency_stats",
    "dependents",
    "execute",
    "import_snapshot",
    "item_metrics",
    "items_in_bucket",
    "items_in_bucket_and_layer",
    "plan",
    "recommendations",
    "snapshot",
    "validate_integrity",
]
