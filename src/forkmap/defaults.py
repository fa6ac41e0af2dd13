"""Single source of truth for engine weights, thresholds and caps.

Every scoring constant used by the conflict detector, the resolution planner
and the analytics lives here so that tuning happens in one place.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Complexity weights
# ---------------------------------------------------------------------------

# Aggregate bucket load (bucket_overload, complexity level)
COMPLEXITY_WEIGHT: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "very-high": 4,
}

# Criticality bonus per item
COMPLEXITY_BONUS: dict[str, int] = {
    "low": 0,
    "medium": 5,
    "high": 10,
    "very-high": 15,
}

# Bucket risk contribution per item
COMPLEXITY_RISK: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 4,
    "very-high": 6,
}

# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------

HEADLINERS_PER_LAYER = 1
OVERFLOW_HEADLINER_CAP = 2
BUCKET_OVERLOAD_THRESHOLD = 15

# ---------------------------------------------------------------------------
# Criticality score
# ---------------------------------------------------------------------------

DEPENDENT_WEIGHT = 10
HEADLINER_BONUS = 20
DEPENDENCY_PENALTY = 2
EARLY_BUCKET_WEIGHT = 3
BOTTLENECK_MIN_GOALS = 2
TOP_CRITICAL_LIMIT = 5
REPORT_TOP_LIMIT = 10

# ---------------------------------------------------------------------------
# Bucket risk score
# ---------------------------------------------------------------------------

CONFLICT_RISK_WEIGHT = 3
CROWDED_ITEM_THRESHOLD = 5
CROWDED_ITEM_WEIGHT = 2
HEADLINER_RISK_THRESHOLD = 2
HEADLINER_RISK_WEIGHT = 5

# (upper bound exclusive, level) on average complexity weight
COMPLEXITY_LEVELS: list[tuple[float, str]] = [
    (1.5, "low"),
    (2.5, "medium"),
    (3.5, "high"),
]
COMPLEXITY_LEVEL_MAX = "very-high"
COMPLEXITY_LEVEL_EMPTY = "empty"

# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

HIGH_RISK_BUCKET_SCORE = 20
OVERLOADED_BUCKET_ITEMS = 6

# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

SNAPSHOT_VERSION = "1.0"
DEFAULT_SNAPSHOT_PATH = ".forkmap/snapshot.json"
