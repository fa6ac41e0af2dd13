"""Criticality analysis: item scores, bottlenecks, bucket risk and recommendations.

Independent of any proposed move.  Every function recomputes from the board
it is given, so results are the same whether called immediately after a move
or after a caller-side throttle.
"""

from __future__ import annotations

import logging
from typing import Any

from forkmap import defaults
from forkmap.board import Board
from forkmap.conflicts import analyze, conflicted_items
from forkmap.graph import dependencies, dependents, items_in_bucket
from forkmap.models import (
    PRIORITY_RANK,
    BucketMetrics,
    Item,
    ItemMetrics,
    Priority,
    Recommendation,
    RecommendationType,
    now_iso,
)

log = logging.getLogger("forkmap.analytics")


# ---------------------------------------------------------------------------
# Item metrics
# ---------------------------------------------------------------------------

def criticality_score(board: Board, item: Item, dependent_count: int, dependency_count: int) -> int:
    """Integer criticality score, floored at 0.

    Rewards items blocking many others, headliners, complex items and items
    scheduled early; penalises items with many prerequisites.
    """
    score = dependent_count * defaults.DEPENDENT_WEIGHT
    if item.is_headliner:
        score += defaults.HEADLINER_BONUS
    score += defaults.COMPLEXITY_BONUS[item.complexity.value]
    score -= dependency_count * defaults.DEPENDENCY_PENALTY
    index = board.bucket_index(item.bucket)
    if index is not None:
        score += (len(board.buckets) - index) * defaults.EARLY_BUCKET_WEIGHT
    return max(0, score)


def path_length(board: Board, item_id: str) -> int:
    """Depth of the longest dependency chain below ``item_id``.

    Depths of fully explored nodes are memoized for the duration of the call;
    ``on_path`` only cuts cycles.
    """
    G = board.graph
    if item_id not in G:
        return 0
    on_path: set[str] = set()
    done: dict[str, int] = {}

    def _depth(node: str) -> int:
        if node in done:
            return done[node]
        on_path.add(node)
        best = 0
        for dep in G.successors(node):
            if dep not in on_path:
                best = max(best, 1 + _depth(dep))
        on_path.discard(node)
        done[node] = best
        return best

    return _depth(item_id)


def is_bottleneck(board: Board, item_id: str) -> bool:
    """True when at least two distinct goal items depend on ``item_id``."""
    goals_blocked = 0
    for goal_id in dict.fromkeys(board.goals):
        if goal_id in board and item_id in dependencies(board, goal_id):
            goals_blocked += 1
    return goals_blocked >= defaults.BOTTLENECK_MIN_GOALS


def item_metrics(board: Board) -> list[ItemMetrics]:
    """Metrics for every item, ranked by criticality (ties keep declaration order)."""
    out = []
    for item in board:
        n_dependents = len(dependents(board, item.id))
        n_dependencies = len(dependencies(board, item.id))
        out.append(ItemMetrics(
            id=item.id,
            name=item.name,
            layer=item.layer,
            bucket=item.bucket,
            dependent_count=n_dependents,
            dependency_count=n_dependencies,
            criticality_score=criticality_score(board, item, n_dependents, n_dependencies),
            path_length=path_length(board, item.id),
            is_bottleneck=is_bottleneck(board, item.id),
        ))
    out.sort(key=lambda m: -m.criticality_score)
    return out


def top_critical(board: Board, limit: int = defaults.TOP_CRITICAL_LIMIT) -> list[ItemMetrics]:
    return item_metrics(board)[:limit]


# ---------------------------------------------------------------------------
# Bucket metrics
# ---------------------------------------------------------------------------

def complexity_level(total_weight: int, item_count: int) -> str:
    if item_count == 0:
        return defaults.COMPLEXITY_LEVEL_EMPTY
    avg = total_weight / item_count
    for bound, level in defaults.COMPLEXITY_LEVELS:
        if avg < bound:
            return level
    return defaults.COMPLEXITY_LEVEL_MAX


def cross_layer_dependency_count(board: Board, bucket_id: str) -> int:
    """Dependency edges leaving this bucket's items towards another layer."""
    count = 0
    for item in items_in_bucket(board, bucket_id):
        for dep_id in dict.fromkeys(item.dependencies):
            dep = board.get_item(dep_id)
            if dep is not None and dep.layer != item.layer:
                count += 1
    return count


def bucket_risk_score(board: Board, bucket_id: str, items: list[Item]) -> int:
    risk = sum(defaults.COMPLEXITY_RISK[i.complexity.value] for i in items)
    conflicts = sum(len(analyze(board, i.id, i.bucket).conflicts) for i in items)
    risk += conflicts * defaults.CONFLICT_RISK_WEIGHT
    risk += max(0, len(items) - defaults.CROWDED_ITEM_THRESHOLD) * defaults.CROWDED_ITEM_WEIGHT
    if not board.is_overflow_bucket(bucket_id):
        headliners = sum(1 for i in items if i.is_headliner)
        risk += max(0, headliners - defaults.HEADLINER_RISK_THRESHOLD) * defaults.HEADLINER_RISK_WEIGHT
    return risk


def bucket_metrics(board: Board) -> dict[str, BucketMetrics]:
    """Per-bucket load and risk, keyed by bucket id in bucket order."""
    out: dict[str, BucketMetrics] = {}
    for bucket in board.buckets:
        items = items_in_bucket(board, bucket.id)
        total_weight = sum(defaults.COMPLEXITY_WEIGHT[i.complexity.value] for i in items)
        headliners = [i for i in items if i.is_headliner]
        out[bucket.id] = BucketMetrics(
            bucket_id=bucket.id,
            bucket_name=bucket.name or bucket.id,
            item_count=len(items),
            total_complexity_weight=total_weight,
            headliner_count=len(headliners),
            headliners=[{"id": h.id, "name": h.name, "layer": h.layer} for h in headliners],
            cross_layer_dependency_count=cross_layer_dependency_count(board, bucket.id),
            risk_score=bucket_risk_score(board, bucket.id, items),
            complexity_level=complexity_level(total_weight, len(items)),
        )
    return out


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def recommendations(board: Board) -> list[Recommendation]:
    """Actionable suggestions, high priority first (stable within a priority)."""
    recs: list[Recommendation] = []

    for m in bucket_metrics(board).values():
        if m.risk_score > defaults.HIGH_RISK_BUCKET_SCORE:
            recs.append(Recommendation(
                type=RecommendationType.HIGH_RISK_BUCKET,
                priority=Priority.HIGH,
                message=f"{m.bucket_name} has high risk (score: {m.risk_score}). "
                        "Consider redistributing items.",
                bucket_id=m.bucket_id,
            ))
        if m.item_count > defaults.OVERLOADED_BUCKET_ITEMS:
            recs.append(Recommendation(
                type=RecommendationType.OVERLOADED_BUCKET,
                priority=Priority.MEDIUM,
                message=f"{m.bucket_name} has {m.item_count} items. "
                        "Consider moving some to adjacent buckets.",
                bucket_id=m.bucket_id,
            ))

    for m in item_metrics(board):
        if m.is_bottleneck:
            recs.append(Recommendation(
                type=RecommendationType.BOTTLENECK,
                priority=Priority.HIGH,
                message=f"{m.name} is a bottleneck blocking multiple paths. Prioritize this item.",
                item_id=m.id,
            ))

    for item, report in conflicted_items(board):
        recs.append(Recommendation(
            type=RecommendationType.DEPENDENCY_CONFLICT,
            priority=Priority.HIGH,
            message=f"{item.name} has {len(report.conflicts)} dependency conflicts.",
            item_id=item.id,
        ))

    recs.sort(key=lambda r: -PRIORITY_RANK[r.priority])
    return recs


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def analytics_report(board: Board) -> dict[str, Any]:
    """Serializable snapshot of all analytics for export."""
    ranked = item_metrics(board)
    buckets = list(bucket_metrics(board).values())

    highest_risk = None
    for m in buckets:
        if m.risk_score > (highest_risk.risk_score if highest_risk else 0):
            highest_risk = m

    avg = sum(m.criticality_score for m in ranked) / len(ranked) if ranked else 0.0
    log.debug("Built analytics report for %d items, %d buckets", len(ranked), len(buckets))
    return {
        "generated_at": now_iso(),
        "critical_path": {
            "items": [m.to_dict() for m in ranked],
            "top_critical": [m.to_dict() for m in ranked[:defaults.REPORT_TOP_LIMIT]],
        },
        "bucket_complexity": [m.to_dict() for m in buckets],
        "summary": {
            "total_items": len(board),
            "total_buckets": len(buckets),
            "average_criticality": round(avg, 2),
            "highest_risk_bucket": highest_risk.bucket_id if highest_risk else None,
        },
    }
