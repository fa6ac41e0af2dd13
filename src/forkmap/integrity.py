"""Integrity scan and dependency statistics for a board."""

from __future__ import annotations

from typing import Any

from forkmap.board import Board
from forkmap.conflicts import conflicted_items
from forkmap.models import ConflictType, IntegrityIssue, IntegrityReport, IssueType


def dangling_dependencies(board: Board) -> list[tuple[str, str]]:
    """(item_id, missing_dependency_id) pairs, in declaration order."""
    return [(item.id, dep) for item in board for dep in item.dependencies if dep not in board]


def validate_integrity(board: Board) -> IntegrityReport:
    """Report orphaned dependencies and items conflicting with their own bucket.

    Findings are non-fatal: the board stays fully usable.
    """
    report = IntegrityReport()
    for item_id, dep in dangling_dependencies(board):
        report.issues.append(IntegrityIssue(
            type=IssueType.ORPHANED_DEPENDENCY,
            item_id=item_id,
            orphaned_id=dep,
            message=f"{board.item_name(item_id)} depends on non-existent item: {dep}",
        ))
    for item, conflict_report in conflicted_items(board):
        n = len(conflict_report.conflicts)
        report.issues.append(IntegrityIssue(
            type=IssueType.TIMELINE_VIOLATION,
            item_id=item.id,
            conflicts=n,
            message=f"{item.name} has {n} scheduling conflicts",
        ))
    return report


def dependency_stats(board: Board) -> dict[str, Any]:
    counts = [len(item.dependencies) for item in board]
    conflicted = conflicted_items(board)
    circular = [i for i, r in conflicted if r.of_type(ConflictType.CIRCULAR_DEPENDENCY)]
    return {
        "total_items": len(board),
        "total_dependencies": sum(counts),
        "average_dependencies": round(sum(counts) / len(counts), 2) if counts else 0.0,
        "max_dependencies": max(counts, default=0),
        "items_with_conflicts": len(conflicted),
        "circular_dependencies": len(circular),
    }
