"""Conflict detection for proposed moves.

Given a hypothetical (item, target bucket) move, finds:
  - dependency_after:    a dependency scheduled after the target bucket
  - dependent_before:    a dependent scheduled before the target bucket
  - circular_dependency: a dependency cycle reachable from the moved item
  - headliner_limit:     target bucket already at its per-layer headliner cap
  - bucket_overload:     target bucket current complexity weight above the threshold

The move is never applied.  Bucket lookups go through an override mapping
(``{item_id: target_bucket}``) so the board observed after ``analyze``
returns is exactly the board passed in.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from forkmap.board import Board
from forkmap.defaults import BUCKET_OVERLOAD_THRESHOLD, COMPLEXITY_WEIGHT
from forkmap.graph import direct_dependents, items_in_bucket
from forkmap.models import (
    SEVERITY_RANK,
    Conflict,
    ConflictReport,
    ConflictType,
    Item,
    Severity,
)

log = logging.getLogger("forkmap.conflicts")

# Conflict kinds with a registered resolution strategy.  Capacity conflicts
# are advisory only and keep a report from being auto-resolvable.
RESOLVABLE_TYPES = frozenset({
    ConflictType.DEPENDENCY_AFTER,
    ConflictType.DEPENDENT_BEFORE,
    ConflictType.CIRCULAR_DEPENDENCY,
})

_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze(board: Board, item_id: str, target_bucket: str) -> ConflictReport:
    """Report every conflict the move of ``item_id`` to ``target_bucket`` would cause.

    Unknown items or buckets yield an empty report.
    """
    item = board.get_item(item_id)
    target_index = board.bucket_index(target_bucket)
    if item is None or target_index is None:
        log.debug("Skipping analysis of unknown move %s -> %s", item_id, target_bucket)
        return ConflictReport(item_id=item_id, target_bucket=target_bucket)

    overrides = {item_id: target_bucket}
    conflicts: list[Conflict] = []
    conflicts.extend(_check_dependencies(board, item, target_index, overrides))
    conflicts.extend(_check_dependents(board, item, target_index, overrides))
    conflicts.extend(_check_cycles(board, item_id, overrides))
    conflicts.extend(_check_capacity(board, item, target_bucket))

    report = ConflictReport(
        item_id=item_id,
        target_bucket=target_bucket,
        conflicts=conflicts,
        severity=overall_severity(conflicts),
        auto_resolvable=all(c.type in RESOLVABLE_TYPES for c in conflicts),
    )
    log.debug(
        "Analyzed %s -> %s: %d conflict(s)", item_id, target_bucket, len(conflicts),
        extra={"item_id": item_id, "bucket_id": target_bucket,
               "conflicts": len(conflicts), "severity": report.severity.value},
    )
    return report


def overall_severity(conflicts: list[Conflict]) -> Severity:
    """Highest severity present; ``low`` when there are no conflicts."""
    if not conflicts:
        return Severity.LOW
    return max((c.severity for c in conflicts), key=SEVERITY_RANK.__getitem__)


def conflicted_items(board: Board) -> list[tuple[Item, ConflictReport]]:
    """Items that conflict with their own current bucket, in declaration order."""
    out = []
    for item in board:
        report = analyze(board, item.id, item.bucket)
        if report.has_conflicts:
            out.append((item, report))
    return out


def find_cycle(board: Board, start: str, overrides: Mapping[str, str] | None = None) -> list[str] | None:
    """Depth-first search for a dependency cycle reachable from ``start``.

    Tri-colour marking: a dependency edge into an in-progress node closes a
    cycle, which is returned as the ids on the traversal path from that node,
    with the node repeated at the end.  ``overrides`` maps item ids to the
    bucket they are assumed to occupy; it is consulted when recording the
    members' buckets and never written back to the board.
    """
    G = board.graph
    if start not in G:
        return None

    colour: dict[str, int] = {}
    path: list[str] = [start]
    colour[start] = _IN_PROGRESS
    stack: list[Iterator[str]] = [iter(G.successors(start))]

    while stack:
        advanced = False
        for dep in stack[-1]:
            state = colour.get(dep, _UNVISITED)
            if state == _IN_PROGRESS:
                cycle = path[path.index(dep):] + [dep]
                log.debug("Cycle from %s: %s", start, _describe_cycle(board, cycle, overrides or {}))
                return cycle
            if state == _UNVISITED:
                colour[dep] = _IN_PROGRESS
                path.append(dep)
                stack.append(iter(G.successors(dep)))
                advanced = True
                break
        if not advanced:
            colour[path.pop()] = _DONE
            stack.pop()
    return None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _bucket_of(board: Board, overrides: Mapping[str, str], item_id: str) -> str:
    return overrides.get(item_id) or board.get_item(item_id).bucket


def _check_dependencies(
    board: Board,
    item: Item,
    target_index: int,
    overrides: Mapping[str, str],
) -> list[Conflict]:
    out = []
    for dep_id in dict.fromkeys(item.dependencies):
        dep = board.get_item(dep_id)
        if dep is None:
            continue
        dep_bucket = _bucket_of(board, overrides, dep_id)
        if board.bucket_index(dep_bucket) > target_index:
            out.append(Conflict(
                type=ConflictType.DEPENDENCY_AFTER,
                severity=Severity.HIGH,
                message=f"{dep.name} (dependency) is scheduled after target bucket",
                item_id=dep.id,
                item_name=dep.name,
                current_bucket=dep_bucket,
            ))
    return out


def _check_dependents(
    board: Board,
    item: Item,
    target_index: int,
    overrides: Mapping[str, str],
) -> list[Conflict]:
    out = []
    for dependent_id in direct_dependents(board, item.id):
        dependent = board.get_item(dependent_id)
        dependent_bucket = _bucket_of(board, overrides, dependent_id)
        if board.bucket_index(dependent_bucket) < target_index:
            out.append(Conflict(
                type=ConflictType.DEPENDENT_BEFORE,
                severity=Severity.HIGH,
                message=f"{dependent.name} (dependent) is scheduled before target bucket",
                item_id=dependent.id,
                item_name=dependent.name,
                current_bucket=dependent_bucket,
            ))
    return out


def _check_cycles(board: Board, item_id: str, overrides: Mapping[str, str]) -> list[Conflict]:
    cycle = find_cycle(board, item_id, overrides)
    if cycle is None:
        return []
    names = [board.item_name(i) for i in cycle]
    return [Conflict(
        type=ConflictType.CIRCULAR_DEPENDENCY,
        severity=Severity.CRITICAL,
        message=f"Moving this item would create a circular dependency: {' → '.join(names)}",
        item_id=item_id,
        item_name=board.item_name(item_id),
        cycle=cycle,
    )]


def _check_capacity(board: Board, item: Item, target_bucket: str) -> list[Conflict]:
    out = []
    # Headliners already there, not counting the mover itself
    occupants = [i for i in items_in_bucket(board, target_bucket) if i.id != item.id]
    bucket_name = board.bucket_name(target_bucket)

    if item.is_headliner:
        headliners = sum(1 for i in occupants if i.is_headliner and i.layer == item.layer)
        cap = board.headliner_cap(target_bucket, item.layer)
        if headliners >= cap:
            out.append(Conflict(
                type=ConflictType.HEADLINER_LIMIT,
                severity=Severity.MEDIUM,
                message=f"Bucket {bucket_name} already has maximum {item.layer} headliners ({cap})",
                bucket_id=target_bucket,
                value=headliners,
            ))

    weight = sum(COMPLEXITY_WEIGHT[i.complexity.value] for i in items_in_bucket(board, target_bucket))
    if weight > BUCKET_OVERLOAD_THRESHOLD:
        out.append(Conflict(
            type=ConflictType.BUCKET_OVERLOAD,
            severity=Severity.LOW,
            message=f"Bucket {bucket_name} is becoming overloaded (complexity: {weight})",
            bucket_id=target_bucket,
            value=weight,
        ))
    return out


def _describe_cycle(board: Board, cycle: list[str], overrides: Mapping[str, str]) -> str:
    return " → ".join(f"{i}@{_bucket_of(board, overrides, i)}" for i in cycle)
