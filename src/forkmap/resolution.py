"""Resolution planning: turn a conflict report into suggested follow-up moves.

Each resolvable conflict kind has a strategy that proposes a single move:
  - dependency_after:    pull the dependency one bucket before the target
  - dependent_before:    push the dependent one bucket after the target
  - circular_dependency: relocate a cycle member with a single dependency
                         (needs explicit confirmation, never automatic)

Conflicts without a strategy become manual actions carrying their message.
Plans are single-step suggestions; re-analysing after ``execute`` may still
report conflicts.
"""

from __future__ import annotations

import logging
from typing import Callable

from forkmap.board import Board
from forkmap.conflicts import analyze
from forkmap.errors import ForkmapError
from forkmap.models import (
    Conflict,
    ConflictType,
    ManualAction,
    MoveOutcome,
    MoveResult,
    ProposedMove,
    ResolutionPlan,
)

log = logging.getLogger("forkmap.resolution")

_Strategy = Callable[[Board, Conflict, int], "ProposedMove | ManualAction"]


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _resolve_dependency_after(board: Board, conflict: Conflict, target_index: int) -> ProposedMove:
    suggested = board.bucket_at(max(0, target_index - 1)).id
    return ProposedMove(
        item_id=conflict.item_id,
        target_bucket=suggested,
        description=f"Move {conflict.item_name} to {board.bucket_name(suggested)}",
        automatic=True,
        conflict_type=conflict.type,
    )


def _resolve_dependent_before(board: Board, conflict: Conflict, target_index: int) -> ProposedMove:
    suggested = board.bucket_at(min(board.last_index, target_index + 1)).id
    return ProposedMove(
        item_id=conflict.item_id,
        target_bucket=suggested,
        description=f"Move {conflict.item_name} to {board.bucket_name(suggested)}",
        automatic=True,
        conflict_type=conflict.type,
    )


def _resolve_circular_dependency(
    board: Board,
    conflict: Conflict,
    target_index: int,
) -> ProposedMove | ManualAction:
    # Members with a single dependency carry the fewest constraints
    for member_id in conflict.cycle:
        member = board.get_item(member_id)
        if member is not None and len(member.dependencies) == 1:
            suggested = board.bucket_at(min(board.last_index, target_index + 1)).id
            return ProposedMove(
                item_id=member.id,
                target_bucket=suggested,
                description=f"Move {member.name} to break circular dependency",
                automatic=False,
                conflict_type=conflict.type,
            )
    return ManualAction(
        description="Manual intervention required to resolve circular dependency",
        type=conflict.type,
    )


_STRATEGIES: dict[ConflictType, _Strategy] = {
    ConflictType.DEPENDENCY_AFTER: _resolve_dependency_after,
    ConflictType.DEPENDENT_BEFORE: _resolve_dependent_before,
    ConflictType.CIRCULAR_DEPENDENCY: _resolve_circular_dependency,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def plan(board: Board, item_id: str, target_bucket: str, conflicts: list[Conflict]) -> ResolutionPlan:
    """Partition suggested follow-up moves into automatic, advisory and manual."""
    result = ResolutionPlan()
    target_index = board.bucket_index(target_bucket)

    for conflict in conflicts:
        strategy = _STRATEGIES.get(conflict.type)
        if strategy is None or target_index is None:
            result.manual.append(ManualAction(description=conflict.message, type=conflict.type))
            continue
        resolution = strategy(board, conflict, target_index)
        if isinstance(resolution, ManualAction):
            result.manual.append(resolution)
        elif resolution.automatic:
            result.moves.append(resolution)
        else:
            result.warnings.append(resolution)

    log.debug(
        "Plan for %s -> %s: %d move(s), %d warning(s), %d manual",
        item_id, target_bucket, len(result.moves), len(result.warnings), len(result.manual),
        extra={"item_id": item_id, "bucket_id": target_bucket},
    )
    return result


def execute(board: Board, resolution_plan: ResolutionPlan) -> list[MoveResult]:
    """Apply every automatic move in order.

    A failed move is recorded and does not stop the remaining ones.
    Warnings and manual actions are never applied.
    """
    return [_apply(board, move.item_id, move.target_bucket, move.description)
            for move in resolution_plan.moves]


def apply_move(board: Board, item_id: str, target_bucket: str, *, resolve: bool = True) -> MoveOutcome:
    """Move an item, optionally applying the automatic resolution moves around it.

    Dependencies are moved first, then the item, then its dependents, so each
    step lands next to an already-placed neighbour.  Callers re-run
    ``analyze`` afterwards if they need a conflict-free guarantee.
    """
    report = analyze(board, item_id, target_bucket)
    resolution_plan = plan(board, item_id, target_bucket, report.conflicts) if resolve else ResolutionPlan()

    before = [m for m in resolution_plan.moves if m.conflict_type == ConflictType.DEPENDENCY_AFTER]
    after = [m for m in resolution_plan.moves if m.conflict_type != ConflictType.DEPENDENCY_AFTER]

    results = [_apply(board, m.item_id, m.target_bucket, m.description) for m in before]
    results.append(_apply(board, item_id, target_bucket,
                          f"Move {board.item_name(item_id)} to {board.bucket_name(target_bucket)}"))
    results.extend(_apply(board, m.item_id, m.target_bucket, m.description) for m in after)
    return MoveOutcome(report=report, plan=resolution_plan, results=results)


def _apply(board: Board, item_id: str, target_bucket: str, description: str) -> MoveResult:
    try:
        old = board.move_item(item_id, target_bucket)
    except ForkmapError as exc:
        log.warning("Move %s -> %s failed: %s", item_id, target_bucket, exc,
                    extra={"item_id": item_id, "bucket_id": target_bucket})
        return MoveResult(item_id=item_id, success=False, description=description, error=str(exc))
    return MoveResult(item_id=item_id, success=True, description=description,
                      old_bucket=old, new_bucket=target_bucket)
