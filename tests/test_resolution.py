"""Tests for resolution planning and plan execution."""

from conftest import make_board, make_item
from forkmap.conflicts import RESOLVABLE_TYPES, analyze
from forkmap.models import ConflictType, ProposedMove, ResolutionPlan
from forkmap.resolution import _STRATEGIES, apply_move, execute, plan


def _plan_for(board, item_id, target):
    return plan(board, item_id, target, analyze(board, item_id, target).conflicts)


class TestStrategies:
    def test_registry_matches_resolvable_types(self):
        assert set(_STRATEGIES) == set(RESOLVABLE_TYPES)

    def test_dependency_moves_one_before_target(self):
        board = make_board(make_item("dep", "b5"), make_item("i", "b4", deps=["dep"]))
        p = _plan_for(board, "i", "b3")
        assert len(p.moves) == 1
        move = p.moves[0]
        assert move.item_id == "dep"
        assert move.target_bucket == "b2"
        assert move.automatic is True
        assert move.conflict_type == ConflictType.DEPENDENCY_AFTER

    def test_dependency_clamped_at_first_bucket(self, chain_board):
        p = _plan_for(chain_board, "c", "b0")
        assert [(m.item_id, m.target_bucket) for m in p.moves] == [("b", "b0")]

    def test_dependent_moves_one_after_target(self, chain_board):
        p = _plan_for(chain_board, "a", "b3")
        assert [(m.item_id, m.target_bucket) for m in p.moves] == [("b", "b4")]
        assert p.warnings == [] and p.manual == []

    def test_dependent_clamped_at_last_bucket(self, chain_board):
        p = _plan_for(chain_board, "a", "b5")
        assert [(m.item_id, m.target_bucket) for m in p.moves] == [("b", "b5")]

    def test_cycle_suggestion_needs_confirmation(self, cycle_board):
        p = _plan_for(cycle_board, "x", "b1")
        assert len(p.warnings) == 1
        warning = p.warnings[0]
        assert warning.item_id == "x"
        assert warning.target_bucket == "b2"
        assert warning.automatic is False
        assert all(m.conflict_type != ConflictType.CIRCULAR_DEPENDENCY for m in p.moves)

    def test_cycle_without_single_dependency_member(self):
        board = make_board(
            make_item("x", "b1", deps=["y", "z"]),
            make_item("y", "b1", deps=["x", "z"]),
            make_item("z", "b0"),
        )
        p = _plan_for(board, "x", "b1")
        assert p.warnings == []
        assert [m.description for m in p.manual] == [
            "Manual intervention required to resolve circular dependency",
        ]

    def test_capacity_conflicts_are_manual(self):
        board = make_board(
            make_item("h1", "b1", type="headliner"),
            make_item("h2", "b0", type="headliner"),
        )
        report = analyze(board, "h2", "b1")
        p = plan(board, "h2", "b1", report.conflicts)
        assert p.moves == [] and p.warnings == []
        assert len(p.manual) == 1
        assert p.manual[0].type == ConflictType.HEADLINER_LIMIT
        assert p.manual[0].description == report.conflicts[0].message

    def test_to_dict(self, chain_board):
        d = _plan_for(chain_board, "a", "b3").to_dict()
        assert d["moves"][0] == {
            "action": "move",
            "item_id": "b",
            "target_bucket": "b4",
            "description": "Move B to Bucket 4",
            "automatic": True,
            "conflict_type": "dependent_before",
        }


class TestExecute:
    def test_applies_moves_in_order(self, chain_board):
        p = _plan_for(chain_board, "a", "b3")
        results = execute(chain_board, p)
        assert [r.success for r in results] == [True]
        assert results[0].old_bucket == "b1"
        assert chain_board.get_item("b").bucket == "b4"
        # the requested item itself is not moved by the plan
        assert chain_board.get_item("a").bucket == "b0"

    def test_failure_does_not_abort(self, chain_board):
        p = ResolutionPlan(moves=[
            ProposedMove("ghost", "b1", "missing item", True, ConflictType.DEPENDENT_BEFORE),
            ProposedMove("c", "b99", "missing bucket", True, ConflictType.DEPENDENT_BEFORE),
            ProposedMove("c", "b4", "valid", True, ConflictType.DEPENDENT_BEFORE),
        ])
        results = execute(chain_board, p)
        assert [r.success for r in results] == [False, False, True]
        assert "ghost" in results[0].error
        assert chain_board.get_item("c").bucket == "b4"

    def test_warnings_never_applied(self, cycle_board):
        p = _plan_for(cycle_board, "x", "b1")
        assert p.warnings
        before = cycle_board.assignments()
        assert execute(cycle_board, ResolutionPlan(warnings=p.warnings, manual=p.manual)) == []
        assert cycle_board.assignments() == before


class TestApplyMove:
    def test_dependents_follow_the_item(self, chain_board):
        outcome = apply_move(chain_board, "a", "b2")
        assert outcome.moved
        assert [r.item_id for r in outcome.results] == ["a", "b"]
        assert chain_board.get_item("a").bucket == "b2"
        assert chain_board.get_item("b").bucket == "b3"

    def test_dependencies_move_first(self, chain_board):
        outcome = apply_move(chain_board, "c", "b0")
        assert [r.item_id for r in outcome.results] == ["b", "c"]
        assert chain_board.get_item("b").bucket == "b0"
        assert chain_board.get_item("c").bucket == "b0"

    def test_without_resolution(self, chain_board):
        outcome = apply_move(chain_board, "a", "b2", resolve=False)
        assert outcome.report.has_conflicts
        assert [r.item_id for r in outcome.results] == ["a"]
        assert chain_board.get_item("b").bucket == "b1"

    def test_unknown_bucket_reports_failure(self, chain_board):
        outcome = apply_move(chain_board, "a", "b99")
        assert not outcome.moved
        assert outcome.results[0].success is False
        assert chain_board.get_item("a").bucket == "b0"
