"""Tests for snapshot export and all-or-nothing import."""

import json

import pytest

from conftest import make_board, make_item
from forkmap.errors import InvalidImportError
from forkmap.snapshot import (
    board_from_snapshot,
    export_snapshot,
    import_snapshot,
    load_snapshot,
    snapshot,
)


def _state(board):
    return [item.to_dict() for item in board]


def _payload(board, **moves):
    data = snapshot(board)
    for rec in data["items"]:
        if rec["id"] in moves:
            rec["bucket"] = moves[rec["id"]]
    return data


class TestSnapshot:
    def test_shape(self, chain_board):
        data = snapshot(chain_board)
        assert data["version"] == "1.0"
        rec = data["items"][1]
        assert rec["id"] == "b"
        assert rec["bucket"] == "b1"
        assert rec["layer"] == "consensus"
        assert rec["type"] == "regular"
        assert rec["complexity"] == "low"
        assert rec["dependencies"] == ["a"]
        assert [b["id"] for b in data["buckets"]] == ["b0", "b1", "b2", "b3", "b4", "b5"]
        assert data["metadata"] == {"total_items": 3, "total_buckets": 6, "modified_items": 0}

    def test_is_json_serializable(self, chain_board):
        json.dumps(snapshot(chain_board))

    def test_modified_items_counted(self, chain_board):
        chain_board.move_item("c", "b4")
        assert snapshot(chain_board)["metadata"]["modified_items"] == 1

    def test_rebuild_board(self):
        board = make_board(
            make_item("a", "b0", type="headliner"),
            make_item("b", "b2", deps=["a"], layer="data", complexity="very-high"),
            goals=["b"],
            overflow=("b5", "consensus"),
        )
        board.move_item("b", "b3")
        rebuilt = board_from_snapshot(snapshot(board))
        assert _state(rebuilt) == _state(board)
        assert rebuilt.goals == ["b"]
        assert rebuilt.overflow == board.overflow
        assert rebuilt.get_item("b").original_bucket == "b2"


class TestImport:
    def test_applies_assignments(self, chain_board):
        changed = import_snapshot(chain_board, _payload(chain_board, c="b5", b="b3"))
        assert changed == ["b", "c"]
        assert chain_board.get_item("c").bucket == "b5"
        assert chain_board.get_item("b").bucket == "b3"

    def test_partial_item_list(self, chain_board):
        import_snapshot(chain_board, {"items": [{"id": "c", "bucket": "b4", "layer": "consensus"}]})
        assert chain_board.assignments() == {"a": "b0", "b": "b1", "c": "b4"}

    def test_dangling_dependency_rejected(self, chain_board):
        before = _state(chain_board)
        payload = _payload(chain_board, c="b5")
        payload["items"][2]["dependencies"] = ["b", "ghost"]
        with pytest.raises(InvalidImportError) as exc:
            import_snapshot(chain_board, payload)
        assert any("ghost" in p for p in exc.value.problems)
        assert _state(chain_board) == before

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"items": "nope"},
        {"items": [42]},
        {"items": [{"id": "a"}]},
    ])
    def test_malformed_payload_rejected(self, chain_board, payload):
        before = _state(chain_board)
        with pytest.raises(InvalidImportError):
            import_snapshot(chain_board, payload)
        assert _state(chain_board) == before

    def test_unknown_item_rejected_atomically(self, chain_board):
        before = _state(chain_board)
        payload = _payload(chain_board, a="b2")
        payload["items"].append({"id": "ghost", "bucket": "b0", "layer": "consensus"})
        with pytest.raises(InvalidImportError):
            import_snapshot(chain_board, payload)
        assert _state(chain_board) == before

    def test_unknown_bucket_rejected(self, chain_board):
        with pytest.raises(InvalidImportError, match="unknown bucket"):
            import_snapshot(chain_board, _payload(chain_board, a="b42"))

    def test_layer_change_rejected(self, chain_board):
        payload = _payload(chain_board)
        payload["items"][0]["layer"] = "data"
        with pytest.raises(InvalidImportError, match="cannot change layer"):
            import_snapshot(chain_board, payload)

    def test_dependency_change_rejected(self, chain_board):
        before = _state(chain_board)
        payload = _payload(chain_board, c="b4")
        payload["items"][2]["dependencies"] = ["a"]
        with pytest.raises(InvalidImportError, match="cannot change dependencies") as exc:
            import_snapshot(chain_board, payload)
        assert exc.value.problems == ["c cannot change dependencies"]
        assert _state(chain_board) == before

    def test_reordered_dependencies_rejected(self):
        board = make_board(make_item("a", "b0"), make_item("b", "b0"),
                           make_item("c", "b1", deps=["a", "b"]))
        payload = snapshot(board)
        payload["items"][2]["dependencies"] = ["b", "a"]
        with pytest.raises(InvalidImportError, match="cannot change dependencies"):
            import_snapshot(board, payload)

    def test_unchanged_dependencies_accepted(self, chain_board):
        payload = _payload(chain_board, c="b4")
        assert [rec["dependencies"] for rec in payload["items"]] == [[], ["a"], ["b"]]
        assert import_snapshot(chain_board, payload) == ["c"]

    def test_cyclic_board_rejected(self, cycle_board):
        before = _state(cycle_board)
        with pytest.raises(InvalidImportError, match="circular dependency"):
            import_snapshot(cycle_board, _payload(cycle_board, z="b4"))
        assert _state(cycle_board) == before

    def test_invalid_enum_rejected(self, chain_board):
        payload = _payload(chain_board)
        payload["items"][0]["complexity"] = "extreme"
        with pytest.raises(InvalidImportError, match="invalid complexity"):
            import_snapshot(chain_board, payload)

    def test_board_from_snapshot_rejects_dangling(self, chain_board):
        payload = snapshot(chain_board)
        payload["items"][0]["dependencies"] = ["ghost"]
        with pytest.raises(InvalidImportError):
            board_from_snapshot(payload)

    def test_board_from_snapshot_requires_buckets(self, chain_board):
        payload = snapshot(chain_board)
        del payload["buckets"]
        with pytest.raises(InvalidImportError, match="Malformed"):
            board_from_snapshot(payload)


class TestFiles:
    def test_export_and_load(self, chain_board, tmp_path):
        path = export_snapshot(chain_board, tmp_path / "out" / "snap.json")
        assert path.exists()
        data = load_snapshot(path)
        assert [r["id"] for r in data["items"]] == ["a", "b", "c"]

    def test_default_path(self, chain_board):
        path = export_snapshot(chain_board)
        assert str(path).endswith("snapshot.json")
        assert path.exists()

    def test_load_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(InvalidImportError):
            load_snapshot(bad)
