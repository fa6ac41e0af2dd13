"""Snapshot export/import for the persistence layer.

A snapshot is a plain JSON-serializable dict holding the full item list
(id, name, bucket, layer, type, complexity, dependencies) plus the bucket
order, layers, goals and headliner overflow rule, enough to rebuild a board.

Imports are all-or-nothing: the payload is validated completely before any
bucket assignment is applied, and any problem raises ``InvalidImportError``
with the board untouched.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import networkx as nx

from forkmap.board import Board
from forkmap.defaults import DEFAULT_SNAPSHOT_PATH, SNAPSHOT_VERSION
from forkmap.errors import CatalogError, InvalidImportError
from forkmap.models import Bucket, Complexity, HeadlinerOverflow, Item, ItemType, Layer, now_iso

log = logging.getLogger("forkmap.snapshot")

_REQUIRED_ITEM_KEYS = ("id", "bucket", "layer")


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def snapshot(board: Board) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "timestamp": now_iso(),
        "items": [item.to_dict() for item in board],
        "buckets": [b.to_dict() for b in board.buckets],
        "layers": [layer.to_dict() for layer in board.layers],
        "goals": list(board.goals),
        "overflow": board.overflow.to_dict() if board.overflow else None,
        "metadata": {
            "total_items": len(board),
            "total_buckets": len(board.buckets),
            "modified_items": len(board.modified_items()),
        },
    }


def export_snapshot(board: Board, path: str | Path | None = None) -> Path:
    """Write a snapshot as JSON and return the path written."""
    out = Path(path or DEFAULT_SNAPSHOT_PATH)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(snapshot(board), f, indent=2)
    log.info("Exported snapshot of %d items to %s", len(board), out)
    return out


def load_snapshot(path: str | Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidImportError(f"Cannot read snapshot {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def import_snapshot(board: Board, payload: Any) -> list[str]:
    """Apply the bucket assignments of ``payload`` to ``board``.

    Returns the ids whose bucket changed.  Items absent from the payload
    keep their current bucket.
    """
    records = _item_records(payload)
    problems = _validate_against_board(board, records)
    if problems:
        log.warning("Rejected snapshot import: %d problem(s)", len(problems))
        raise InvalidImportError("Invalid snapshot: " + "; ".join(problems), problems)

    changed = []
    for rec in records:
        item = board.get_item(rec["id"])
        if item.bucket != rec["bucket"]:
            item.bucket = rec["bucket"]
            changed.append(item.id)
    log.info("Imported snapshot: %d item(s) moved", len(changed))
    return changed


def board_from_snapshot(payload: Any) -> Board:
    """Rebuild a complete board from a snapshot payload."""
    records = _item_records(payload)
    try:
        buckets = [Bucket.from_dict(b) for b in payload["buckets"]]
        if payload.get("layers"):
            layers = [Layer.from_dict(layer) for layer in payload["layers"]]
        else:
            layers = [Layer(id=lid) for lid in dict.fromkeys(r["layer"] for r in records)]
        overflow = HeadlinerOverflow.from_dict(payload["overflow"]) if payload.get("overflow") else None
        items = [Item.from_dict(r) for r in records]
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidImportError(f"Malformed snapshot: {exc!r}") from exc

    known = {item.id for item in items}
    problems = [
        f"{item.id} depends on non-existent item: {dep}"
        for item in items for dep in item.dependencies if dep not in known
    ]
    problems.extend(_cycle_problems({item.id: item.dependencies for item in items}))
    if problems:
        raise InvalidImportError("Invalid snapshot: " + "; ".join(problems), problems)

    try:
        return Board(buckets, layers, items, goals=payload.get("goals") or [], overflow=overflow)
    except CatalogError as exc:
        raise InvalidImportError(str(exc), [str(exc)]) from exc


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _item_records(payload: Any) -> list[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        raise InvalidImportError("Snapshot payload must be an object")
    records = payload.get("items")
    if not isinstance(records, list):
        raise InvalidImportError("Snapshot payload has no item list")
    bad = [i for i, r in enumerate(records)
           if not isinstance(r, Mapping) or any(not isinstance(r.get(k), str) for k in _REQUIRED_ITEM_KEYS)]
    if bad:
        problems = [f"item record #{i} is malformed" for i in bad]
        raise InvalidImportError("Invalid snapshot: " + "; ".join(problems), problems)
    return records


def _validate_against_board(board: Board, records: list[Mapping[str, Any]]) -> list[str]:
    problems: list[str] = []
    seen: set[str] = set()
    deps: dict[str, list[str]] = {item.id: list(item.dependencies) for item in board}

    for rec in records:
        item_id = rec["id"]
        item = board.get_item(item_id)
        if item is None:
            problems.append(f"unknown item: {item_id}")
            continue
        if item_id in seen:
            problems.append(f"duplicate item: {item_id}")
        seen.add(item_id)
        if not board.has_bucket(rec["bucket"]):
            problems.append(f"{item_id} references unknown bucket: {rec['bucket']}")
        if rec["layer"] != item.layer:
            problems.append(f"{item_id} cannot change layer from {item.layer} to {rec['layer']}")
        problems.extend(_enum_problems(rec))
        if "dependencies" in rec:
            if not isinstance(rec["dependencies"], list):
                problems.append(f"{item_id} has malformed dependencies")
                continue
            for dep in rec["dependencies"]:
                if dep not in board:
                    problems.append(f"{item_id} depends on non-existent item: {dep}")
            if list(rec["dependencies"]) != deps[item_id]:
                problems.append(f"{item_id} cannot change dependencies")

    if not problems:
        problems.extend(_cycle_problems(deps))
    return problems


def _enum_problems(rec: Mapping[str, Any]) -> list[str]:
    out = []
    for key, enum in (("type", ItemType), ("complexity", Complexity)):
        if key in rec:
            try:
                enum(rec[key])
            except ValueError:
                out.append(f"{rec['id']} has invalid {key}: {rec[key]}")
    return out


def _cycle_problems(deps: Mapping[str, list[str]]) -> list[str]:
    G = nx.DiGraph()
    G.add_nodes_from(deps)
    G.add_edges_from((item_id, dep) for item_id, ds in deps.items() for dep in ds if dep in deps)
    try:
        cycle = nx.find_cycle(G)
    except nx.NetworkXNoCycle:
        return []
    return ["circular dependency: " + " → ".join(u for u, _ in cycle) + f" → {cycle[0][0]}"]
