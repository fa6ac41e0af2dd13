"""Graph queries: transitive dependency closures and bucket filters.

Uses NetworkX for reachability.  Edges point from an item to each of its
dependencies, so ``descendants`` are what an item depends on and
``ancestors`` are what depends on it.  Both exclude the start node, which
keeps the closures free of the item itself even when a cycle runs through it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import networkx as nx

from forkmap.models import Item

if TYPE_CHECKING:
    from forkmap.board import Board


def build_dependency_graph(items: Iterable[Item]) -> nx.DiGraph:
    """Build a directed graph with one node per item and one edge per resolvable dependency.

    Dependency ids with no matching item are skipped (no placeholder node is
    created); the integrity scan reports them separately.
    """
    items = list(items)
    G = nx.DiGraph()
    for item in items:
        G.add_node(item.id, layer=item.layer, type=item.type.value,
                   complexity=item.complexity.value)
    for item in items:
        for dep in item.dependencies:
            if dep in G:
                G.add_edge(item.id, dep, rel="depends_on")
    return G


def dependencies(board: Board, item_id: str) -> set[str]:
    """Ids ``item_id`` depends on, directly or indirectly."""
    if item_id not in board.graph:
        return set()
    return nx.descendants(board.graph, item_id)


def dependents(board: Board, item_id: str) -> set[str]:
    """Ids that depend on ``item_id``, directly or indirectly."""
    if item_id not in board.graph:
        return set()
    return nx.ancestors(board.graph, item_id)


def direct_dependents(board: Board, item_id: str) -> list[str]:
    """Items listing ``item_id`` among their dependencies, in declaration order."""
    return [i.id for i in board if item_id in i.dependencies]


def items_in_bucket(board: Board, bucket_id: str) -> list[Item]:
    return [i for i in board if i.bucket == bucket_id]


def items_in_bucket_and_layer(board: Board, bucket_id: str, layer: str) -> list[Item]:
    return [i for i in board if i.bucket == bucket_id and i.layer == layer]
