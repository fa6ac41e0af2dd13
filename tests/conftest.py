"""Shared fixtures for forkmap tests."""

import pytest

from forkmap.board import Board
from forkmap.models import Bucket, Complexity, HeadlinerOverflow, Item, ItemType, Layer

LAYERS = ("consensus", "data", "execution")


# ---------------------------------------------------------------------------
# Auto-use fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch, tmp_path):
    """Keep default snapshot exports out of the developer's working directory."""
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_item(id, bucket, deps=(), **kw):
    """Shared test helper: build an Item with low complexity in the consensus layer.

    Usage::

        from conftest import make_item
        item = make_item("a", "b0", deps=["b"], type="headliner")
    """
    defaults = dict(layer="consensus", type="regular", complexity="low")
    defaults.update(kw)
    return Item(
        id=id,
        name=id.upper(),
        layer=defaults["layer"],
        bucket=bucket,
        type=ItemType(defaults["type"]),
        complexity=Complexity(defaults["complexity"]),
        dependencies=list(deps),
    )


def make_board(*items, n_buckets=6, goals=None, overflow=None):
    """Board with buckets b0..b{n-1} in order and the three standard layers."""
    buckets = [Bucket(id=f"b{i}", name=f"Bucket {i}", order=i) for i in range(n_buckets)]
    layers = [Layer(id=lid, name=lid.title()) for lid in LAYERS]
    if isinstance(overflow, tuple):
        overflow = HeadlinerOverflow(bucket_id=overflow[0], layer=overflow[1])
    return Board(buckets, layers, list(items), goals=goals, overflow=overflow)


@pytest.fixture
def chain_board() -> Board:
    """A(b0) <- B(b1, depends on A) <- C(b2, depends on B)."""
    return make_board(
        make_item("a", "b0"),
        make_item("b", "b1", deps=["a"]),
        make_item("c", "b2", deps=["b"]),
    )


@pytest.fixture
def cycle_board() -> Board:
    """X and Y depend on each other; Z depends on X."""
    return make_board(
        make_item("x", "b1", deps=["y"]),
        make_item("y", "b2", deps=["x"]),
        make_item("z", "b3", deps=["x"]),
    )
