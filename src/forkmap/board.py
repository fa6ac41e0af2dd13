"""The board: an explicit item/bucket graph passed into every engine call.

The catalog (buckets, layers, items, goals) is fixed at construction.  The
only mutable state is each item's current bucket, and it changes exclusively
through ``move_item``/``reset`` (and the snapshot importer, which validates
first and then applies).
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Iterable, Iterator

import networkx as nx

from forkmap.defaults import HEADLINERS_PER_LAYER
from forkmap.errors import CatalogError, UnknownBucketError, UnknownItemError
from forkmap.graph import build_dependency_graph
from forkmap.models import Bucket, HeadlinerOverflow, Item, Layer

log = logging.getLogger("forkmap.board")


class Board:
    def __init__(
        self,
        buckets: Iterable[Bucket],
        layers: Iterable[Layer],
        items: Iterable[Item],
        goals: Iterable[str] | None = None,
        overflow: HeadlinerOverflow | None = None,
    ) -> None:
        # sorted() is stable: equal order values keep declaration order
        self._buckets: list[Bucket] = sorted(buckets, key=lambda b: b.order)
        self._layers: list[Layer] = list(layers)
        self._bucket_index: dict[str, int] = {}
        self._items: dict[str, Item] = {}
        self.goals: list[str] = list(goals or [])
        self.overflow = overflow

        for i, bucket in enumerate(self._buckets):
            if bucket.id in self._bucket_index:
                raise CatalogError(f"Duplicate bucket id: {bucket.id}")
            self._bucket_index[bucket.id] = i

        layer_ids = [layer.id for layer in self._layers]
        if len(set(layer_ids)) != len(layer_ids):
            raise CatalogError("Duplicate layer id")

        for item in items:
            if item.id in self._items:
                raise CatalogError(f"Duplicate item id: {item.id}")
            if item.layer not in layer_ids:
                raise CatalogError(f"Item {item.id} references unknown layer: {item.layer}")
            if item.bucket not in self._bucket_index:
                raise CatalogError(f"Item {item.id} references unknown bucket: {item.bucket}")
            self._items[item.id] = item

        if overflow is not None and overflow.bucket_id not in self._bucket_index:
            raise CatalogError(f"Overflow rule references unknown bucket: {overflow.bucket_id}")

    # -- catalog access ------------------------------------------------------

    @property
    def buckets(self) -> list[Bucket]:
        return list(self._buckets)

    @property
    def layers(self) -> list[Layer]:
        return list(self._layers)

    @property
    def items(self) -> list[Item]:
        """Items in declaration order."""
        return list(self._items.values())

    @cached_property
    def graph(self) -> nx.DiGraph:
        """Dependency graph (item -> dependency).  Edges never change after construction."""
        return build_dependency_graph(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items.values())

    def get_item(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def get_bucket(self, bucket_id: str) -> Bucket | None:
        idx = self._bucket_index.get(bucket_id)
        return self._buckets[idx] if idx is not None else None

    def has_bucket(self, bucket_id: str) -> bool:
        return bucket_id in self._bucket_index

    def bucket_index(self, bucket_id: str) -> int | None:
        return self._bucket_index.get(bucket_id)

    def bucket_at(self, index: int) -> Bucket:
        return self._buckets[index]

    @property
    def last_index(self) -> int:
        return len(self._buckets) - 1

    def bucket_name(self, bucket_id: str) -> str:
        bucket = self.get_bucket(bucket_id)
        return (bucket.name or bucket.id) if bucket else bucket_id

    def item_name(self, item_id: str) -> str:
        item = self._items.get(item_id)
        return item.name if item else item_id

    # -- capacity rules ------------------------------------------------------

    def is_overflow_bucket(self, bucket_id: str) -> bool:
        return self.overflow is not None and self.overflow.bucket_id == bucket_id

    def headliner_cap(self, bucket_id: str, layer: str) -> int:
        if self.is_overflow_bucket(bucket_id) and self.overflow.layer == layer:
            return self.overflow.cap
        return HEADLINERS_PER_LAYER

    # -- mutation ------------------------------------------------------------

    def move_item(self, item_id: str, bucket_id: str) -> str:
        """Reassign an item's bucket.  Returns the previous bucket id."""
        item = self._items.get(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        if bucket_id not in self._bucket_index:
            raise UnknownBucketError(bucket_id)
        old = item.bucket
        item.bucket = bucket_id
        log.info("Moved %s: %s -> %s", item_id, old, bucket_id,
                 extra={"item_id": item_id, "bucket_id": bucket_id})
        return old

    def reset(self) -> list[str]:
        """Send every item back to its original bucket.  Returns the ids that moved."""
        moved = []
        for item in self._items.values():
            if item.bucket != item.original_bucket:
                item.bucket = item.original_bucket
                moved.append(item.id)
        if moved:
            log.info("Reset %d item(s) to their original buckets", len(moved))
        return moved

    def modified_items(self) -> list[Item]:
        return [i for i in self._items.values() if i.bucket != i.original_bucket]

    def assignments(self) -> dict[str, str]:
        return {item_id: item.bucket for item_id, item in self._items.items()}
