"""Exception hierarchy for forkmap.

Only catalog construction, explicit moves and snapshot import raise.
Queries and analytics degrade to empty results instead.
"""

from __future__ import annotations


class ForkmapError(Exception):
    """Base class for all forkmap errors."""


class CatalogError(ForkmapError):
    """The board definition itself is malformed (duplicate ids, unknown layer...)."""


class UnknownItemError(ForkmapError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Unknown item: {item_id}")
        self.item_id = item_id


class UnknownBucketError(ForkmapError):
    def __init__(self, bucket_id: str) -> None:
        super().__init__(f"Unknown bucket: {bucket_id}")
        self.bucket_id = bucket_id


class LayerViolationError(ForkmapError):
    """An operation tried to change the layer of an item."""


class InvalidImportError(ForkmapError):
    """Snapshot import rejected; the board was left unchanged."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = list(problems or [])
