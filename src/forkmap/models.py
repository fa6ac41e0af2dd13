"""Core data types for forkmap."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ItemType(str, Enum):
    HEADLINER = "headliner"
    REGULAR = "regular"


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class ConflictType(str, Enum):
    DEPENDENCY_AFTER = "dependency_after"
    DEPENDENT_BEFORE = "dependent_before"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    HEADLINER_LIMIT = "headliner_limit"
    BUCKET_OVERLOAD = "bucket_overload"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


class RecommendationType(str, Enum):
    HIGH_RISK_BUCKET = "high_risk_bucket"
    OVERLOADED_BUCKET = "overloaded_bucket"
    BOTTLENECK = "bottleneck"
    DEPENDENCY_CONFLICT = "dependency_conflict"


class IssueType(str, Enum):
    ORPHANED_DEPENDENCY = "orphaned_dependency"
    TIMELINE_VIOLATION = "timeline_violation"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@dataclass
class Bucket:
    id: str
    name: str = ""
    order: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name or self.id, "order": self.order}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Bucket:
        return cls(id=d["id"], name=d.get("name", d["id"]), order=int(d.get("order", 0)))


@dataclass
class Layer:
    id: str
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name or self.id}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Layer:
        return cls(id=d["id"], name=d.get("name", d["id"]))


@dataclass
class HeadlinerOverflow:
    """One bucket allowed to carry more headliners for one layer."""
    bucket_id: str
    layer: str
    cap: int = 2

    def to_dict(self) -> dict[str, Any]:
        return {"bucket_id": self.bucket_id, "layer": self.layer, "cap": self.cap}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HeadlinerOverflow:
        return cls(bucket_id=d["bucket_id"], layer=d["layer"], cap=int(d.get("cap", 2)))


@dataclass
class Item:
    id: str
    name: str
    layer: str
    bucket: str
    type: ItemType = ItemType.REGULAR
    complexity: Complexity = Complexity.MEDIUM
    dependencies: list[str] = field(default_factory=list)
    original_bucket: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if not self.original_bucket:
            self.original_bucket = self.bucket

    @property
    def is_headliner(self) -> bool:
        return self.type == ItemType.HEADLINER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "layer": self.layer,
            "bucket": self.bucket,
            "original_bucket": self.original_bucket,
            "type": self.type.value,
            "complexity": self.complexity.value,
            "dependencies": list(self.dependencies),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Item:
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            layer=d["layer"],
            bucket=d["bucket"],
            type=ItemType(d.get("type", "regular")),
            complexity=Complexity(d.get("complexity", "medium")),
            dependencies=list(d.get("dependencies", [])),
            original_bucket=d.get("original_bucket", ""),
            description=d.get("description", ""),
        )


# ---------------------------------------------------------------------------
# Conflict detection
# ---------------------------------------------------------------------------

@dataclass
class Conflict:
    type: ConflictType
    severity: Severity
    message: str
    item_id: str | None = None       # offending item (dependency, dependent, mover)
    item_name: str | None = None
    current_bucket: str | None = None
    bucket_id: str | None = None     # capacity conflicts
    value: int | None = None         # headliner count or complexity weight
    cycle: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
        }
        for key in ("item_id", "item_name", "current_bucket", "bucket_id", "value"):
            val = getattr(self, key)
            if val is not None:
                d[key] = val
        if self.cycle:
            d["cycle"] = list(self.cycle)
        return d


@dataclass
class ConflictReport:
    item_id: str
    target_bucket: str
    conflicts: list[Conflict] = field(default_factory=list)
    severity: Severity = Severity.LOW
    auto_resolvable: bool = True

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def of_type(self, conflict_type: ConflictType) -> list[Conflict]:
        return [c for c in self.conflicts if c.type == conflict_type]

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "target_bucket": self.target_bucket,
            "has_conflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "severity": self.severity.value,
            "auto_resolvable": self.auto_resolvable,
        }


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

@dataclass
class ProposedMove:
    item_id: str
    target_bucket: str
    description: str
    automatic: bool
    conflict_type: ConflictType

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": "move",
            "item_id": self.item_id,
            "target_bucket": self.target_bucket,
            "description": self.description,
            "automatic": self.automatic,
            "conflict_type": self.conflict_type.value,
        }


@dataclass
class ManualAction:
    description: str
    type: ConflictType

    def to_dict(self) -> dict[str, Any]:
        return {"action": "manual", "description": self.description, "type": self.type.value}


@dataclass
class ResolutionPlan:
    moves: list[ProposedMove] = field(default_factory=list)
    warnings: list[ProposedMove] = field(default_factory=list)
    manual: list[ManualAction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "moves": [m.to_dict() for m in self.moves],
            "warnings": [w.to_dict() for w in self.warnings],
            "manual": [m.to_dict() for m in self.manual],
        }


@dataclass
class MoveResult:
    item_id: str
    success: bool
    description: str = ""
    old_bucket: str | None = None
    new_bucket: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "item_id": self.item_id,
            "success": self.success,
            "description": self.description,
        }
        if self.success:
            d["old_bucket"] = self.old_bucket
            d["new_bucket"] = self.new_bucket
        else:
            d["error"] = self.error
        return d


@dataclass
class MoveOutcome:
    """Result of a move request routed through conflict analysis."""
    report: ConflictReport
    plan: ResolutionPlan
    results: list[MoveResult] = field(default_factory=list)

    @property
    def moved(self) -> bool:
        return any(r.success and r.item_id == self.report.item_id for r in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "report": self.report.to_dict(),
            "plan": self.plan.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "moved": self.moved,
        }


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@dataclass
class ItemMetrics:
    id: str
    name: str
    layer: str
    bucket: str
    dependent_count: int = 0
    dependency_count: int = 0
    criticality_score: int = 0
    path_length: int = 0
    is_bottleneck: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "layer": self.layer,
            "bucket": self.bucket,
            "dependent_count": self.dependent_count,
            "dependency_count": self.dependency_count,
            "criticality_score": self.criticality_score,
            "path_length": self.path_length,
            "is_bottleneck": self.is_bottleneck,
        }


@dataclass
class BucketMetrics:
    bucket_id: str
    bucket_name: str
    item_count: int = 0
    total_complexity_weight: int = 0
    headliner_count: int = 0
    headliners: list[dict[str, str]] = field(default_factory=list)
    cross_layer_dependency_count: int = 0
    risk_score: int = 0
    complexity_level: str = "empty"

    @property
    def average_complexity(self) -> float:
        return self.total_complexity_weight / self.item_count if self.item_count else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket_id": self.bucket_id,
            "bucket_name": self.bucket_name,
            "item_count": self.item_count,
            "total_complexity_weight": self.total_complexity_weight,
            "average_complexity": round(self.average_complexity, 2),
            "headliner_count": self.headliner_count,
            "headliners": list(self.headliners),
            "cross_layer_dependency_count": self.cross_layer_dependency_count,
            "risk_score": self.risk_score,
            "complexity_level": self.complexity_level,
        }


@dataclass
class Recommendation:
    type: RecommendationType
    priority: Priority
    message: str
    bucket_id: str | None = None
    item_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": self.type.value,
            "priority": self.priority.value,
            "message": self.message,
        }
        if self.bucket_id is not None:
            d["bucket_id"] = self.bucket_id
        if self.item_id is not None:
            d["item_id"] = self.item_id
        return d


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------

@dataclass
class IntegrityIssue:
    type: IssueType
    item_id: str
    message: str
    orphaned_id: str | None = None
    conflicts: int = 0

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type.value, "item_id": self.item_id, "message": self.message}
        if self.type == IssueType.ORPHANED_DEPENDENCY:
            d["orphaned_id"] = self.orphaned_id
        else:
            d["conflicts"] = self.conflicts
        return d


@dataclass
class IntegrityReport:
    issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "issues": [i.to_dict() for i in self.issues]}
