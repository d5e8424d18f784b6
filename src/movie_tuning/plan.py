"""Execution-plan operator trees reported by the engine for PROFILE/EXPLAIN."""

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Leaf operators that decide how rows are first read from the store.
ACCESS_OPERATORS = frozenset(
    {
        "AllNodesScan",
        "NodeByLabelScan",
        "NodeByIdSeek",
        "NodeIndexSeek",
        "NodeIndexSeekByRange",
        "NodeIndexScan",
        "NodeIndexContainsScan",
        "NodeIndexEndsWithScan",
        "NodeUniqueIndexSeek",
        "NodeUniqueIndexSeekByRange",
        "MultiNodeIndexSeek",
        "NodeCountFromCountStore",
        "RelationshipCountFromCountStore",
        "DirectedRelationshipTypeScan",
        "UndirectedRelationshipTypeScan",
        "ProcedureCall",
    }
)


class PlanExpectationError(Exception):
    """Raised when a profiled plan does not use the expected operators."""

    pass


def normalize_operator(operator_type: str) -> str:
    """Strip the runtime suffix, e.g. ``NodeIndexSeek@neo4j`` -> ``NodeIndexSeek``."""
    return operator_type.split("@", 1)[0]


class PlanOperator(BaseModel):
    """One node of an engine execution plan.

    Validated from the driver's ``summary.profile`` / ``summary.plan`` mapping,
    whose keys are camelCase.  EXPLAIN plans carry no statistics, so the
    counters default to zero.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    operator_type: str = Field(alias="operatorType")
    identifiers: list[str] = []
    arguments: dict[str, Any] = Field(default={}, alias="args")
    db_hits: int = Field(default=0, alias="dbHits")
    rows: int = 0
    page_cache_hits: int = Field(default=0, alias="pageCacheHits")
    page_cache_misses: int = Field(default=0, alias="pageCacheMisses")
    children: list["PlanOperator"] = []

    @field_validator("operator_type")
    @classmethod
    def strip_runtime(cls, v: str) -> str:
        """Drop the ``@runtime`` suffix the engine appends to operator names."""
        return normalize_operator(v)

    def walk(self) -> Iterator["PlanOperator"]:
        """Yield every operator in the tree, root first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def _walk_with_depth(self, depth: int = 0) -> Iterator[tuple["PlanOperator", int]]:
        yield self, depth
        for child in self.children:
            yield from child._walk_with_depth(depth + 1)

    def operator_types(self) -> list[str]:
        return [op.operator_type for op in self.walk()]

    def find(self, operator_type: str) -> "PlanOperator | None":
        """Return the first operator of the given type, or None."""
        for op in self.walk():
            if op.operator_type == operator_type:
                return op
        return None

    def uses(self, operator_type: str) -> bool:
        return self.find(operator_type) is not None

    def access_operator(self) -> "PlanOperator | None":
        """Return the deepest scan/seek operator, i.e. where rows are first produced.

        On ties between branches the left-most operator wins.
        """
        found: PlanOperator | None = None
        found_depth = -1
        for op, depth in self._walk_with_depth():
            if op.operator_type in ACCESS_OPERATORS and depth > found_depth:
                found, found_depth = op, depth
        return found

    def total_db_hits(self) -> int:
        return sum(op.db_hits for op in self.walk())

    def total_page_cache_hits(self) -> int:
        return sum(op.page_cache_hits for op in self.walk())

    def total_page_cache_misses(self) -> int:
        return sum(op.page_cache_misses for op in self.walk())


class PlanExpectation(BaseModel):
    """Operators a plan should, and should not, contain."""

    model_config = ConfigDict(frozen=True)

    expect: tuple[str, ...] = ()
    forbid: tuple[str, ...] = ()

    def check(self, plan: PlanOperator | None) -> list[str]:
        """Return a list of violations; empty when the plan matches."""
        if plan is None:
            return ["engine returned no plan"] if self.expect else []
        violations = [
            f"expected operator {name} not in plan"
            for name in self.expect
            if not plan.uses(name)
        ]
        violations.extend(
            f"operator {name} should not appear in plan"
            for name in self.forbid
            if plan.uses(name)
        )
        return violations

    def check_or_raise(self, plan: PlanOperator | None, label: str = "plan") -> None:
        violations = self.check(plan)
        if violations:
            raise PlanExpectationError(f"{label}: " + "; ".join(violations))


def render(plan: PlanOperator, indent: int = 0) -> str:
    """Render an operator tree as indented text with per-operator statistics."""
    details = f"rows={plan.rows} db_hits={plan.db_hits}"
    if plan.page_cache_hits or plan.page_cache_misses:
        details += f" cache_hits={plan.page_cache_hits} cache_misses={plan.page_cache_misses}"
    details_arg = plan.arguments.get("Details") or plan.arguments.get("details")
    line = "  " * indent + f"+{plan.operator_type}"
    if details_arg:
        line += f" [{details_arg}]"
    lines = [f"{line} ({details})"]
    for child in plan.children:
        lines.append(render(child, indent + 1))
    return "\n".join(lines)
