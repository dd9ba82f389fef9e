from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from voter_profile.core.metadata_loader import option_label
from voter_profile.core.predicates import ScopeKind
from voter_profile.core.query_engine import QueryResult


@dataclass
class AuditSnapshot:
    """
    Canonical facts derived from a QueryResult.

    These can be shown to the user for manual audit of the indexed path
    against the brute-force scan.
    """
    scope: str
    scope_detail: str
    category: str
    option: Optional[str]
    option_label: Optional[str]

    path: str
    total: int
    linear_total: Optional[int]
    divergence: Optional[int]
    consistent: bool

    timings_ms: Dict[str, float]


def _scope_detail(result: QueryResult) -> str:
    p = result.params
    if p.scope is ScopeKind.STATE:
        return "state-wide"
    if p.scope is ScopeKind.CITY:
        return f"locality {p.locality}"
    if p.scope is ScopeKind.SECTION:
        return f"locality {p.locality}, zone {p.zone}, section {p.section}"
    return f"locality {p.locality}, zone {p.zone}, polling place {p.polling_place}"


def build_audit_snapshot(result: QueryResult) -> AuditSnapshot:
    """
    Build the audit facts for one query.

    divergence is indexed minus linear total and is only set when the
    cross-check ran; consistent is False only for a recorded fault.
    """
    p = result.params

    divergence: Optional[int] = None
    if result.linear_total is not None:
        divergence = result.total - result.linear_total

    timings_ms: Dict[str, float] = {}
    for t in result.timings:
        timings_ms[t.operation] = round(t.milliseconds, 3)

    return AuditSnapshot(
        scope=p.scope.value,
        scope_detail=_scope_detail(result),
        category=p.category.value,
        option=p.option,
        option_label=option_label(p.category, p.option),
        path=result.path,
        total=result.total,
        linear_total=result.linear_total,
        divergence=divergence,
        consistent=result.consistent,
        timings_ms=timings_ms,
    )
