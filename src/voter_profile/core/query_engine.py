from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import logging
import pandas as pd

from voter_profile.config import CROSS_CHECK_ENABLED
from voter_profile.core.index_tree import IndexTree
from voter_profile.core.predicates import (
    ProfileCategory,
    ScopeKind,
    matches_scope,
    profile_contribution,
)
from voter_profile.core.records import VoterProfileRecord

logger = logging.getLogger(__name__)

PATH_INDEX = "index"
PATH_LINEAR = "linear"


class QueryEngineError(Exception):
    """Raised for malformed query parameters (unknown scope or profile category)."""


@dataclass(frozen=True)
class Timing:
    operation: str
    seconds: float

    @property
    def milliseconds(self) -> float:
        return self.seconds * 1000.0


@contextmanager
def _timed(operation: str, sink: Optional[List[Timing]] = None) -> Iterator[None]:
    t0 = time.perf_counter()
    try:
        yield
    finally:
        timing = Timing(operation=operation, seconds=time.perf_counter() - t0)
        logger.info("%s took %.2f ms", operation, timing.milliseconds)
        if sink is not None:
            sink.append(timing)


@dataclass
class QueryParameters:
    """
    One counting query: "how many voters of profile (category, option) in scope".

    locality is required for every scope except ESTADO; zone + section narrow
    SECAO, zone + polling_place narrow LOCAL. Scope and category accept either
    the enum members or their string codes ("CIDADE", "GENERO", ...).
    """
    scope: ScopeKind
    category: ProfileCategory = ProfileCategory.ALL
    option: Optional[str] = None
    locality: int = 0
    zone: int = 0
    section: int = 0
    polling_place: int = 0

    def __post_init__(self) -> None:
        try:
            self.scope = ScopeKind(str(getattr(self.scope, "value", self.scope)).strip().upper())
        except ValueError as exc:
            raise QueryEngineError(
                f"Unknown scope {self.scope!r}. Expected one of {[s.value for s in ScopeKind]}."
            ) from exc
        try:
            self.category = ProfileCategory(str(getattr(self.category, "value", self.category)).strip().upper())
        except ValueError as exc:
            raise QueryEngineError(
                f"Unknown profile category {self.category!r}. "
                f"Expected one of {[c.value for c in ProfileCategory]}."
            ) from exc
        for name in ("locality", "zone", "section", "polling_place"):
            raw = getattr(self, name)
            try:
                setattr(self, name, int(raw))
            except (TypeError, ValueError) as exc:
                raise QueryEngineError(f"{name} must be an integer, got {raw!r}.") from exc

    def describe(self) -> str:
        return f"{self.scope.value}/{self.category.value}"

    def matches(self, record: VoterProfileRecord) -> bool:
        return matches_scope(
            record,
            self.scope,
            locality=self.locality,
            zone=self.zone,
            section=self.section,
            polling_place=self.polling_place,
        )

    def contribution(self, record: VoterProfileRecord) -> int:
        return profile_contribution(record, self.category, self.option)


@dataclass
class ConsistencyFault:
    """Indexed total and brute-force total disagree for the same query."""
    params: QueryParameters
    indexed_total: int
    linear_total: int

    @property
    def difference(self) -> int:
        return self.indexed_total - self.linear_total


@dataclass
class QueryResult:
    params: QueryParameters
    total: int
    path: str

    # Only populated when the index path ran with cross-check enabled.
    linear_total: Optional[int] = None
    fault: Optional[ConsistencyFault] = None

    timings: List[Timing] = field(default_factory=list)

    @property
    def cross_checked(self) -> bool:
        return self.linear_total is not None

    @property
    def consistent(self) -> bool:
        return self.fault is None


@dataclass(frozen=True)
class GeneralStatistics:
    total_voters: int
    total_biometric: int
    total_disability: int
    total_social_name: int


@dataclass(frozen=True)
class IndexStatistics:
    nodes: int
    records: int
    height: int


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------

class VoterProfileStore:
    """
    Sole owner of the loaded records, plus the locality index built over them.

    The index holds references into self.records, never copies.
    """

    def __init__(self, records: Iterable[VoterProfileRecord] = ()) -> None:
        self.records: Tuple[VoterProfileRecord, ...] = tuple(records)
        self.index = IndexTree()

    @property
    def total_records(self) -> int:
        return len(self.records)

    def has_data(self) -> bool:
        return len(self.records) > 0

    def loaded_state(self) -> str:
        return self.records[0].state if self.records else ""

    def build_index(self) -> Timing:
        """Bulk-load the locality index. Rebuilding starts from an empty tree."""
        timings: List[Timing] = []
        with _timed(f"Locality index build ({len(self.records):,} records)", timings):
            self.index.clear()
            for record in self.records:
                self.index.insert(record.locality_code, record)
        return timings[0]

    def clear_index(self) -> None:
        self.index.clear()


# ---------------------------------------------------------------------------
# Counting paths
# ---------------------------------------------------------------------------

def linear_count(records: Iterable[VoterProfileRecord], params: QueryParameters) -> int:
    """Brute-force count over every record. This is the reference result."""
    total = 0
    for record in records:
        if params.matches(record):
            total += params.contribution(record)
    return total


def _indexed_count(index: IndexTree, params: QueryParameters) -> int:
    bucket = index.lookup(params.locality)
    if bucket is None:
        return 0
    # A locality bucket spans every zone/section/place of that city.
    total = 0
    for record in bucket:
        if params.matches(record):
            total += params.contribution(record)
    return total


def run_query(
    store: VoterProfileStore,
    params: QueryParameters,
    cross_check: Optional[bool] = None,
) -> QueryResult:
    """
    Count voters for params.

    Index-eligible scopes with a non-empty index read only the locality bucket,
    then (with cross_check on) repeat the query as a full scan. A mismatch is
    logged as an error and attached to the result; the indexed total is still
    returned. Everything else is a single full scan.
    """
    if cross_check is None:
        cross_check = CROSS_CHECK_ENABLED

    timings: List[Timing] = []
    label = params.describe()

    with _timed(f"Voter query ({label})", timings):
        if params.scope.index_eligible and not store.index.is_empty():
            with _timed(f"Index lookup for locality {params.locality}", timings):
                total = _indexed_count(store.index, params)

            result = QueryResult(params=params, total=total, path=PATH_INDEX, timings=timings)

            if cross_check:
                with _timed(f"Linear scan cross-check for locality {params.locality}", timings):
                    linear_total = linear_count(store.records, params)
                result.linear_total = linear_total
                if linear_total != total:
                    result.fault = ConsistencyFault(params=params, indexed_total=total, linear_total=linear_total)
                    logger.error(
                        "Index/scan divergence for %s locality=%s: index=%s linear=%s",
                        label, params.locality, total, linear_total,
                    )
        else:
            with _timed(f"Linear scan ({label})", timings):
                total = linear_count(store.records, params)
            result = QueryResult(params=params, total=total, path=PATH_LINEAR, timings=timings)

    return result


def count_voters(
    store: VoterProfileStore,
    scope: ScopeKind | str,
    category: ProfileCategory | str = ProfileCategory.ALL,
    option: Optional[str] = None,
    *,
    locality: int = 0,
    zone: int = 0,
    section: int = 0,
    polling_place: int = 0,
    cross_check: Optional[bool] = None,
) -> int:
    params = QueryParameters(
        scope=scope,  # type: ignore[arg-type]
        category=category,  # type: ignore[arg-type]
        option=option,
        locality=locality,
        zone=zone,
        section=section,
        polling_place=polling_place,
    )
    return run_query(store, params, cross_check=cross_check).total


# ---------------------------------------------------------------------------
# Store-wide helpers
# ---------------------------------------------------------------------------

def compute_statistics(store: VoterProfileStore) -> GeneralStatistics:
    voters = biometric = disability = social_name = 0
    with _timed("General statistics"):
        for r in store.records:
            voters += r.profile_count
            biometric += r.biometric_count
            disability += r.disability_count
            social_name += r.social_name_count
    return GeneralStatistics(
        total_voters=voters,
        total_biometric=biometric,
        total_disability=disability,
        total_social_name=social_name,
    )


def list_records(store: VoterProfileStore, limit: int = 10) -> pd.DataFrame:
    """First `limit` records as a DataFrame (one column per record field)."""
    columns = [f.name for f in fields(VoterProfileRecord)]
    limit = max(0, int(limit))
    with _timed(f"Listing of {min(limit, store.total_records)} records"):
        rows = [asdict(r) for r in store.records[:limit]]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_records(rows, columns=columns)


def available_localities(store: VoterProfileStore, use_index: bool = True) -> List[Tuple[int, str]]:
    """
    Distinct (locality_code, locality_name) pairs, ascending by code.

    With use_index and a built index, keys come from the tree's in-order walk
    and names from the first record of each bucket. Otherwise the flat store
    is deduplicated directly.
    """
    if use_index and not store.index.is_empty():
        return [(key, first.locality_name) for key, first in store.index.in_order_first_records()]

    names: Dict[int, str] = {}
    for r in store.records:
        if r.locality_code not in names:
            names[r.locality_code] = r.locality_name
    return sorted(names.items())


def index_statistics(store: VoterProfileStore) -> IndexStatistics:
    return IndexStatistics(
        nodes=store.index.size,
        records=store.index.total_records,
        height=store.index.height(),
    )


def count_by_profile(
    store: VoterProfileStore,
    base: QueryParameters,
    options: Sequence[Any],
    cross_check: Optional[bool] = False,
) -> pd.DataFrame:
    """Run base once per option and tabulate (option, total, path)."""
    rows: List[Dict[str, Any]] = []
    for opt in options:
        params = QueryParameters(
            scope=base.scope,
            category=base.category,
            option=None if opt is None else str(opt),
            locality=base.locality,
            zone=base.zone,
            section=base.section,
            polling_place=base.polling_place,
        )
        result = run_query(store, params, cross_check=cross_check)
        rows.append({"option": opt, "total": result.total, "path": result.path})
    return pd.DataFrame(rows, columns=["option", "total", "path"])
