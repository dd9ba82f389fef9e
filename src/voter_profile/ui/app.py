from __future__ import annotations

import time
import traceback
from typing import List, Optional, Tuple

import pandas as pd
import streamlit as st

from voter_profile.config import APP_NAME, APP_VERSION, CROSS_CHECK_ENABLED, configure_logging
from voter_profile.core.audit import build_audit_snapshot
from voter_profile.core.data_loader import VALID_STATES, DataLoaderError, load_state
from voter_profile.core.metadata_loader import load_profile_options
from voter_profile.core.predicates import ProfileCategory, ScopeKind
from voter_profile.core.query_engine import (
    QueryEngineError,
    QueryParameters,
    VoterProfileStore,
    available_localities,
    compute_statistics,
    count_by_profile,
    index_statistics,
    list_records,
    run_query,
)

STORE_KEY = "voter_store"

SCOPE_LABELS = {
    ScopeKind.STATE: "Estado inteiro",
    ScopeKind.CITY: "Cidade",
    ScopeKind.SECTION: "Seção eleitoral",
    ScopeKind.POLLING_PLACE: "Local de votação",
}

CATEGORY_LABELS = {
    ProfileCategory.ALL: "Todos os eleitores",
    ProfileCategory.MANDATORY_VOTING: "Obrigatoriedade do voto",
    ProfileCategory.GENDER: "Gênero",
    ProfileCategory.AGE_BRACKET: "Faixa etária",
    ProfileCategory.EDUCATION: "Escolaridade",
    ProfileCategory.MARITAL_STATUS: "Estado civil",
    ProfileCategory.RACE_COLOR: "Raça/cor",
    ProfileCategory.DISABILITY: "Eleitores com deficiência",
    ProfileCategory.BIOMETRY: "Eleitores com biometria",
}


def _get_store() -> Optional[VoterProfileStore]:
    return st.session_state.get(STORE_KEY)


def _render_loader() -> None:
    with st.expander("Load data", expanded=_get_store() is None):
        state = st.selectbox("State (UF)", options=list(VALID_STATES), index=list(VALID_STATES).index("AC"))
        if st.button("Download and load"):
            status = st.status(f"Loading {state}…", expanded=True)
            t0 = time.perf_counter()
            try:
                store = load_state(state)
                st.session_state[STORE_KEY] = store
                status.write(f"{store.total_records:,} records loaded in {time.perf_counter() - t0:0.2f}s")
                status.update(label="Done.", state="complete")
            except DataLoaderError as err:
                status.update(label="Load failed.", state="error")
                st.error(f"Could not load {state}: {err}")
            except Exception:
                status.update(label="Unexpected error.", state="error")
                st.text_area("Traceback", value=traceback.format_exc(), height=220)


def _render_statistics(store: VoterProfileStore) -> None:
    with st.expander("General statistics", expanded=True):
        stats = compute_statistics(store)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Voters", f"{stats.total_voters:,}")
        c2.metric("Biometric", f"{stats.total_biometric:,}")
        c3.metric("Disability", f"{stats.total_disability:,}")
        c4.metric("Social name", f"{stats.total_social_name:,}")

        idx = index_statistics(store)
        st.caption(f"Locality index: {idx.nodes:,} nodes, {idx.records:,} records, height {idx.height}")


def _select_option(category: ProfileCategory) -> Optional[str]:
    options = load_profile_options(category)
    if options.empty:
        return None
    labels = {row.option: f"{row.label} ({row.option})" for row in options.itertuples(index=False)}
    return st.selectbox("Option", options=list(labels.keys()), format_func=lambda k: labels.get(k, k))


def _select_locality(localities: List[Tuple[int, str]]) -> int:
    if not localities:
        st.warning("No localities available.")
        return 0
    names = dict(localities)
    return int(
        st.selectbox(
            "City",
            options=list(names.keys()),
            format_func=lambda k: f"{names.get(k, '')} ({k})",
        )
    )


def _render_query(store: VoterProfileStore) -> None:
    with st.expander("Voter count query", expanded=True):
        col1, col2 = st.columns(2)

        with col1:
            scope = st.selectbox("Scope", options=list(ScopeKind), format_func=lambda s: SCOPE_LABELS[s])
            locality = zone = section = polling_place = 0
            if scope is not ScopeKind.STATE:
                locality = _select_locality(available_localities(store))
            if scope in (ScopeKind.SECTION, ScopeKind.POLLING_PLACE):
                zone = int(st.number_input("Zone", min_value=0, step=1, value=1))
            if scope is ScopeKind.SECTION:
                section = int(st.number_input("Section", min_value=0, step=1, value=1))
            if scope is ScopeKind.POLLING_PLACE:
                polling_place = int(st.number_input("Polling place", min_value=0, step=1, value=1))

        with col2:
            category = st.selectbox(
                "Profile", options=list(ProfileCategory), format_func=lambda c: CATEGORY_LABELS[c]
            )
            option = _select_option(category)
            options_table = load_profile_options(category)
            show_breakdown = st.checkbox("Show breakdown by option", value=False, disabled=options_table.empty)
            cross_check = st.checkbox("Cross-check indexed result with full scan", value=CROSS_CHECK_ENABLED)

        if st.button("Count voters"):
            try:
                params = QueryParameters(
                    scope=scope,
                    category=category,
                    option=option,
                    locality=locality,
                    zone=zone,
                    section=section,
                    polling_place=polling_place,
                )
                result = run_query(store, params, cross_check=cross_check)
                snapshot = build_audit_snapshot(result)

                st.metric("Voters", f"{result.total:,}")
                st.write(f"Scope: {snapshot.scope_detail} - path: {snapshot.path}")
                if snapshot.linear_total is not None:
                    st.write(f"Full scan total: {snapshot.linear_total:,}")
                if not snapshot.consistent:
                    st.error(
                        f"Indexed result ({snapshot.total:,}) differs from full scan "
                        f"({snapshot.linear_total:,})."
                    )
                st.dataframe(
                    pd.DataFrame(
                        [{"Operation": k, "ms": v} for k, v in snapshot.timings_ms.items()]
                    ),
                    use_container_width=True,
                )
                if show_breakdown and not options_table.empty:
                    st.write("Breakdown by option:")
                    table = count_by_profile(store, params, options_table["option"].tolist())
                    table.insert(1, "label", options_table["label"].tolist())
                    st.dataframe(table, use_container_width=True)
            except QueryEngineError as qerr:
                st.error(f"Query failed: {qerr}")


def _render_listing(store: VoterProfileStore) -> None:
    with st.expander("Records", expanded=False):
        limit = int(st.number_input("How many", min_value=1, max_value=10_000, value=20, step=10))
        st.dataframe(list_records(store, limit), use_container_width=True)


def run_app() -> None:
    configure_logging()
    st.set_page_config(page_title=APP_NAME, page_icon="🗳️", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Prototype version {APP_VERSION}")

    _render_loader()

    store = _get_store()
    if store is None or not store.has_data():
        st.info("Load a state to start.")
        return

    st.subheader(f"State: {store.loaded_state()} - {store.total_records:,} records")
    _render_statistics(store)
    _render_query(store)
    _render_listing(store)
