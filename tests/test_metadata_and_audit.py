from __future__ import annotations

from voter_profile.core.audit import build_audit_snapshot
from voter_profile.core.metadata_loader import load_profile_options, option_label
from voter_profile.core.predicates import ProfileCategory, ScopeKind
from voter_profile.core.query_engine import PATH_INDEX, QueryParameters, VoterProfileStore, run_query

from conftest import build_record


class TestProfileOptions:
    def test_age_bracket_options_are_positional(self):
        df = load_profile_options(ProfileCategory.AGE_BRACKET)
        assert len(df) == 20
        assert list(df["option"])[:3] == ["1", "2", "3"]
        assert option_label("FAIXA_ETARIA", "3") == "18 a 20 anos"
        assert option_label("FAIXA_ETARIA", "5") == "25 a 29 anos"

    def test_marital_status_options_are_zero_based(self):
        df = load_profile_options("ESTADO_CIVIL")
        assert list(df["option"]) == ["0", "1", "2", "3", "4", "5"]
        assert option_label(ProfileCategory.MARITAL_STATUS, "2") == "Casado"

    def test_categories_without_options(self):
        for cat in (ProfileCategory.ALL, ProfileCategory.DISABILITY, ProfileCategory.BIOMETRY):
            assert load_profile_options(cat).empty
            assert option_label(cat, "1") is None

    def test_cached_until_refresh(self):
        first = load_profile_options(ProfileCategory.GENDER)
        assert load_profile_options(ProfileCategory.GENDER) is first
        assert load_profile_options(ProfileCategory.GENDER, refresh=True) is not first

    def test_text_option_label_is_case_insensitive(self):
        assert option_label(ProfileCategory.GENDER, "feminino") == "Feminino"
        assert option_label(ProfileCategory.GENDER, "OUTRO") is None


class TestAuditSnapshot:
    def test_consistent_indexed_query(self):
        store = VoterProfileStore([build_record(locality_code=1000, zone=5, section=10, profile_count=3)])
        store.build_index()
        params = QueryParameters(scope=ScopeKind.SECTION, category="FAIXA_ETARIA", option="5",
                                 locality=1000, zone=5, section=10)
        snap = build_audit_snapshot(run_query(store, params, cross_check=True))

        assert snap.path == PATH_INDEX
        assert snap.total == 3
        assert snap.linear_total == 3
        assert snap.divergence == 0
        assert snap.consistent
        assert snap.option_label == "25 a 29 anos"
        assert snap.scope_detail == "locality 1000, zone 5, section 10"
        assert snap.timings_ms

    def test_divergent_query(self):
        store = VoterProfileStore([build_record(locality_code=1000, profile_count=3)])
        store.build_index()
        store.index.insert(1000, build_record(locality_code=1000, profile_count=4))
        snap = build_audit_snapshot(
            run_query(store, QueryParameters(scope="CIDADE", locality=1000), cross_check=True)
        )
        assert snap.total == 7
        assert snap.linear_total == 3
        assert snap.divergence == 4
        assert not snap.consistent

    def test_linear_query_has_no_divergence(self):
        store = VoterProfileStore([build_record()])
        snap = build_audit_snapshot(run_query(store, QueryParameters(scope="ESTADO"), cross_check=True))
        assert snap.scope_detail == "state-wide"
        assert snap.linear_total is None
        assert snap.divergence is None
        assert snap.consistent
