from __future__ import annotations

import os
import tempfile

# Keep config from creating data/ inside the source tree during tests.
os.environ.setdefault("VOTER_PROFILE_DATA_DIR", tempfile.mkdtemp(prefix="voter_profile_test_"))

import pytest

from voter_profile.core.records import VoterProfileRecord


_DEFAULTS = dict(
    state="AC",
    locality_code=1000,
    locality_name="RIO BRANCO",
    zone=1,
    section=1,
    polling_place=1,
    mandatory_voting_type="OBRIGATORIO",
    gender="FEMININO",
    marital_status_code=1,
    age_bracket_code=2500,
    education_code=6,
    race_color_code=3,
    profile_count=10,
    biometric_count=0,
    disability_count=0,
    social_name_count=0,
)


def build_record(**overrides) -> VoterProfileRecord:
    values = dict(_DEFAULTS)
    values.update(overrides)
    return VoterProfileRecord(**values)


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def sample_records():
    """Three cities, several zones/sections/places, mixed profiles."""
    return [
        build_record(locality_code=1200, locality_name="CRUZEIRO DO SUL", zone=5, section=10, polling_place=100,
                     gender="MASCULINO", profile_count=40, biometric_count=30, disability_count=2),
        build_record(locality_code=1000, zone=5, section=10, polling_place=100, profile_count=25,
                     age_bracket_code=1800, biometric_count=20, social_name_count=1),
        build_record(locality_code=1000, zone=5, section=11, polling_place=100, profile_count=15,
                     mandatory_voting_type="FACULTATIVO", age_bracket_code=1600, disability_count=3),
        build_record(locality_code=1000, zone=6, section=10, polling_place=101, profile_count=7,
                     gender="MASCULINO", marital_status_code=3, education_code=8),
        build_record(locality_code=1400, locality_name="TARAUACA", zone=8, section=1, polling_place=200,
                     profile_count=12, race_color_code=1, marital_status_code=9, biometric_count=12),
        build_record(locality_code=1200, locality_name="CRUZEIRO DO SUL", zone=5, section=12, polling_place=100,
                     profile_count=9, education_code=1, disability_count=1),
    ]
