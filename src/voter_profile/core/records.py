from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

# CSV column -> record field. Columns not listed here are ignored on load.
RECORD_COLUMNS: Dict[str, str] = {
    "SG_UF": "state",
    "CD_MUNICIPIO": "locality_code",
    "NM_MUNICIPIO": "locality_name",
    "NR_ZONA": "zone",
    "NR_SECAO": "section",
    "NR_LOCAL_VOTACAO": "polling_place",
    "TP_OBRIGATORIEDADE_VOTO": "mandatory_voting_type",
    "DS_GENERO": "gender",
    "CD_ESTADO_CIVIL": "marital_status_code",
    "CD_FAIXA_ETARIA": "age_bracket_code",
    "CD_GRAU_ESCOLARIDADE": "education_code",
    "CD_RACA_COR": "race_color_code",
    "QT_ELEITORES_PERFIL": "profile_count",
    "QT_ELEITORES_BIOMETRIA": "biometric_count",
    "QT_ELEITORES_DEFICIENCIA": "disability_count",
    "QT_ELEITORES_INC_NM_SOCIAL": "social_name_count",
}

TEXT_FIELDS = frozenset({"state", "locality_name", "mandatory_voting_type", "gender"})


@dataclass(frozen=True, slots=True)
class VoterProfileRecord:
    """
    One row of the TSE "perfil do eleitorado por seção" file.

    Each row is a tally: profile_count voters in this polling section share
    the demographic combination described by the categorical codes. The
    biometric/disability/social-name counts are sub-tallies of the same row.
    """
    state: str
    locality_code: int
    locality_name: str
    zone: int
    section: int
    polling_place: int
    mandatory_voting_type: str
    gender: str
    marital_status_code: int
    age_bracket_code: int
    education_code: int
    race_color_code: int
    profile_count: int
    biometric_count: int = 0
    disability_count: int = 0
    social_name_count: int = 0


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).replace("\u00A0", " ").strip()


def record_from_row(row: Mapping[str, Any]) -> VoterProfileRecord:
    """
    Build a record from a mapping keyed by the source CSV column names.

    Raises KeyError when a required column is missing and ValueError when a
    numeric column cannot be parsed; the loader skips such rows.
    """
    values: Dict[str, Any] = {}
    for column, field_name in RECORD_COLUMNS.items():
        raw = row[column]
        if field_name in TEXT_FIELDS:
            values[field_name] = _clean_text(raw)
        else:
            values[field_name] = int(_clean_text(raw))
    return VoterProfileRecord(**values)
