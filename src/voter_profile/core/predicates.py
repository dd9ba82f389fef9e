from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Tuple

from voter_profile.core.records import VoterProfileRecord


class ScopeKind(str, Enum):
    """Geographic granularity of a query. Values are the codes used by callers."""
    STATE = "ESTADO"
    CITY = "CIDADE"
    SECTION = "SECAO"
    POLLING_PLACE = "LOCAL"

    @property
    def index_eligible(self) -> bool:
        return self is not ScopeKind.STATE


class ProfileCategory(str, Enum):
    """Demographic dimension being counted."""
    ALL = "TODOS"
    MANDATORY_VOTING = "OBRIGATORIEDADE"
    GENDER = "GENERO"
    AGE_BRACKET = "FAIXA_ETARIA"
    EDUCATION = "ESCOLARIDADE"
    MARITAL_STATUS = "ESTADO_CIVIL"
    RACE_COLOR = "RACA_COR"
    DISABILITY = "DEFICIENCIA"
    BIOMETRY = "BIOMETRIA"


# TSE age bracket codes. Option 1 = 16 years, option 2 = 17 years, ...
AGE_BRACKET_CODES: Tuple[int, ...] = (
    1600, 1700, 1800, 2100, 2500, 3000, 3500, 4000, 4500, 5000,
    5500, 6000, 6500, 7000, 7500, 8000, 8500, 9000, 9500, 10000,
)

# Option (0-based) -> CD_ESTADO_CIVIL
MARITAL_STATUS_CODES: Tuple[int, ...] = (0, 1, 3, 9, 5, 7)


def _parse_option(option: Any) -> Optional[int]:
    """
    Strict decimal integer: optional sign then ASCII digits, nothing else.

    No whitespace, underscores or non-ASCII digits, which int() would accept.
    """
    if option is None:
        return None
    text = str(option)
    digits = text[1:] if text[:1] in ("+", "-") else text
    if not digits.isascii() or not digits.isdigit():
        return None
    return int(text)


# ---------------------------------------------------------------------------
# Scope predicates
# ---------------------------------------------------------------------------

def matches_scope(
    record: VoterProfileRecord,
    scope: ScopeKind,
    locality: int = 0,
    zone: int = 0,
    section: int = 0,
    polling_place: int = 0,
) -> bool:
    if scope is ScopeKind.STATE:
        return True
    if record.locality_code != locality:
        return False
    if scope is ScopeKind.CITY:
        return True
    if scope is ScopeKind.SECTION:
        return record.zone == zone and record.section == section
    if scope is ScopeKind.POLLING_PLACE:
        return record.zone == zone and record.polling_place == polling_place
    return False


# ---------------------------------------------------------------------------
# Profile predicates
# ---------------------------------------------------------------------------

def matches_age_bracket(code: int, option: Any) -> bool:
    """option is a 1-based position in AGE_BRACKET_CODES."""
    n = _parse_option(option)
    if n is None or n < 1 or n > len(AGE_BRACKET_CODES):
        return False
    return code == AGE_BRACKET_CODES[n - 1]


def matches_education(code: int, option: Any) -> bool:
    n = _parse_option(option)
    return n is not None and code == n


def matches_marital_status(code: int, option: Any) -> bool:
    """option is a 0-based position in MARITAL_STATUS_CODES."""
    n = _parse_option(option)
    # Negative positions are out of range too, not offsets from the end.
    if n is None or n < 0 or n >= len(MARITAL_STATUS_CODES):
        return False
    return code == MARITAL_STATUS_CODES[n]


def matches_race_color(code: int, option: Any) -> bool:
    n = _parse_option(option)
    return n is not None and code == n


def _fold_char(c: str) -> str:
    # One-to-one case mapping only: "ß".upper() is "SS", which must not match.
    u = c.upper()
    return u if len(u) == 1 else c


def _same_text(value: str, option: Any) -> bool:
    """Char-by-char case-insensitive equality; lengths must agree."""
    if option is None:
        return False
    other = str(option)
    if len(value) != len(other):
        return False
    return all(a == b or _fold_char(a) == _fold_char(b) for a, b in zip(value, other))


def profile_contribution(record: VoterProfileRecord, category: ProfileCategory, option: Any = None) -> int:
    """
    How many voters this record adds to a count for (category, option).

    Demographic categories contribute profile_count on a match and 0
    otherwise; DEFICIENCIA and BIOMETRIA always contribute their own
    sub-tally and ignore option.
    """
    if category is ProfileCategory.ALL:
        return record.profile_count
    if category is ProfileCategory.DISABILITY:
        return record.disability_count
    if category is ProfileCategory.BIOMETRY:
        return record.biometric_count

    if category is ProfileCategory.MANDATORY_VOTING:
        matched = _same_text(record.mandatory_voting_type, option)
    elif category is ProfileCategory.GENDER:
        matched = _same_text(record.gender, option)
    elif category is ProfileCategory.AGE_BRACKET:
        matched = matches_age_bracket(record.age_bracket_code, option)
    elif category is ProfileCategory.EDUCATION:
        matched = matches_education(record.education_code, option)
    elif category is ProfileCategory.MARITAL_STATUS:
        matched = matches_marital_status(record.marital_status_code, option)
    elif category is ProfileCategory.RACE_COLOR:
        matched = matches_race_color(record.race_color_code, option)
    else:
        matched = False

    return record.profile_count if matched else 0
