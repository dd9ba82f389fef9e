from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import logging

import pandas as pd

from voter_profile.core.predicates import AGE_BRACKET_CODES, MARITAL_STATUS_CODES, ProfileCategory

logger = logging.getLogger(__name__)

# In-memory cache: category -> options table
_OPTIONS_CACHE: Dict[ProfileCategory, pd.DataFrame] = {}


# ---------------------------------------------------------------------------
# Label tables (TSE code books)
#
# 'option' is the value a caller passes to the profile predicate for that
# category; it is NOT always the code stored in the CSV (see age bracket and
# marital status, which are positional).
# ---------------------------------------------------------------------------

_MANDATORY_VOTING: List[Tuple[str, str]] = [
    ("OBRIGATORIO", "Obrigatório"),
    ("FACULTATIVO", "Facultativo"),
]

_GENDER: List[Tuple[str, str]] = [
    ("MASCULINO", "Masculino"),
    ("FEMININO", "Feminino"),
    ("NÃO INFORMADO", "Não informado"),
]

_AGE_BRACKET_LABELS: Dict[int, str] = {
    1600: "16 anos",
    1700: "17 anos",
    1800: "18 a 20 anos",
    2100: "21 a 24 anos",
    10000: "100 anos ou mais",
}

_EDUCATION: List[Tuple[str, str]] = [
    ("0", "Não informado"),
    ("1", "Analfabeto"),
    ("2", "Lê e escreve"),
    ("3", "Ensino fundamental incompleto"),
    ("4", "Ensino fundamental completo"),
    ("5", "Ensino médio incompleto"),
    ("6", "Ensino médio completo"),
    ("7", "Superior incompleto"),
    ("8", "Superior completo"),
]

_MARITAL_STATUS_LABELS: Dict[int, str] = {
    0: "Não informado",
    1: "Solteiro",
    3: "Casado",
    9: "Divorciado",
    5: "Viúvo",
    7: "Separado judicialmente",
}

_RACE_COLOR: List[Tuple[str, str]] = [
    ("1", "Branca"),
    ("2", "Preta"),
    ("3", "Parda"),
    ("4", "Amarela"),
    ("5", "Indígena"),
    ("6", "Não informado"),
]


def _age_bracket_label(code: int) -> str:
    if code in _AGE_BRACKET_LABELS:
        return _AGE_BRACKET_LABELS[code]
    # 2500 -> "25 a 29 anos"
    start = code // 100
    return f"{start} a {start + 4} anos"


def _build_options(category: ProfileCategory) -> pd.DataFrame:
    if category is ProfileCategory.MANDATORY_VOTING:
        pairs = _MANDATORY_VOTING
    elif category is ProfileCategory.GENDER:
        pairs = _GENDER
    elif category is ProfileCategory.AGE_BRACKET:
        pairs = [(str(i), _age_bracket_label(code)) for i, code in enumerate(AGE_BRACKET_CODES, start=1)]
    elif category is ProfileCategory.EDUCATION:
        pairs = _EDUCATION
    elif category is ProfileCategory.MARITAL_STATUS:
        pairs = [(str(i), _MARITAL_STATUS_LABELS[code]) for i, code in enumerate(MARITAL_STATUS_CODES)]
    elif category is ProfileCategory.RACE_COLOR:
        pairs = _RACE_COLOR
    else:
        # TODOS / DEFICIENCIA / BIOMETRIA take no option
        pairs = []

    return pd.DataFrame(pairs, columns=["option", "label"])


def load_profile_options(category: ProfileCategory | str, refresh: bool = False) -> pd.DataFrame:
    """
    Selectable options for a profile category.

    Returns a DataFrame with columns:
      - option  (string to pass as the query option)
      - label   (Portuguese display label)

    Categories that ignore the option return an empty table.
    """
    cat = ProfileCategory(getattr(category, "value", category))
    if cat in _OPTIONS_CACHE and not refresh:
        return _OPTIONS_CACHE[cat]

    df = _build_options(cat)
    logger.debug("Built %d option(s) for %s", len(df), cat.value)
    _OPTIONS_CACHE[cat] = df
    return df


def option_label(category: ProfileCategory | str, option: Optional[str]) -> Optional[str]:
    """Display label for option, or None if the category has no such option."""
    if option is None:
        return None
    df = load_profile_options(category)
    if df.empty:
        return None
    row = df[df["option"].str.upper() == str(option).strip().upper()]
    if row.empty:
        return None
    return str(row.iloc[0]["label"])
