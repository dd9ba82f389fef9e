from __future__ import annotations

import logging
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Data directories
DATA_DIR = Path(os.getenv("VOTER_PROFILE_DATA_DIR", str(PROJECT_ROOT / "data"))).resolve()
DOWNLOAD_DIR = DATA_DIR / "downloads"    # zip archives as fetched from TSE
EXTRACT_DIR = DATA_DIR / "extracted"     # CSV files unpacked from the archives

DOWNLOAD_DIR.mkdir(parents=True, exist_ok=True)
EXTRACT_DIR.mkdir(parents=True, exist_ok=True)

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Voter Profile Explorer"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# TSE open data (perfil do eleitorado por seção)
#
# One archive per state (UF). Each archive holds a single ';'-separated,
# ISO-8859-1 encoded CSV named perfil_eleitor_secao_ATUAL_<UF>.csv.
# ---------------------------------------------------------------------------

TSE_PROFILE_URL_TEMPLATE = os.getenv(
    "VOTER_PROFILE_URL_TEMPLATE",
    "https://cdn.tse.jus.br/estatistica/sead/odsele/perfil_eleitor_secao/"
    "perfil_eleitor_secao_ATUAL_{state}.zip",
).strip()

CSV_NAME_TEMPLATE = "perfil_eleitor_secao_ATUAL_{state}.csv"
CSV_SEPARATOR = ";"
CSV_ENCODING = "ISO-8859-1"
CSV_CHUNK_SIZE = int(os.getenv("VOTER_PROFILE_CSV_CHUNK_SIZE", "500000"))

DOWNLOAD_TIMEOUT_SECONDS = int(os.getenv("VOTER_PROFILE_DOWNLOAD_TIMEOUT", "300"))
DOWNLOAD_RETRIES = int(os.getenv("VOTER_PROFILE_DOWNLOAD_RETRIES", "6"))
DOWNLOAD_BACKOFF_FACTOR = float(os.getenv("VOTER_PROFILE_DOWNLOAD_BACKOFF", "2.0"))
DOWNLOAD_BACKOFF_MAX_SECONDS = float(os.getenv("VOTER_PROFILE_DOWNLOAD_BACKOFF_MAX", "120"))

# ---------------------------------------------------------------------------
# Index / query behaviour
# ---------------------------------------------------------------------------

# Starting slot count of each per-locality bucket (doubles when full)
BUCKET_INITIAL_CAPACITY = 10

# Re-run every indexed query as a full scan and compare totals.
# Doubles query cost; switch off with VOTER_PROFILE_CROSS_CHECK=0.
CROSS_CHECK_ENABLED = os.getenv("VOTER_PROFILE_CROSS_CHECK", "1").strip().lower() not in {"0", "false", "no", "off"}

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("VOTER_PROFILE_LOG_LEVEL", "INFO").strip().upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
