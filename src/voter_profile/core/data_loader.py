from __future__ import annotations

import logging
import time
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from voter_profile.config import (
    CSV_CHUNK_SIZE,
    CSV_ENCODING,
    CSV_NAME_TEMPLATE,
    CSV_SEPARATOR,
    DOWNLOAD_BACKOFF_FACTOR,
    DOWNLOAD_BACKOFF_MAX_SECONDS,
    DOWNLOAD_DIR,
    DOWNLOAD_RETRIES,
    DOWNLOAD_TIMEOUT_SECONDS,
    EXTRACT_DIR,
    TSE_PROFILE_URL_TEMPLATE,
)
from voter_profile.core.query_engine import VoterProfileStore
from voter_profile.core.records import RECORD_COLUMNS, VoterProfileRecord, record_from_row

logger = logging.getLogger(__name__)

# Brazilian states (UF) published by TSE; ZZ holds voters registered abroad.
VALID_STATES: Tuple[str, ...] = (
    "AC", "AL", "AM", "AP", "BA", "CE", "DF", "ES", "GO", "MA",
    "MG", "MS", "MT", "PA", "PB", "PE", "PI", "PR", "RJ", "RN",
    "RO", "RR", "RS", "SC", "SE", "SP", "TO", "ZZ",
)


class DataLoaderError(Exception):
    """Raised when downloading, extracting or reading the TSE files fails."""


def _normalize_state(state: str) -> str:
    return str(state or "").strip().upper()


def is_valid_state(state: str) -> bool:
    return _normalize_state(state) in VALID_STATES


def build_source_url(state: str) -> str:
    uf = _normalize_state(state)
    if uf not in VALID_STATES:
        raise DataLoaderError(f"Unknown state {state!r}. Expected one of {list(VALID_STATES)}.")
    return TSE_PROFILE_URL_TEMPLATE.format(state=uf)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def _build_retry_session(retries: int = DOWNLOAD_RETRIES) -> requests.Session:
    """
    Session tuned for a handful of large archive downloads from the TSE CDN.

    Connection failures and edge errors (408, 429, 5xx) are retried with a
    long, capped backoff and the CDN's Retry-After is honoured. Read errors
    get fewer retries: a mid-body failure restarts a file of hundreds of MB.
    """
    session = requests.Session()

    retry = Retry(
        total=retries,
        connect=retries,
        read=min(2, retries),
        status=retries,
        backoff_factor=DOWNLOAD_BACKOFF_FACTOR,
        backoff_max=DOWNLOAD_BACKOFF_MAX_SECONDS,
        status_forcelist=(408, 429, 500, 502, 503, 504, 520, 522, 524),
        allowed_methods=frozenset({"GET", "HEAD"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )

    # One archive at a time; no need for a pool.
    adapter = HTTPAdapter(max_retries=retry, pool_connections=1, pool_maxsize=2)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def download_archive(
    url: str,
    destination: Path,
    *,
    timeout_seconds: int = DOWNLOAD_TIMEOUT_SECONDS,
    chunk_bytes: int = 1 << 20,
    session: Optional[requests.Session] = None,
) -> Path:
    """
    Stream url to destination. An existing non-empty file is reused as-is.
    """
    destination = Path(destination)
    if destination.exists() and destination.stat().st_size > 0:
        logger.info("Reusing cached archive %s", destination)
        return destination

    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_suffix(destination.suffix + ".part")

    logger.info("Downloading %s", url)
    try:
        with (session or _get_session()).get(url, stream=True, timeout=timeout_seconds) as resp:
            if resp.status_code != 200:
                raise DataLoaderError(f"Download failed for {url} (status={resp.status_code}).")
            with open(partial, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=chunk_bytes):
                    if chunk:
                        fh.write(chunk)
    except DataLoaderError:
        partial.unlink(missing_ok=True)
        raise
    except (requests.RequestException, OSError) as exc:
        partial.unlink(missing_ok=True)
        raise DataLoaderError(f"HTTP error while downloading {url}: {exc}") from exc

    partial.replace(destination)
    logger.info("Saved %s (%s bytes)", destination, destination.stat().st_size)
    return destination


# ---------------------------------------------------------------------------
# Archive / CSV
# ---------------------------------------------------------------------------

def extract_archive(zip_path: Path, dest_dir: Path) -> List[Path]:
    try:
        with zipfile.ZipFile(zip_path) as zf:
            names = zf.namelist()
            zf.extractall(dest_dir)
    except (zipfile.BadZipFile, OSError) as exc:
        raise DataLoaderError(f"Could not extract {zip_path}: {exc}") from exc

    logger.info("Extracted %d file(s) from %s", len(names), zip_path)
    return [Path(dest_dir) / n for n in names]


def read_profile_csv(path: Path, chunksize: int = CSV_CHUNK_SIZE) -> List[VoterProfileRecord]:
    """
    Parse the TSE profile CSV into records, in file order.

    Every column is read as text and converted by record_from_row; rows that
    fail conversion are skipped and counted.
    """
    path = Path(path)
    if not path.exists():
        raise DataLoaderError(f"CSV file not found: {path}")

    records: List[VoterProfileRecord] = []
    skipped = 0
    wanted = set(RECORD_COLUMNS)

    try:
        reader = pd.read_csv(
            path,
            sep=CSV_SEPARATOR,
            encoding=CSV_ENCODING,
            dtype=str,
            keep_default_na=False,
            usecols=lambda c: c in wanted,
            chunksize=max(1, int(chunksize)),
        )
        for chunk in reader:
            missing = wanted - set(chunk.columns)
            if missing:
                raise DataLoaderError(f"CSV {path} is missing required columns: {sorted(missing)}")

            for row in chunk.to_dict(orient="records"):
                try:
                    records.append(record_from_row(row))
                except (KeyError, ValueError):
                    skipped += 1

            logger.info("  Processed: %s records...", f"{len(records):,}")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as exc:
        raise DataLoaderError(f"Error reading CSV {path}: {exc}") from exc

    if skipped:
        logger.warning("Skipped %d malformed row(s) in %s", skipped, path)
    return records


def load_state(
    state: str,
    *,
    download_dir: Path = DOWNLOAD_DIR,
    extract_dir: Path = EXTRACT_DIR,
) -> VoterProfileStore:
    """
    Download, extract and parse one state's profile file, then build the index.
    """
    uf = _normalize_state(state)
    url = build_source_url(uf)
    logger.info("Loading voter profile data for state %s", uf)

    archive = download_archive(url, Path(download_dir) / f"perfil_eleitor_secao_{uf}.zip")
    extract_archive(archive, Path(extract_dir))

    csv_path = Path(extract_dir) / CSV_NAME_TEMPLATE.format(state=uf)
    t0 = time.perf_counter()
    records = read_profile_csv(csv_path)
    logger.info("CSV read (%s records) took %.2f ms", f"{len(records):,}", (time.perf_counter() - t0) * 1000.0)

    store = VoterProfileStore(records)
    if store.has_data():
        store.build_index()
    return store
