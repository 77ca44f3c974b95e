# build_master.py
"""
Fetch the published budget sheet (TSV) and turn it into the master record frame:

  category | budget | department | account | amount

Rows outside the configured categories, without a budget, or with amount <= 0
are dropped here; everything downstream can assume valid records.
"""

import io, os, re
import math
import requests
import pandas as pd
from typing import Dict, Iterable, Mapping, Optional

from _meta.hierarchy_extraction import RECORD_COLS
from settings import DEFAULTS, PATHS


class SchemaMissingError(ValueError):
    """A required sheet column could not be found. Nothing can be rendered without it."""

    def __init__(self, missing: Mapping[str, str], found: Iterable[str]):
        self.missing = dict(missing)
        self.found = [str(h) for h in found]
        wanted = ", ".join(f"'{h}' ({field})" for field, h in self.missing.items())
        super().__init__(f"Budget sheet is missing required column(s): {wanted}")


def _canon_header(s) -> str:
    return re.sub(r"\s+", " ", str(s)).strip().lower()


def detect_columns(headers: Iterable[str], columns: Mapping[str, str]) -> Dict[str, str]:
    """
    Map each record field to the sheet header that carries it.
    Exact header match first, then a case/whitespace-insensitive one.
    """
    headers = list(headers)
    by_canon = {}
    for h in headers:
        by_canon.setdefault(_canon_header(h), h)

    found: Dict[str, str] = {}
    missing: Dict[str, str] = {}
    for field, header in columns.items():
        if header in headers:
            found[field] = header
        elif _canon_header(header) in by_canon:
            found[field] = by_canon[_canon_header(header)]
        else:
            missing[field] = header
    if missing:
        raise SchemaMissingError(missing, headers)
    return found


def parse_money(s) -> float:
    cleaned = re.sub(r"[^0-9.\-]", "", "" if s is None else str(s))
    try:
        v = float(cleaned)
    except ValueError:
        return 0.0
    return v if math.isfinite(v) else 0.0


def records_from_frame(
    raw: pd.DataFrame,
    columns: Mapping[str, str] = DEFAULTS["columns"],
    categories: Iterable[str] = DEFAULTS["categories"],
) -> pd.DataFrame:
    mapping = detect_columns(raw.columns, columns)
    df = pd.DataFrame({field: raw[header] for field, header in mapping.items()})

    for c in ("category", "budget", "department", "account"):
        df[c] = df[c].fillna("").astype(str).str.strip()
    df["category"] = df["category"].str.upper()
    df["amount"] = df["amount"].map(parse_money)

    wanted = {str(c).strip().upper() for c in categories}
    valid = df["category"].isin(wanted) & (df["budget"] != "") & (df["amount"] > 0)
    return df.loc[valid, RECORD_COLS].reset_index(drop=True)


def parse_budget_tsv(
    text: str,
    columns: Mapping[str, str] = DEFAULTS["columns"],
    categories: Iterable[str] = DEFAULTS["categories"],
) -> pd.DataFrame:
    raw = pd.read_csv(io.StringIO(text), sep="\t", dtype=str, keep_default_na=False)
    return records_from_frame(raw, columns, categories)


def fetch_budget_tsv(url: str, timeout: int = 15) -> str:
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    r.encoding = r.encoding or "utf-8"
    return r.text


def _read_cache(cache_path: str) -> Optional[pd.DataFrame]:
    df = pd.read_csv(cache_path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    if df.empty or not set(RECORD_COLS).issubset(df.columns):
        print(f"Cache check failed: {cache_path} lacks columns {sorted(set(RECORD_COLS) - set(df.columns))}")
        return None
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df[RECORD_COLS]


def load_or_build_master(
    url: str = DEFAULTS["tsv_url"],
    *,
    columns: Mapping[str, str] = DEFAULTS["columns"],
    categories: Iterable[str] = DEFAULTS["categories"],
    cache_path: Optional[str] = PATHS["cache_rows_csv"],
    refresh: bool = False,
) -> pd.DataFrame:
    """Loads rows from cache if it's valid, otherwise fetches the sheet and saves."""

    if cache_path and os.path.exists(cache_path) and not refresh:
        try:
            df_cache = _read_cache(cache_path)
            if df_cache is not None:
                print(f"Loaded {len(df_cache)} cached rows from {cache_path}")
                return df_cache
            print("Cache is stale or incomplete. Rebuilding...")
        except (OSError, pd.errors.ParserError) as e:
            print(f"Could not read cache file. Rebuilding... Error: {e}")

    print(f"Fetching budget sheet from {url[:60]}...")
    df_new = parse_budget_tsv(fetch_budget_tsv(url), columns, categories)
    print(f" -> Parsed {len(df_new)} valid rows.")

    if cache_path and not df_new.empty:
        try:
            os.makedirs(os.path.dirname(cache_path), exist_ok=True)
            df_new.to_csv(cache_path, index=False, encoding="utf-8-sig")
            print(f"Successfully saved new cache to {cache_path}")
        except OSError as e:
            print(f"Error saving new cache file: {e}")

    return df_new


if __name__ == "__main__":
    df = load_or_build_master(refresh=True)
    print(df.head())
