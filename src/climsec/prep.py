from __future__ import annotations

import pandas as pd
import country_converter as coco
from loguru import logger

from .config import CONTROL_VARS, SPEECH_COLS, DISASTER_COLS, IMPACT_COLS
from .errors import SchemaError
from .models import TopicFlag


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = (
        out.columns.astype(str)
        .str.strip()
        .str.lower()
        .str.replace(r"[^0-9a-z]+", "_", regex=True)
        .str.strip("_")
    )
    return out


def _require(df: pd.DataFrame, cols, table: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise SchemaError(f"{table}: missing required column(s) {missing}; "
                          f"available={list(df.columns)}")


def _coerce_year(df: pd.DataFrame, col: str, table: str) -> None:
    years = pd.to_numeric(df[col], errors="coerce")
    bad = years.isna() | (years % 1 != 0)
    if bad.any():
        raise SchemaError(f"{table}: column '{col}' must hold integer years "
                          f"({int(bad.sum())} invalid value(s))")
    df[col] = years.astype(int)


def _require_values(df: pd.DataFrame, col: str, table: str) -> None:
    if df[col].isna().any():
        raise SchemaError(f"{table}: column '{col}' has {int(df[col].isna().sum())} missing value(s)")


def harmonize_entity_codes(df: pd.DataFrame, col: str = "entity_code") -> pd.DataFrame:
    """Map country names or codes in `col` to ISO3; unmatched values are kept as given."""
    out = df.copy()
    names = out[col].dropna().unique().tolist()
    if not names:
        return out
    iso3 = coco.convert(names=names, to="ISO3", not_found=None)
    if isinstance(iso3, str):
        iso3 = [iso3]
    mapping = dict(zip(names, iso3))
    out[col] = out[col].map(lambda c: mapping.get(c) or c)
    return out


# ---------- Speeches ----------
def prepare_speech_data(speech_df: pd.DataFrame, harmonize_codes: bool = False) -> pd.DataFrame:
    """Validate classified speech records: one row per source document."""
    df = _normalize_columns(speech_df)
    _require(df, SPEECH_COLS, "speeches")

    for col in ("doc_id", "entity_code", "topic_flag"):
        _require_values(df, col, "speeches")
    _coerce_year(df, "year", "speeches")

    df["doc_id"] = df["doc_id"].astype(str)
    df["entity_code"] = df["entity_code"].astype(str).str.strip()
    df["topic_flag"] = df["topic_flag"].astype(str).str.strip()

    allowed = {f.value for f in TopicFlag}
    unknown = sorted(set(df["topic_flag"]) - allowed)
    if unknown:
        raise SchemaError(f"speeches: unknown topic_flag value(s) {unknown}; expected {sorted(allowed)}")

    if harmonize_codes:
        df = harmonize_entity_codes(df)

    df = df.drop_duplicates()
    logger.info(f"[speeches] {len(df):,} records, {df['entity_code'].nunique()} entities")
    return df.reset_index(drop=True)


# ---------- Disasters ----------
def prepare_disaster_data(disaster_df: pd.DataFrame, harmonize_codes: bool = False) -> pd.DataFrame:
    """Validate disaster events; rejects events ending before they start."""
    df = _normalize_columns(disaster_df)
    _require(df, DISASTER_COLS, "disasters")

    _require_values(df, "entity_code", "disasters")
    _coerce_year(df, "start_year", "disasters")
    _coerce_year(df, "end_year", "disasters")

    reversed_ = df["end_year"] < df["start_year"]
    if reversed_.any():
        raise SchemaError(f"disasters: {int(reversed_.sum())} event(s) with end_year < start_year")

    df["entity_code"] = df["entity_code"].astype(str).str.strip()
    for col in IMPACT_COLS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    if harmonize_codes:
        df = harmonize_entity_codes(df)

    logger.info(f"[disasters] {len(df):,} events, {df['entity_code'].nunique()} entities")
    return df.reset_index(drop=True)


# ---------- Controls ----------
def prepare_control_data(controls_df: pd.DataFrame) -> pd.DataFrame:
    """Validate control covariates keyed by doc_id. Missing covariates stay missing."""
    df = _normalize_columns(controls_df)
    _require(df, ["doc_id"], "controls")
    _require_values(df, "doc_id", "controls")
    df["doc_id"] = df["doc_id"].astype(str)

    df = df.drop_duplicates()
    dupes = df["doc_id"].duplicated()
    if dupes.any():
        raise SchemaError(f"controls: {int(dupes.sum())} duplicated doc_id value(s)")

    absent = [c for c in CONTROL_VARS if c not in df.columns]
    if absent:
        logger.debug(f"[controls] covariates not supplied: {absent}")
    logger.info(f"[controls] {len(df):,} documents, {df.shape[1] - 1} covariate column(s)")
    return df.reset_index(drop=True)
