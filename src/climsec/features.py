from __future__ import annotations

import warnings

import pandas as pd
from loguru import logger

from .config import INDEX_VARS, MAX_LAG, PREDICTOR
from .disasters import aggregate_disasters
from .errors import LagUnavailable, MergeGapWarning, SchemaError
from .models import CLIMATE_FLAGS, TopicFlag

COUNT_COLS = ["sum_security", "sum_climate", "n_speeches"]
SPEECH_LEVEL_COLS = {"doc_id", "topic_flag", "security_bit", "climate_bit", "decade"}


def lag_name(col: str, k: int) -> str:
    return col if k == 0 else f"{col}_lag_{k}"


def classify_speeches(speeches: pd.DataFrame) -> pd.DataFrame:
    """Attach security_bit, climate_bit and the entity's security propensity.

    The propensity is the mean security_bit over the entity's climate speeches;
    it is carried for diagnostics and is never a regression input.
    """
    out = speeches.copy()
    out["security_bit"] = (out["topic_flag"] == TopicFlag.SECURITIZED_CLIMATE.value).astype(int)
    out["climate_bit"] = out["topic_flag"].isin(CLIMATE_FLAGS).astype(int)

    propensity = (
        out.loc[out["climate_bit"] == 1]
           .groupby("entity_code")["security_bit"]
           .mean()
    )
    out["security_propensity"] = out["entity_code"].map(propensity)
    return out


def merge_panel(speeches: pd.DataFrame, summary: pd.DataFrame,
                controls: pd.DataFrame | None = None) -> pd.DataFrame:
    """Left-join speech rows with the disaster summary, then controls on doc_id.

    Unmatched speech rows keep disaster fields missing.
    """
    disasters = summary.rename(columns={"start_year": "year"})
    panel = speeches.merge(disasters, on=INDEX_VARS, how="left", validate="many_to_one")

    gaps = panel.loc[panel[PREDICTOR].isna(), INDEX_VARS].drop_duplicates()
    if len(gaps):
        msg = f"{len(gaps):,} speech entity-year(s) have no disaster summary; disaster fields left missing"
        logger.warning(msg)
        warnings.warn(msg, MergeGapWarning, stacklevel=2)

    if controls is not None:
        keep = ["doc_id"] + [c for c in controls.columns if c not in panel.columns]
        panel = panel.merge(controls[keep], on="doc_id", how="left", validate="many_to_one")

    return panel


def build_lags(panel: pd.DataFrame, col: str = PREDICTOR, max_lag: int = MAX_LAG) -> pd.DataFrame:
    """Add `{col}_lag_k` for k = 1..max_lag.

    lag_k at (entity, year) is the value observed for the same entity at
    year - k, or missing when the panel has no row for that year. Works on
    the event-level panel or an entity-year panel alike.
    """
    values = panel.groupby(INDEX_VARS, as_index=False, sort=True)[col].first()

    out = panel.drop(columns=[lag_name(col, k) for k in range(1, max_lag + 1)], errors="ignore")
    for k in range(1, max_lag + 1):
        name = lag_name(col, k)
        shifted = values.assign(year=values["year"] + k).rename(columns={col: name})
        out = out.merge(shifted, on=INDEX_VARS, how="left")

        n_missing = int(out[name].isna().sum())
        if len(out) and n_missing == len(out):
            msg = f"{name}: no entity has a row {k} year(s) back; column is entirely missing"
            logger.warning(msg)
            warnings.warn(msg, LagUnavailable, stacklevel=2)
        else:
            logger.debug(f"{name}: {n_missing:,} of {len(out):,} cells missing")

    return out.sort_values(INDEX_VARS, kind="stable").reset_index(drop=True)


def aggregate_panel(panel: pd.DataFrame, *, climate_only: bool) -> pd.DataFrame:
    """Collapse the event-level panel to one row per (entity_code, year).

    Speech counts are summed (missing as 0). Disaster figures, lags, controls
    and other entity-year attributes take the first non-null value. With
    `climate_only`, NonClimate speeches are dropped before aggregating.
    Running this on its own output returns the same frame.
    """
    df = panel
    if climate_only:
        if "topic_flag" not in df.columns:
            raise SchemaError("climate_only view needs the speech-level topic_flag column")
        df = df.loc[df["topic_flag"].isin(CLIMATE_FLAGS)]

    if "security_bit" in df.columns:
        df = df.assign(sum_security=df["security_bit"],
                       sum_climate=df["climate_bit"],
                       n_speeches=1)
    missing = [c for c in COUNT_COLS if c not in df.columns]
    if missing:
        raise SchemaError(f"panel lacks speech classification; missing {missing}")

    skip = set(INDEX_VARS) | set(COUNT_COLS) | SPEECH_LEVEL_COLS
    first_cols = [c for c in df.columns if c not in skip]

    g = df.groupby(INDEX_VARS, sort=True)
    out = g[COUNT_COLS].sum().join(g[first_cols].first()).reset_index()
    out.insert(2, "decade", (out["year"] // 10) * 10)

    logger.info(f"[panel] {len(df):,} speech rows -> {len(out):,} entity-years "
                f"(climate_only={climate_only})")
    return out


def build_panel(speeches: pd.DataFrame, disasters: pd.DataFrame,
                controls: pd.DataFrame | None = None, *, climate_only: bool,
                max_lag: int = MAX_LAG) -> pd.DataFrame:
    """Validated inputs -> CountryYearPanel."""
    summary = aggregate_disasters(disasters)
    classified = classify_speeches(speeches)
    merged = merge_panel(classified, summary, controls)
    lagged = build_lags(merged, PREDICTOR, max_lag)
    return aggregate_panel(lagged, climate_only=climate_only)
