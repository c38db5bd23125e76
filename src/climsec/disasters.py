from __future__ import annotations

import pandas as pd
from loguru import logger

from .config import IMPACT_COLS, TYPE_DELIMITER

SUMMARY_COLS = ["entity_code", "start_year", "disaster_count", *IMPACT_COLS,
                "type", "subtype", "natural_count", "technological_count"]


def normalize_by_duration(events: pd.DataFrame) -> pd.DataFrame:
    """Spread each event's impact evenly over the years it spans."""
    out = events.copy()
    out["duration"] = out["end_year"] - out["start_year"] + 1
    for col in IMPACT_COLS:
        out[col] = out[col] / out["duration"]
    return out


def _join_unique(values: pd.Series, delimiter: str = TYPE_DELIMITER) -> str:
    # pd.unique keeps first-seen order
    return delimiter.join(pd.unique(values.dropna().astype(str)))


def aggregate_disasters(events: pd.DataFrame, delimiter: str = TYPE_DELIMITER) -> pd.DataFrame:
    """Collapse disaster events to one summary row per (entity_code, start_year).

    Impact sums treat missing values as 0. Events with a missing group are
    counted in disaster_count but in neither group counter.
    """
    if events.empty:
        empty = pd.DataFrame(columns=SUMMARY_COLS)
        return empty.astype({"entity_code": object, "start_year": "int64", "disaster_count": "int64",
                             **{c: float for c in IMPACT_COLS},
                             "natural_count": "int64", "technological_count": "int64"})

    df = normalize_by_duration(events)
    df["natural"] = (df["group"] == "Natural").astype(int)
    df["technological"] = (df["group"] == "Technological").astype(int)

    summary = (
        df.groupby(["entity_code", "start_year"], sort=True)
          .agg(disaster_count=("end_year", "size"),
               deaths=("deaths", "sum"),
               affected=("affected", "sum"),
               damage_adjusted=("damage_adjusted", "sum"),
               type=("type", lambda s: _join_unique(s, delimiter)),
               subtype=("subtype", lambda s: _join_unique(s, delimiter)),
               natural_count=("natural", "sum"),
               technological_count=("technological", "sum"))
          .reset_index()
    )
    logger.info(f"[disasters] {len(events):,} events -> {len(summary):,} entity-year summaries")
    return summary.loc[:, SUMMARY_COLS]
