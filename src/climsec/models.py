"""
Data model
==========

Record types for the two event-level inputs and for the regression layer.

The pipeline itself works on pandas DataFrames (one column per field); the
dataclasses here are the typed, immutable view of one row. `records_to_frame`
turns a sequence of records into the table the pipeline expects.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import pandas as pd


class TopicFlag(str, Enum):
    CLIMATE_ONLY = "ClimateOnly"
    SECURITIZED_CLIMATE = "SecuritizedClimate"
    NON_CLIMATE = "NonClimate"


CLIMATE_FLAGS = (TopicFlag.CLIMATE_ONLY.value, TopicFlag.SECURITIZED_CLIMATE.value)


@dataclass(frozen=True)
class SpeechRecord:
    """One classified speech (source document)."""
    doc_id: str
    entity_code: str
    year: int
    topic_flag: TopicFlag

    @property
    def security_bit(self) -> int:
        return int(self.topic_flag == TopicFlag.SECURITIZED_CLIMATE)


@dataclass(frozen=True)
class DisasterEvent:
    """One disaster record; impact fields are raw totals over the whole event."""
    entity_code: str
    start_year: int
    end_year: int
    type: str
    subtype: str
    group: Optional[str]
    deaths: Optional[float]
    affected: Optional[float]
    damage_adjusted: Optional[float]

    @property
    def duration(self) -> int:
        return self.end_year - self.start_year + 1


@dataclass(frozen=True)
class RegressionSpec:
    """One linear model: outcome on predictors plus categorical fixed effects.

    `predictors` is ordered: the disaster term comes first, controls follow.
    """
    lag: int
    outcome: str
    predictors: Tuple[str, ...]
    entity_fe: bool = True
    decade_fe: bool = False

    @property
    def term(self) -> str:
        """Name of the disaster-count predictor for this lag."""
        return self.predictors[0]

    @property
    def columns(self) -> Tuple[str, ...]:
        cols = (self.outcome,) + self.predictors
        if self.entity_fe:
            cols += ("entity_code",)
        if self.decade_fe:
            cols += ("decade",)
        return cols

    @property
    def spec_id(self) -> str:
        s = "|".join([str(self.lag), self.outcome, "+".join(self.predictors),
                      str(self.entity_fe), str(self.decade_fe)])
        return hashlib.md5(s.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class RegressionResult:
    lag: int
    term: str
    estimate: float
    std_error: float
    conf_low: float
    conf_high: float
    p_value: float = float("nan")
    n_obs: int = 0
    df_resid: float = float("nan")


def records_to_frame(records: Sequence) -> pd.DataFrame:
    """Convert record dataclasses to a DataFrame (enum members become their values)."""
    rows = []
    for rec in records:
        row = asdict(rec)
        rows.append({k: (v.value if isinstance(v, Enum) else v) for k, v in row.items()})
    return pd.DataFrame(rows)
