from __future__ import annotations

import os
from typing import Dict, List, Union

import numpy as np
import pandas as pd

from .config import PREDICTOR
from .errors import ModelFittingError
from .features import lag_name

RESULT_COLS = ["lag", "term", "estimate", "std_error", "conf_low", "conf_high",
               "p_value", "n_obs", "status", "error"]


def read_results(path: str) -> pd.DataFrame:
    if str(path).lower().endswith(".parquet"):
        return pd.read_parquet(path)
    return pd.read_csv(path)


def write_results(df: pd.DataFrame, output_file: str) -> str:
    output_file = str(output_file)
    os.makedirs(os.path.dirname(output_file) or ".", exist_ok=True)
    if output_file.lower().endswith(".parquet"):
        df.to_parquet(output_file, index=False)
    else:
        df.to_csv(output_file, index=False)
    return output_file


def collect_lag_results(
    outcomes: Dict[int, Union[pd.DataFrame, ModelFittingError]],
    predictor = PREDICTOR,
) -> pd.DataFrame:
    """Keep the disaster-count term of every lag fit, ordered by lag.

    A lag whose fit failed shows up as one row with status "failed" and the
    error message; its numbers are missing.
    """
    frames: List[pd.DataFrame] = []
    for lag in sorted(outcomes):
        outcome = outcomes[lag]
        term = lag_name(predictor, lag)
        if isinstance(outcome, ModelFittingError):
            frames.append(pd.DataFrame([{"lag": lag, "term": term, "status": "failed",
                                         "error": outcome.reason}]))
            continue
        kept = outcome.loc[outcome["term"] == term].copy()
        kept["lag"] = lag
        kept["status"] = "ok"
        kept["error"] = np.nan
        frames.append(kept)

    if not frames:
        return pd.DataFrame(columns=RESULT_COLS)

    merged = pd.concat(frames, ignore_index=True).reindex(columns=RESULT_COLS)
    return merged.sort_values("lag", kind="stable").reset_index(drop=True)
