from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from .config import MAX_LAG, OUTCOME, PREDICTOR
from .features import lag_name
from .models import RegressionSpec


def _as_list(x) -> List[str]:
    if x is None or x == "":
        return []
    if isinstance(x, str):
        return [x]
    return list(x)


def generate_lag_specs(
    max_lag = MAX_LAG,
    controls = None,
    entity_fe = True,
    decade_fe = False,
    outcome = OUTCOME,
    predictor = PREDICTOR,
) -> List[RegressionSpec]:
    """One specification per lag 0..max_lag; only the disaster term changes."""
    controls = tuple(_as_list(controls))
    return [
        RegressionSpec(
            lag=k,
            outcome=outcome,
            predictors=(lag_name(predictor, k),) + controls,
            entity_fe=entity_fe,
            decade_fe=decade_fe,
        )
        for k in range(0, max_lag + 1)
    ]


def specs_to_frame(specs: Sequence[RegressionSpec]) -> pd.DataFrame:
    rows = [{
        "spec_id": s.spec_id,
        "lag": s.lag,
        "dv": s.outcome,
        "term": s.term,
        "predictors": " + ".join(s.predictors),
        "entity_fe": s.entity_fe,
        "decade_fe": s.decade_fe,
    } for s in specs]
    grid = pd.DataFrame(rows, columns=["spec_id", "lag", "dv", "term", "predictors",
                                       "entity_fe", "decade_fe"])
    grid.drop_duplicates(subset=["spec_id"], inplace=True)
    return grid
