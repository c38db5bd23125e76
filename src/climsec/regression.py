"""
Fixed-effects OLS across lag specifications.

Every specification is fitted by the same routine: complete-case rows for the
columns it names, explicit dummy expansion of the categorical terms, plain
statsmodels OLS. Dummy convention: levels are sorted and the lowest level is
the dropped reference; columns are named ``<column>[T.<level>]``.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from pandas.api.types import is_numeric_dtype
from scipy import stats

from .config import CONF_LEVEL, MAX_WORKERS
from .errors import ModelFittingError
from .models import RegressionResult, RegressionSpec, records_to_frame

COV_TYPES = ("nonrobust", "HC1", "cluster")


def fixed_effect_dummies(series: pd.Series, prefix: str) -> pd.DataFrame:
    """One-hot encode `series`, dropping the lowest sorted level."""
    levels = sorted(series.dropna().unique())
    cat = pd.Series(pd.Categorical(series, categories=levels), index=series.index)
    dummies = pd.get_dummies(cat, drop_first=True, dtype=float)
    return dummies.rename(columns=lambda lvl: f"{prefix}[T.{lvl}]")


def design_matrix(panel: pd.DataFrame, spec: RegressionSpec, cluster: bool = False) -> Tuple[pd.Series, pd.DataFrame, List[str], pd.DataFrame]:
    """Build (y, X, reported terms, complete-case rows) for one specification."""
    cols = list(dict.fromkeys(spec.columns + (("entity_code",) if cluster else ())))
    absent = [c for c in cols if c not in panel.columns]
    if absent:
        raise ModelFittingError(spec.lag, f"column(s) {absent} not in panel")

    data = panel.loc[:, cols].dropna()
    logger.debug(f"lag {spec.lag}: {len(panel) - len(data):,} incomplete row(s) dropped")
    if data.empty:
        raise ModelFittingError(spec.lag, "no complete rows for this specification")

    y = data[spec.outcome].astype(float)
    parts = [pd.Series(1.0, index=data.index, name="Intercept")]
    for col in spec.predictors:
        if is_numeric_dtype(data[col]):
            parts.append(data[col].astype(float))
        else:
            parts.append(fixed_effect_dummies(data[col], col))
    terms = [c for p in parts for c in (p.columns if isinstance(p, pd.DataFrame) else [p.name])]

    fixed_effects = [c for c, on in (("entity_code", spec.entity_fe), ("decade", spec.decade_fe)) if on]
    for col in fixed_effects:
        if data[col].nunique() < 2:
            raise ModelFittingError(spec.lag, f"fixed effect '{col}' has fewer than 2 levels")
        parts.append(fixed_effect_dummies(data[col], col))

    X = pd.concat(parts, axis=1)
    return y, X, terms, data


def fit_spec(panel: pd.DataFrame, spec: RegressionSpec, cov_type: str = "nonrobust",
             conf_level: float = CONF_LEVEL) -> pd.DataFrame:
    """Fit one specification; one result row per non-fixed-effect term.

    Raises ModelFittingError when the design cannot be estimated.
    """
    if cov_type not in COV_TYPES:
        raise ValueError(f"cov_type must be one of {COV_TYPES}, got {cov_type!r}")

    y, X, terms, data = design_matrix(panel, spec, cluster=cov_type == "cluster")

    n, k = X.shape
    rank = np.linalg.matrix_rank(X.to_numpy())
    if rank < k:
        raise ModelFittingError(spec.lag, f"design matrix is rank deficient (rank {rank} < {k} columns)")
    if n - k <= 0:
        raise ModelFittingError(spec.lag, f"no residual degrees of freedom (n={n}, k={k})")

    model = sm.OLS(y, X)
    try:
        if cov_type == "cluster":
            groups = pd.factorize(data["entity_code"])[0]
            res = model.fit(cov_type="cluster", cov_kwds={"groups": groups}, use_t=True)
        else:
            res = model.fit(cov_type=cov_type, use_t=True)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ModelFittingError(spec.lag, f"OLS failed: {e}") from e

    df = getattr(res, "df_resid_inference", None) or res.df_resid
    t_crit = stats.t.ppf(1 - (1 - conf_level) / 2, df)

    rows = []
    for term in terms:
        est, se = float(res.params[term]), float(res.bse[term])
        rows.append(RegressionResult(
            lag=spec.lag, term=term, estimate=est, std_error=se,
            conf_low=est - t_crit * se, conf_high=est + t_crit * se,
            p_value=float(res.pvalues[term]), n_obs=int(res.nobs), df_resid=float(df),
        ))
    logger.info(f"lag {spec.lag}: {spec.term} = {res.params[spec.term]:+.4f} "
                f"(SE={res.bse[spec.term]:.4f}, n={int(res.nobs)})")
    return records_to_frame(rows)


def fit_lags(
    panel: pd.DataFrame,
    specs: Sequence[RegressionSpec],
    cov_type: str = "nonrobust",
    max_workers = MAX_WORKERS,
) -> Dict[int, Union[pd.DataFrame, ModelFittingError]]:
    """Fit every specification independently; failures are returned, not raised."""
    outcomes = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(fit_spec, panel, spec, cov_type): spec for spec in specs}
        for future in as_completed(futures):
            spec = futures[future]
            try:
                outcomes[spec.lag] = future.result()
            except ModelFittingError as e:
                logger.warning(f"Skipping {spec.term}: {e.reason}")
                outcomes[spec.lag] = e
            except Exception as e:
                logger.exception(f"Unexpected error fitting {spec.term}")
                outcomes[spec.lag] = ModelFittingError(spec.lag, f"unexpected error: {e!r}")
    return dict(sorted(outcomes.items()))
