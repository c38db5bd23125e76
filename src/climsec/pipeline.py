from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd
from loguru import logger

from .config import MAX_LAG, MAX_WORKERS, RESULTS_DIR
from .errors import ModelFittingError
from .features import build_panel
from .merge_results import collect_lag_results
from .modeling_grid import generate_lag_specs
from .prep import prepare_control_data, prepare_disaster_data, prepare_speech_data
from .regression import fit_lags
from .utils import save_csv, setup_logging


@dataclass
class PipelineResult:
    panel: pd.DataFrame
    results: pd.DataFrame
    outcomes: Dict[int, Union[pd.DataFrame, ModelFittingError]]

    @property
    def failures(self) -> Dict[int, ModelFittingError]:
        return {lag: o for lag, o in self.outcomes.items() if isinstance(o, ModelFittingError)}


def run_pipeline(
    speeches: pd.DataFrame,
    disasters: pd.DataFrame,
    controls: Optional[pd.DataFrame] = None,
    *,
    climate_only: bool,
    control_vars = (),
    decade_fe: bool = False,
    cov_type: str = "nonrobust",
    max_lag: int = MAX_LAG,
    max_workers = MAX_WORKERS,
    harmonize_codes: bool = False,
) -> PipelineResult:
    """Raw input tables -> country-year panel and per-lag disaster coefficients.

    SchemaError from validation aborts the run; a failed lag fit does not.
    """
    speeches = prepare_speech_data(speeches, harmonize_codes=harmonize_codes)
    disasters = prepare_disaster_data(disasters, harmonize_codes=harmonize_codes)
    if controls is not None:
        controls = prepare_control_data(controls)

    panel = build_panel(speeches, disasters, controls, climate_only=climate_only, max_lag=max_lag)

    specs = generate_lag_specs(max_lag=max_lag, controls=control_vars, decade_fe=decade_fe)
    outcomes = fit_lags(panel, specs, cov_type=cov_type, max_workers=max_workers)
    results = collect_lag_results(outcomes)

    n_failed = int((results["status"] == "failed").sum())
    logger.info(f"Fitted {len(specs) - n_failed}/{len(specs)} lag specifications")
    return PipelineResult(panel=panel, results=results, outcomes=outcomes)


def run_and_save(speeches, disasters, controls=None, *, climate_only: bool,
                 out_dir: Union[str, Path] = RESULTS_DIR, **kwargs) -> PipelineResult:
    """Run the pipeline and write the panel and lag results as CSV under out_dir."""
    setup_logging()
    result = run_pipeline(speeches, disasters, controls, climate_only=climate_only, **kwargs)
    out_dir = Path(out_dir)
    save_csv(result.panel, out_dir / "country_year_panel.csv")
    save_csv(result.results, out_dir / "lag_results.csv")
    logger.info(f"Outputs saved to: {out_dir}/")
    return result
