import sys
from pathlib import Path

import pandas as pd
from loguru import logger

from .config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def save_csv(df: pd.DataFrame, path: Path, index: bool=False) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    return path
