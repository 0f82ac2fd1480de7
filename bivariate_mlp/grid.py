# bivariate_mlp/grid.py
from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from .artifacts import ClassifierArtifact
from .data import PREDICTORS


DEFAULT_GRID_SIZE = 100


def build_grid(X_train_raw: pd.DataFrame, n: int = DEFAULT_GRID_SIZE, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Cartesian product of n evenly spaced values over each predictor's observed range.

    The first column varies fastest: reshaping any column to (n, n) gives rows indexed by the second predictor.
    """
    cols = list(columns or PREDICTORS)
    if int(n) < 2:
        raise ValueError(f"Grid size must be >= 2, got {n}")
    if len(cols) != 2:
        raise ValueError(f"Grid is defined over exactly two predictors, got {cols}")

    axes = []
    for c in cols:
        values = X_train_raw[c].to_numpy(dtype=float)
        lo, hi = float(np.nanmin(values)), float(np.nanmax(values))
        axes.append(np.linspace(lo, hi, int(n)))

    first, second = np.meshgrid(axes[0], axes[1], indexing="xy")
    return pd.DataFrame({cols[0]: first.ravel(), cols[1]: second.ravel()})


def predict_grid(artifact: ClassifierArtifact, grid: pd.DataFrame) -> pd.DataFrame:
    """Grid rows plus predicted class and per-class probabilities."""
    pred = artifact.predict_frame(grid)
    return pd.concat([grid.reset_index(drop=True), pred.reset_index(drop=True)], axis=1)
