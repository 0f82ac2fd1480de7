# bivariate_mlp/plots.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .artifacts import proba_column
from .data import CLASS_LEVELS, EVENT_LEVEL, PREDICTORS, TARGET_COL


logger = logging.getLogger(__name__)

CLASS_COLORS: Dict[str, str] = {"One": "#E69F00", "Two": "#0072B2"}


def _scatter_by_class(ax: plt.Axes, df: pd.DataFrame, *, alpha: float, levels: List[str]) -> None:
    x_col, y_col = PREDICTORS
    labels = df[TARGET_COL].astype(str)
    for level in levels:
        sub = df[labels == level]
        ax.scatter(
            sub[x_col],
            sub[y_col],
            s=14,
            alpha=alpha,
            color=CLASS_COLORS.get(level),
            label=level,
        )


def _save(fig: plt.Figure, path: str) -> str:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(p, dpi=120, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved figure to %s", p)
    return str(p)


def plot_scatter(df: pd.DataFrame, path: str, *, alpha: float = 0.3, title: Optional[str] = None) -> str:
    """Scatter of the two predictors colored by class."""
    x_col, y_col = PREDICTORS
    fig, ax = plt.subplots(figsize=(6, 5))
    _scatter_by_class(ax, df, alpha=alpha, levels=list(CLASS_LEVELS))
    ax.set_xlabel(x_col)
    ax.set_ylabel(y_col)
    ax.set_title(title or "Training data")
    ax.legend(title=TARGET_COL)
    return _save(fig, path)


def plot_decision_boundary(
    grid_pred: pd.DataFrame,
    points: pd.DataFrame,
    path: str,
    *,
    level: float = 0.5,
    event_level: str = EVENT_LEVEL,
    alpha: float = 0.5,
    title: Optional[str] = None,
) -> str:
    """
    Contour of the event probability at `level` over the grid, drawn over `points`.

    grid_pred must come from grid.build_grid (square, first predictor varying fastest).
    """
    x_col, y_col = PREDICTORS
    n_rows = int(len(grid_pred))
    n = int(round(np.sqrt(n_rows)))
    if n * n != n_rows:
        raise ValueError(f"Grid predictions must form a square grid, got {n_rows} rows")

    gx = grid_pred[x_col].to_numpy(dtype=float).reshape(n, n)
    gy = grid_pred[y_col].to_numpy(dtype=float).reshape(n, n)
    gz = grid_pred[proba_column(event_level)].to_numpy(dtype=float).reshape(n, n)

    fig, ax = plt.subplots(figsize=(6, 5))
    _scatter_by_class(ax, points, alpha=alpha, levels=list(CLASS_LEVELS))

    z_min, z_max = float(np.nanmin(gz)), float(np.nanmax(gz))
    if z_min < level < z_max:
        ax.contour(gx, gy, gz, levels=[level], colors="black", linewidths=1.5)
    else:
        logger.warning(
            "Predicted probabilities span [%.3f, %.3f]; no %.2f contour to draw.", z_min, z_max, level
        )

    ax.set_xlabel(x_col)
    ax.set_ylabel(y_col)
    ax.set_title(title or "Decision boundary")
    ax.legend(title=TARGET_COL)
    return _save(fig, path)


def plot_training_history(history: List[float], path: str) -> str:
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.plot(np.arange(1, len(history) + 1), history, marker="o", markersize=2, linewidth=1)
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Training loss")
    ax.set_title("Training loss per epoch")
    return _save(fig, path)
