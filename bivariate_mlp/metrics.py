# bivariate_mlp/metrics.py
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    confusion_matrix,
    f1_score,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .data import CLASS_LEVELS, EVENT_LEVEL


def event_indicator(y: Any, event_level: str = EVENT_LEVEL) -> np.ndarray:
    """Return int {0,1} with 1 where the label equals the event level."""
    arr = np.asarray(pd.Series(y).astype(str))
    return (arr == str(event_level)).astype(int)


def classification_metrics(
    y_true: Any,
    p_event: np.ndarray,
    y_pred: Any,
    *,
    event_level: str = EVENT_LEVEL,
) -> Dict[str, float]:
    """
    Discrimination + hard-label metrics for a binary problem.

    p_event is the predicted probability of `event_level`; y_true / y_pred hold class labels.
    """
    y_bin = event_indicator(y_true, event_level)
    pred_bin = event_indicator(y_pred, event_level)
    p = np.asarray(p_event, dtype=float).ravel()
    if p.shape[0] != y_bin.shape[0] or pred_bin.shape[0] != y_bin.shape[0]:
        raise ValueError(
            f"Length mismatch: y_true={y_bin.shape[0]} p_event={p.shape[0]} y_pred={pred_bin.shape[0]}"
        )

    out: Dict[str, float] = {
        "n": float(y_bin.shape[0]),
        "accuracy": float(accuracy_score(y_bin, pred_bin)),
        "balanced_accuracy": float(balanced_accuracy_score(y_bin, pred_bin)),
        "f1": float(f1_score(y_bin, pred_bin, zero_division=0)),
        "precision": float(precision_score(y_bin, pred_bin, zero_division=0)),
        "recall": float(recall_score(y_bin, pred_bin, zero_division=0)),
    }

    # Numerical safety: avoid exactly 0/1 probabilities (logloss can overflow)
    p_clip = np.clip(p, 1e-6, 1.0 - 1e-6)
    out["logloss"] = float(log_loss(y_bin, p_clip, labels=[0, 1]))

    # AUC is undefined if only one class is present
    if len(np.unique(y_bin)) == 2:
        out["roc_auc"] = float(roc_auc_score(y_bin, p))
    else:
        out["roc_auc"] = float("nan")

    return out


def confusion_matrix_frame(
    y_true: Any,
    y_pred: Any,
    *,
    levels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Cross-tabulate predictions (rows) against truth (columns).

    Every level appears in both axes even when it has no observations.
    """
    lv = list(levels or CLASS_LEVELS)
    truth = np.asarray(pd.Series(y_true).astype(str))
    pred = np.asarray(pd.Series(y_pred).astype(str))

    # sklearn: rows = true, cols = predicted; transpose to Prediction x Truth.
    cm = confusion_matrix(truth, pred, labels=lv).T
    return pd.DataFrame(
        cm,
        index=pd.Index(lv, name="Prediction"),
        columns=pd.Index(lv, name="Truth"),
    )
