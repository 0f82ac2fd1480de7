# bivariate_mlp/transforms.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import PowerTransformer, StandardScaler
from sklearn.utils.validation import check_is_fitted

from .data import PREDICTORS


class ToFloat32(TransformerMixin, BaseEstimator):
    """Cast transformer outputs to a contiguous float32 array (torch default dtype)."""

    def fit(self, X: Any, y: Any = None) -> "ToFloat32":
        return self

    def __sklearn_is_fitted__(self) -> bool:
        # Stateless; a Pipeline ending in this step is fitted once its earlier steps are.
        return True

    def transform(self, X: Any) -> np.ndarray:
        Xn = np.asarray(X)
        if Xn.dtype != np.float32:
            Xn = Xn.astype(np.float32, copy=False)
        return np.ascontiguousarray(Xn)


def build_preprocessor() -> Pipeline:
    """
    Preprocessing applied to both predictors:
      - Box-Cox power transform (lambda estimated by maximum likelihood per column)
      - Normalization to zero mean / unit standard deviation
      - float32 cast
    Fit on the training partition only; the fitted object is reused for every other input.
    """
    return Pipeline(
        steps=[
            ("boxcox", PowerTransformer(method="box-cox", standardize=False)),
            ("normalize", StandardScaler()),
            ("astype_float32", ToFloat32()),
        ]
    )


def fitted_parameters(pre: Pipeline, feature_names: Optional[List[str]] = None) -> Dict[str, Dict[str, float]]:
    """Return {predictor: {"lambda", "mean", "scale"}} from a fitted preprocessor."""
    boxcox = pre.named_steps["boxcox"]
    scaler = pre.named_steps["normalize"]
    check_is_fitted(boxcox, "lambdas_")
    check_is_fitted(scaler, "mean_")

    names = list(feature_names or PREDICTORS)
    if len(names) != len(boxcox.lambdas_):
        raise ValueError(f"Expected {len(boxcox.lambdas_)} feature names, got {len(names)}: {names}")

    return {
        name: {
            "lambda": float(boxcox.lambdas_[i]),
            "mean": float(scaler.mean_[i]),
            "scale": float(scaler.scale_[i]),
        }
        for i, name in enumerate(names)
    }
