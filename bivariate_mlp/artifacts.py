# bivariate_mlp/artifacts.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from joblib import dump, load
from sklearn.pipeline import Pipeline

from .data import CLASS_LEVELS, extract_features_for_inference


def proba_column(level: str) -> str:
    return f"pred_{level}"


@dataclass
class ClassifierArtifact:
    """Fitted preprocess + network pipeline mapping raw (A, B) to class predictions."""
    pipeline: Pipeline
    class_levels: List[str] = field(default_factory=lambda: list(CLASS_LEVELS))

    @property
    def model(self) -> Any:
        return self.pipeline.named_steps["model"]

    def predict_proba(self, X_df: pd.DataFrame) -> np.ndarray:
        """Probabilities with columns ordered as `class_levels`."""
        proba = np.asarray(self.pipeline.predict_proba(X_df), dtype=float)
        model_classes = [str(c) for c in self.model.classes_]
        order = [model_classes.index(level) for level in self.class_levels]
        return proba[:, order]

    def predict_frame(self, X_df: pd.DataFrame) -> pd.DataFrame:
        """Return pred_class plus one pred_<level> probability column per class."""
        X = extract_features_for_inference(X_df)
        proba = self.predict_proba(X)
        labels = np.asarray(self.class_levels, dtype=object)[np.argmax(proba, axis=1)]

        out = pd.DataFrame(index=X.index)
        out["pred_class"] = pd.Categorical(labels, categories=self.class_levels)
        for j, level in enumerate(self.class_levels):
            out[proba_column(level)] = proba[:, j]
        return out


@dataclass
class ModelBundle:
    """Convenience container for the fitted artifact + metadata."""
    classifier: ClassifierArtifact
    metadata: Dict[str, Any] = field(default_factory=dict)

    def save(self, path: str) -> str:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        dump(self, str(p))
        return str(p)

    @staticmethod
    def load(path: str) -> "ModelBundle":
        obj = load(path)
        if not isinstance(obj, ModelBundle):
            raise TypeError(f"Loaded object is not a ModelBundle: {type(obj)}")
        return obj
