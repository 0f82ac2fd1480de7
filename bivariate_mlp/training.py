# bivariate_mlp/training.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import json
import logging

import pandas as pd

from .artifacts import ClassifierArtifact, ModelBundle, proba_column
from .data import CLASS_LEVELS, EVENT_LEVEL, PREDICTORS, TARGET_COL
from .grid import DEFAULT_GRID_SIZE, build_grid, predict_grid
from .metrics import classification_metrics, confusion_matrix_frame
from .models import DEFAULT_DEVICE, DEFAULT_MLP_PARAMS, DEFAULT_SEED, build_pipeline_for_estimator, make_classifier
from .pipeline import PreparedData
from .plots import plot_decision_boundary, plot_scatter, plot_training_history
from .transforms import fitted_parameters


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingConfig:
    device: str = DEFAULT_DEVICE
    seed: int = DEFAULT_SEED

    # Network
    epochs: int = DEFAULT_MLP_PARAMS["epochs"]
    hidden_units: int = DEFAULT_MLP_PARAMS["hidden_units"]
    dropout: float = DEFAULT_MLP_PARAMS["dropout"]
    learning_rate: float = DEFAULT_MLP_PARAMS["learning_rate"]
    batch_size: int = DEFAULT_MLP_PARAMS["batch_size"]
    activation: str = DEFAULT_MLP_PARAMS["activation"]

    def model_params(self) -> Dict[str, Any]:
        return {
            "epochs": int(self.epochs),
            "hidden_units": int(self.hidden_units),
            "dropout": float(self.dropout),
            "learning_rate": float(self.learning_rate),
            "batch_size": int(self.batch_size),
            "activation": str(self.activation),
        }


def _ensure_outdirs(outdir: str) -> Dict[str, Path]:
    base = Path(outdir)
    paths = {
        "base": base,
        "models": base / "models",
        "metrics": base / "metrics",
        "predictions": base / "predictions",
        "plots": base / "plots",
    }
    for p in paths.values():
        p.mkdir(parents=True, exist_ok=True)
    return paths


def _save_json(obj: Any, path: Path) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)
    return str(path)


def train_model(
    prepared: PreparedData,
    *,
    outdir: str = "outputs",
    config: TrainingConfig = TrainingConfig(),
) -> Tuple[ModelBundle, Dict[str, Any]]:
    """Fit the network on the preprocessed training partition and persist the bundle."""
    out_paths = _ensure_outdirs(outdir)
    cfg = config

    est = make_classifier(seed=cfg.seed, device=cfg.device, params=cfg.model_params())
    logger.info("Training network: %s", cfg.model_params())
    est.fit(prepared.X_train, prepared.y_train)
    logger.info("Finished %d epochs, final training loss %.4f", len(est.history_), est.history_[-1])

    pipe = build_pipeline_for_estimator(prepared.preprocessor, est)
    artifact = ClassifierArtifact(pipeline=pipe, class_levels=list(CLASS_LEVELS))

    bundle = ModelBundle(
        classifier=artifact,
        metadata={
            "config": asdict(cfg),
            "device": est.device_,
            "device_warning": est.device_warning_,
            "predictors": list(PREDICTORS),
            "class_levels": list(CLASS_LEVELS),
            "event_level": EVENT_LEVEL,
            "transform_parameters": fitted_parameters(prepared.preprocessor, list(PREDICTORS)),
            "partition_sizes": prepared.partitions.sizes(),
            "training_ranges": {
                c: [float(prepared.X_train_raw[c].min()), float(prepared.X_train_raw[c].max())] for c in PREDICTORS
            },
        },
    )
    bundle_path = bundle.save(str(out_paths["models"] / "bundle.joblib"))

    history = pd.DataFrame({"epoch": range(1, len(est.history_) + 1), "loss": est.history_})
    history.to_csv(out_paths["metrics"] / "train_history.csv", index=False)

    summary = {
        "bundle_path": bundle_path,
        "final_loss": float(est.history_[-1]),
        "metadata": bundle.metadata,
    }
    _save_json(summary, out_paths["metrics"] / "train_summary.json")
    return bundle, summary


def evaluate_split(
    bundle: ModelBundle,
    X_raw: pd.DataFrame,
    y: pd.Series,
    *,
    split: str,
    outdir: str = "outputs",
) -> Dict[str, Any]:
    """Score one partition (no refitting): predictions, metrics, confusion matrix."""
    out_paths = _ensure_outdirs(outdir)
    event_level = bundle.metadata.get("event_level", EVENT_LEVEL)

    pred = bundle.classifier.predict_frame(X_raw)
    metrics = classification_metrics(
        y.to_numpy(),
        pred[proba_column(event_level)].to_numpy(),
        pred["pred_class"].to_numpy(),
        event_level=event_level,
    )
    cm = confusion_matrix_frame(y, pred["pred_class"], levels=bundle.classifier.class_levels)

    out_df = pd.concat(
        [X_raw.reset_index(drop=True), pd.Series(y, name=TARGET_COL).reset_index(drop=True), pred.reset_index(drop=True)],
        axis=1,
    )
    out_df.to_csv(out_paths["predictions"] / f"{split}_predictions.csv", index=False)
    cm.to_csv(out_paths["metrics"] / f"{split}_confusion.csv")

    summary = {
        "split": split,
        "metrics": metrics,
        "confusion_matrix": {
            "levels": list(cm.index),
            "prediction_by_truth": cm.to_numpy().tolist(),
        },
    }
    _save_json(summary, out_paths["metrics"] / f"{split}_metrics.json")

    logger.info(
        "%s: roc_auc=%.4f accuracy=%.4f (n=%d)", split, metrics["roc_auc"], metrics["accuracy"], int(metrics["n"])
    )
    logger.info("%s confusion matrix (Prediction x Truth):\n%s", split, cm.to_string())
    return summary


def render_plots(
    bundle: ModelBundle,
    prepared: PreparedData,
    *,
    outdir: str = "outputs",
    grid_size: int = DEFAULT_GRID_SIZE,
) -> Dict[str, str]:
    """Scatter of the training data + decision boundary over the validation data."""
    out_paths = _ensure_outdirs(outdir)

    scatter_path = plot_scatter(prepared.partitions.train, str(out_paths["plots"] / "train_scatter.png"))

    grid = build_grid(prepared.X_train_raw, n=grid_size)
    grid_pred = predict_grid(bundle.classifier, grid)
    grid_pred.to_csv(out_paths["predictions"] / "grid_predictions.csv", index=False)

    boundary_path = plot_decision_boundary(
        grid_pred,
        prepared.partitions.val,
        str(out_paths["plots"] / "decision_boundary.png"),
        event_level=bundle.metadata.get("event_level", EVENT_LEVEL),
    )

    paths = {"scatter": scatter_path, "decision_boundary": boundary_path}
    history = getattr(bundle.classifier.model, "history_", None)
    if history:
        paths["history"] = plot_training_history(list(history), str(out_paths["plots"] / "train_history.png"))
    return paths
