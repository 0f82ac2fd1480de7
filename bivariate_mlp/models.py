# bivariate_mlp/models.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import torch
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.pipeline import Pipeline
from sklearn.utils.validation import check_is_fitted
from torch import nn
from torch.utils.data import DataLoader, TensorDataset

from .torch_utils import resolve_device, seed_everything


logger = logging.getLogger(__name__)


# -----------------------------
# Default training settings (can be overridden via CLI/env)
# -----------------------------
def env_defaults() -> Dict[str, Any]:
    """Read SEED / MLP_* environment overrides; returns seed, device and network params."""
    return dict(
        seed=int(os.environ.get("SEED", "42")),
        device=str(os.environ.get("MLP_DEVICE", "auto")),
        params=dict(
            epochs=int(os.environ.get("MLP_EPOCHS", "100")),
            hidden_units=int(os.environ.get("MLP_HIDDEN_UNITS", "5")),
            dropout=float(os.environ.get("MLP_DROPOUT", "0.1")),
            learning_rate=float(os.environ.get("MLP_LEARNING_RATE", "0.01")),
            batch_size=int(os.environ.get("MLP_BATCH_SIZE", "32")),
            activation=str(os.environ.get("MLP_ACTIVATION", "relu")),
        ),
    )


_ENV = env_defaults()
DEFAULT_SEED: int = _ENV["seed"]
DEFAULT_DEVICE: str = _ENV["device"]
DEFAULT_MLP_PARAMS: Dict[str, Any] = _ENV["params"]

ACTIVATIONS = {
    "relu": nn.ReLU,
    "tanh": nn.Tanh,
    "sigmoid": nn.Sigmoid,
}


def build_network(n_inputs: int, n_outputs: int, *, hidden_units: int, dropout: float, activation: str) -> nn.Sequential:
    """Single hidden layer feed-forward net; outputs are logits (softmax applied at prediction)."""
    return nn.Sequential(
        nn.Linear(int(n_inputs), int(hidden_units)),
        ACTIVATIONS[activation](),
        nn.Dropout(p=float(dropout)),
        nn.Linear(int(hidden_units), int(n_outputs)),
    )


class MLPClassifier(ClassifierMixin, BaseEstimator):
    """
    scikit-learn compatible wrapper around a small PyTorch network.

    Trained with softmax cross-entropy and Adam on mini-batches. `predict_proba`
    returns one column per entry of `classes_`; rows sum to 1.
    After fitting the network is kept on CPU so the estimator pickles portably.
    """

    def __init__(
        self,
        epochs: int = DEFAULT_MLP_PARAMS["epochs"],
        hidden_units: int = DEFAULT_MLP_PARAMS["hidden_units"],
        dropout: float = DEFAULT_MLP_PARAMS["dropout"],
        learning_rate: float = DEFAULT_MLP_PARAMS["learning_rate"],
        batch_size: int = DEFAULT_MLP_PARAMS["batch_size"],
        activation: str = DEFAULT_MLP_PARAMS["activation"],
        seed: int = DEFAULT_SEED,
        device: str = DEFAULT_DEVICE,
    ):
        self.epochs = epochs
        self.hidden_units = hidden_units
        self.dropout = dropout
        self.learning_rate = learning_rate
        self.batch_size = batch_size
        self.activation = activation
        self.seed = seed
        self.device = device

    def _check_hyperparameters(self) -> None:
        if int(self.epochs) < 1:
            raise ValueError(f"epochs must be >= 1, got {self.epochs}")
        if int(self.hidden_units) < 1:
            raise ValueError(f"hidden_units must be >= 1, got {self.hidden_units}")
        if not 0.0 <= float(self.dropout) < 1.0:
            raise ValueError(f"dropout must be in [0, 1), got {self.dropout}")
        if float(self.learning_rate) <= 0.0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if int(self.batch_size) < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.activation not in ACTIVATIONS:
            raise ValueError(f"Unknown activation {self.activation!r}; expected one of {sorted(ACTIVATIONS)}")

    @staticmethod
    def _encode_labels(y: Any) -> tuple:
        y_s = pd.Series(y).reset_index(drop=True)
        if isinstance(y_s.dtype, pd.CategoricalDtype):
            classes = np.asarray(y_s.cat.categories, dtype=object)
        else:
            classes = np.unique(y_s.to_numpy())
        codes = pd.Categorical(y_s, categories=classes).codes
        if (codes < 0).any():
            raise ValueError("Labels contain missing values.")
        if len(classes) < 2:
            raise ValueError(f"Need at least 2 classes to fit a classifier, got {list(classes)}")
        return classes, np.asarray(codes, dtype=np.int64)

    def fit(self, X: Any, y: Any) -> "MLPClassifier":
        self._check_hyperparameters()
        X_arr = np.asarray(X, dtype=np.float32)
        if X_arr.ndim != 2:
            raise ValueError(f"Expected a 2D feature matrix, got shape {X_arr.shape}")
        classes, codes = self._encode_labels(y)
        if codes.shape[0] != X_arr.shape[0]:
            raise ValueError(f"X has {X_arr.shape[0]} rows but y has {codes.shape[0]}")

        device, device_warning = resolve_device(self.device)
        if device_warning:
            logger.warning(device_warning)

        seed_everything(int(self.seed))
        module = build_network(
            X_arr.shape[1],
            len(classes),
            hidden_units=int(self.hidden_units),
            dropout=float(self.dropout),
            activation=self.activation,
        ).to(device)

        dataset = TensorDataset(torch.from_numpy(X_arr), torch.from_numpy(codes))
        loader = DataLoader(
            dataset,
            batch_size=int(self.batch_size),
            shuffle=True,
            generator=torch.Generator().manual_seed(int(self.seed)),
        )
        optimizer = torch.optim.Adam(module.parameters(), lr=float(self.learning_rate))
        loss_fn = nn.CrossEntropyLoss()

        history: List[float] = []
        module.train()
        for epoch in range(1, int(self.epochs) + 1):
            total = 0.0
            for xb, yb in loader:
                xb = xb.to(device)
                yb = yb.to(device)

                logits = module(xb)
                loss = loss_fn(logits, yb)

                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

                total += float(loss.item()) * int(xb.shape[0])

            epoch_loss = total / float(len(dataset))
            history.append(epoch_loss)
            logger.debug("epoch %d/%d loss=%.5f", epoch, int(self.epochs), epoch_loss)

        module.eval()
        self.module_ = module.to("cpu")
        self.classes_ = classes
        self.n_features_in_ = int(X_arr.shape[1])
        self.history_ = history
        self.device_ = device
        self.device_warning_ = device_warning
        return self

    def predict_proba(self, X: Any) -> np.ndarray:
        check_is_fitted(self, "module_")
        X_arr = np.asarray(X, dtype=np.float32)
        if X_arr.ndim != 2 or X_arr.shape[1] != self.n_features_in_:
            raise ValueError(f"Expected shape (n, {self.n_features_in_}), got {X_arr.shape}")

        self.module_.eval()
        with torch.no_grad():
            logits = self.module_(torch.from_numpy(np.ascontiguousarray(X_arr)))
            proba = torch.softmax(logits.double(), dim=1).numpy()
        return proba

    def predict(self, X: Any) -> np.ndarray:
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]


def make_classifier(*, seed: int, device: str, params: Optional[Dict[str, Any]] = None) -> MLPClassifier:
    p = dict(DEFAULT_MLP_PARAMS)
    if params:
        p.update(params)
    return MLPClassifier(seed=int(seed), device=str(device), **p)


def build_pipeline_for_estimator(preprocessor: Any, estimator: Any) -> Pipeline:
    """Chain the (already fitted) preprocessor and estimator so raw predictors map to predictions."""
    return Pipeline(
        steps=[
            ("preprocess", preprocessor),
            ("model", estimator),
        ]
    )
