# bivariate_mlp/pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import logging

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline

from .data import DEFAULT_DATA_DIR, Partitions, read_partitions, split_features_target
from .transforms import build_preprocessor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedData:
    # Raw partitions as read
    partitions: Partitions

    # Raw predictors / labels
    X_train_raw: pd.DataFrame
    X_val_raw: pd.DataFrame
    X_test_raw: pd.DataFrame
    y_train: pd.Series
    y_val: pd.Series
    y_test: pd.Series

    # Preprocessed matrices (float32), all from the train-fitted preprocessor
    X_train: np.ndarray
    X_val: np.ndarray
    X_test: np.ndarray

    preprocessor: Pipeline


def prepare_data_from_partitions(parts: Partitions) -> PreparedData:
    """
    Preparation on already-loaded partitions:
      - Split predictors / labels per partition
      - Fit Box-Cox + normalization on TRAIN only
      - Transform train / val / test with the same fitted parameters
    """
    X_train_raw, y_train = split_features_target(parts.train)
    X_val_raw, y_val = split_features_target(parts.val)
    X_test_raw, y_test = split_features_target(parts.test)

    pre = build_preprocessor()
    X_train = pre.fit_transform(X_train_raw)
    X_val = pre.transform(X_val_raw)
    X_test = pre.transform(X_test_raw)

    logger.info(
        "Prepared data: train=%d val=%d test=%d rows, %d predictors",
        X_train.shape[0],
        X_val.shape[0],
        X_test.shape[0],
        X_train.shape[1],
    )

    return PreparedData(
        partitions=parts,
        X_train_raw=X_train_raw,
        X_val_raw=X_val_raw,
        X_test_raw=X_test_raw,
        y_train=y_train,
        y_val=y_val,
        y_test=y_test,
        X_train=X_train,
        X_val=X_val,
        X_test=X_test,
        preprocessor=pre,
    )


def prepare_data(data_dir: str = DEFAULT_DATA_DIR) -> PreparedData:
    """End-to-end preparation: read the fixed split from data_dir, then preprocess."""
    return prepare_data_from_partitions(read_partitions(data_dir))


if __name__ == "__main__":
    data = prepare_data()

    def _shape(x: Any) -> Tuple[int, int]:
        return (x.shape[0], x.shape[1])

    print("Prepared data:")
    print(f"  X_train: {_shape(data.X_train)} dtype={data.X_train.dtype}")
    print(f"  X_val  : {_shape(data.X_val)} dtype={data.X_val.dtype}")
    print(f"  X_test : {_shape(data.X_test)} dtype={data.X_test.dtype}")
    print(f"  class balance (train): {data.y_train.value_counts().to_dict()}")
