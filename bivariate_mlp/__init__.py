# bivariate_mlp/__init__.py
from __future__ import annotations

from .data import (
    CLASS_LEVELS,
    EVENT_LEVEL,
    EXPECTED_COLUMNS,
    PREDICTORS,
    TARGET_COL,
)
from .pipeline import PreparedData, prepare_data
from .artifacts import ClassifierArtifact, ModelBundle
from .training import TrainingConfig, evaluate_split, render_plots, train_model
