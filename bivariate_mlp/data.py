# bivariate_mlp/data.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

import logging
import warnings

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


# -----------------------------
# Fixed dataset schema
# -----------------------------
PREDICTORS: List[str] = ["A", "B"]
TARGET_COL = "Class"
EXPECTED_COLUMNS: List[str] = PREDICTORS + [TARGET_COL]

# Level order is fixed; the first level is the event for ROC-AUC.
CLASS_LEVELS: List[str] = ["One", "Two"]
EVENT_LEVEL = CLASS_LEVELS[0]

PARTITIONS: Tuple[str, ...] = ("train", "val", "test")
FILE_TEMPLATE = "bivariate_{name}.csv"

# Row counts of the reference split.
PARTITION_SIZES: Dict[str, int] = {"train": 1009, "val": 300, "test": 710}

DEFAULT_DATA_DIR = "data"


@dataclass(frozen=True)
class Partitions:
    train: pd.DataFrame
    val: pd.DataFrame
    test: pd.DataFrame

    def sizes(self) -> Dict[str, int]:
        return {name: int(len(getattr(self, name))) for name in PARTITIONS}


def _missing_partitions(directory: Path) -> List[str]:
    return [FILE_TEMPLATE.format(name=name) for name in PARTITIONS if not (directory / FILE_TEMPLATE.format(name=name)).exists()]


def resolve_data_dir(data_dir: str = DEFAULT_DATA_DIR) -> Path:
    """
    Resolve the directory holding the fixed split. All partitions come from one directory.

    Resolution order:
      1) data_dir (relative paths resolved from the current working directory).
      2) Fallback to the repository's own data/ directory (parent of the package),
         only when data_dir holds none of the partition files.
    A directory holding some but not all partitions is an error.
    """
    d = Path(data_dir)
    if not d.is_absolute():
        d = (Path.cwd() / d).resolve()
    fallback = (Path(__file__).resolve().parents[1] / DEFAULT_DATA_DIR).resolve()

    for candidate in (d, fallback):
        missing = _missing_partitions(candidate)
        if not missing:
            return candidate
        if len(missing) < len(PARTITIONS):
            raise FileNotFoundError(f"Incomplete split in {candidate}: missing {missing}")

    raise FileNotFoundError(
        f"No partitions found in {d} and no fallback found at {fallback}. "
        "Run `python main.py simulate` to generate the dataset."
    )


def partition_path(name: str, data_dir: str = DEFAULT_DATA_DIR) -> Path:
    """Resolve the CSV path of one partition (see resolve_data_dir)."""
    if name not in PARTITIONS:
        raise ValueError(f"Unknown partition {name!r}; expected one of {list(PARTITIONS)}")
    return resolve_data_dir(data_dir) / FILE_TEMPLATE.format(name=name)


def read_partition(name: str, data_dir: str = DEFAULT_DATA_DIR) -> pd.DataFrame:
    """Read and validate one partition CSV."""
    p = partition_path(name, data_dir)
    df = pd.read_csv(p)
    validate_exact_columns(df)
    validate_positive(df)
    df[TARGET_COL] = validate_labels(df[TARGET_COL])
    logger.info("Loaded %s partition: %d rows from %s", name, len(df), p)
    return df


def read_partitions(data_dir: str = DEFAULT_DATA_DIR) -> Partitions:
    directory = str(resolve_data_dir(data_dir))
    parts = {name: read_partition(name, directory) for name in PARTITIONS}
    return Partitions(**parts)


def validate_exact_columns(df: pd.DataFrame) -> None:
    """
    Strict schema check: the partition must contain *exactly* EXPECTED_COLUMNS, including column order.

    For inference on "feature-only" files, use validate_required_columns(...).
    """
    expected = list(EXPECTED_COLUMNS)
    actual = list(df.columns.tolist())

    if actual == expected:
        return

    missing = [c for c in expected if c not in actual]
    unexpected = [c for c in actual if c not in expected]

    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    if unexpected:
        raise ValueError(f"Unexpected columns present (schema must match exactly): {unexpected}")

    raise ValueError(
        "Dataset columns contain the expected names but the order differs from EXPECTED_COLUMNS.\n"
        f"Expected order: {expected}\n"
        f"Actual order:   {actual}"
    )


def validate_required_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Validation helper for inference: require a minimum set of columns."""
    missing = sorted(set(required) - set(df.columns.tolist()))
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def validate_labels(y: pd.Series) -> pd.Series:
    """Validate class labels and coerce them to a Categorical with the fixed level order."""
    s = pd.Series(y).astype("object")
    if s.isna().any():
        raise ValueError(f"'{TARGET_COL}' contains missing labels; please clean/drop these rows.")

    observed = sorted(set(s.astype(str).tolist()))
    unknown = [v for v in observed if v not in CLASS_LEVELS]
    if unknown:
        raise ValueError(f"'{TARGET_COL}' must take values in {CLASS_LEVELS}; found unexpected values: {unknown}")

    if len(observed) < len(CLASS_LEVELS):
        warnings.warn(
            f"'{TARGET_COL}' has a single observed level {observed}; discrimination metrics will be undefined.",
            RuntimeWarning,
        )

    return pd.Series(
        pd.Categorical(s.astype(str), categories=CLASS_LEVELS),
        index=s.index,
        name=TARGET_COL,
    )


def validate_positive(df: pd.DataFrame) -> None:
    """Box-Cox is only defined for strictly positive, finite inputs."""
    for col in PREDICTORS:
        values = pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=float)
        bad = ~np.isfinite(values) | (values <= 0)
        if bad.any():
            raise ValueError(
                f"Predictor '{col}' must be finite and strictly positive; "
                f"{int(bad.sum())} offending row(s), first at position {int(np.argmax(bad))}."
            )


def split_features_target(df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Returns:
      X_df: predictors (A, B)
      y: class labels as a Categorical series
    """
    validate_required_columns(df, EXPECTED_COLUMNS)
    X_df = df[PREDICTORS].astype(float).copy()
    y = validate_labels(df[TARGET_COL]).reset_index(drop=True)
    return X_df.reset_index(drop=True), y


def extract_features_for_inference(df: pd.DataFrame) -> pd.DataFrame:
    """
    Extract only the model predictors from an arbitrary CSV.

    - Allows extra columns (labels, identifiers, etc.)
    - Requires at least PREDICTORS
    """
    validate_required_columns(df, PREDICTORS)
    X = df[PREDICTORS].astype(float).copy()
    validate_positive(X)
    return X


# -----------------------------
# Reference-shaped simulation
# -----------------------------
def simulate_bivariate(seed: int = 42) -> Partitions:
    """
    Generate a deterministic copy of the two-predictor dataset.

    Both predictors are log-normal (right skewed, strictly positive). The class
    is drawn from a logistic model on the centered log-ratio of A and B, so the
    true boundary is a curve on the raw scale and close to a line after Box-Cox.
    """
    rng = np.random.RandomState(int(seed))
    n_total = int(sum(PARTITION_SIZES.values()))

    log_a = rng.normal(loc=7.0, scale=0.55, size=n_total)
    log_b = 0.45 * (log_a - 7.0) + rng.normal(loc=4.0, scale=0.45, size=n_total)

    score = 2.4 * (log_a - 7.0) - 3.6 * (log_b - 4.0) + 0.25
    p_one = 1.0 / (1.0 + np.exp(-score))
    is_one = rng.uniform(size=n_total) < p_one

    df = pd.DataFrame(
        {
            "A": np.round(np.exp(log_a), 3),
            "B": np.round(np.exp(log_b), 3),
            TARGET_COL: pd.Categorical(np.where(is_one, "One", "Two"), categories=CLASS_LEVELS),
        }
    )

    parts: Dict[str, pd.DataFrame] = {}
    start = 0
    for name in PARTITIONS:
        stop = start + PARTITION_SIZES[name]
        parts[name] = df.iloc[start:stop].reset_index(drop=True)
        start = stop
    return Partitions(**parts)


def write_bivariate(data_dir: str = DEFAULT_DATA_DIR, seed: int = 42) -> Dict[str, str]:
    """Write the simulated partitions as CSV files; returns {partition: path}."""
    out = Path(data_dir)
    out.mkdir(parents=True, exist_ok=True)
    parts = simulate_bivariate(seed=seed)

    paths: Dict[str, str] = {}
    for name in PARTITIONS:
        p = out / FILE_TEMPLATE.format(name=name)
        getattr(parts, name).to_csv(p, index=False)
        paths[name] = str(p)
        logger.info("Wrote %s partition (%d rows) to %s", name, PARTITION_SIZES[name], p)
    return paths
