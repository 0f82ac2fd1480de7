from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from bivariate_mlp import data as data_mod
from bivariate_mlp.data import (
    CLASS_LEVELS,
    EXPECTED_COLUMNS,
    PARTITION_SIZES,
    extract_features_for_inference,
    partition_path,
    resolve_data_dir,
    read_partition,
    read_partitions,
    simulate_bivariate,
    split_features_target,
    validate_exact_columns,
    validate_labels,
    validate_positive,
    write_bivariate,
)


def test_simulated_partitions_have_reference_sizes():
    parts = simulate_bivariate(seed=42)
    assert parts.sizes() == PARTITION_SIZES
    for name in ("train", "val", "test"):
        df = getattr(parts, name)
        assert list(df.columns) == EXPECTED_COLUMNS
        assert (df[["A", "B"]] > 0).all().all()
        assert set(df["Class"].astype(str)) == set(CLASS_LEVELS)


def test_simulation_is_deterministic_for_a_seed():
    a = simulate_bivariate(seed=3)
    b = simulate_bivariate(seed=3)
    c = simulate_bivariate(seed=4)
    pd.testing.assert_frame_equal(a.train, b.train)
    assert not a.train["A"].equals(c.train["A"])


def test_predictors_are_right_skewed():
    train = simulate_bivariate(seed=42).train
    for col in ("A", "B"):
        assert train[col].mean() > train[col].median()


def test_read_partitions_round_trip(data_dir):
    parts = read_partitions(data_dir)
    assert parts.sizes() == PARTITION_SIZES
    assert list(parts.val["Class"].cat.categories) == CLASS_LEVELS


def test_partition_path_rejects_unknown_name(data_dir):
    with pytest.raises(ValueError, match="Unknown partition"):
        partition_path("holdout", data_dir)


def test_missing_partition_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(data_mod, "FILE_TEMPLATE", "absent_{name}.csv")
    with pytest.raises(FileNotFoundError):
        read_partition("train", str(tmp_path))


def test_exact_columns_reports_missing_extra_and_order():
    ok = pd.DataFrame({"A": [1.0], "B": [2.0], "Class": ["One"]})
    validate_exact_columns(ok)

    with pytest.raises(ValueError, match="Missing"):
        validate_exact_columns(ok.drop(columns=["B"]))
    with pytest.raises(ValueError, match="Unexpected"):
        validate_exact_columns(ok.assign(C=1))
    with pytest.raises(ValueError, match="order"):
        validate_exact_columns(ok[["B", "A", "Class"]])


def test_validate_labels_keeps_level_order():
    y = validate_labels(pd.Series(["Two", "One", "Two"]))
    assert list(y.cat.categories) == CLASS_LEVELS
    assert list(y.astype(str)) == ["Two", "One", "Two"]


@pytest.mark.parametrize("values", [["One", "Three"], ["One", None]])
def test_validate_labels_rejects_bad_values(values):
    with pytest.raises(ValueError):
        validate_labels(pd.Series(values))


def test_validate_labels_warns_on_single_level():
    with pytest.warns(RuntimeWarning):
        validate_labels(pd.Series(["One", "One"]))


@pytest.mark.parametrize("bad", [0.0, -1.5, np.nan])
def test_validate_positive_rejects_box_cox_domain_errors(bad):
    df = pd.DataFrame({"A": [1.0, bad], "B": [2.0, 3.0]})
    with pytest.raises(ValueError, match="'A'"):
        validate_positive(df)


def test_split_and_inference_extraction():
    df = pd.DataFrame({"A": [1.0, 2.0], "B": [3.0, 4.0], "Class": ["One", "Two"]})
    X, y = split_features_target(df)
    assert list(X.columns) == ["A", "B"]
    assert list(y.astype(str)) == ["One", "Two"]

    extra = df.assign(row_id=[10, 11])
    X_inf = extract_features_for_inference(extra)
    assert list(X_inf.columns) == ["A", "B"]

    with pytest.raises(ValueError, match="Missing required columns"):
        extract_features_for_inference(df[["A"]])


def test_data_dir_with_full_split_is_used_as_is(data_dir):
    assert resolve_data_dir(data_dir).resolve() == Path(data_dir).resolve()


def test_partial_split_is_not_completed_from_another_directory(tmp_path):
    write_bivariate(str(tmp_path / "full"), seed=1)
    partial = tmp_path / "partial"
    partial.mkdir()
    (partial / "bivariate_train.csv").write_bytes((tmp_path / "full" / "bivariate_train.csv").read_bytes())

    with pytest.raises(FileNotFoundError, match="Incomplete split") as exc:
        read_partitions(str(partial))
    assert "bivariate_val.csv" in str(exc.value)
    assert "bivariate_test.csv" in str(exc.value)


def test_write_bivariate_is_byte_identical_for_a_seed(tmp_path):
    a = write_bivariate(str(tmp_path / "a"), seed=5)
    b = write_bivariate(str(tmp_path / "b"), seed=5)
    c = write_bivariate(str(tmp_path / "c"), seed=6)
    for name in ("train", "val", "test"):
        assert Path(a[name]).read_bytes() == Path(b[name]).read_bytes()
        assert Path(a[name]).read_bytes() != Path(c[name]).read_bytes()
