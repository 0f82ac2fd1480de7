import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from joblib import dump

from bivariate_mlp.artifacts import ModelBundle
from bivariate_mlp.plots import plot_decision_boundary
from bivariate_mlp.training import evaluate_split, render_plots


def test_train_model_persists_bundle_and_history(trained):
    bundle, summary, outdir = trained
    base = Path(outdir)
    assert (base / "models" / "bundle.joblib").exists()

    history = pd.read_csv(base / "metrics" / "train_history.csv")
    assert list(history.columns) == ["epoch", "loss"]
    assert len(history) == bundle.metadata["config"]["epochs"]

    saved = json.loads((base / "metrics" / "train_summary.json").read_text(encoding="utf-8"))
    assert saved["metadata"]["class_levels"] == ["One", "Two"]
    assert set(saved["metadata"]["transform_parameters"]) == {"A", "B"}
    assert summary["final_loss"] == pytest.approx(history["loss"].iloc[-1])


def test_validation_predictions_have_both_class_probabilities(trained, prepared):
    bundle, _, _ = trained
    pred = bundle.classifier.predict_frame(prepared.X_val_raw)
    assert len(pred) == len(prepared.X_val_raw)
    assert list(pred.columns) == ["pred_class", "pred_One", "pred_Two"]
    np.testing.assert_allclose(pred["pred_One"] + pred["pred_Two"], 1.0, atol=1e-9)
    expected = np.where(pred["pred_One"] >= pred["pred_Two"], "One", "Two")
    np.testing.assert_array_equal(pred["pred_class"].astype(str).to_numpy(), expected)


def test_evaluate_split_writes_metrics_and_confusion(trained, prepared, tmp_path):
    bundle, _, _ = trained
    summary = evaluate_split(bundle, prepared.X_val_raw, prepared.y_val, split="val", outdir=str(tmp_path))

    m = summary["metrics"]
    assert 0.0 <= m["roc_auc"] <= 1.0
    assert 0.0 <= m["accuracy"] <= 1.0
    assert int(m["n"]) == len(prepared.y_val)

    counts = np.asarray(summary["confusion_matrix"]["prediction_by_truth"])
    assert counts.shape == (2, 2)
    assert int(counts.sum()) == len(prepared.y_val)

    assert (tmp_path / "metrics" / "val_metrics.json").exists()
    assert (tmp_path / "metrics" / "val_confusion.csv").exists()
    written = pd.read_csv(tmp_path / "predictions" / "val_predictions.csv")
    assert list(written.columns) == ["A", "B", "Class", "pred_class", "pred_One", "pred_Two"]


def test_network_beats_chance_on_validation(trained, prepared, tmp_path):
    bundle, _, _ = trained
    summary = evaluate_split(bundle, prepared.X_val_raw, prepared.y_val, split="val", outdir=str(tmp_path))
    assert summary["metrics"]["roc_auc"] > 0.7


def test_bundle_round_trip(trained, prepared, tmp_path):
    bundle, _, _ = trained
    path = bundle.save(str(tmp_path / "nested" / "bundle.joblib"))
    loaded = ModelBundle.load(path)
    pd.testing.assert_frame_equal(
        loaded.classifier.predict_frame(prepared.X_test_raw),
        bundle.classifier.predict_frame(prepared.X_test_raw),
    )
    assert loaded.metadata == bundle.metadata


def test_loading_a_non_bundle_raises(tmp_path):
    p = tmp_path / "other.joblib"
    dump({"not": "a bundle"}, str(p))
    with pytest.raises(TypeError):
        ModelBundle.load(str(p))


def test_render_plots_writes_figures(trained, prepared, tmp_path):
    bundle, _, _ = trained
    paths = render_plots(bundle, prepared, outdir=str(tmp_path), grid_size=30)
    for key in ("scatter", "decision_boundary", "history"):
        assert Path(paths[key]).exists()
        assert Path(paths[key]).stat().st_size > 0
    grid = pd.read_csv(tmp_path / "predictions" / "grid_predictions.csv")
    assert len(grid) == 30 * 30


def test_decision_boundary_requires_square_grid(prepared, tmp_path):
    bad = pd.DataFrame({"A": [1.0, 2.0, 3.0], "B": [1.0, 2.0, 3.0], "pred_One": [0.1, 0.5, 0.9]})
    with pytest.raises(ValueError, match="square"):
        plot_decision_boundary(bad, prepared.partitions.val, str(tmp_path / "x.png"))
