import math

import numpy as np
import pandas as pd
import pytest

from bivariate_mlp.metrics import classification_metrics, confusion_matrix_frame, event_indicator


Y_TRUE = ["One", "One", "Two", "Two"]
P_ONE = [0.9, 0.4, 0.35, 0.1]
Y_PRED = ["One", "Two", "Two", "Two"]


def test_first_level_is_the_event():
    np.testing.assert_array_equal(event_indicator(Y_TRUE), [1, 1, 0, 0])
    np.testing.assert_array_equal(event_indicator(Y_TRUE, "Two"), [0, 0, 1, 1])


def test_classification_metrics_known_values():
    m = classification_metrics(Y_TRUE, P_ONE, Y_PRED)
    assert m["roc_auc"] == pytest.approx(1.0)
    assert m["accuracy"] == pytest.approx(0.75)
    assert m["precision"] == pytest.approx(1.0)
    assert m["recall"] == pytest.approx(0.5)
    assert m["n"] == 4
    assert m["logloss"] > 0


def test_roc_auc_is_nan_with_one_class_present():
    m = classification_metrics(["One", "One"], [0.7, 0.2], ["One", "Two"])
    assert math.isnan(m["roc_auc"])
    assert m["accuracy"] == pytest.approx(0.5)


def test_length_mismatch_raises():
    with pytest.raises(ValueError, match="Length mismatch"):
        classification_metrics(Y_TRUE, P_ONE[:3], Y_PRED)


def test_confusion_matrix_is_prediction_by_truth():
    cm = confusion_matrix_frame(Y_TRUE, Y_PRED)
    assert cm.index.name == "Prediction"
    assert cm.columns.name == "Truth"
    assert cm.loc["One", "One"] == 1
    assert cm.loc["One", "Two"] == 0
    assert cm.loc["Two", "One"] == 1
    assert cm.loc["Two", "Two"] == 2
    assert int(cm.to_numpy().sum()) == len(Y_TRUE)


def test_confusion_matrix_keeps_empty_levels():
    cm = confusion_matrix_frame(pd.Series(["One", "One"]), pd.Series(["One", "One"]))
    assert cm.shape == (2, 2)
    assert cm.loc["Two"].sum() == 0
    assert cm.loc["One", "One"] == 2
