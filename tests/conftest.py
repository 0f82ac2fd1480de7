import pytest

from bivariate_mlp.data import write_bivariate
from bivariate_mlp.pipeline import prepare_data
from bivariate_mlp.training import TrainingConfig, train_model


SMALL_CONFIG = TrainingConfig(device="cpu", seed=7, epochs=15, hidden_units=5, dropout=0.1, learning_rate=0.05)


@pytest.fixture(scope="session")
def data_dir(tmp_path_factory):
    d = tmp_path_factory.mktemp("data")
    write_bivariate(str(d), seed=42)
    return str(d)


@pytest.fixture(scope="session")
def prepared(data_dir):
    return prepare_data(data_dir)


@pytest.fixture(scope="session")
def trained(prepared, tmp_path_factory):
    outdir = tmp_path_factory.mktemp("outputs")
    bundle, summary = train_model(prepared, outdir=str(outdir), config=SMALL_CONFIG)
    return bundle, summary, str(outdir)
