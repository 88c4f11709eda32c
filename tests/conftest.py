import os

import numpy as np
import pandas as pd
import pytest

from heart_failure_study import config
from heart_failure_study.config import StudyConfig
from heart_failure_study.data import DatasetLoader, TypeNormalizer
from heart_failure_study.models import LogisticRegressionFitter

# Features that drive the synthetic outcome
SIGNAL_FEATURES = ["age", "ejection_fraction", "serum_creatinine"]


def make_records(n: int = 299, seed: int = 0) -> pd.DataFrame:
    """Synthetic patient records with the real schema and plausible ranges."""
    rng = np.random.default_rng(seed)
    age = rng.integers(40, 96, n)
    ejection_fraction = rng.integers(14, 81, n)
    serum_creatinine = np.round(rng.lognormal(0.2, 0.4, n), 2)

    logit = (
        -1.0
        + 0.08 * (age - 60)
        - 0.10 * (ejection_fraction - 38)
        + 2.0 * (serum_creatinine - 1.2)
    )
    death = (rng.random(n) < 1 / (1 + np.exp(-logit))).astype(int)

    df = pd.DataFrame({
        "age": age,
        "anaemia": rng.integers(0, 2, n),
        "creatinine_phosphokinase": np.round(rng.lognormal(5.5, 1.0, n)).astype(int) + 23,
        "diabetes": rng.integers(0, 2, n),
        "ejection_fraction": ejection_fraction,
        "high_blood_pressure": rng.integers(0, 2, n),
        "platelets": np.round(rng.normal(263000, 97000, n).clip(25000, 850000)),
        "serum_creatinine": serum_creatinine,
        "serum_sodium": rng.integers(113, 149, n),
        "sex": rng.integers(0, 2, n),
        "smoking": rng.integers(0, 2, n),
        "time": rng.integers(4, 286, n),
        "DEATH_EVENT": death,
    })
    return df[config.RAW_COLUMNS]


@pytest.fixture
def records_df():
    return make_records()


@pytest.fixture
def csv_path(tmp_path, records_df):
    path = tmp_path / "heart_failure_clinical_records_dataset.csv"
    records_df.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def dataset(csv_path):
    return DatasetLoader().load(csv_path)


@pytest.fixture
def normalized(dataset):
    return TypeNormalizer().run(dataset)


@pytest.fixture
def logistic_fit(normalized):
    return LogisticRegressionFitter().fit(normalized["design"], normalized["y"])


@pytest.fixture
def fast_config(tmp_path, csv_path):
    """Full configuration with a smaller forest to keep the suite quick."""
    return StudyConfig(
        data_source=csv_path,
        n_trees=60,
        output_dir=str(tmp_path / "out"),
        make_plots=False,
    )


REFERENCE_CSV = os.path.join(
    os.path.dirname(__file__), "data", "heart_failure_clinical_records_dataset.csv")


@pytest.fixture
def reference_csv():
    """
    Path to the real UCI file: tests/data/ first, then HEART_FAILURE_CSV.
    Tests using it are skipped when neither exists.
    """
    for path in (REFERENCE_CSV, os.environ.get("HEART_FAILURE_CSV")):
        if path and os.path.exists(path):
            return path
    pytest.skip("reference dataset not in tests/data/ and HEART_FAILURE_CSV not set")
