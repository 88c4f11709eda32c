"""Type normalization for the patient records."""

import pandas as pd
from pandas.api.types import CategoricalDtype

from heart_failure_study import config
from heart_failure_study.utils import get_logger

log = get_logger(__name__)

BINARY_DTYPE = CategoricalDtype(categories=[0, 1])


def to_design_matrix(X: pd.DataFrame) -> pd.DataFrame:
    """Numeric float view of a feature table; categorical columns become 0/1."""
    design = pd.DataFrame(index=X.index)
    for col in X.columns:
        if isinstance(X[col].dtype, CategoricalDtype):
            design[col] = X[col].cat.codes.astype(float)
        else:
            design[col] = X[col].astype(float)
    return design


class TypeNormalizer:
    """Drops non-clinical columns and recasts 0/1 columns to categoricals."""

    def __init__(self, feature_names: list[str] | None = None):
        self.feature_names = list(feature_names or config.FEATURE_COLUMNS)
        unknown = [c for c in self.feature_names if c not in config.FEATURE_COLUMNS]
        if unknown:
            raise ValueError(f"Not clinical feature columns: {unknown}")

    def run(self, dataset: dict) -> dict:
        """
        Normalize a dataset dict from DatasetLoader.

        Returns a dict with the normalized record table, the feature matrix
        ``X`` (categoricals kept), the 0/1 label vector ``y`` and the float
        ``design`` matrix shared by every fitter.
        """
        df = dataset["df"].copy()
        target_name = dataset["target_name"]

        log.info("Normalizing column types")

        dropped = [c for c in config.DROPPED_COLUMNS if c in df.columns]
        df = df.drop(columns=dropped)
        if dropped:
            log.info("Dropped columns: %s", ", ".join(dropped))

        for col in config.CATEGORICAL_COLUMNS:
            df[col] = df[col].astype(int).astype(BINARY_DTYPE)
        log.info("Recast %d columns to categorical", len(config.CATEGORICAL_COLUMNS))

        X = df[self.feature_names]
        y = df[target_name].cat.codes.astype(int).rename(target_name)
        design = to_design_matrix(X)

        log.info("Feature matrix: %d rows x %d columns", X.shape[0], X.shape[1])

        return {
            "records": df,
            "X": X,
            "y": y,
            "design": design,
            "feature_names": self.feature_names,
            "target_name": target_name,
            "metadata": dataset["metadata"],
            "normalization_info": {
                "dropped_columns": dropped,
                "categorical_columns": list(config.CATEGORICAL_COLUMNS),
                "n_rows": len(X),
                "n_features": X.shape[1],
                "dtypes": X.dtypes.astype(str).to_dict(),
            },
        }
