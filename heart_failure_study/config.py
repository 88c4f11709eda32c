"""Configuration constants and run settings for the heart failure study."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_OUTPUT_DIR = "heart_failure_output"

# UCI Machine Learning Repository: Heart failure clinical records
DATA_URL = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/00519/"
    "heart_failure_clinical_records_dataset.csv"
)
DEFAULT_TIMEOUT = 30  # seconds
USER_AGENT = "heart-failure-study/0.1"

# ---------------------------------------------------------------------------
# Dataset schema
# ---------------------------------------------------------------------------
RAW_COLUMNS = [
    "age",
    "anaemia",
    "creatinine_phosphokinase",
    "diabetes",
    "ejection_fraction",
    "high_blood_pressure",
    "platelets",
    "serum_creatinine",
    "serum_sodium",
    "sex",
    "smoking",
    "time",
    "DEATH_EVENT",
]

# Follow-up period length, not a physical or lifestyle feature
DROPPED_COLUMNS = ["time"]
TARGET_COLUMN = "DEATH_EVENT"

CATEGORICAL_COLUMNS = [
    "sex",
    "anaemia",
    "diabetes",
    "high_blood_pressure",
    "smoking",
    "DEATH_EVENT",
]

FEATURE_COLUMNS = [
    c for c in RAW_COLUMNS if c not in DROPPED_COLUMNS and c != TARGET_COLUMN
]
BINARY_FEATURES = [c for c in FEATURE_COLUMNS if c in CATEGORICAL_COLUMNS]
CONTINUOUS_COLUMNS = [c for c in FEATURE_COLUMNS if c not in CATEGORICAL_COLUMNS]

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_SEED = 42
SCALING_METHODS = ("standard", "minmax", "none")


@dataclass
class StudyConfig:
    """Every tunable of one analysis run, including the random seed.

    Stochastic steps (fold assignment, train/test split, forest bootstrap)
    all draw their ``random_state`` from ``seed``.
    """

    data_source: str = DATA_URL
    seed: int = DEFAULT_SEED
    feature_names: list[str] = field(default_factory=lambda: list(FEATURE_COLUMNS))

    # Cross-validation and hold-out split
    cv_folds: int = 10
    test_size: float = 0.2

    # Fitter hyperparameters
    n_trees: int = 500
    max_features: int = 2
    knn_neighbors: int = 5
    svm_cost: float = 1.0
    scaling: str = "standard"

    # Diagnostics thresholds
    alpha: float = 0.05
    residual_threshold: float = 3.0
    cooks_threshold: float = 0.5
    vif_threshold: float = 5.0
    linearity_tolerance: float = 0.25

    # Reporting
    top_features: int = 5
    output_dir: str = DEFAULT_OUTPUT_DIR
    make_plots: bool = True

    def __post_init__(self):
        if not 2 <= self.cv_folds <= 20:
            raise ValueError(f"cv_folds must be between 2 and 20, got {self.cv_folds}")
        if not 0.0 < self.test_size < 1.0:
            raise ValueError(f"test_size must be in (0, 1), got {self.test_size}")
        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {self.alpha}")
        if self.scaling not in SCALING_METHODS:
            raise ValueError(
                f"Unknown scaling method: {self.scaling}. "
                f"Available: {list(SCALING_METHODS)}"
            )
        for name in ("n_trees", "max_features", "knn_neighbors", "top_features"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer")
        for name in ("svm_cost", "residual_threshold", "cooks_threshold",
                     "vif_threshold", "linearity_tolerance"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        unknown = set(self.feature_names) - set(FEATURE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown features: {sorted(unknown)}")

    @property
    def continuous_features(self) -> list[str]:
        return [c for c in self.feature_names if c in CONTINUOUS_COLUMNS]
