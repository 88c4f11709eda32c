from heart_failure_study.models.cross_validation import (
    CrossValidationResult,
    CrossValidator,
    FoldOutcome,
    ModelComparison,
)
from heart_failure_study.models.logistic import LogisticFitResult, LogisticRegressionFitter
from heart_failure_study.models.trainer import MODEL_CONFIGS, MODEL_LABELS, build_model

__all__ = [
    "MODEL_CONFIGS",
    "MODEL_LABELS",
    "build_model",
    "CrossValidator",
    "CrossValidationResult",
    "FoldOutcome",
    "ModelComparison",
    "LogisticRegressionFitter",
    "LogisticFitResult",
]
