"""K-fold cross-validated accuracy for the five fitters."""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.exceptions import ConvergenceWarning
from sklearn.metrics import accuracy_score
from sklearn.model_selection import KFold

from heart_failure_study.config import StudyConfig
from heart_failure_study.models.trainer import MODEL_CONFIGS, build_model
from heart_failure_study.utils import get_logger

log = get_logger(__name__)


@dataclass
class FoldOutcome:
    """One held-out fold. ``accuracy`` is None when the fold was excluded."""

    index: int
    n_train: int
    n_test: int
    accuracy: float | None
    model: Any = None
    single_class_test: bool = False
    excluded: bool = False


@dataclass
class CrossValidationResult:
    name: str
    folds: dict[int, FoldOutcome]
    warnings: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def scores(self) -> list[float]:
        return [f.accuracy for f in self.folds.values() if f.accuracy is not None]

    @property
    def mean_accuracy(self) -> float:
        return float(np.mean(self.scores)) if self.scores else float("nan")

    @property
    def std_accuracy(self) -> float:
        return float(np.std(self.scores)) if self.scores else float("nan")

    @property
    def excluded_folds(self) -> list[int]:
        return [i for i, f in self.folds.items() if f.excluded]

    @property
    def flagged_folds(self) -> list[int]:
        return [i for i, f in self.folds.items() if f.single_class_test]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mean_accuracy": round(self.mean_accuracy, 4),
            "std_accuracy": round(self.std_accuracy, 4),
            "fold_scores": {i: f.accuracy for i, f in self.folds.items()},
            "n_folds_used": len(self.scores),
            "excluded_folds": self.excluded_folds,
            "flagged_folds": self.flagged_folds,
            "warnings": self.warnings,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


@dataclass
class ModelComparison:
    """All fitters evaluated on one fold assignment, best first."""

    results: list[CrossValidationResult]
    n_folds: int
    seed: int

    @property
    def best(self) -> CrossValidationResult:
        return self.results[0]

    @property
    def best_model_name(self) -> str:
        return self.best.name

    def accuracies(self) -> dict[str, float]:
        return {r.name: r.mean_accuracy for r in self.results}

    def to_dict(self) -> dict:
        return {
            "n_folds": self.n_folds,
            "seed": self.seed,
            "results": [r.to_dict() for r in self.results],
            "best_model_name": self.best_model_name,
            "best_accuracy": round(self.best.mean_accuracy, 4),
        }


class CrossValidator:
    """Runs every fitter over the same seeded K-fold partition."""

    def __init__(self, cfg: StudyConfig | None = None, keep_models: bool = False):
        self.cfg = cfg or StudyConfig()
        self.keep_models = keep_models

    def splitter(self) -> KFold:
        return KFold(n_splits=self.cfg.cv_folds, shuffle=True, random_state=self.cfg.seed)

    def evaluate(self, name: str, X: pd.DataFrame, y: pd.Series) -> CrossValidationResult:
        """Cross-validate a single fitter and return per-fold accuracies."""
        X_arr = np.asarray(X, dtype=float)
        y_arr = np.asarray(y)
        template = build_model(name, self.cfg)

        folds = {}
        messages = []
        t0 = time.time()

        for i, (train_idx, test_idx) in enumerate(self.splitter().split(X_arr, y_arr), start=1):
            y_train, y_test = y_arr[train_idx], y_arr[test_idx]
            outcome = FoldOutcome(index=i, n_train=len(train_idx), n_test=len(test_idx),
                                  accuracy=None)

            if len(np.unique(y_train)) < 2:
                outcome.excluded = True
                msg = f"fold {i}: training data has a single class, fold excluded"
                log.warning("%s %s", name, msg)
                messages.append(msg)
                folds[i] = outcome
                continue

            if len(np.unique(y_test)) < 2:
                outcome.single_class_test = True
                msg = f"fold {i}: held-out data has a single class"
                log.warning("%s %s", name, msg)
                messages.append(msg)

            model = clone(template)
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", ConvergenceWarning)
                try:
                    model.fit(X_arr[train_idx], y_train)
                    predicted = model.predict(X_arr[test_idx])
                except Exception as e:
                    outcome.excluded = True
                    msg = f"fold {i}: fit failed, fold excluded ({type(e).__name__}: {e})"
                    log.error("%s %s", name, msg)
                    messages.append(msg)
                    folds[i] = outcome
                    continue
            for w in caught:
                if issubclass(w.category, ConvergenceWarning):
                    msg = f"fold {i}: {w.message}"
                    log.warning("%s %s", name, msg)
                    messages.append(msg)

            outcome.accuracy = float(accuracy_score(y_test, predicted))
            if self.keep_models:
                outcome.model = model
            folds[i] = outcome

        result = CrossValidationResult(
            name=name, folds=folds, warnings=messages, elapsed_seconds=time.time() - t0,
        )
        log.info(
            "  %s: CV accuracy=%.4f (+/- %.4f) over %d folds",
            name, result.mean_accuracy, result.std_accuracy, len(result.scores),
        )
        return result

    def compare(self, X: pd.DataFrame, y: pd.Series,
                models: list[str] | None = None) -> ModelComparison:
        """Evaluate every fitter on the identical fold assignment."""
        models = models or list(MODEL_CONFIGS.keys())
        log.info(
            "Cross-validating %d models with %d-fold CV (seed=%d) on %d samples",
            len(models), self.cfg.cv_folds, self.cfg.seed, len(X),
        )

        results = [self.evaluate(name, X, y) for name in models]
        if all(np.isnan(r.mean_accuracy) for r in results):
            raise RuntimeError("Every cross-validation fold was excluded")

        # Stable sort keeps registry order on ties; NaN means sort last
        results.sort(
            key=lambda r: -r.mean_accuracy if not np.isnan(r.mean_accuracy) else np.inf
        )

        comparison = ModelComparison(results=results, n_folds=self.cfg.cv_folds,
                                     seed=self.cfg.seed)
        log.info(
            "Best model: %s (CV accuracy=%.4f)",
            comparison.best_model_name, comparison.best.mean_accuracy,
        )
        return comparison
