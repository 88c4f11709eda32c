"""Random forest importance ranking compared against logistic significance."""

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import accuracy_score, confusion_matrix
from sklearn.model_selection import train_test_split

from heart_failure_study.config import StudyConfig
from heart_failure_study.utils import get_logger

log = get_logger(__name__)


def misclassification_rate(cm: np.ndarray) -> float:
    """1 - (correct predictions / all predictions) for a confusion matrix."""
    total = cm.sum()
    if total == 0:
        raise ValueError("Empty confusion matrix")
    return float(1.0 - np.trace(cm) / total)


class FeatureRanker:
    """Hold-out random forest with mean-decrease-in-Gini importances."""

    def __init__(self, cfg: StudyConfig | None = None):
        self.cfg = cfg or StudyConfig()
        self.model = None

    def run(self, X: pd.DataFrame, y: pd.Series,
            significant_features: list[str] | None = None) -> dict:
        """
        Train on an unstratified 80/20 split, evaluate on the hold-out part
        and compare the top importances against ``significant_features``.
        """
        cfg = self.cfg
        significant_features = list(significant_features or [])
        X_num = X.astype(float)

        X_train, X_test, y_train, y_test = train_test_split(
            X_num, y,
            test_size=cfg.test_size,
            random_state=cfg.seed,
            shuffle=True,
        )
        log.info(
            "Split: %d train / %d test (%.0f%% test, unstratified)",
            len(X_train), len(X_test), cfg.test_size * 100,
        )

        self.model = RandomForestClassifier(
            n_estimators=cfg.n_trees,
            max_features=cfg.max_features,
            random_state=cfg.seed,
            oob_score=True,
        )
        self.model.fit(X_train, y_train)

        y_pred = self.model.predict(X_test)
        cm = confusion_matrix(y_test, y_pred, labels=[0, 1])
        error = misclassification_rate(cm)

        importance = pd.Series(
            self.model.feature_importances_, index=X.columns, name="mean_decrease_gini",
        ).sort_values(ascending=False)
        top = importance.index[: cfg.top_features].tolist()

        consensus = [f for f in top if f in significant_features]
        risk_factors = top + [f for f in significant_features if f not in top]

        log.info(
            "Random forest: test error=%.4f, OOB error=%.4f",
            error, 1.0 - self.model.oob_score_,
        )
        log.info("Top %d features by Gini importance: %s", len(top), ", ".join(top))
        log.info("Features agreed by both models: %s", ", ".join(consensus) or "none")

        return {
            "n_train": len(X_train),
            "n_test": len(X_test),
            "n_trees": cfg.n_trees,
            "max_features": cfg.max_features,
            "confusion_matrix": cm.tolist(),
            "misclassification_rate": round(error, 4),
            "test_accuracy": round(float(accuracy_score(y_test, y_pred)), 4),
            "oob_error": round(1.0 - float(self.model.oob_score_), 4),
            "importance": [
                {"feature": name, "importance": round(float(v), 6)}
                for name, v in importance.items()
            ],
            "top_features": top,
            "significant_features": significant_features,
            "consensus_features": consensus,
            "risk_factors": risk_factors,
        }
