"""Outlier and influential-observation check for the logistic fit."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from heart_failure_study.models.logistic import LogisticFitResult
from heart_failure_study.utils import get_logger

log = get_logger(__name__)


@dataclass
class InfluenceReport:
    standardized_residuals: pd.Series
    cooks_distance: pd.Series
    residual_threshold: float
    cooks_threshold: float

    @property
    def residual_outliers(self) -> list:
        mask = self.standardized_residuals.abs() > self.residual_threshold
        return self.standardized_residuals.index[mask].tolist()

    @property
    def influential(self) -> list:
        mask = self.cooks_distance > self.cooks_threshold
        return self.cooks_distance.index[mask].tolist()

    @property
    def flagged(self) -> list:
        return sorted(set(self.residual_outliers) | set(self.influential))

    @property
    def verdict(self) -> str:
        if not self.flagged:
            return "no influential outliers"
        return f"{len(self.flagged)} observation(s) flagged"

    def to_dict(self) -> dict:
        return {
            "residual_threshold": self.residual_threshold,
            "cooks_threshold": self.cooks_threshold,
            "residual_outliers": self.residual_outliers,
            "influential": self.influential,
            "flagged": self.flagged,
            "max_abs_residual": round(float(self.standardized_residuals.abs().max()), 4),
            "max_cooks_distance": round(float(self.cooks_distance.max()), 4),
            "verdict": self.verdict,
        }


class InfluenceCheck:
    """Standardized residuals and Cook's distance per observation."""

    def __init__(self, residual_threshold: float = 3.0, cooks_threshold: float = 0.5):
        self.residual_threshold = residual_threshold
        self.cooks_threshold = cooks_threshold

    def run(self, fit: LogisticFitResult) -> InfluenceReport:
        if not fit.ok:
            raise ValueError("Influence check needs a successful logistic fit")

        index = fit.fitted_probabilities.index
        influence = fit.results.get_influence()
        residuals = pd.Series(np.asarray(influence.resid_studentized), index=index,
                              name="standardized_residual")
        cooks = pd.Series(np.asarray(influence.cooks_distance[0]), index=index,
                          name="cooks_distance")

        report = InfluenceReport(
            standardized_residuals=residuals,
            cooks_distance=cooks,
            residual_threshold=self.residual_threshold,
            cooks_threshold=self.cooks_threshold,
        )
        log.info(
            "Influence: max |std resid|=%.3f, max Cook's D=%.4f, %d flagged",
            residuals.abs().max(), cooks.max(), len(report.flagged),
        )
        if report.flagged:
            log.warning("Flagged observations: %s", report.flagged)
        return report
