"""
Linearity-of-the-logit check.

For every continuous predictor the fitted log-odds are compared against a
LOWESS smooth of the same points. A smooth that stays close to the straight
line fit suggests the predictor enters the logit linearly. The verdict is
advisory only.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.nonparametric.smoothers_lowess import lowess

from heart_failure_study.models.logistic import LogisticFitResult
from heart_failure_study.utils import get_logger

log = get_logger(__name__)

_EPS = 1e-10


@dataclass
class PredictorLinearity:
    feature: str
    spearman_rho: float
    linear_r2: float
    lowess_gap: float
    verdict: str
    # Sorted (x, smoothed logit) pairs, kept for plotting
    curve: np.ndarray = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "feature": self.feature,
            "spearman_rho": round(self.spearman_rho, 4),
            "linear_r2": round(self.linear_r2, 4),
            "lowess_gap": round(self.lowess_gap, 4),
            "verdict": self.verdict,
        }


@dataclass
class LinearityReport:
    predictors: list[PredictorLinearity]
    tolerance: float
    logit: pd.Series = field(default=None, repr=False)

    @property
    def nonlinear(self) -> list[str]:
        return [p.feature for p in self.predictors if p.verdict != "approximately linear"]

    def to_dict(self) -> dict:
        return {
            "tolerance": self.tolerance,
            "predictors": [p.to_dict() for p in self.predictors],
            "possibly_nonlinear": self.nonlinear,
            "advisory": True,
        }


def empirical_logit(p: pd.Series) -> pd.Series:
    p = p.clip(_EPS, 1 - _EPS)
    return np.log(p / (1 - p)).rename("logit")


class LinearityCheck:
    def __init__(self, tolerance: float = 0.25, frac: float = 2 / 3):
        self.tolerance = tolerance
        self.frac = frac

    def run(self, fit: LogisticFitResult, records: pd.DataFrame,
            features: list[str]) -> LinearityReport:
        if not fit.ok:
            raise ValueError("Linearity check needs a successful logistic fit")

        logit = empirical_logit(fit.fitted_probabilities)
        predictors = [
            self._assess(name, records.loc[logit.index, name].astype(float), logit)
            for name in features
        ]

        report = LinearityReport(predictors=predictors, tolerance=self.tolerance, logit=logit)
        for p in predictors:
            log.info(
                "  %s: rho=%.3f, R2=%.3f, LOWESS gap=%.3f -> %s",
                p.feature, p.spearman_rho, p.linear_r2, p.lowess_gap, p.verdict,
            )
        return report

    def _assess(self, name: str, x: pd.Series, logit: pd.Series) -> PredictorLinearity:
        x_arr = x.to_numpy()
        y_arr = logit.to_numpy()

        rho, _ = stats.spearmanr(x_arr, y_arr)
        fit = stats.linregress(x_arr, y_arr)
        smooth = lowess(y_arr, x_arr, frac=self.frac, return_sorted=True)

        line = fit.intercept + fit.slope * smooth[:, 0]
        spread = y_arr.std()
        gap = float(np.sqrt(np.mean((smooth[:, 1] - line) ** 2)) / spread) if spread > 0 else 0.0

        verdict = "approximately linear" if gap <= self.tolerance else "possible non-linearity"
        return PredictorLinearity(
            feature=name,
            spearman_rho=float(rho),
            linear_r2=float(fit.rvalue ** 2),
            lowess_gap=gap,
            verdict=verdict,
            curve=smooth,
        )
