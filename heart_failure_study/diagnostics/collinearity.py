"""Variance inflation factors for the logistic design matrix."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.stats.outliers_influence import variance_inflation_factor

from heart_failure_study.utils import get_logger

log = get_logger(__name__)


@dataclass
class CollinearityReport:
    vif: pd.Series
    threshold: float

    @property
    def flagged(self) -> list[str]:
        return self.vif.index[self.vif >= self.threshold].tolist()

    @property
    def verdict(self) -> str:
        if not self.flagged:
            return "no multicollinearity"
        return "multicollinearity in " + ", ".join(self.flagged)

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "vif": {k: round(float(v), 4) for k, v in self.vif.items()},
            "flagged": self.flagged,
            "verdict": self.verdict,
        }


class CollinearityCheck:
    def __init__(self, threshold: float = 5.0):
        self.threshold = threshold

    def run(self, design: pd.DataFrame) -> CollinearityReport:
        # The intercept column keeps VIFs centred; it is not reported.
        exog = sm.add_constant(design.astype(float), has_constant="add")
        values = exog.values
        with np.errstate(divide="ignore"):
            vifs = [
                variance_inflation_factor(values, i)
                for i, col in enumerate(exog.columns) if col != "const"
            ]
        vif = pd.Series(vifs, index=design.columns, name="vif")

        report = CollinearityReport(vif=vif, threshold=self.threshold)
        log.info("VIF range: %.3f - %.3f", vif.min(), vif.max())
        if report.flagged:
            log.warning("VIF >= %.1f: %s", self.threshold, ", ".join(report.flagged))
        return report
