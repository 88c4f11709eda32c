"""Binomial logistic regression with coefficient inference (statsmodels GLM)."""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
)

from heart_failure_study.utils import get_logger

log = get_logger(__name__)

INTERCEPT = "const"


@dataclass
class LogisticFitResult:
    """Outcome of one logistic regression fit.

    ``coefficients`` is indexed by term (intercept first) with columns
    coefficient, std_error, z_value, p_value, odds_ratio, ci_lower, ci_upper
    and significant. When the fit fails it is empty and ``error`` is set.
    """

    coefficients: pd.DataFrame
    alpha: float
    converged: bool
    n_obs: int
    aic: float | None = None
    deviance: float | None = None
    null_deviance: float | None = None
    fitted_probabilities: pd.Series | None = None
    results: Any = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.results is not None

    @property
    def significant_features(self) -> list[str]:
        if self.coefficients.empty:
            return []
        table = self.coefficients.drop(index=INTERCEPT, errors="ignore")
        return table.index[table["significant"]].tolist()

    def to_dict(self) -> dict:
        return {
            "coefficients": self.coefficients.reset_index()
                .rename(columns={"index": "term"}).to_dict(orient="records"),
            "significant_features": self.significant_features,
            "alpha": self.alpha,
            "converged": self.converged,
            "n_obs": self.n_obs,
            "aic": self.aic,
            "deviance": self.deviance,
            "null_deviance": self.null_deviance,
            "warnings": self.warnings,
            "error": self.error,
        }


class LogisticRegressionFitter:
    """Fits the death-event label on every feature, main effects only."""

    def __init__(self, alpha: float = 0.05, max_iter: int = 100):
        self.alpha = alpha
        self.max_iter = max_iter

    def fit(self, design: pd.DataFrame, y: pd.Series) -> LogisticFitResult:
        exog = sm.add_constant(design.astype(float), has_constant="add")
        endog = np.asarray(y, dtype=float)

        log.info(
            "Fitting binomial GLM on %d observations, %d predictors",
            len(endog), design.shape[1],
        )

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                model = sm.GLM(endog, exog, family=sm.families.Binomial())
                results = model.fit(maxiter=self.max_iter)
            except (PerfectSeparationError, np.linalg.LinAlgError) as e:
                log.warning("Logistic regression failed: %s", e)
                return LogisticFitResult(
                    coefficients=pd.DataFrame(),
                    alpha=self.alpha,
                    converged=False,
                    n_obs=len(endog),
                    warnings=_convergence_messages(caught),
                    error=f"{type(e).__name__}: {e}",
                )

        messages = _convergence_messages(caught)
        converged = bool(getattr(results, "converged", True))
        if not converged and not messages:
            messages.append(f"IRLS did not converge in {self.max_iter} iterations")
        for msg in messages:
            log.warning("Logistic regression: %s", msg)

        table = self._coefficient_table(results)
        fitted = pd.Series(results.fittedvalues, index=design.index, name="p_hat")

        result = LogisticFitResult(
            coefficients=table,
            alpha=self.alpha,
            converged=converged,
            n_obs=int(results.nobs),
            aic=float(results.aic),
            deviance=float(results.deviance),
            null_deviance=float(results.null_deviance),
            fitted_probabilities=fitted,
            results=results,
            warnings=messages,
        )

        log.info(
            "Logistic fit: AIC=%.2f, deviance=%.2f (null %.2f)",
            result.aic, result.deviance, result.null_deviance,
        )
        log.info(
            "Significant at p<%.2f: %s",
            self.alpha, ", ".join(result.significant_features) or "none",
        )
        return result

    def _coefficient_table(self, results) -> pd.DataFrame:
        params = results.params
        conf = results.conf_int(alpha=0.05)
        table = pd.DataFrame({
            "coefficient": params,
            "std_error": results.bse,
            "z_value": results.tvalues,
            "p_value": results.pvalues,
            "odds_ratio": np.exp(params),
            "ci_lower": np.exp(conf[0]),
            "ci_upper": np.exp(conf[1]),
        })
        table["significant"] = table["p_value"] < self.alpha
        return table


def _convergence_messages(caught) -> list[str]:
    """Keep only the warnings that concern the fit itself."""
    messages = []
    for w in caught:
        if issubclass(w.category, ConvergenceWarning) or \
                "separation" in str(w.message).lower():
            messages.append(str(w.message))
    return messages
