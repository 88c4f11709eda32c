"""Exploratory data analysis of the patient records."""

import numpy as np
import pandas as pd
from scipy import stats

from heart_failure_study import config
from heart_failure_study.utils import get_logger

log = get_logger(__name__)


class DataExplorer:
    """Descriptive statistics and univariate association with the outcome."""

    def __init__(self, correlation_threshold: float = 0.7):
        self.correlation_threshold = correlation_threshold
        self.report = {}

    def run(self, normalized: dict) -> dict:
        """
        Run the exploratory analysis on the output of TypeNormalizer.

        Returns an EDA report dict.
        """
        X = normalized["X"]
        y = normalized["y"]
        design = normalized["design"]

        log.info("Running exploratory data analysis on %d samples", len(X))

        continuous = [c for c in X.columns if c in config.CONTINUOUS_COLUMNS]
        binary = [c for c in X.columns if c in config.BINARY_FEATURES]

        self.report = {
            "basic_stats": self._basic_stats(design, continuous),
            "binary_prevalence": {
                c: round(float(design[c].mean()), 4) for c in binary
            },
            "class_balance": self._class_balance(y),
            "feature_correlations": self._correlations(design),
            "univariate_tests": self._univariate_tests(design, y, continuous, binary),
            "outlier_summary": self._outlier_analysis(design, continuous),
        }

        log.info("EDA complete: %d analysis sections generated", len(self.report))
        return self.report

    def _basic_stats(self, df: pd.DataFrame, features: list[str]) -> dict:
        desc = df[features].describe()
        return {
            "shape": list(df.shape),
            "summary": desc.round(4).to_dict(),
            "skewness": df[features].skew().round(4).to_dict(),
        }

    def _class_balance(self, y: pd.Series) -> dict:
        """Analyze target class distribution."""
        counts = y.value_counts().sort_index()
        proportions = y.value_counts(normalize=True).sort_index()
        imbalance_ratio = counts.max() / counts.min() if counts.min() > 0 else float("inf")

        balance_status = "balanced" if imbalance_ratio < 1.5 else (
            "moderate_imbalance" if imbalance_ratio < 3.0 else "severe_imbalance"
        )

        log.info(
            "Class balance: %s (ratio=%.2f)", balance_status, imbalance_ratio
        )

        return {
            "counts": counts.to_dict(),
            "proportions": proportions.round(4).to_dict(),
            "imbalance_ratio": round(float(imbalance_ratio), 4),
            "status": balance_status,
        }

    def _correlations(self, df: pd.DataFrame) -> dict:
        """Feature pairs whose absolute Pearson correlation exceeds the threshold."""
        features = list(df.columns)
        corr_matrix = df.corr()

        high_corr_pairs = []
        for i in range(len(features)):
            for j in range(i + 1, len(features)):
                r = corr_matrix.iloc[i, j]
                if abs(r) > self.correlation_threshold:
                    high_corr_pairs.append({
                        "feature_1": features[i],
                        "feature_2": features[j],
                        "correlation": round(float(r), 4),
                    })

        high_corr_pairs.sort(key=lambda x: abs(x["correlation"]), reverse=True)
        log.info(
            "Found %d highly correlated feature pairs (|r|>%.1f)",
            len(high_corr_pairs), self.correlation_threshold,
        )

        return {
            "threshold": self.correlation_threshold,
            "highly_correlated_pairs": high_corr_pairs,
            "n_highly_correlated": len(high_corr_pairs),
        }

    def _univariate_tests(self, df: pd.DataFrame, y: pd.Series,
                          continuous: list[str], binary: list[str]) -> list[dict]:
        """
        Welch t-test for continuous features and chi-square test of
        independence for binary features, each against the outcome.
        """
        died = df[y == 1]
        survived = df[y == 0]
        results = []

        for feat in continuous:
            t_stat, p_val = stats.ttest_ind(died[feat], survived[feat], equal_var=False)
            results.append({
                "feature": feat,
                "test": "welch_t",
                "statistic": round(float(t_stat), 4),
                "p_value": float(p_val),
                "mean_died": round(float(died[feat].mean()), 4),
                "mean_survived": round(float(survived[feat].mean()), 4),
            })

        for feat in binary:
            table = pd.crosstab(df[feat], y)
            if table.shape != (2, 2):
                log.warning("Skipping chi-square for %s: degenerate table", feat)
                continue
            chi2, p_val, _, _ = stats.chi2_contingency(table)
            results.append({
                "feature": feat,
                "test": "chi_square",
                "statistic": round(float(chi2), 4),
                "p_value": float(p_val),
                "rate_died": round(float(died[feat].mean()), 4),
                "rate_survived": round(float(survived[feat].mean()), 4),
            })

        results.sort(key=lambda r: r["p_value"])

        log.info("Strongest univariate associations:")
        for i, r in enumerate(results[:5]):
            log.info("  %d. %s (%s, p=%.2e)", i + 1, r["feature"], r["test"], r["p_value"])

        return results

    def _outlier_analysis(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Detect outliers using IQR method."""
        outlier_counts = {}
        total_outliers = 0

        for feat in features:
            q1 = df[feat].quantile(0.25)
            q3 = df[feat].quantile(0.75)
            iqr = q3 - q1
            lower = q1 - 1.5 * iqr
            upper = q3 + 1.5 * iqr
            n_outliers = int(((df[feat] < lower) | (df[feat] > upper)).sum())
            if n_outliers > 0:
                outlier_counts[feat] = n_outliers
                total_outliers += n_outliers

        log.info(
            "Outlier analysis: %d total outliers across %d features",
            total_outliers, len(outlier_counts),
        )

        return {
            "features_with_outliers": outlier_counts,
            "total_outlier_values": total_outliers,
            "n_features_with_outliers": len(outlier_counts),
        }
