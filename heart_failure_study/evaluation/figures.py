"""Figures for the rendered report."""

from __future__ import annotations

import math
import os

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from heart_failure_study.models.trainer import MODEL_LABELS  # noqa: E402
from heart_failure_study.utils import get_logger  # noqa: E402

log = get_logger(__name__)


def _save(fig, output_dir: str, filename: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    fig.tight_layout()
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info("Figure saved: %s", path)
    return path


def plot_linearity(report, records: pd.DataFrame, output_dir: str) -> str:
    """Logit versus each continuous predictor with its LOWESS smooth."""
    n = len(report.predictors)
    ncols = 3
    nrows = max(1, math.ceil(n / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.2 * nrows), squeeze=False)

    logit = report.logit
    for ax, pred in zip(axes.flat, report.predictors):
        x = records.loc[logit.index, pred.feature].astype(float)
        ax.scatter(x, logit, s=8, alpha=0.5, color="#2E5A88")
        ax.plot(pred.curve[:, 0], pred.curve[:, 1], color="#C0392B", lw=2)
        ax.set_xlabel(pred.feature)
        ax.set_ylabel("logit")
        ax.set_title(pred.verdict, fontsize=9)
    for ax in list(axes.flat)[n:]:
        ax.set_visible(False)

    fig.suptitle("Linearity of the logit", fontweight="bold")
    return _save(fig, output_dir, "linearity.png")


def plot_influence(report, output_dir: str) -> list[str]:
    """Standardized residuals and Cook's distance by observation."""
    paths = []

    resid = report.standardized_residuals
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.scatter(range(len(resid)), resid, s=10, color="#2E5A88")
    for level in (report.residual_threshold, -report.residual_threshold):
        ax.axhline(level, color="#C0392B", linestyle="--", lw=1)
    ax.set_xlabel("Observation")
    ax.set_ylabel("Standardized residual")
    ax.set_title("Standardized residuals")
    paths.append(_save(fig, output_dir, "standardized_residuals.png"))

    cooks = report.cooks_distance
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.vlines(range(len(cooks)), 0, cooks, color="#2E5A88", lw=1)
    ax.axhline(report.cooks_threshold, color="#C0392B", linestyle="--", lw=1)
    ax.set_xlabel("Observation")
    ax.set_ylabel("Cook's distance")
    ax.set_title("Cook's distance")
    paths.append(_save(fig, output_dir, "cooks_distance.png"))
    return paths


def plot_cv_accuracy(comparison, output_dir: str) -> str:
    names = [r.name for r in comparison.results]
    means = [r.mean_accuracy for r in comparison.results]
    stds = [r.std_accuracy for r in comparison.results]
    labels = [MODEL_LABELS.get(n, n) for n in names]

    fig, ax = plt.subplots(figsize=(7, 4))
    colors = ["#C0392B" if n == comparison.best_model_name else "#2E5A88" for n in names]
    ax.barh(labels[::-1], means[::-1], xerr=stds[::-1], color=colors[::-1], capsize=3)
    ax.set_xlim(0, 1)
    ax.set_xlabel(f"Mean accuracy ({comparison.n_folds}-fold CV)")
    ax.set_title("Cross-validated accuracy")
    return _save(fig, output_dir, "cv_accuracy.png")


def plot_feature_importance(ranking: dict, output_dir: str) -> str:
    names = [r["feature"] for r in ranking["importance"]]
    values = [r["importance"] for r in ranking["importance"]]
    top = set(ranking["top_features"])

    fig, ax = plt.subplots(figsize=(7, 4.5))
    colors = ["#C0392B" if n in top else "#95A5A6" for n in names]
    ax.barh(names[::-1], values[::-1], color=colors[::-1])
    ax.set_xlabel("Mean decrease in Gini impurity")
    ax.set_title("Random forest feature importance")
    return _save(fig, output_dir, "feature_importance.png")


def plot_confusion_matrix(ranking: dict, output_dir: str) -> str:
    cm = np.asarray(ranking["confusion_matrix"])
    fig, ax = plt.subplots(figsize=(4, 4))
    ax.imshow(cm, cmap="Blues")
    for (i, j), v in np.ndenumerate(cm):
        ax.text(j, i, str(v), ha="center", va="center",
                color="white" if v > cm.max() / 2 else "black", fontsize=12)
    ax.set_xticks([0, 1], labels=["survived", "died"])
    ax.set_yticks([0, 1], labels=["survived", "died"])
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Observed")
    ax.set_title(f"Misclassification rate {ranking['misclassification_rate']:.3f}")
    return _save(fig, output_dir, "confusion_matrix.png")
