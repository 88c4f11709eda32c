"""Report assembly: JSON data, console summary and Markdown document."""

from __future__ import annotations

import json
import math
import os
from datetime import datetime, timezone

import numpy as np
import pandas as pd

from heart_failure_study import __version__
from heart_failure_study.models.trainer import MODEL_LABELS
from heart_failure_study.utils import get_logger

log = get_logger(__name__)

DISCLAIMER = (
    "DISCLAIMER: This report is a statistical analysis of a public clinical "
    "dataset prepared for coursework. It does NOT provide medical diagnoses "
    "or treatment recommendations."
)


class Reporter:
    """Collects every stage's output into one report and renders it."""

    def generate(
        self,
        dataset_metadata: dict,
        eda_report: dict | None,
        normalization_info: dict,
        logistic: dict,
        diagnostics: dict,
        cross_validation: dict,
        feature_ranking: dict,
        config: dict,
        figures: dict | None = None,
    ) -> dict:
        report = {
            "title": "Risk factors for death in heart failure patients",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "disclaimer": DISCLAIMER,
            "config": config,
            "dataset": dataset_metadata,
            "normalization": normalization_info,
            "exploratory_analysis": eda_report or {},
            "logistic_regression": logistic,
            "diagnostics": diagnostics,
            "cross_validation": cross_validation,
            "feature_ranking": feature_ranking,
            "figures": figures or {},
        }
        report["conclusions"] = self._conclusions(report)
        return self._make_serializable(report)

    def _conclusions(self, report: dict) -> dict:
        cv = report["cross_validation"]
        ranking = report["feature_ranking"]
        return {
            "best_model": cv.get("best_model_name"),
            "best_model_accuracy": cv.get("best_accuracy"),
            "significant_features": report["logistic_regression"].get(
                "significant_features", []),
            "top_importance_features": ranking.get("top_features", []),
            "consensus_features": ranking.get("consensus_features", []),
            "risk_factors": ranking.get("risk_factors", []),
            "limitations": [
                "No significance test is performed between cross-validated accuracies.",
                "The hold-out split is not stratified by outcome.",
            ],
        }

    def _make_serializable(self, obj):
        """Recursively convert numpy and pandas values to plain Python."""
        if isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [self._make_serializable(v) for v in obj]
        if isinstance(obj, pd.DataFrame):
            return self._make_serializable(obj.to_dict(orient="records"))
        if isinstance(obj, pd.Series):
            return self._make_serializable(obj.to_dict())
        if isinstance(obj, np.ndarray):
            return self._make_serializable(obj.tolist())
        if isinstance(obj, (np.bool_, bool)):
            return bool(obj)
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, (np.floating, float)):
            value = float(obj)
            return None if math.isnan(value) or math.isinf(value) else value
        return obj

    def save_json(self, report: dict, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        log.info("JSON report written: %s", path)

    def print_summary(self, report: dict) -> str:
        lines = []
        lines.append("=" * 60)
        lines.append(report["title"].upper())
        lines.append("=" * 60)
        ds = report["dataset"]
        lines.append(f"Dataset: {ds.get('n_samples')} patients, "
                     f"{report['normalization'].get('n_features')} features")
        lines.append("")

        lines.append("Logistic regression (significant at "
                     f"p<{report['logistic_regression'].get('alpha')}):")
        for row in report["logistic_regression"].get("coefficients", []):
            if row["term"] == "const":
                continue
            mark = "*" if row["significant"] else " "
            lines.append(f"  {mark} {row['term']:<26} coef={_fmt(row['coefficient'], '.4g'):>10}"
                         f"  p={_fmt(row['p_value'], '.4f')}")
        lines.append("")

        diag = report["diagnostics"]
        lines.append("Diagnostics:")
        for key in ("influence", "collinearity"):
            if key in diag:
                lines.append(f"  {key:<14} {diag[key]['verdict']}")
        if "linearity" in diag:
            nonlinear = diag["linearity"]["possibly_nonlinear"]
            lines.append(f"  {'linearity':<14} "
                         f"{'possible non-linearity in ' + ', '.join(nonlinear) if nonlinear else 'no departures'}")
        if diag.get("skipped"):
            lines.append(f"  skipped: {diag['skipped']}")
        lines.append("")

        cv = report["cross_validation"]
        lines.append(f"{cv['n_folds']}-fold cross-validated accuracy:")
        for r in cv["results"]:
            label = MODEL_LABELS.get(r["name"], r["name"])
            lines.append(f"  {label:<24} {_fmt(r['mean_accuracy'], '.4f')}"
                         f" (+/- {_fmt(r['std_accuracy'], '.4f')})")
        lines.append(f"  Best model: {MODEL_LABELS.get(cv['best_model_name'], cv['best_model_name'])}")
        lines.append("")

        fr = report["feature_ranking"]
        lines.append(f"Random forest hold-out ({fr['n_test']} patients): "
                     f"misclassification rate {_fmt(fr['misclassification_rate'], '.4f')}")
        lines.append(f"  Top features: {', '.join(fr['top_features'])}")
        lines.append(f"  Risk factors: {', '.join(fr['risk_factors'])}")
        lines.append("=" * 60)
        return "\n".join(lines)

    def render_markdown(self, report: dict) -> str:
        out = []
        out.append(f"# {report['title']}")
        out.append("")
        out.append(f"_{report['disclaimer']}_")
        out.append("")
        ds = report["dataset"]
        norm = report["normalization"]
        out.append("## Data")
        out.append("")
        out.append(
            f"The dataset holds {ds.get('n_samples')} patient records. The "
            f"{', '.join(norm.get('dropped_columns', [])) or 'no'} column was dropped "
            "because it measures follow-up length rather than a physical or lifestyle "
            f"feature, leaving {norm.get('n_features')} features. Class distribution of "
            f"the outcome: {ds.get('class_distribution')}."
        )
        out.append("")

        eda = report.get("exploratory_analysis") or {}
        if eda.get("univariate_tests"):
            out.append("### Univariate association with death")
            out.append("")
            out.append("| Feature | Test | Statistic | p value |")
            out.append("|---|---|---|---|")
            for row in eda["univariate_tests"]:
                out.append(f"| {row['feature']} | {row['test']} | "
                           f"{_fmt(row['statistic'], '.3f')} | {_fmt(row['p_value'], '.4g')} |")
            out.append("")

        lr = report["logistic_regression"]
        out.append("## Logistic regression")
        out.append("")
        if lr.get("error"):
            out.append(f"The logistic model could not be fitted: {lr['error']}.")
        else:
            out.append(f"AIC {_fmt(lr['aic'], '.2f')}; residual deviance "
                       f"{_fmt(lr['deviance'], '.2f')} on null deviance "
                       f"{_fmt(lr['null_deviance'], '.2f')}.")
            out.append("")
            out.append("| Term | Coefficient | Std. error | p value | Odds ratio (95% CI) |")
            out.append("|---|---|---|---|---|")
            for row in lr["coefficients"]:
                star = " *" if row["significant"] and row["term"] != "const" else ""
                out.append(
                    f"| {row['term']}{star} | {_fmt(row['coefficient'], '.4g')} | "
                    f"{_fmt(row['std_error'], '.4g')} | {_fmt(row['p_value'], '.4g')} | "
                    f"{_fmt(row['odds_ratio'], '.3f')} ({_fmt(row['ci_lower'], '.3f')}"
                    f"-{_fmt(row['ci_upper'], '.3f')}) |"
                )
            out.append("")
            sig = lr.get("significant_features") or []
            out.append(f"Significant at the {lr['alpha']} level: "
                       f"{', '.join(sig) if sig else 'none'}.")
        for w in lr.get("warnings", []):
            out.append(f"> Warning: {w}")
        out.append("")

        diag = report["diagnostics"]
        out.append("## Diagnostics")
        out.append("")
        if diag.get("skipped"):
            out.append(f"Diagnostics were skipped: {diag['skipped']}.")
        if "influence" in diag:
            inf = diag["influence"]
            out.append(
                f"- **Influence**: {inf['verdict']}. Largest absolute standardized "
                f"residual {_fmt(inf['max_abs_residual'], '.3f')} (threshold "
                f"{inf['residual_threshold']}), largest Cook's distance "
                f"{_fmt(inf['max_cooks_distance'], '.4f')} (threshold {inf['cooks_threshold']})."
            )
        if "collinearity" in diag:
            col = diag["collinearity"]
            vifs = ", ".join(f"{k} {_fmt(v, '.2f')}" for k, v in col["vif"].items())
            out.append(f"- **Multicollinearity**: {col['verdict']} (VIF: {vifs}).")
        if "linearity" in diag:
            lin = diag["linearity"]
            parts = ", ".join(f"{p['feature']} ({p['verdict']})" for p in lin["predictors"])
            out.append(f"- **Linearity of the logit** (advisory): {parts}.")
        out.append("")

        cv = report["cross_validation"]
        out.append("## Cross-validated accuracy")
        out.append("")
        out.append(f"All models were evaluated on the same {cv['n_folds']} folds "
                   f"(seed {cv['seed']}).")
        out.append("")
        out.append("| Model | Mean accuracy | Std | Folds used |")
        out.append("|---|---|---|---|")
        for r in cv["results"]:
            out.append(f"| {MODEL_LABELS.get(r['name'], r['name'])} | "
                       f"{_fmt(r['mean_accuracy'], '.4f')} | {_fmt(r['std_accuracy'], '.4f')} | "
                       f"{r['n_folds_used']} |")
        out.append("")
        out.append(f"The best model is **{MODEL_LABELS.get(cv['best_model_name'], cv['best_model_name'])}** "
                   f"with mean accuracy {_fmt(cv['best_accuracy'], '.4f')}. No significance test "
                   "was run between models.")
        out.append("")

        fr = report["feature_ranking"]
        cm = fr["confusion_matrix"]
        out.append("## Random forest feature importance")
        out.append("")
        out.append(
            f"A forest of {fr['n_trees']} trees ({fr['max_features']} features tried per split) "
            f"was trained on {fr['n_train']} patients and tested on {fr['n_test']}. "
            f"Misclassification rate {_fmt(fr['misclassification_rate'], '.4f')}, "
            f"OOB error {_fmt(fr['oob_error'], '.4f')}."
        )
        out.append("")
        out.append("| | Predicted survived | Predicted died |")
        out.append("|---|---|---|")
        out.append(f"| Survived | {cm[0][0]} | {cm[0][1]} |")
        out.append(f"| Died | {cm[1][0]} | {cm[1][1]} |")
        out.append("")
        out.append("| Rank | Feature | Mean decrease in Gini |")
        out.append("|---|---|---|")
        for i, row in enumerate(fr["importance"], start=1):
            out.append(f"| {i} | {row['feature']} | {_fmt(row['importance'], '.4f')} |")
        out.append("")

        concl = report["conclusions"]
        out.append("## Conclusions")
        out.append("")
        out.append(f"Both models agree on: {', '.join(concl['consensus_features']) or 'no features'}. "
                   f"Combined risk factors: {', '.join(concl['risk_factors'])}.")
        out.append("")
        for item in concl["limitations"]:
            out.append(f"- {item}")
        out.append("")

        figures = report.get("figures") or {}
        if figures:
            out.append("## Figures")
            out.append("")
            for name, path in figures.items():
                out.append(f"![{name}]({path})")
            out.append("")
        return "\n".join(out)

    def save_markdown(self, report: dict, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.render_markdown(report))
        log.info("Markdown report written: %s", path)


def _fmt(value, fmt: str) -> str:
    if value is None:
        return "n/a"
    return format(value, fmt)
