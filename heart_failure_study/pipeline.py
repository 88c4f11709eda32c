"""
Heart failure study pipeline.

Runs the analysis front to back: data loading -> type normalization -> EDA
-> logistic regression -> diagnostics -> cross-validation -> feature
ranking -> report. Each stage reads the output of earlier stages only.
"""

from __future__ import annotations

import dataclasses
import os
import traceback
from typing import Callable

from heart_failure_study import __version__
from heart_failure_study.analysis import DataExplorer
from heart_failure_study.config import StudyConfig
from heart_failure_study.data import DatasetLoader, TypeNormalizer
from heart_failure_study.diagnostics import CollinearityCheck, InfluenceCheck, LinearityCheck
from heart_failure_study.evaluation import DISCLAIMER, FeatureRanker, Reporter
from heart_failure_study.evaluation import figures
from heart_failure_study.models import CrossValidator, LogisticRegressionFitter
from heart_failure_study.utils import add_file_handler, get_logger, remove_handler

log = get_logger("heart_failure_study")

STAGES = [
    "Data Loading",
    "Type Normalization",
    "Exploratory Analysis",
    "Logistic Regression",
    "Diagnostics",
    "Cross-Validation",
    "Feature Ranking",
    "Report Generation",
]


class HeartFailureStudy:
    """
    Runs the complete heart failure analysis once and produces a report.

    Stages:
        1. Data Loading         - read and validate the patient records
        2. Type Normalization   - drop ``time``, recast 0/1 columns
        3. Exploratory Analysis - descriptive statistics, univariate tests
        4. Logistic Regression  - coefficients and significance
        5. Diagnostics          - linearity, influence, multicollinearity
        6. Cross-Validation     - accuracy of the five fitters
        7. Feature Ranking      - random forest importance vs. logistic
        8. Report Generation    - JSON, Markdown and console summary
    """

    def __init__(
        self,
        config: StudyConfig | None = None,
        on_progress: Callable[[int, int, str], None] | None = None,
    ):
        self.config = config or StudyConfig()
        self.on_progress = on_progress

        # Pipeline state
        self._raw_data = None
        self._eda_report = None
        self._normalized = None
        self._logistic = None
        self._diagnostics = None
        self._diagnostics_skipped = None
        self._comparison = None
        self._ranking = None
        self._figures = {}
        self._report = None

    def run(self) -> dict:
        """
        Execute every stage in order.

        Returns the final report dict.
        """
        log.info("=" * 60)
        log.info("HEART FAILURE SURVIVAL STUDY v%s", __version__)
        log.info("=" * 60)
        log.info("")
        log.info(DISCLAIMER)
        log.info("")

        os.makedirs(self.config.output_dir, exist_ok=True)
        file_handler = add_file_handler(os.path.join(self.config.output_dir, "study.log"))

        stage_fns = [
            self._stage_load,
            self._stage_normalize,
            self._stage_eda,
            self._stage_logistic,
            self._stage_diagnostics,
            self._stage_cross_validate,
            self._stage_rank,
            self._stage_report,
        ]

        total = len(STAGES)
        try:
            for i, (stage_name, stage_fn) in enumerate(zip(STAGES, stage_fns), start=1):
                if self.on_progress:
                    self.on_progress(i, total, stage_name)
                log.info("")
                log.info("-" * 60)
                log.info("STAGE: %d/%d %s", i, total, stage_name)
                log.info("-" * 60)
                try:
                    stage_fn()
                except Exception:
                    log.error("Stage '%s' failed:\n%s", stage_name, traceback.format_exc())
                    raise
        finally:
            remove_handler(file_handler)

        return self._report

    def _stage_load(self):
        loader = DatasetLoader()
        self._raw_data = loader.load(self.config.data_source)

    def _stage_normalize(self):
        self._normalized = TypeNormalizer(self.config.feature_names).run(self._raw_data)

    def _stage_eda(self):
        self._eda_report = DataExplorer().run(self._normalized)

    def _stage_logistic(self):
        fitter = LogisticRegressionFitter(alpha=self.config.alpha)
        self._logistic = fitter.fit(self._normalized["design"], self._normalized["y"])

    def _stage_diagnostics(self):
        cfg = self.config
        design = self._normalized["design"]

        diagnostics = {}
        diagnostics["collinearity"] = CollinearityCheck(cfg.vif_threshold).run(design)

        if not self._logistic.ok:
            log.warning("Logistic fit failed; skipping influence and linearity checks")
            self._diagnostics = diagnostics
            self._diagnostics_skipped = self._logistic.error
            return

        diagnostics["influence"] = InfluenceCheck(
            residual_threshold=cfg.residual_threshold,
            cooks_threshold=cfg.cooks_threshold,
        ).run(self._logistic)
        diagnostics["linearity"] = LinearityCheck(cfg.linearity_tolerance).run(
            self._logistic, self._normalized["records"], cfg.continuous_features,
        )
        self._diagnostics = diagnostics
        self._diagnostics_skipped = None

        if cfg.make_plots:
            fig_dir = os.path.join(cfg.output_dir, "figures")
            self._figures["linearity"] = figures.plot_linearity(
                diagnostics["linearity"], self._normalized["records"], fig_dir)
            residual_path, cooks_path = figures.plot_influence(diagnostics["influence"], fig_dir)
            self._figures["standardized_residuals"] = residual_path
            self._figures["cooks_distance"] = cooks_path

    def _stage_cross_validate(self):
        validator = CrossValidator(self.config)
        self._comparison = validator.compare(self._normalized["design"], self._normalized["y"])
        if self.config.make_plots:
            self._figures["cv_accuracy"] = figures.plot_cv_accuracy(
                self._comparison, os.path.join(self.config.output_dir, "figures"))

    def _stage_rank(self):
        ranker = FeatureRanker(self.config)
        self._ranking = ranker.run(
            self._normalized["design"],
            self._normalized["y"],
            self._logistic.significant_features,
        )
        if self.config.make_plots:
            fig_dir = os.path.join(self.config.output_dir, "figures")
            self._figures["feature_importance"] = figures.plot_feature_importance(
                self._ranking, fig_dir)
            self._figures["confusion_matrix"] = figures.plot_confusion_matrix(
                self._ranking, fig_dir)

    def _stage_report(self):
        reporter = Reporter()

        diagnostics = {k: v.to_dict() for k, v in self._diagnostics.items()}
        if self._diagnostics_skipped:
            diagnostics["skipped"] = self._diagnostics_skipped

        self._report = reporter.generate(
            dataset_metadata=self._raw_data["metadata"],
            eda_report=self._eda_report,
            normalization_info=self._normalized["normalization_info"],
            logistic=self._logistic.to_dict(),
            diagnostics=diagnostics,
            cross_validation=self._comparison.to_dict(),
            feature_ranking=self._ranking,
            config=dataclasses.asdict(self.config),
            figures={
                name: os.path.relpath(path, self.config.output_dir)
                for name, path in self._figures.items()
            },
        )

        # Print summary
        summary = reporter.print_summary(self._report)
        print("\n" + summary)

        json_path = os.path.join(self.config.output_dir, "report.json")
        md_path = os.path.join(self.config.output_dir, "report.md")
        reporter.save_json(self._report, json_path)
        reporter.save_markdown(self._report, md_path)
        log.info("Full report saved to: %s", self.config.output_dir)
