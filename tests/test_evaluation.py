import json
import os

import numpy as np
import pytest

from heart_failure_study import config
from heart_failure_study.evaluation import FeatureRanker, Reporter, misclassification_rate
from heart_failure_study.evaluation import figures

from tests.conftest import SIGNAL_FEATURES


@pytest.fixture
def ranking(fast_config, normalized, logistic_fit):
    return FeatureRanker(fast_config).run(
        normalized["design"], normalized["y"], logistic_fit.significant_features)


class TestMisclassificationRate:
    def test_formula(self):
        cm = np.array([[30, 10], [5, 15]])
        assert misclassification_rate(cm) == pytest.approx(1 - 45 / 60)

    def test_perfect_and_worst(self):
        assert misclassification_rate(np.array([[5, 0], [0, 5]])) == 0.0
        assert misclassification_rate(np.array([[0, 5], [5, 0]])) == 1.0

    def test_empty_matrix(self):
        with pytest.raises(ValueError):
            misclassification_rate(np.zeros((2, 2)))


class TestFeatureRanker:
    def test_split_sizes(self, ranking):
        assert ranking["n_test"] == 60
        assert ranking["n_train"] == 239

    def test_confusion_matrix_sums_to_test_size(self, ranking):
        cm = np.array(ranking["confusion_matrix"])
        assert cm.shape == (2, 2)
        assert cm.sum() == ranking["n_test"]

    def test_misclassification_rate(self, ranking):
        cm = np.array(ranking["confusion_matrix"])
        rate = ranking["misclassification_rate"]
        assert 0.0 <= rate <= 1.0
        assert rate == pytest.approx(1 - np.trace(cm) / cm.sum(), abs=1e-4)
        assert rate == pytest.approx(1 - ranking["test_accuracy"], abs=1e-4)

    def test_importance_ranking(self, ranking):
        names = [r["feature"] for r in ranking["importance"]]
        values = [r["importance"] for r in ranking["importance"]]
        assert sorted(names) == sorted(config.FEATURE_COLUMNS)
        assert values == sorted(values, reverse=True)
        assert sum(values) == pytest.approx(1.0, abs=1e-4)
        assert ranking["top_features"] == names[:5]

    def test_driving_features_rank_high(self, ranking):
        assert set(SIGNAL_FEATURES) <= set(ranking["top_features"])

    def test_comparison_sets(self, ranking):
        top = set(ranking["top_features"])
        sig = set(ranking["significant_features"])
        assert set(ranking["consensus_features"]) == top & sig
        assert set(ranking["risk_factors"]) == top | sig
        assert len(ranking["risk_factors"]) == len(set(ranking["risk_factors"]))

    def test_without_significant_features(self, fast_config, normalized):
        result = FeatureRanker(fast_config).run(normalized["design"], normalized["y"])
        assert result["consensus_features"] == []
        assert result["risk_factors"] == result["top_features"]

    def test_reproducible(self, fast_config, normalized, ranking, logistic_fit):
        again = FeatureRanker(fast_config).run(
            normalized["design"], normalized["y"], logistic_fit.significant_features)
        assert again["confusion_matrix"] == ranking["confusion_matrix"]
        assert again["importance"] == ranking["importance"]

    def test_oob_error(self, ranking):
        assert 0.0 <= ranking["oob_error"] <= 1.0


class TestReporter:
    @pytest.fixture
    def report(self, ranking, logistic_fit, normalized, dataset, fast_config):
        from heart_failure_study.diagnostics import CollinearityCheck, InfluenceCheck
        from heart_failure_study.models import CrossValidator

        comparison = CrossValidator(fast_config).compare(
            normalized["design"], normalized["y"], models=["knn", "linear_svm"])
        return Reporter().generate(
            dataset_metadata=dataset["metadata"],
            eda_report=None,
            normalization_info=normalized["normalization_info"],
            logistic=logistic_fit.to_dict(),
            diagnostics={
                "influence": InfluenceCheck().run(logistic_fit).to_dict(),
                "collinearity": CollinearityCheck().run(normalized["design"]).to_dict(),
            },
            cross_validation=comparison.to_dict(),
            feature_ranking=ranking,
            config={"seed": fast_config.seed},
        )

    def test_report_is_json_serialisable(self, report, tmp_path):
        path = tmp_path / "report.json"
        Reporter().save_json(report, str(path))
        loaded = json.loads(path.read_text())
        assert loaded["conclusions"]["best_model"] in ("knn", "linear_svm")
        assert loaded["feature_ranking"]["n_test"] == 60

    def test_make_serializable(self):
        out = Reporter()._make_serializable(
            {"a": np.int64(3), "b": np.float32(0.5), "c": np.array([1, 2]),
             "d": float("nan"), "e": np.bool_(True), 1: (1, 2)})
        assert out == {"a": 3, "b": 0.5, "c": [1, 2], "d": None, "e": True, "1": [1, 2]}

    def test_console_summary(self, report):
        text = Reporter().print_summary(report)
        assert "cross-validated accuracy" in text
        assert "misclassification rate" in text
        assert "Best model" in text

    def test_markdown_document(self, report, tmp_path):
        path = tmp_path / "report.md"
        Reporter().save_markdown(report, str(path))
        text = path.read_text()
        for heading in ("## Logistic regression", "## Diagnostics",
                        "## Cross-validated accuracy", "## Random forest feature importance",
                        "## Conclusions"):
            assert heading in text
        assert "| Survived |" in text


class TestFigures:
    def test_figures_are_written(self, tmp_path, ranking, logistic_fit, normalized, fast_config):
        from heart_failure_study.diagnostics import InfluenceCheck, LinearityCheck
        from heart_failure_study.models import CrossValidator

        out = str(tmp_path / "figs")
        linearity = LinearityCheck().run(
            logistic_fit, normalized["records"], config.CONTINUOUS_COLUMNS)
        comparison = CrossValidator(fast_config).compare(
            normalized["design"], normalized["y"], models=["knn"])

        paths = [
            figures.plot_linearity(linearity, normalized["records"], out),
            *figures.plot_influence(InfluenceCheck().run(logistic_fit), out),
            figures.plot_cv_accuracy(comparison, out),
            figures.plot_feature_importance(ranking, out),
            figures.plot_confusion_matrix(ranking, out),
        ]
        for path in paths:
            assert os.path.exists(path)
            assert path.endswith(".png")
