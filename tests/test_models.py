import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from statsmodels.tools.sm_exceptions import PerfectSeparationError

from heart_failure_study.config import StudyConfig
from heart_failure_study.models import (
    MODEL_CONFIGS,
    CrossValidator,
    LogisticRegressionFitter,
    build_model,
)
from heart_failure_study.models import logistic as logistic_module

from tests.conftest import SIGNAL_FEATURES


class TestBuildModel:
    def test_registry_has_the_five_fitters(self):
        assert list(MODEL_CONFIGS) == [
            "logistic_regression", "knn", "random_forest", "linear_svm", "radial_svm",
        ]

    def test_config_values_flow_into_estimators(self):
        cfg = StudyConfig(n_trees=123, max_features=3, knn_neighbors=7, svm_cost=2.5, seed=9)
        forest = build_model("random_forest", cfg)
        assert forest.n_estimators == 123
        assert forest.max_features == 3
        assert forest.random_state == 9

        knn = build_model("knn", cfg)
        assert isinstance(knn, Pipeline)
        assert knn[-1].n_neighbors == 7

        linear = build_model("linear_svm", cfg)
        assert linear[-1].kernel == "linear"
        assert linear[-1].C == 2.5
        assert build_model("radial_svm", cfg)[-1].kernel == "rbf"

    def test_no_scaling(self):
        model = build_model("knn", StudyConfig(scaling="none"))
        assert not isinstance(model, Pipeline)

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown model"):
            build_model("xgboost", StudyConfig())


class TestLogisticRegressionFitter:
    def test_coefficient_table(self, logistic_fit, normalized):
        table = logistic_fit.coefficients
        assert list(table.index) == ["const"] + list(normalized["design"].columns)
        for col in ("coefficient", "std_error", "z_value", "p_value",
                    "odds_ratio", "ci_lower", "ci_upper", "significant"):
            assert col in table.columns
        assert table["p_value"].between(0, 1).all()
        assert (table["std_error"] > 0).all()
        assert (table["ci_lower"] <= table["odds_ratio"]).all()
        assert (table["odds_ratio"] <= table["ci_upper"]).all()

    def test_significance_uses_alpha(self, logistic_fit):
        table = logistic_fit.coefficients
        assert (table["significant"] == (table["p_value"] < 0.05)).all()
        assert "const" not in logistic_fit.significant_features

    def test_finds_the_driving_features(self, logistic_fit):
        assert set(SIGNAL_FEATURES) <= set(logistic_fit.significant_features)

    def test_fit_summary(self, logistic_fit):
        assert logistic_fit.ok
        assert logistic_fit.converged
        assert logistic_fit.n_obs == 299
        assert logistic_fit.deviance < logistic_fit.null_deviance
        assert logistic_fit.fitted_probabilities.between(0, 1).all()

    def test_deterministic(self, normalized, logistic_fit):
        again = LogisticRegressionFitter().fit(normalized["design"], normalized["y"])
        pd.testing.assert_frame_equal(again.coefficients, logistic_fit.coefficients)

    def test_to_dict(self, logistic_fit):
        d = logistic_fit.to_dict()
        assert d["coefficients"][0]["term"] == "const"
        assert len(d["coefficients"]) == 12
        assert d["error"] is None

    def test_failed_fit_is_reported_not_raised(self, monkeypatch, normalized):
        class SeparatedGLM:
            def __init__(self, *args, **kwargs):
                pass

            def fit(self, **kwargs):
                raise PerfectSeparationError("Perfect separation detected")

        monkeypatch.setattr(logistic_module.sm, "GLM", SeparatedGLM)
        result = LogisticRegressionFitter().fit(normalized["design"], normalized["y"])

        assert not result.ok
        assert not result.converged
        assert "PerfectSeparationError" in result.error
        assert result.significant_features == []

    def test_non_convergence_is_reported(self, normalized):
        result = LogisticRegressionFitter(max_iter=1).fit(normalized["design"], normalized["y"])

        assert result.ok
        assert not result.converged
        assert result.warnings
        assert result.to_dict()["converged"] is False


class TestCrossValidator:
    def test_compare_runs_all_models(self, fast_config, normalized):
        comparison = CrossValidator(fast_config).compare(normalized["design"], normalized["y"])
        assert sorted(r.name for r in comparison.results) == sorted(MODEL_CONFIGS)
        for result in comparison.results:
            assert len(result.folds) == 10
            assert sum(f.n_test for f in result.folds.values()) == 299
            assert 0.0 <= result.mean_accuracy <= 1.0

    def test_best_model_has_highest_accuracy(self, fast_config, normalized):
        comparison = CrossValidator(fast_config).compare(normalized["design"], normalized["y"])
        accuracies = comparison.accuracies()
        assert comparison.best_model_name == max(accuracies, key=accuracies.get)
        means = [r.mean_accuracy for r in comparison.results]
        assert means == sorted(means, reverse=True)

    def test_deterministic_under_fixed_seed(self, fast_config, normalized):
        X, y = normalized["design"], normalized["y"]
        first = CrossValidator(fast_config).evaluate("random_forest", X, y)
        second = CrossValidator(fast_config).evaluate("random_forest", X, y)
        assert first.scores == second.scores
        assert first.mean_accuracy == second.mean_accuracy

    def test_all_models_share_fold_assignment(self, fast_config, normalized):
        X, y = normalized["design"], normalized["y"]
        validator = CrossValidator(fast_config)
        a = [test.tolist() for _, test in validator.splitter().split(X, y)]
        b = [test.tolist() for _, test in validator.splitter().split(X, y)]
        assert a == b

        results = [validator.evaluate(name, X, y) for name in ("knn", "linear_svm")]
        sizes = [[f.n_test for f in r.folds.values()] for r in results]
        assert sizes[0] == sizes[1] == [len(t) for t in a]

    def test_different_seed_changes_folds(self, fast_config, normalized):
        X, y = normalized["design"], normalized["y"]
        other = StudyConfig(**{**fast_config.__dict__, "seed": fast_config.seed + 1})
        a = [t.tolist() for _, t in CrossValidator(fast_config).splitter().split(X, y)]
        b = [t.tolist() for _, t in CrossValidator(other).splitter().split(X, y)]
        assert a != b

    def test_keep_models(self, fast_config, normalized):
        result = CrossValidator(fast_config, keep_models=True).evaluate(
            "knn", normalized["design"], normalized["y"])
        assert all(f.model is not None for f in result.folds.values())

    def test_degenerate_folds(self):
        # One positive among 20: its training fold is all negative, the other
        # fold's held-out part is all negative.
        X = pd.DataFrame({"a": np.arange(20, dtype=float), "b": np.arange(20, 0, -1.0)})
        y = pd.Series([0] * 20)
        y.iloc[7] = 1
        cfg = StudyConfig(cv_folds=2, n_trees=10)

        result = CrossValidator(cfg).evaluate("logistic_regression", X, y)

        assert len(result.excluded_folds) == 1
        assert len(result.flagged_folds) == 1
        assert result.excluded_folds != result.flagged_folds
        excluded = result.folds[result.excluded_folds[0]]
        assert excluded.accuracy is None
        assert len(result.scores) == 1
        assert result.mean_accuracy == result.scores[0]
        assert any("single class" in w for w in result.warnings)

    def test_comparison_to_dict(self, fast_config, normalized):
        comparison = CrossValidator(fast_config).compare(
            normalized["design"], normalized["y"], models=["knn", "linear_svm"])
        d = comparison.to_dict()
        assert d["n_folds"] == 10
        assert d["seed"] == fast_config.seed
        assert d["best_model_name"] in ("knn", "linear_svm")
        assert len(d["results"][0]["fold_scores"]) == 10

    def test_convergence_warnings_are_captured(self, monkeypatch, fast_config, normalized):
        monkeypatch.setitem(
            MODEL_CONFIGS, "logistic_regression",
            (LogisticRegression, {"penalty": None, "max_iter": 1}, True),
        )
        result = CrossValidator(fast_config).evaluate(
            "logistic_regression", normalized["design"], normalized["y"])

        assert len(result.scores) == 10
        assert result.warnings
        assert all(w.startswith("fold ") for w in result.warnings)
        assert any("converge" in w.lower() for w in result.warnings)

    def test_failing_fitter_does_not_stop_the_others(self, fast_config, normalized):
        cfg = StudyConfig(**{**fast_config.__dict__, "knn_neighbors": 280})
        comparison = CrossValidator(cfg).compare(normalized["design"], normalized["y"])

        assert len(comparison.results) == 5
        knn = comparison.results[-1]
        assert knn.name == "knn"
        assert np.isnan(knn.mean_accuracy)
        assert len(knn.excluded_folds) == 10
        assert sum("fit failed" in w for w in knn.warnings) == 10

        others = comparison.results[:-1]
        assert all(0.0 <= r.mean_accuracy <= 1.0 for r in others)
        assert comparison.best_model_name != "knn"
