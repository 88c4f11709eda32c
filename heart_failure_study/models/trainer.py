"""The five classifiers compared in the study."""

from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import MinMaxScaler, StandardScaler
from sklearn.svm import SVC

from heart_failure_study.config import StudyConfig
from heart_failure_study.utils import get_logger

log = get_logger(__name__)

# Model configurations: name -> (class, kwargs, scale-sensitive)
# kwargs values given as callables are resolved against the StudyConfig.
MODEL_CONFIGS = {
    "logistic_regression": (
        LogisticRegression,
        {"penalty": None, "max_iter": 5000},
        True,
    ),
    "knn": (
        KNeighborsClassifier,
        {"n_neighbors": lambda cfg: cfg.knn_neighbors},
        True,
    ),
    "random_forest": (
        RandomForestClassifier,
        {
            "n_estimators": lambda cfg: cfg.n_trees,
            "max_features": lambda cfg: cfg.max_features,
            "random_state": lambda cfg: cfg.seed,
        },
        False,
    ),
    "linear_svm": (
        SVC,
        {"kernel": "linear", "C": lambda cfg: cfg.svm_cost},
        True,
    ),
    "radial_svm": (
        SVC,
        {"kernel": "rbf", "C": lambda cfg: cfg.svm_cost, "gamma": "scale"},
        True,
    ),
}

MODEL_LABELS = {
    "logistic_regression": "Logistic regression",
    "knn": "K-nearest neighbours",
    "random_forest": "Random forest",
    "linear_svm": "Linear SVM",
    "radial_svm": "Radial SVM",
}


def list_available_models() -> list[str]:
    """Return all available model names."""
    return list(MODEL_CONFIGS.keys())


def _make_scaler(scaling: str):
    if scaling == "standard":
        return StandardScaler()
    if scaling == "minmax":
        return MinMaxScaler()
    return None


def build_model(name: str, cfg: StudyConfig):
    """
    Instantiate an unfitted estimator for ``name``.

    Distance and kernel based models, and the logistic model, are wrapped in
    a Pipeline with the configured scaler so scaling is learnt per training
    fold.
    """
    if name not in MODEL_CONFIGS:
        raise ValueError(
            f"Unknown model '{name}'. Available: {list_available_models()}"
        )
    cls, kwargs, scale_sensitive = MODEL_CONFIGS[name]
    params = {k: (v(cfg) if callable(v) else v) for k, v in kwargs.items()}
    model = cls(**params)

    scaler = _make_scaler(cfg.scaling) if scale_sensitive else None
    if scaler is not None:
        model = make_pipeline(scaler, model)
    log.debug("Built %s: %s", name, model)
    return model
