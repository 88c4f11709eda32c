from heart_failure_study.evaluation.ranker import FeatureRanker, misclassification_rate
from heart_failure_study.evaluation.reporter import DISCLAIMER, Reporter

__all__ = ["FeatureRanker", "misclassification_rate", "Reporter", "DISCLAIMER"]
