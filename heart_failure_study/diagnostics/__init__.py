from heart_failure_study.diagnostics.collinearity import CollinearityCheck, CollinearityReport
from heart_failure_study.diagnostics.influence import InfluenceCheck, InfluenceReport
from heart_failure_study.diagnostics.linearity import (
    LinearityCheck,
    LinearityReport,
    empirical_logit,
)

__all__ = [
    "CollinearityCheck",
    "CollinearityReport",
    "InfluenceCheck",
    "InfluenceReport",
    "LinearityCheck",
    "LinearityReport",
    "empirical_logit",
]
