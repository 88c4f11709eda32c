from heart_failure_study.data.loader import DataFormatError, DatasetLoader
from heart_failure_study.data.preprocessor import TypeNormalizer, to_design_matrix

__all__ = ["DatasetLoader", "DataFormatError", "TypeNormalizer", "to_design_matrix"]
