from heart_failure_study.analysis.explorer import DataExplorer

__all__ = ["DataExplorer"]
