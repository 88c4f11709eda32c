"""Dataset loading module for the heart failure clinical records."""

from __future__ import annotations

import csv
import io
import os

import numpy as np
import pandas as pd
import requests

from heart_failure_study import config
from heart_failure_study.utils import get_logger

log = get_logger(__name__)

_SESSION: requests.Session | None = None


class DataFormatError(ValueError):
    """The patient records file does not match the expected schema."""

    def __init__(self, message: str, columns: list[str] | None = None,
                 rows: list[int] | None = None):
        self.columns = columns or []
        self.rows = rows or []
        super().__init__(message)


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = requests.Session()
        _SESSION.headers.update({"User-Agent": config.USER_AGENT})
    return _SESSION


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class DatasetLoader:
    """Loads and validates the fixed-schema patient records CSV."""

    def __init__(self, timeout: int = config.DEFAULT_TIMEOUT):
        self.timeout = timeout

    def fetch_text(self, url: str) -> str:
        """Download the CSV body from a URL."""
        log.info("Fetching dataset from: %s", url)
        try:
            resp = _get_session().get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.error("Dataset download failed: %s", e)
            raise
        return resp.text

    def load(self, source: str | None = None) -> dict:
        """
        Load the patient records from a local path or URL.

        Returns a dict with keys:
            - df: pd.DataFrame with all 13 raw columns as numbers
            - feature_names: list of the 11 feature column names
            - target_name: name of the outcome column
            - metadata: source, counts and class distribution
        """
        source = source or config.DATA_URL

        if _is_url(source):
            text = self.fetch_text(source)
        else:
            if not os.path.exists(source):
                raise FileNotFoundError(f"Dataset not found: {source}")
            log.info("Loading dataset from: %s", source)
            try:
                with open(source, encoding="utf-8") as f:
                    text = f.read()
            except UnicodeDecodeError as e:
                raise DataFormatError(f"Dataset is not UTF-8 text: {e}") from e

        df = self.parse(text)

        feature_names = list(config.FEATURE_COLUMNS)
        target_name = config.TARGET_COLUMN

        metadata = {
            "name": "heart_failure_clinical_records",
            "source": source,
            "n_samples": len(df),
            "n_raw_columns": df.shape[1],
            "n_features": len(feature_names),
            "task": "binary_classification",
            "positive_label": "death during follow-up",
            "negative_label": "survived follow-up",
            "class_distribution": df[target_name].value_counts().sort_index().to_dict(),
        }

        log.info(
            "Loaded %d samples with %d raw columns",
            metadata["n_samples"],
            metadata["n_raw_columns"],
        )

        return {
            "df": df,
            "feature_names": feature_names,
            "target_name": target_name,
            "metadata": metadata,
        }

    def parse(self, text: str) -> pd.DataFrame:
        """Parse and validate CSV content. Raises DataFormatError."""
        self._check_field_counts(text)
        try:
            df = pd.read_csv(io.StringIO(text), skipinitialspace=True)
        except pd.errors.EmptyDataError as e:
            raise DataFormatError("Dataset file is empty") from e
        except pd.errors.ParserError as e:
            raise DataFormatError(f"Malformed CSV row: {e}") from e

        df.columns = [str(c).strip() for c in df.columns]
        self._check_columns(df)

        if df.empty:
            raise DataFormatError("Dataset contains a header but no rows")

        df = df[config.RAW_COLUMNS]
        df = self._coerce_numeric(df)
        self._check_binary(df)
        return df

    @staticmethod
    def _check_field_counts(text: str) -> None:
        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if not header:
            raise DataFormatError("Dataset file is empty")
        for line_no, row in enumerate(reader, start=2):
            if not row:
                continue
            if len(row) != len(header):
                raise DataFormatError(
                    f"Line {line_no}: expected {len(header)} fields, saw {len(row)}",
                    rows=[line_no - 2],
                )

    @staticmethod
    def _check_columns(df: pd.DataFrame) -> None:
        missing = [c for c in config.RAW_COLUMNS if c not in df.columns]
        unexpected = [c for c in df.columns if c not in config.RAW_COLUMNS]
        if missing:
            raise DataFormatError(f"Missing required columns: {missing}", columns=missing)
        if unexpected:
            raise DataFormatError(
                f"Unexpected columns in dataset: {unexpected}", columns=unexpected
            )

    @staticmethod
    def _coerce_numeric(df: pd.DataFrame) -> pd.DataFrame:
        # Empty cells parse as NaN
        empty = df.isnull()
        if empty.any().any():
            cols = df.columns[empty.any()].tolist()
            rows = df.index[empty.any(axis=1)].tolist()
            raise DataFormatError(
                f"Missing values in columns {cols} (rows {rows[:10]})",
                columns=cols, rows=rows,
            )

        out = df.apply(pd.to_numeric, errors="coerce")
        bad = out.isnull()
        if bad.any().any():
            cols = out.columns[bad.any()].tolist()
            rows = out.index[bad.any(axis=1)].tolist()
            raise DataFormatError(
                f"Non-numeric values in columns {cols} (rows {rows[:10]})",
                columns=cols, rows=rows,
            )

        # read_csv accepts "inf" as a float
        infinite = ~np.isfinite(out.to_numpy(dtype=float))
        if infinite.any():
            cols = out.columns[infinite.any(axis=0)].tolist()
            rows = out.index[infinite.any(axis=1)].tolist()
            raise DataFormatError(
                f"Non-finite values in columns {cols} (rows {rows[:10]})",
                columns=cols, rows=rows,
            )
        return out

    @staticmethod
    def _check_binary(df: pd.DataFrame) -> None:
        for col in config.CATEGORICAL_COLUMNS:
            invalid = ~df[col].isin([0, 1])
            if invalid.any():
                rows = df.index[invalid].tolist()
                raise DataFormatError(
                    f"Column '{col}' must be 0/1 encoded, found "
                    f"{sorted(np.unique(df.loc[invalid, col]).tolist())}",
                    columns=[col], rows=rows,
                )
