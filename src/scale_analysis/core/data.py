"""
CSV loading utilities for ordinal survey response data.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from scale_analysis.core.constants import MAX_CATEGORIES, MISSING_VALUE
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import DataFormatError

logger = logging.getLogger(__name__)


def _read_table(path: Path, delimiter: str | None) -> pd.DataFrame:
    if not path.exists():
        raise DataFormatError(f"Data file not found: {path}")
    try:
        # sep=None lets pandas sniff the delimiter
        return pd.read_csv(
            path, sep=delimiter, engine="python" if delimiter is None else "c"
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataFormatError(f"Unable to parse {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DataFormatError(f"Unable to read {path}: {e}") from e


def _select_columns(
    df: pd.DataFrame, columns: int | Sequence[str]
) -> pd.DataFrame:
    if isinstance(columns, int):
        if columns < 1:
            raise DataFormatError(f"Column count must be >= 1, got {columns}")
        if df.shape[1] < columns:
            raise DataFormatError(
                f"Expected at least {columns} columns, got {df.shape[1]}"
            )
        return df.iloc[:, :columns]

    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DataFormatError(f"Columns not found in data: {missing}")
    return df.loc[:, list(columns)]


def _to_integer_codes(df: pd.DataFrame) -> NDArray[np.float64]:
    try:
        values = df.apply(pd.to_numeric, errors="raise").to_numpy(
            dtype=np.float64
        )
    except (ValueError, TypeError) as e:
        raise DataFormatError(f"Non-numeric response value: {e}") from e

    observed = values[~np.isnan(values)]
    if not np.all(np.equal(np.mod(observed, 1), 0)):
        raise DataFormatError("Response values must be integers")
    return values


def response_matrix_from_frame(
    df: pd.DataFrame,
    category_range: tuple[int, int] | None = None,
) -> ResponseMatrix:
    """Build a ResponseMatrix from a frame of integer category codes.

    Args:
        df: One column per item, one row per respondent. Missing cells are NaN.
        category_range: Inclusive (min, max) category codes. If None, the
            range is inferred from the smallest and largest observed codes.

    Raises:
        DataFormatError: If values are non-integer or outside the range.
    """
    values = _to_integer_codes(df)
    observed = values[~np.isnan(values)]
    if len(observed) == 0:
        raise DataFormatError("Data contains no observed responses")

    if category_range is None:
        min_category, max_category = int(observed.min()), int(observed.max())
        logger.info(
            f"Inferred category range {min_category}..{max_category} from data"
        )
    else:
        min_category, max_category = category_range
        if max_category <= min_category:
            raise DataFormatError(
                f"Invalid category range: {min_category}..{max_category}"
            )
        out_of_range = (observed < min_category) | (observed > max_category)
        if out_of_range.any():
            bad = sorted({int(v) for v in observed[out_of_range]})
            raise DataFormatError(
                f"Values {bad} outside category range "
                f"{min_category}..{max_category}"
            )

    n_categories = max_category - min_category + 1
    if n_categories > MAX_CATEGORIES:
        raise DataFormatError(
            f"Category range {min_category}..{max_category} has "
            f"{n_categories} categories, at most {MAX_CATEGORIES} are supported"
        )

    responses = np.full(values.shape, MISSING_VALUE, dtype=np.int8)
    valid = ~np.isnan(values)
    responses[valid] = (values[valid] - min_category).astype(np.int8)

    return ResponseMatrix(
        responses=responses,
        n_categories=n_categories,
        min_category=min_category,
        item_ids=tuple(str(c) for c in df.columns),
        respondent_ids=tuple(str(i) for i in df.index),
    )


def load_csv_to_response_matrix(
    path: Path,
    columns: int | Sequence[str] = 6,
    category_range: tuple[int, int] | None = None,
    delimiter: str | None = ",",
) -> ResponseMatrix:
    """Load a delimited file with ordinal item responses into a ResponseMatrix.

    Expected layout: a header row followed by one row per respondent. Item
    responses are integer category codes; empty cells are missing.

    Args:
        path: Path to the delimited file.
        columns: Either the number of leading columns to keep or an ordered
            list of column names.
        category_range: Inclusive (min, max) category codes, or None to infer.
        delimiter: Field delimiter. None sniffs it from the file.

    Returns:
        Validated ResponseMatrix.

    Raises:
        DataFormatError: If the file is unreadable, has too few columns, or
            holds values outside the category domain.
    """
    df = _read_table(path, delimiter)
    items = _select_columns(df, columns)
    matrix = response_matrix_from_frame(items, category_range)
    logger.info(
        f"Loaded {matrix.n_respondents} respondents x {matrix.n_items} items "
        f"({matrix.n_categories} categories) from {path}"
    )
    return matrix


def preview(matrix: ResponseMatrix, n_rows: int = 6) -> pd.DataFrame:
    """Return the first `n_rows` respondents in original category codes."""
    if n_rows < 0:
        raise ValueError(f"n_rows must be >= 0, got {n_rows}")
    head = matrix.to_category_codes()[:n_rows]
    df = pd.DataFrame(
        head,
        columns=list(matrix.item_ids),
        index=list(matrix.respondent_ids[:n_rows]),
    )
    return df.astype("Int64")
