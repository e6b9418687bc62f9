"""
Tests for loading delimited response files.
"""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from scale_analysis.core.constants import MISSING_VALUE
from scale_analysis.core.data import (
    load_csv_to_response_matrix,
    preview,
    response_matrix_from_frame,
)
from scale_analysis.core.exceptions import DataFormatError


def write_csv(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


class TestLoadCsv:
    def test_first_n_columns(self, tmp_path: Path) -> None:
        """An integer selects the leading columns."""
        path = write_csv(
            tmp_path / "responses.csv",
            "a,b,c,extra\n1,2,3,x\n3,1,2,y\n2,3,1,z\n",
        )
        matrix = load_csv_to_response_matrix(path, columns=3)

        assert matrix.item_ids == ("a", "b", "c")
        assert matrix.n_respondents == 3
        assert matrix.min_category == 1
        assert matrix.n_categories == 3
        np.testing.assert_array_equal(matrix.responses[0], [0, 1, 2])

    def test_named_columns(self, tmp_path: Path) -> None:
        """Named columns are taken in the requested order."""
        path = write_csv(
            tmp_path / "responses.csv", "a,b,c\n0,1,2\n1,2,0\n"
        )
        matrix = load_csv_to_response_matrix(path, columns=["c", "a"])

        assert matrix.item_ids == ("c", "a")
        np.testing.assert_array_equal(matrix.responses[:, 0], [2, 0])

    def test_empty_cells_are_missing(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,\n2,1\n,2\n")
        matrix = load_csv_to_response_matrix(path, columns=2)

        assert matrix.responses[0, 1] == MISSING_VALUE
        assert matrix.responses[2, 0] == MISSING_VALUE
        assert matrix.complete_rows.tolist() == [False, True, False]

    def test_explicit_category_range(self, tmp_path: Path) -> None:
        """A declared range keeps unobserved categories in the domain."""
        path = write_csv(tmp_path / "responses.csv", "a,b\n2,3\n3,2\n")
        matrix = load_csv_to_response_matrix(
            path, columns=2, category_range=(1, 5)
        )

        assert matrix.n_categories == 5
        assert matrix.min_category == 1
        np.testing.assert_array_equal(matrix.responses[0], [1, 2])

    def test_value_outside_range(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,2\n7,1\n")
        with pytest.raises(DataFormatError, match="outside category range"):
            load_csv_to_response_matrix(path, columns=2, category_range=(1, 5))

    def test_semicolon_delimiter(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a;b\n1;2\n2;1\n")
        matrix = load_csv_to_response_matrix(path, columns=2, delimiter=";")
        assert matrix.n_items == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError, match="not found"):
            load_csv_to_response_matrix(tmp_path / "nope.csv")

    def test_too_few_columns(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,2\n")
        with pytest.raises(DataFormatError, match="at least 6 columns"):
            load_csv_to_response_matrix(path)

    def test_unknown_column(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,2\n")
        with pytest.raises(DataFormatError, match="not found in data"):
            load_csv_to_response_matrix(path, columns=["a", "z"])

    def test_non_numeric_value(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,2\nx,1\n")
        with pytest.raises(DataFormatError, match="Non-numeric"):
            load_csv_to_response_matrix(path, columns=2)

    def test_non_integer_value(self, tmp_path: Path) -> None:
        path = write_csv(tmp_path / "responses.csv", "a,b\n1,2\n1.5,1\n")
        with pytest.raises(DataFormatError, match="integers"):
            load_csv_to_response_matrix(path, columns=2)


class TestFrameConversion:
    def test_all_missing_rejected(self) -> None:
        df = pd.DataFrame({"a": [np.nan, np.nan], "b": [np.nan, np.nan]})
        with pytest.raises(DataFormatError, match="no observed responses"):
            response_matrix_from_frame(df)

    def test_inferred_range_too_wide(self) -> None:
        """A stray large code cannot widen the range past int8 storage."""
        df = pd.DataFrame({"a": [1, 2, 257], "b": [2, 1, 3]})
        with pytest.raises(DataFormatError, match="at most 127"):
            response_matrix_from_frame(df)

    def test_declared_range_too_wide(self) -> None:
        df = pd.DataFrame({"a": [0, 1], "b": [1, 0]})
        with pytest.raises(DataFormatError, match="at most 127"):
            response_matrix_from_frame(df, category_range=(0, 200))

    def test_preview_uses_original_codes(self) -> None:
        df = pd.DataFrame({"a": [1, 2, 3], "b": [3, 2, 1]})
        matrix = response_matrix_from_frame(df)

        head = preview(matrix, n_rows=2)
        assert head.shape == (2, 2)
        assert head.iloc[0].tolist() == [1, 3]
