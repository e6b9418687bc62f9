"""
Data models for survey response data.

This module defines the data structures for:
- ResponseMatrix: validated ordinal item responses (input to estimation)
"""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from scale_analysis.core.constants import MISSING_VALUE
from scale_analysis.core.exceptions import DataFormatError


@dataclass(frozen=True)
class ResponseMatrix:
    """
    Ordinal response data for IRT estimation.

    Responses are stored as zero-based category indices so that every item
    shares the same index space 0..K-1. The original category codes are
    recovered with `min_category + index`.

    Attributes:
        responses: Array of shape (n_respondents, n_items) containing
            category indices (0-indexed). Missing responses are indicated by
            MISSING_VALUE.
        n_categories: Number of response categories (same for all items).
        min_category: Category code that index 0 stands for (e.g. 1 for a
            1..5 Likert scale).
        item_ids: Column names, one per item.
        respondent_ids: Row labels, one per respondent.
    """

    responses: NDArray[np.int8]
    n_categories: int
    min_category: int = 0
    item_ids: tuple[str, ...] = field(default=())
    respondent_ids: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        """Validate response matrix."""
        if self.responses.ndim != 2:
            raise DataFormatError(
                f"responses must be 2D, got shape {self.responses.shape}"
            )
        if self.n_categories < 2:
            raise DataFormatError(
                f"n_categories must be >= 2, got {self.n_categories}"
            )
        # Validate response values are in valid range
        valid_responses = self.responses[self.responses != MISSING_VALUE]
        if len(valid_responses) > 0:
            if valid_responses.min() < 0:
                raise DataFormatError(
                    f"Response values must be >= {self.min_category}, "
                    f"got {int(valid_responses.min()) + self.min_category}"
                )
            if valid_responses.max() >= self.n_categories:
                raise DataFormatError(
                    f"Response values must be <= {self.max_category}, "
                    f"got {int(valid_responses.max()) + self.min_category}"
                )

        if not self.item_ids:
            object.__setattr__(
                self,
                "item_ids",
                tuple(f"item_{j + 1}" for j in range(self.n_items)),
            )
        elif len(self.item_ids) != self.n_items:
            raise DataFormatError(
                f"Expected {self.n_items} item ids, got {len(self.item_ids)}"
            )

        if not self.respondent_ids:
            object.__setattr__(
                self,
                "respondent_ids",
                tuple(str(i) for i in range(self.n_respondents)),
            )
        elif len(self.respondent_ids) != self.n_respondents:
            raise DataFormatError(
                f"Expected {self.n_respondents} respondent ids, "
                f"got {len(self.respondent_ids)}"
            )

        # Freeze the underlying buffer; the matrix is shared by every stage
        self.responses.setflags(write=False)

    @property
    def n_respondents(self) -> int:
        """Number of respondents (rows)."""
        return self.responses.shape[0]

    @property
    def n_items(self) -> int:
        """Number of items (columns)."""
        return self.responses.shape[1]

    @property
    def max_category(self) -> int:
        """Highest category code."""
        return self.min_category + self.n_categories - 1

    @property
    def category_values(self) -> NDArray[np.float64]:
        """Original category codes, shape (n_categories,)."""
        return np.arange(
            self.min_category, self.max_category + 1, dtype=np.float64
        )

    @property
    def missing_mask(self) -> NDArray[np.bool_]:
        """Boolean mask where True indicates missing response."""
        result: NDArray[np.bool_] = self.responses == MISSING_VALUE
        return result

    @property
    def valid_mask(self) -> NDArray[np.bool_]:
        """Boolean mask where True indicates valid (non-missing) response."""
        result: NDArray[np.bool_] = self.responses != MISSING_VALUE
        return result

    @property
    def complete_rows(self) -> NDArray[np.bool_]:
        """Boolean mask of respondents with no missing responses."""
        result: NDArray[np.bool_] = self.valid_mask.all(axis=1)
        return result

    def item_response_counts(self, item_idx: int) -> NDArray[np.int64]:
        """
        Count responses for each category of an item (excluding missing).

        Args:
            item_idx: Index of the item.

        Returns:
            Array of shape (n_categories,) with counts per category.
        """
        item_responses = self.responses[:, item_idx]
        valid = item_responses[item_responses != MISSING_VALUE]
        counts = np.bincount(
            valid.astype(np.int64), minlength=self.n_categories
        )
        return counts.astype(np.int64)

    def to_category_codes(self) -> NDArray[np.float64]:
        """Responses in original category codes, NaN where missing."""
        codes = self.responses.astype(np.float64) + self.min_category
        codes[self.missing_mask] = np.nan
        return codes

    def subset_rows(self, row_mask: NDArray[np.bool_]) -> "ResponseMatrix":
        """Return a new matrix restricted to the selected respondents."""
        ixs = np.flatnonzero(row_mask)
        return ResponseMatrix(
            responses=self.responses[ixs, :].copy(),
            n_categories=self.n_categories,
            min_category=self.min_category,
            item_ids=self.item_ids,
            respondent_ids=tuple(self.respondent_ids[i] for i in ixs),
        )
