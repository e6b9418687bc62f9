"""
Core shared types and utilities for scale analysis.

This module provides foundational components used across multiple submodules:
the validated response matrix, the CSV loader, and the data-level errors.
"""

from scale_analysis.core.data import (
    load_csv_to_response_matrix,
    preview,
    response_matrix_from_frame,
)
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import (
    DataFormatError,
    InsufficientDataError,
)
from scale_analysis.core.utils import get_rng

__all__ = [
    "DataFormatError",
    "InsufficientDataError",
    "ResponseMatrix",
    "get_rng",
    "load_csv_to_response_matrix",
    "preview",
    "response_matrix_from_frame",
]
