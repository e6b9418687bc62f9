"""
Core utility functions shared across analysis modules.

This module provides foundational utilities used by both the IRT
statistical models and the report orchestration layer.
"""

import os

import numpy as np
from numpy.random import Generator


def get_rng(seed: int | None = None) -> Generator:
    """
    Create a numpy random Generator with optional seed.

    Args:
        seed: Random seed for reproducibility. If None, uses entropy.

    Returns:
        A numpy random Generator instance.
    """
    return np.random.default_rng(seed)


def resolve_n_workers(n_workers: int | None) -> int:
    """
    Bound a requested worker count by the available cores.

    Args:
        n_workers: Requested number of workers. None or 0 means one per core.

    Returns:
        A worker count in [1, cpu_count].
    """
    available = os.cpu_count() or 1
    if not n_workers:
        return available
    if n_workers < 0:
        raise ValueError(f"n_workers must be >= 0, got {n_workers}")
    return min(n_workers, available)
