"""
Model-fit assessment.

- global_fit: M2-family statistic with RMSEA, SRMSR, CFI and TLI
- item_fit: S-X2 item fit with item-level RMSEA
"""

from scale_analysis.irt.fit.data_models import (
    GlobalFit,
    ItemFit,
    item_fit_to_frame,
)
from scale_analysis.irt.fit.item_fit import item_fit
from scale_analysis.irt.fit.m2 import global_fit

__all__ = [
    "GlobalFit",
    "ItemFit",
    "global_fit",
    "item_fit",
    "item_fit_to_frame",
]
