#!/usr/bin/env python
"""
Simulate a graded response data set and write it as CSV.

Item slopes are drawn log-normally and intercepts from sorted normal
draws, so every generated item is a valid graded item.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import typer

from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters
from scale_analysis.irt.sampling import generate_response_matrix

logger = logging.getLogger("generate_synthetic_responses")


def random_item_parameters(
    n_items: int, n_categories: int, rng: np.random.Generator
) -> list[GRMItemParameters]:
    items = []
    for j in range(n_items):
        slope = float(rng.lognormal(mean=0.3, sigma=0.3))
        locations = np.sort(rng.normal(0.0, 1.0, size=n_categories - 1))
        # Keep locations distinct so intercepts stay strictly decreasing
        locations += np.arange(n_categories - 1) * 0.1
        items.append(
            GRMItemParameters(
                item_id=f"item{j + 1}",
                slope=slope,
                intercepts=tuple(float(-slope * b) for b in locations),
            )
        )
    return items


def main(
    output_path: Path = typer.Argument(..., help="CSV file to write"),
    n_respondents: int = typer.Option(1000, help="Number of respondents"),
    n_items: int = typer.Option(6, help="Number of items"),
    n_categories: int = typer.Option(4, help="Categories per item"),
    min_category: int = typer.Option(1, help="Code of the lowest category"),
    missing_rate: float = typer.Option(0.0, help="MCAR missing proportion"),
    seed: int | None = typer.Option(None, help="Random seed"),
) -> None:
    """Generate responses and write them with a header row."""
    rng = np.random.default_rng(seed)
    items = random_item_parameters(n_items, n_categories, rng)
    data, _ = generate_response_matrix(
        items,
        n_respondents,
        rng=rng,
        min_category=min_category,
        missing_rate=missing_rate,
    )

    frame = pd.DataFrame(
        data.to_category_codes(), columns=list(data.item_ids)
    ).astype("Int64")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(output_path, index=False)

    logger.info(
        f"Wrote {n_respondents} respondents x {n_items} items to {output_path}"
    )
    for item in items:
        logger.info(
            f"  {item.item_id}: a={item.slope:.3f}, "
            f"b={[round(b, 3) for b in item.locations]}"
        )


if __name__ == "__main__":
    typer.run(main)
