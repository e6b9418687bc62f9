"""
Matplotlib figures for a fitted graded response model.

Every function returns a Figure and leaves saving and closing to the
caller.
"""

import math

import numpy as np
from matplotlib.figure import Figure

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.abilities import AbilityEstimates
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.scoring import scale_transform
from scale_analysis.plotting.curves import (
    DEFAULT_THETA_RANGE,
    compute_category_curves,
    compute_information_curves,
    compute_lowess_fit,
    theta_grid,
)

PLOT_TYPES = ("trace", "info", "infoSE", "rxx", "score", "itemscore")


def _item_grid(n_items: int) -> tuple[int, int]:
    n_cols = min(3, n_items)
    return math.ceil(n_items / n_cols), n_cols


def plot_category_curves(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """
    Category probability (trace) curves, one panel per item.

    Args:
        model: Fitted model.
        theta_range: Display range for theta.

    Returns:
        matplotlib Figure.
    """
    import matplotlib.pyplot as plt

    theta = theta_grid(theta_range)
    curves = compute_category_curves(model, theta)
    n_rows, n_cols = _item_grid(model.n_items)

    fig, axes = plt.subplots(
        n_rows,
        n_cols,
        figsize=(4 * n_cols, 3 * n_rows),
        sharex=True,
        sharey=True,
        squeeze=False,
    )
    categories = model.category_values.astype(int)

    for ax, (item_id, probs) in zip(axes.flat, curves.items()):
        for k, category in enumerate(categories):
            ax.plot(theta, probs[:, k], linewidth=1.5, label=f"P{category}")
        ax.set_title(item_id)
        ax.set_ylim(0, 1)
        ax.grid(True, alpha=0.3)

    for ax in list(axes.flat)[model.n_items :]:
        ax.set_visible(False)

    axes[0, 0].legend(fontsize="small")
    fig.supxlabel("θ")
    fig.supylabel("P(θ)")
    fig.suptitle("Category Characteristic Curves")
    fig.tight_layout()
    return fig


def plot_information(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """Item information curves overlaid with the scale information curve."""
    import matplotlib.pyplot as plt

    curves = compute_information_curves(model, theta_grid(theta_range))

    fig, ax = plt.subplots(figsize=(8, 6))
    for j, item_id in enumerate(model.item_ids):
        ax.plot(
            curves.theta,
            curves.item_information[:, j],
            linewidth=1,
            alpha=0.8,
            label=item_id,
        )
    ax.plot(
        curves.theta,
        curves.scale_information,
        color="black",
        linewidth=2.5,
        label="Scale",
    )

    ax.set_xlabel("θ")
    ax.set_ylabel("I(θ)")
    ax.set_title("Item and Scale Information")
    ax.legend()
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_standard_error(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """Scale information with the conditional standard error on a twin axis."""
    import matplotlib.pyplot as plt

    curves = compute_information_curves(model, theta_grid(theta_range))

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(
        curves.theta,
        curves.scale_information,
        color="steelblue",
        linewidth=2,
        label="I(θ)",
    )
    ax.set_xlabel("θ")
    ax.set_ylabel("I(θ)", color="steelblue")

    se_ax = ax.twinx()
    se_ax.plot(
        curves.theta,
        curves.standard_error,
        color="darkred",
        linestyle="--",
        linewidth=2,
        label="SE(θ)",
    )
    se_ax.set_ylabel("SE(θ)", color="darkred")

    ax.set_title("Scale Information and Conditional Standard Error")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_reliability(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """Conditional reliability curve."""
    import matplotlib.pyplot as plt

    curves = compute_information_curves(model, theta_grid(theta_range))

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(curves.theta, curves.reliability, color="steelblue", linewidth=2)

    ax.set_xlabel("θ")
    ax.set_ylabel("rxx(θ)")
    ax.set_ylim(0, 1)
    ax.set_title("Conditional Reliability")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_scale_characteristic(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """Expected summed score as a function of theta."""
    import matplotlib.pyplot as plt

    theta = theta_grid(theta_range)
    transform = scale_transform(model)

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(theta, transform(theta), color="steelblue", linewidth=2)
    for bound in (transform.min_score, transform.max_score):
        ax.axhline(bound, color="gray", linestyle=":", linewidth=1)

    ax.set_xlabel("θ")
    ax.set_ylabel("Expected summed score")
    ax.set_title("Scale Characteristic Curve")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_item_score_lowess(
    model: FittedModel,
    data: ResponseMatrix,
    estimates: AbilityEstimates,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
) -> Figure:
    """
    Observed item scores against EAP theta, one panel per item.

    Each panel shows the LOWESS smooth of the observed scores and the
    model-expected item score curve.

    Args:
        model: Fitted model.
        data: Response matrix that was scored.
        estimates: EAP estimates for the rows of data.
        theta_range: Display range for theta.

    Returns:
        matplotlib Figure.
    """
    import matplotlib.pyplot as plt

    theta = theta_grid(theta_range)
    codes = data.to_category_codes()
    n_rows, n_cols = _item_grid(model.n_items)

    fig, axes = plt.subplots(
        n_rows,
        n_cols,
        figsize=(4 * n_cols, 3 * n_rows),
        sharex=True,
        sharey=True,
        squeeze=False,
    )

    for j, (ax, params) in enumerate(zip(axes.flat, model.item_parameters)):
        valid = ~np.isnan(codes[:, j])
        x = estimates.eap[valid]
        y = codes[valid, j]

        ax.scatter(x, y, alpha=0.1, s=8, color="steelblue")
        lowess_x, lowess_y = compute_lowess_fit(x, y)
        ax.plot(lowess_x, lowess_y, color="darkred", linewidth=2, label="LOWESS")
        ax.plot(
            theta,
            params.expected_score(theta, model.category_values),
            color="black",
            linestyle="--",
            linewidth=1.5,
            label="Model",
        )
        ax.set_xlim(*theta_range)
        ax.set_title(params.item_id)
        ax.grid(True, alpha=0.3)

    for ax in list(axes.flat)[model.n_items :]:
        ax.set_visible(False)

    axes[0, 0].legend(fontsize="small")
    fig.supxlabel("EAP θ")
    fig.supylabel("Item score")
    fig.suptitle("Observed vs Expected Item Scores")
    fig.tight_layout()
    return fig


def render_figures(
    model: FittedModel,
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
    data: ResponseMatrix | None = None,
    estimates: AbilityEstimates | None = None,
) -> dict[str, Figure]:
    """
    Render every figure for a fitted model, keyed by plot type.

    The "itemscore" figure is only rendered when data and estimates are
    both given. Figures already drawn are closed if a later one fails.
    """
    import matplotlib.pyplot as plt

    renderers = [
        ("trace", plot_category_curves),
        ("info", plot_information),
        ("infoSE", plot_standard_error),
        ("rxx", plot_reliability),
        ("score", plot_scale_characteristic),
    ]
    figures: dict[str, Figure] = {}
    try:
        for name, plot in renderers:
            figures[name] = plot(model, theta_range)
        if data is not None and estimates is not None:
            figures["itemscore"] = plot_item_score_lowess(
                model, data, estimates, theta_range
            )
    except Exception:
        for fig in figures.values():
            plt.close(fig)
        raise
    return figures
