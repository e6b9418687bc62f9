"""
Markdown narrative for an analysis report.
"""

import math
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from scale_analysis.report.pipeline import AnalysisReport

# Conventional cutoffs for acceptable fit
RMSEA_CUTOFF = 0.06
SRMSR_CUTOFF = 0.08
CFI_CUTOFF = 0.95
ITEM_RMSEA_CUTOFF = 0.06

FIGURE_CAPTIONS = {
    "trace": "Category characteristic curves",
    "info": "Item and scale information",
    "infoSE": "Scale information and conditional standard error",
    "rxx": "Conditional reliability",
    "score": "Scale characteristic curve",
    "itemscore": "Observed vs expected item scores",
}


def _fmt(value: float, digits: int = 3) -> str:
    if value is None or math.isnan(value):
        return "NA"
    return f"{value:.{digits}f}"


def _fmt_p(value: float) -> str:
    if math.isnan(value):
        return "NA"
    if value < 0.001:
        return "< .001"
    return f"{value:.3f}"


def _p_clause(value: float) -> str:
    """Inline "p = ..." or "p < .001" for running text."""
    formatted = _fmt_p(value)
    if formatted.startswith("<"):
        return f"p {formatted}"
    return f"p = {formatted}"


def _verdict(ok: bool) -> str:
    return "acceptable" if ok else "poor"


def _table(frame: pd.DataFrame, digits: int = 3) -> str:
    """Pipe table of a DataFrame, index included."""
    header = [frame.index.name or ""] + [str(c) for c in frame.columns]
    rows = [
        "| " + " | ".join(header) + " |",
        "|" + "---|" * len(header),
    ]
    for label, values in frame.iterrows():
        cells = [str(label)] + [_fmt(float(v), digits) for v in values]
        rows.append("| " + " | ".join(cells) + " |")
    return "\n".join(rows)


def _global_fit_section(report: "AnalysisReport") -> list[str]:
    gf = report.global_fit
    rmsea_ok = gf.rmsea <= RMSEA_CUTOFF
    srmsr_ok = gf.srmsr <= SRMSR_CUTOFF
    cfi_ok = not math.isnan(gf.cfi) and gf.cfi >= CFI_CUTOFF
    ci = int(round(gf.ci_level * 100))

    lines = [
        "## Model Fit",
        "",
        f"Global fit was assessed with the limited-information M2 statistic "
        f"on {gf.n_respondents} complete response patterns: "
        f"M2({gf.df}) = {_fmt(gf.statistic, 2)}, {_p_clause(gf.p_value)}.",
        "",
        "| Index | Value | Cutoff | Verdict |",
        "|---|---|---|---|",
        f"| RMSEA ({ci}% CI) | {_fmt(gf.rmsea)} "
        f"[{_fmt(gf.rmsea_ci_lower)}, {_fmt(gf.rmsea_ci_upper)}] "
        f"| ≤ {RMSEA_CUTOFF} | {_verdict(rmsea_ok)} |",
        f"| SRMSR | {_fmt(gf.srmsr)} | ≤ {SRMSR_CUTOFF} "
        f"| {_verdict(srmsr_ok)} |",
        f"| CFI | {_fmt(gf.cfi)} | ≥ {CFI_CUTOFF} | {_verdict(cfi_ok)} |",
        f"| TLI | {_fmt(gf.tli)} | ≥ {CFI_CUTOFF} | "
        f"{_verdict(not math.isnan(gf.tli) and gf.tli >= CFI_CUTOFF)} |",
        "",
    ]
    return lines


def _item_fit_section(report: "AnalysisReport") -> list[str]:
    lines = [
        "## Item Fit",
        "",
        "| Item | S-X2 | df | p | RMSEA |",
        "|---|---|---|---|---|",
    ]
    misfitting = []
    for item_id, fit in report.item_fit.items():
        lines.append(
            f"| {item_id} | {_fmt(fit.statistic, 2)} | {fit.df} "
            f"| {_fmt_p(fit.p_value)} | {_fmt(fit.rmsea)} |"
        )
        if not math.isnan(fit.rmsea) and fit.rmsea > ITEM_RMSEA_CUTOFF:
            misfitting.append(item_id)

    lines.append("")
    if misfitting:
        lines.append(
            f"Items with RMSEA above {ITEM_RMSEA_CUTOFF}: "
            f"{', '.join(misfitting)}."
        )
    else:
        lines.append(
            f"All items have RMSEA at or below {ITEM_RMSEA_CUTOFF}."
        )
    lines.append("")
    return lines


def _parameter_section(report: "AnalysisReport") -> list[str]:
    lines = [
        "## Item Parameters",
        "",
        "IRT parametrization (slope a, category locations b):",
        "",
        _table(report.irt_parameters),
        "",
        "Factor-analytic parametrization (loading F1, communality h2):",
        "",
        _table(report.factor_parameters),
        "",
    ]
    return lines


def _reliability_section(report: "AnalysisReport") -> list[str]:
    transform = report.transform
    return [
        "## Scoring and Reliability",
        "",
        f"EAP scores were computed for {report.estimates.n_respondents} "
        f"respondents. Marginal reliability is "
        f"{_fmt(report.marginal_reliability)} and empirical reliability "
        f"of the EAP scores is {_fmt(report.empirical_reliability)}.",
        "",
        f"Expected summed scores range from {_fmt(transform.min_score, 0)} "
        f"to {_fmt(transform.max_score, 0)}.",
        "",
    ]


def _figure_section(report: "AnalysisReport") -> list[str]:
    if not report.figures:
        return []
    lines = ["## Figures", ""]
    for name in report.figures:
        caption = FIGURE_CAPTIONS.get(name, name)
        lines.append(f"![{caption}]({name}.png)")
        lines.append("")
    return lines


def render_markdown(report: "AnalysisReport") -> str:
    """
    Render the narrative report as Markdown.

    Args:
        report: Completed analysis.

    Returns:
        Markdown document. Figures are referenced by their PNG file names.
    """
    data = report.data
    model = report.model
    lines = [
        "# Scale Analysis Report",
        "",
        f"Dataset: `{report.config.dataset_path}`",
        "",
        f"A unidimensional graded response model was fitted to "
        f"{data.n_respondents} respondents and {data.n_items} items with "
        f"{data.n_categories} response categories each "
        f"(log-likelihood = {_fmt(model.log_likelihood, 2)}, "
        f"AIC = {_fmt(model.aic, 2)}, BIC = {_fmt(model.bic, 2)}, "
        f"{model.n_iterations} EM cycles).",
        "",
    ]
    lines.extend(_global_fit_section(report))
    lines.extend(_item_fit_section(report))
    lines.extend(_parameter_section(report))
    lines.extend(_reliability_section(report))
    lines.extend(_figure_section(report))
    return "\n".join(lines)
