"""
Shared R-style text formatting for summary() output.
"""

import numpy as np

SIGNIF_LEGEND = "Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1"


def significance_stars(p: float | None) -> str:
    """Return significance stars for a p-value."""
    if p is None or np.isnan(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.1:
        return "."
    return ""


def format_pvalue(p: float | None) -> str:
    """Format a p-value like R's format.pval."""
    if p is None or np.isnan(p):
        return "NA"
    if p < 2e-16:
        return "< 2e-16"
    if p < 0.001:
        return f"{p:.2e}"
    return f"{p:.4f}"
