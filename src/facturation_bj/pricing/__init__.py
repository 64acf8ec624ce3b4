"""Calcul des montants HT, TVA et TTC.

FR: Calcul par ligne et agrégation par document, en décimal arrondi au centime.
EN: Per-line computation and per-document aggregation, in cent-rounded decimals.
"""

from facturation_bj.pricing.lines import LineAmounts, compute_line
from facturation_bj.pricing.totals import InvoiceTotals, TaxSummary, aggregate_lines

__all__ = [
    "InvoiceTotals",
    "LineAmounts",
    "TaxSummary",
    "aggregate_lines",
    "compute_line",
]
