"""Totals and tax-breakdown aggregation."""

from einvoice.totals.engine import TotalsEngine, compute_totals

__all__ = ["TotalsEngine", "compute_totals"]
