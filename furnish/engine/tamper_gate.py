"""
Tamper Gate — re-derives a design's price before an order is accepted.

The stored or submitted total is never trusted: the Cost Model is re-run on
the design's parts and material, and a divergence above PRICE_TOLERANCE is a
hard rejection. The gate never corrects the price.
"""

import logging

from .cost_model import PRICE_TOLERANCE, compute_cost, within_tolerance
from .errors import PriceIntegrityViolation
from .rates import DEFAULT_RATES, RateTable

logger = logging.getLogger(__name__)


class TamperGate:

    def __init__(self, rates: RateTable = DEFAULT_RATES, tolerance: float = PRICE_TOLERANCE):
        self.rates = rates
        self.tolerance = tolerance

    def verify(self, design, submitted_total) -> float:
        """
        Returns the recomputed total when submitted_total is within tolerance.
        Raises PriceIntegrityViolation otherwise (including non-numeric input).
        """
        recomputed = compute_cost(design.parts, design.material, self.rates)
        try:
            submitted = float(submitted_total)
        except (TypeError, ValueError):
            raise PriceIntegrityViolation(float("nan"), recomputed, self.tolerance)
        if not within_tolerance(submitted, recomputed, self.tolerance):
            raise PriceIntegrityViolation(submitted, recomputed, self.tolerance)
        logger.debug("Price verified: submitted %.2f, recomputed %.2f", submitted, recomputed)
        return recomputed


def verify(design, submitted_total, rates: RateTable = DEFAULT_RATES) -> float:
    return TamperGate(rates).verify(design, submitted_total)
