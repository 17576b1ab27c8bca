"""
Cost Model — the single source of truth for price.

    total = Σ quantity × unit_cost(part)  +  assembly_surcharge(material)
    unit_cost(part) = volume(unit_dimensions) × rate(material).unit_cost

Pure, total and order-independent. Unit costs are re-derived from each
part's dimensions and the current rate table; the unit_cost stored on a Part
is a cache and is never read here. Terms are rounded to the paisa and summed
with math.fsum, which is exactly rounded and therefore independent of the
order of the parts list.

Invoked at design creation, on every listing (to absorb rate changes) and by
the Tamper Gate before an order is accepted.
"""

import math

from .rates import DEFAULT_RATES, MaterialRate, RateTable

# Max divergence (currency units) between a submitted and a recomputed total
PRICE_TOLERANCE = 0.5


def _dims(part) -> tuple:
    d = part.unit_dimensions
    if isinstance(d, dict):
        return float(d["length"]), float(d["width"]), float(d["height"])
    return float(d.length), float(d.width), float(d.height)


def unit_cost(unit_dimensions: tuple, rate: MaterialRate) -> float:
    """Price of one unit of a part, rounded to 2 decimals."""
    length, width, height = unit_dimensions
    return round(length * width * height * rate.unit_cost, 2)


def compute_cost(parts, material: str, rates: RateTable = DEFAULT_RATES) -> float:
    """
    Total price of a design, rounded to 2 decimals.

    Every part is priced at the design material's rate. Raises
    UnsupportedMaterial if the material has no rate.
    """
    rate = rates.get(material)
    terms = [part.quantity * unit_cost(_dims(part), rate) for part in parts]
    terms.append(rate.assembly_surcharge)
    return round(math.fsum(terms), 2)


def cost_breakdown(parts, material: str, rates: RateTable = DEFAULT_RATES) -> list[dict]:
    """
    Per-part cost lines for display: volume, unit cost, line total and
    share of the total price (surcharge included in the denominator).
    """
    rate = rates.get(material)
    total = compute_cost(parts, material, rates)
    lines = []
    for part in parts:
        dims = _dims(part)
        each = unit_cost(dims, rate)
        line_total = round(each * part.quantity, 2)
        lines.append({
            "name": part.name,
            "quantity": part.quantity,
            "material": rate.material,
            "volume_cm3": round(dims[0] * dims[1] * dims[2], 2),
            "unit_cost": each,
            "line_total": line_total,
            "percentage": round(line_total / total * 100, 1) if total > 0 else 0.0,
        })
    return lines


def within_tolerance(submitted: float, recomputed: float,
                     tolerance: float = PRICE_TOLERANCE) -> bool:
    return abs(float(submitted) - float(recomputed)) <= tolerance
