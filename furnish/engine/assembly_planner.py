"""
Assembly Planner — orders parts into an instruction sequence and estimates
assembly time.

Order: frame → attachment → cosmetic (a property of the part template).
Within a precedence level the synthesizer's order is kept (stable sort).
One instruction per part group.

    assembly_time = round(Σ labor_minutes_per_part(part.material) × quantity)
"""

import logging
import math

from pydantic import BaseModel, ConfigDict

from .catalog import PRECEDENCE_ORDER, template_for
from .rates import DEFAULT_RATES, RateTable

logger = logging.getLogger(__name__)

_GENERIC_VERBS = {
    "frame": "Set up",
    "attachment": "Attach",
    "cosmetic": "Finish with",
}


class AssemblyPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    instructions: list[str]
    assembly_time: int  # minutes


class AssemblyPlanner:

    def __init__(self, rates: RateTable = DEFAULT_RATES):
        self.rates = rates

    def plan(self, parts) -> AssemblyPlan:
        ordered = self.order_parts(parts)
        instructions = [
            "%d. %s." % (step, self.instruction_for(part))
            for step, part in enumerate(ordered, start=1)
        ]
        minutes = math.fsum(
            self.rates.get(part.material).labor_minutes_per_part * part.quantity
            for part in parts
        )
        assembly_time = int(math.floor(minutes + 0.5))
        logger.debug("Planned %d steps, %d min", len(instructions), assembly_time)
        return AssemblyPlan(instructions=instructions, assembly_time=assembly_time)

    def order_parts(self, parts) -> list:
        """Stable sort by structural precedence. Unknown precedence goes last."""
        return sorted(parts, key=lambda p: PRECEDENCE_ORDER.get(p.precedence, len(PRECEDENCE_ORDER)))

    def instruction_for(self, part) -> str:
        template = template_for(part.name)
        if template is not None:
            return template.instruction.format(quantity=part.quantity)
        # Parts from a retired template still get a readable step
        d = part.unit_dimensions
        verb = _GENERIC_VERBS.get(part.precedence, "Fit")
        return "%s %d × %s (%.1f × %.1f × %.1f cm)" % (
            verb, part.quantity, part.name, d.length, d.width, d.height)


def plan(parts, rates: RateTable = DEFAULT_RATES) -> AssemblyPlan:
    return AssemblyPlanner(rates).plan(parts)
