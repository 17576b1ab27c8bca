"""
Design Assembler — the only place a Design is constructed.

    manual:    type/material/dimensions/color → Synthesizer → Cost Model + Planner → Design
    free text: Query Interpreter → same pipeline, ai_enhanced=True, user_query kept

No I/O. The returned Design is frozen; prices are refreshed by building a
copy with a recomputed total, never by mutating the original.
"""

import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .assembly_planner import AssemblyPlanner
from .catalog import Dimensions, lookup
from .cost_model import compute_cost
from .errors import InvalidColor
from .query_interpreter import QueryInterpreter
from .rates import DEFAULT_RATES, MaterialRate, RateTable
from .synthesizer import Part, PartsSynthesizer

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class Design(BaseModel):
    """Complete synthesized specification of one furniture item."""

    model_config = ConfigDict(frozen=True)

    furniture_type: str
    material: str
    material_color: str
    dimensions: Dimensions
    parts: list[Part]
    total_cost: float
    assembly_time: int
    instructions: list[str]
    ai_enhanced: bool = False
    user_query: Optional[str] = None


class DesignAssembler:

    def __init__(self, rates: RateTable = DEFAULT_RATES):
        self.rates = rates
        self.synthesizer = PartsSynthesizer(rates)
        self.planner = AssemblyPlanner(rates)
        self.interpreter = QueryInterpreter(rates)

    def assemble(self, furniture_type, material, dimensions=None,
                 material_color: Optional[str] = None) -> Design:
        """Manual path. Raises any DesignError from the pipeline."""
        return self._build(furniture_type, material, dimensions, material_color)

    def assemble_from_text(self, free_text: str) -> Design:
        """Free-text path. Raises UnrecognizedIntent when no type is found."""
        query = self.interpreter.interpret(free_text)
        material = query.material or lookup(query.furniture_type).default_material
        return self._build(
            query.furniture_type,
            material,
            query.dimensions,
            query.material_color,
            ai_enhanced=True,
            user_query=free_text,
        )

    def refresh(self, design: Design) -> Design:
        """Copy of design with total_cost re-derived from its parts and material."""
        return design.model_copy(update={
            "total_cost": compute_cost(design.parts, design.material, self.rates),
        })

    def resolve_color(self, rate: MaterialRate, color: Optional[str]) -> str:
        if color is None or not str(color).strip():
            return rate.default_color
        value = str(color).strip()
        if _HEX_COLOR.match(value):
            return value.upper()
        key = value.lower()
        if key in rate.colors:
            return rate.colors[key]
        raise InvalidColor(color, rate.material, sorted(rate.colors))

    def _build(self, furniture_type, material, dimensions, material_color,
               ai_enhanced: bool = False, user_query: Optional[str] = None) -> Design:
        parts, resolved = self.synthesizer.synthesize(furniture_type, material, dimensions)
        rate = self.rates.get(material)
        color = self.resolve_color(rate, material_color)
        plan = self.planner.plan(parts)

        design = Design(
            furniture_type=lookup(furniture_type).id,
            material=rate.material,
            material_color=color,
            dimensions=resolved,
            parts=parts,
            total_cost=compute_cost(parts, rate.material, self.rates),
            assembly_time=plan.assembly_time,
            instructions=plan.instructions,
            ai_enhanced=ai_enhanced,
            user_query=user_query if ai_enhanced else None,
        )
        logger.debug("Assembled %s %s design: %d parts, total %.2f, %d min",
                     design.material, design.furniture_type, len(parts),
                     design.total_cost, design.assembly_time)
        return design


def assemble(furniture_type, material, dimensions=None, material_color=None,
             rates: RateTable = DEFAULT_RATES) -> Design:
    return DesignAssembler(rates).assemble(furniture_type, material, dimensions, material_color)


def assemble_from_text(free_text: str, rates: RateTable = DEFAULT_RATES) -> Design:
    return DesignAssembler(rates).assemble_from_text(free_text)
