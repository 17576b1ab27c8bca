"""
Parts Synthesizer — catalog + type/material/dimensions → concrete parts list.

Caller dimensions are merged over the catalog defaults field by field; a
partial set is never rejected, only a bad value is.
"""

import logging
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .catalog import Dimensions, FurnitureTypeSpec, lookup
from .cost_model import unit_cost
from .errors import InvalidDimension
from .rates import DEFAULT_RATES, RateTable

logger = logging.getLogger(__name__)

DIMENSION_FIELDS = ("length", "width", "height")
MIN_UNIT_DIMENSION = 0.1  # cm


class Part(BaseModel):
    """One component type within a design. Never persisted on its own."""

    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int
    material: str
    unit_dimensions: Dimensions
    unit_cost: float
    precedence: str


class PartsSynthesizer:

    def __init__(self, rates: RateTable = DEFAULT_RATES):
        self.rates = rates

    def synthesize(self, furniture_type, material, dimensions=None) -> tuple[list[Part], Dimensions]:
        """
        Returns (parts, resolved_dimensions).

        Raises UnknownFurnitureType, UnsupportedMaterial or InvalidDimension.
        """
        spec = lookup(furniture_type)
        rate = self.rates.get(material)
        resolved = self.resolve_dimensions(spec, dimensions)

        parts = []
        for template in spec.part_templates:
            quantity = int(template.quantity_formula(resolved))
            if quantity <= 0:
                continue
            unit_dims = self._unit_dimensions(template.unit_dimension_formula(resolved))
            parts.append(Part(
                name=template.name,
                quantity=quantity,
                material=rate.material,
                unit_dimensions=unit_dims,
                unit_cost=unit_cost((unit_dims.length, unit_dims.width, unit_dims.height), rate),
                precedence=template.precedence,
            ))

        logger.debug("Synthesized %d part groups for %s/%s at %s",
                     len(parts), spec.id, rate.material, resolved)
        return parts, resolved

    def resolve_dimensions(self, spec: FurnitureTypeSpec, dimensions=None) -> Dimensions:
        """Merge caller dimensions over the spec defaults, validating each supplied field."""
        supplied = self._as_dict(dimensions)
        unknown = sorted(set(supplied) - set(DIMENSION_FIELDS))
        if unknown:
            raise InvalidDimension(unknown[0], supplied[unknown[0]])

        merged = spec.default_dimensions.model_dump()
        for field in DIMENSION_FIELDS:
            if field in supplied and supplied[field] is not None:
                merged[field] = self.parse_dimension(field, supplied[field])
        return Dimensions(**merged)

    def parse_dimension(self, field: str, value) -> float:
        """Parse a positive finite number of centimetres. Accepts numeric strings."""
        if isinstance(value, bool):
            raise InvalidDimension(field, value)
        try:
            number = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError):
            raise InvalidDimension(field, value)
        if not math.isfinite(number) or number <= 0:
            raise InvalidDimension(field, value)
        return number

    def _as_dict(self, dimensions) -> dict:
        if dimensions is None:
            return {}
        if isinstance(dimensions, Dimensions):
            return dimensions.model_dump()
        if isinstance(dimensions, BaseModel):
            return dimensions.model_dump(exclude_none=True)
        if isinstance(dimensions, dict):
            return dict(dimensions)
        raise InvalidDimension("dimensions", dimensions)

    def _unit_dimensions(self, values: tuple) -> Dimensions:
        length, width, height = (max(round(float(v), 1), MIN_UNIT_DIMENSION) for v in values)
        return Dimensions(length=length, width=width, height=height)


def synthesize(furniture_type, material, dimensions: Optional[dict] = None,
               rates: RateTable = DEFAULT_RATES) -> tuple[list[Part], Dimensions]:
    """Module-level shortcut for PartsSynthesizer(rates).synthesize(...)."""
    return PartsSynthesizer(rates).synthesize(furniture_type, material, dimensions)
