"""
Catalog — static knowledge of furniture types.

Each FurnitureTypeSpec carries its default dimensions (cm) and the ordered
part templates the Parts Synthesizer evaluates. Formulas are pure functions
of the resolved overall dimensions, integer-valued for quantity and
monotonic: a taller bookshelf never gets fewer shelves.

Structural precedence (used by the Assembly Planner):
    frame       legs, rails, side panels (the load path)
    attachment  tops, seats, shelves, slats, drawers
    cosmetic    glides, back panels, head/footboards
"""

import math
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from .errors import UnknownFurnitureType

FRAME = "frame"
ATTACHMENT = "attachment"
COSMETIC = "cosmetic"

PRECEDENCE_ORDER = {FRAME: 0, ATTACHMENT: 1, COSMETIC: 2}


class Dimensions(BaseModel):
    """Overall or per-unit dimensions in centimetres."""

    model_config = ConfigDict(frozen=True)

    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass(frozen=True)
class PartTemplate:
    """One part group of a furniture type. Parts are cut from the design material."""

    name: str
    quantity_formula: Callable[[Dimensions], int]
    unit_dimension_formula: Callable[[Dimensions], tuple]
    precedence: str
    instruction: str


@dataclass(frozen=True)
class FurnitureTypeSpec:
    id: str
    default_dimensions: Dimensions
    part_templates: tuple
    default_material: str = "wood"


# --- Shared sizing rules ---

def _leg_size(d: Dimensions) -> float:
    """Square leg profile grows with height, 4-8 cm."""
    return round(min(max(d.height / 15.0, 4.0), 8.0), 1)


def _top_thickness(d: Dimensions) -> float:
    """Long spans get a thicker top to limit deflection."""
    return 2.5 if d.length <= 150 else 3.5


def _const(n: int) -> Callable[[Dimensions], int]:
    return lambda d: n


# --- Table ---

def _table_leg_count(d: Dimensions) -> int:
    return 4 + _table_center_legs(d)


def _table_center_legs(d: Dimensions) -> int:
    return 2 if d.length > 180 else 0


TABLE = FurnitureTypeSpec(
    id="table",
    default_dimensions=Dimensions(length=120, width=80, height=75),
    part_templates=(
        PartTemplate(
            name="Table Leg",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (_leg_size(d), _leg_size(d), d.height - _top_thickness(d)),
            precedence=FRAME,
            instruction="Stand the {quantity} table legs at the corners and square them",
        ),
        PartTemplate(
            name="Center Support Leg",
            quantity_formula=_table_center_legs,
            unit_dimension_formula=lambda d: (_leg_size(d), _leg_size(d), d.height - _top_thickness(d)),
            precedence=FRAME,
            instruction="Place the {quantity} center support legs midway along the long sides",
        ),
        PartTemplate(
            name="Apron (Long)",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (d.length - 2 * _leg_size(d), 2.0, 8.0),
            precedence=FRAME,
            instruction="Join the legs with the {quantity} long aprons using dowels and wood glue",
        ),
        PartTemplate(
            name="Apron (Short)",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (d.width - 2 * _leg_size(d), 2.0, 8.0),
            precedence=FRAME,
            instruction="Join the legs with the {quantity} short aprons and check the frame is square",
        ),
        PartTemplate(
            name="Table Top",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, d.width, _top_thickness(d)),
            precedence=ATTACHMENT,
            instruction="Lay the table top on the frame and secure it with screws from below",
        ),
        PartTemplate(
            name="Leg Glide",
            quantity_formula=_table_leg_count,
            unit_dimension_formula=lambda d: (_leg_size(d), _leg_size(d), 1.0),
            precedence=COSMETIC,
            instruction="Press the {quantity} glides onto the leg ends",
        ),
    ),
)


# --- Chair ---

CHAIR = FurnitureTypeSpec(
    id="chair",
    default_dimensions=Dimensions(length=45, width=45, height=90),
    part_templates=(
        PartTemplate(
            name="Chair Leg",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (4.0, 4.0, d.height * 0.5),
            precedence=FRAME,
            instruction="Stand the {quantity} chair legs at the corners of the seat footprint",
        ),
        PartTemplate(
            name="Seat",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, d.width, 2.0),
            precedence=ATTACHMENT,
            instruction="Attach the seat to the legs and tighten all fixings",
        ),
        PartTemplate(
            name="Backrest",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, 2.0, d.height * 0.5),
            precedence=ATTACHMENT,
            instruction="Mount the backrest to the rear of the seat",
        ),
        PartTemplate(
            name="Leg Glide",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (4.0, 4.0, 1.0),
            precedence=COSMETIC,
            instruction="Press the {quantity} glides onto the leg ends",
        ),
    ),
)


# --- Bookshelf ---

def _shelf_count(d: Dimensions) -> int:
    """One shelf per 30 cm of usable height above the plinth."""
    usable = d.height - 10.0 - 2.0
    return max(1, int(usable // 30))


BOOKSHELF = FurnitureTypeSpec(
    id="bookshelf",
    default_dimensions=Dimensions(length=80, width=30, height=180),
    part_templates=(
        PartTemplate(
            name="Side Panel",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (2.0, d.width, d.height),
            precedence=FRAME,
            instruction="Stand the {quantity} side panels upright, facing each other",
        ),
        PartTemplate(
            name="Bottom Panel",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, d.width, 10.0),
            precedence=FRAME,
            instruction="Fix the bottom plinth between the side panels",
        ),
        PartTemplate(
            name="Top Panel",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, d.width, 2.0),
            precedence=FRAME,
            instruction="Fix the top panel across the side panels",
        ),
        PartTemplate(
            name="Shelf",
            quantity_formula=_shelf_count,
            unit_dimension_formula=lambda d: (d.length, d.width, 2.0),
            precedence=ATTACHMENT,
            instruction="Insert the {quantity} shelves at equal intervals and secure them with brackets",
        ),
        PartTemplate(
            name="Back Panel",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, 2.0, d.height),
            precedence=COSMETIC,
            instruction="Nail the back panel on and anchor the unit to the wall",
        ),
    ),
)


# --- Desk ---

DESK = FurnitureTypeSpec(
    id="desk",
    default_dimensions=Dimensions(length=140, width=70, height=75),
    part_templates=(
        PartTemplate(
            name="Desk Leg",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (_leg_size(d), _leg_size(d), d.height - _top_thickness(d)),
            precedence=FRAME,
            instruction="Stand the {quantity} desk legs at the corners and square them",
        ),
        PartTemplate(
            name="Desk Top",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.length, d.width, _top_thickness(d)),
            precedence=ATTACHMENT,
            instruction="Attach the desk top to the legs",
        ),
        PartTemplate(
            name="Drawer",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (d.length * 0.3, d.width * 0.8, 15.0),
            precedence=ATTACHMENT,
            instruction="Assemble the {quantity} drawer boxes",
        ),
        PartTemplate(
            name="Drawer Slide",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (d.width * 0.8, 1.3, 4.5),
            precedence=ATTACHMENT,
            instruction="Install the {quantity} drawer slides under the top, mount the drawers and test their movement",
        ),
        PartTemplate(
            name="Leg Glide",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (_leg_size(d), _leg_size(d), 1.0),
            precedence=COSMETIC,
            instruction="Press the {quantity} glides onto the leg ends",
        ),
    ),
)


# --- Bed frame ---

def _slat_count(d: Dimensions) -> int:
    return max(4, math.ceil(d.length / 20.0))


BED_FRAME = FurnitureTypeSpec(
    id="bed frame",
    default_dimensions=Dimensions(length=200, width=150, height=40),
    part_templates=(
        PartTemplate(
            name="Bed Leg",
            quantity_formula=_const(4),
            unit_dimension_formula=lambda d: (_leg_size(d) + 2.0, _leg_size(d) + 2.0, d.height),
            precedence=FRAME,
            instruction="Stand the {quantity} bed legs at the corners",
        ),
        PartTemplate(
            name="Side Rail",
            quantity_formula=_const(2),
            unit_dimension_formula=lambda d: (3.0, d.length, 10.0),
            precedence=FRAME,
            instruction="Bolt the {quantity} side rails to the legs",
        ),
        PartTemplate(
            name="Center Beam",
            quantity_formula=lambda d: 1 if d.width > 140 else 0,
            unit_dimension_formula=lambda d: (d.length, 8.0, 3.0),
            precedence=FRAME,
            instruction="Fit the center beam along the middle of the frame",
        ),
        PartTemplate(
            name="Support Slat",
            quantity_formula=_slat_count,
            unit_dimension_formula=lambda d: (d.width - 20.0, 8.0, 3.0),
            precedence=ATTACHMENT,
            instruction="Lay the {quantity} support slats across the side rails and screw them down",
        ),
        PartTemplate(
            name="Headboard",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.width, 3.0, 100.0),
            precedence=COSMETIC,
            instruction="Attach the headboard at the head end",
        ),
        PartTemplate(
            name="Footboard",
            quantity_formula=_const(1),
            unit_dimension_formula=lambda d: (d.width, 3.0, 50.0),
            precedence=COSMETIC,
            instruction="Attach the footboard at the foot end and check stability before placing the mattress",
        ),
    ),
)


CATALOG: dict[str, FurnitureTypeSpec] = {
    spec.id: spec for spec in (TABLE, CHAIR, BOOKSHELF, DESK, BED_FRAME)
}


def lookup(furniture_type) -> FurnitureTypeSpec:
    """Return the spec for a furniture type, or raise UnknownFurnitureType."""
    key = " ".join(str(furniture_type).lower().split()) if furniture_type is not None else ""
    if key not in CATALOG:
        raise UnknownFurnitureType(furniture_type, list_types())
    return CATALOG[key]


def has_type(furniture_type) -> bool:
    try:
        lookup(furniture_type)
    except UnknownFurnitureType:
        return False
    return True


def list_types() -> list[str]:
    return list(CATALOG.keys())


def _template_index() -> dict[str, PartTemplate]:
    index = {}
    for spec in CATALOG.values():
        for template in spec.part_templates:
            index.setdefault(template.name, template)
    return index


# Part names share one instruction across types (e.g. "Leg Glide")
TEMPLATES_BY_NAME = _template_index()


def template_for(part_name: str) -> Optional[PartTemplate]:
    return TEMPLATES_BY_NAME.get(part_name)
