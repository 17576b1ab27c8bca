"""
Rate table — per-material unit cost, labor time and assembly surcharge.

unit_cost is INR per cubic centimetre of finished part volume.
Defaults follow 2025 Indian market prices:
  wood    ₹85/sq ft plywood @ 1.8 cm thickness
  metal   ₹55/kg structural steel @ 7.8 g/cm³
  plastic ₹120/kg rigid PVC @ 0.9 g/cm³

Color never affects cost. Each material carries the palette it is sold in.
"""

from dataclasses import dataclass, field, replace

from .errors import UnsupportedMaterial


@dataclass(frozen=True)
class MaterialRate:
    material: str
    unit_cost: float
    labor_minutes_per_part: float
    assembly_surcharge: float = 0.0
    label: str = ""
    density: float = 0.0  # g/cm³, informational
    colors: dict = field(default_factory=dict)
    default_color: str = "#FFFFFF"


DEFAULT_MATERIAL_RATES = {
    "wood": MaterialRate(
        material="wood",
        unit_cost=0.051,
        labor_minutes_per_part=6,
        assembly_surcharge=150.0,
        label="Plywood (Standard)",
        density=0.6,
        colors={"brown": "#8B4513", "oak": "#D2691E", "walnut": "#5C4033"},
        default_color="#8B4513",
    ),
    "metal": MaterialRate(
        material="metal",
        unit_cost=0.429,
        labor_minutes_per_part=8,
        assembly_surcharge=250.0,  # welding + powder coat setup
        label="Steel (Structural)",
        density=7.8,
        colors={"silver": "#C0C0C0", "black": "#2C2C2C", "bronze": "#CD7F32"},
        default_color="#C0C0C0",
    ),
    "plastic": MaterialRate(
        material="plastic",
        unit_cost=0.108,
        labor_minutes_per_part=4,
        assembly_surcharge=50.0,
        label="PVC (Rigid)",
        density=0.9,
        colors={
            "white": "#FFFFFF",
            "gray": "#CCCCCC",
            "grey": "#CCCCCC",
            "red": "#D32F2F",
            "blue": "#1976D2",
            "green": "#388E3C",
            "yellow": "#FBC02D",
            "black": "#212121",
        },
        default_color="#FFFFFF",
    ),
}


class RateTable:
    """
    Immutable lookup of MaterialRate by material name.

    Built from DEFAULT_MATERIAL_RATES, optionally overridden by the
    persisted rate rows (see routers/materials.py).
    """

    def __init__(self, rates: dict):
        self._rates = dict(rates)

    def get(self, material) -> MaterialRate:
        """Return the rate for a material, or raise UnsupportedMaterial."""
        key = str(material).strip().lower() if material is not None else ""
        if key not in self._rates:
            raise UnsupportedMaterial(material, self.materials())
        return self._rates[key]

    def has(self, material) -> bool:
        return material is not None and str(material).strip().lower() in self._rates

    def materials(self) -> list[str]:
        return list(self._rates.keys())

    def with_overrides(self, overrides: dict) -> "RateTable":
        """
        Return a new table with numeric fields replaced per material.

        overrides: {material: {"unit_cost": .., "labor_minutes_per_part": ..,
                               "assembly_surcharge": ..}}
        Unknown materials and None values are ignored.
        """
        merged = dict(self._rates)
        for material, values in overrides.items():
            if material not in merged:
                continue
            changes = {
                k: float(v) for k, v in values.items()
                if v is not None and k in ("unit_cost", "labor_minutes_per_part", "assembly_surcharge")
            }
            merged[material] = replace(merged[material], **changes)
        return RateTable(merged)

    def __iter__(self):
        return iter(self._rates.values())

    def __len__(self):
        return len(self._rates)


DEFAULT_RATES = RateTable(DEFAULT_MATERIAL_RATES)
