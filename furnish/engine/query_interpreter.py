"""
Query Interpreter — free text → design parameters.

Deterministic lexical scan against the Catalog and Rate Table vocabularies.
No model call. Only the furniture type is required; material, color and
dimensions are best-effort and fall through to catalog defaults when absent.
The interpreter never returns a type, material or color the Catalog / Rate
Table does not know.

Dimension forms understood (all normalised to cm):
    "120 x 60 x 75 cm", "120cm x 60cm"            L x W (x H)
    "140cm wide", "2 m long", "90 cm tall"        number + unit + axis word
    "height of 90cm", "width: 60 cm"              axis word + number + unit
    "queen bed"                                    bed size presets
"""

import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .catalog import lookup
from .errors import UnrecognizedIntent
from .rates import DEFAULT_RATES, RateTable

logger = logging.getLogger(__name__)


# Phrases per catalog type. Earliest match in the text wins; on a tie the
# longest phrase wins ("desk chair" is a chair, not a desk).
_FURNITURE_KEYWORDS = {
    "table": [
        "table", "dining table", "coffee table", "side table", "work table",
    ],
    "chair": [
        "chair", "stool", "dining chair", "office chair", "desk chair", "lounge chair",
    ],
    "bookshelf": [
        "bookshelf", "bookshelves", "book shelf", "bookcase", "shelving unit",
        "display shelf",
    ],
    "desk": [
        "desk", "work desk", "computer desk", "writing desk", "standing desk",
    ],
    "bed frame": [
        "bed frame", "bed", "platform bed",
    ],
}

_MATERIAL_KEYWORDS = {
    "wood": ["wood", "wooden", "plywood", "oak", "walnut"],
    "metal": ["metal", "metallic", "steel"],
    "plastic": ["plastic", "pvc"],
}

# Bed sizes in cm (length, width)
_BED_SIZES = {
    "single": (190.0, 90.0),
    "twin": (190.0, 90.0),
    "double": (190.0, 140.0),
    "full": (190.0, 140.0),
    "queen": (200.0, 150.0),
    "king": (200.0, 180.0),
}

_UNIT_TO_CM = {"mm": 0.1, "cm": 1.0, "m": 100.0}

_NUM = r"(\d+(?:\.\d+)?)"
_UNIT = (
    r"((?:mm|millimet(?:er|re)s?|cm|cms|centimet(?:er|re)s?|m|met(?:er|re)s?)\b)"
)
_SEP = r"\s*(?:x|×|\*|by)\s*"

_TRIPLE_PATTERN = re.compile(
    _NUM + r"\s*" + _UNIT + r"?" + _SEP +
    _NUM + r"\s*" + _UNIT + r"?" + _SEP +
    _NUM + r"\s*" + _UNIT + r"?",
    re.IGNORECASE,
)
_PAIR_PATTERN = re.compile(
    _NUM + r"\s*" + _UNIT + r"?" + _SEP + _NUM + r"\s*" + _UNIT + r"?",
    re.IGNORECASE,
)

_AXIS_WORDS = {
    "long": "length", "length": "length", "in length": "length",
    "wide": "width", "width": "width", "in width": "width",
    "deep": "width", "depth": "width", "in depth": "width",
    "tall": "height", "high": "height", "height": "height", "in height": "height",
}
_AXIS_AFTER_PATTERN = re.compile(
    _NUM + r"\s*" + _UNIT + r"\s*(in length|in width|in depth|in height|"
    r"long|length|wide|width|deep|depth|tall|high|height)\b",
    re.IGNORECASE,
)
_AXIS_BEFORE_PATTERN = re.compile(
    r"\b(length|width|depth|height)\s*(?:of|:|=|is|about|around|approx\.?)?\s*"
    + _NUM + r"\s*" + _UNIT,
    re.IGNORECASE,
)
_HEX_PATTERN = re.compile(r"#[0-9a-f]{6}\b", re.IGNORECASE)
# A size word only counts next to "bed" or "size": "queen bed", "king-size"
_BED_SIZE_PATTERN = re.compile(
    r"\b(" + "|".join(_BED_SIZES) + r")\b"
    r"(?=(?:[\s-]+sized?)?\s+bed\b|[\s-]+sized?\b)",
    re.IGNORECASE,
)


class InterpretedQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    furniture_type: str
    material: Optional[str] = None
    material_color: Optional[str] = None
    dimensions: Optional[dict] = None


def _phrase_pattern(phrase: str) -> re.Pattern:
    words = r"\s+".join(re.escape(w) for w in phrase.split())
    return re.compile(r"\b" + words + r"(?:s|es)?\b", re.IGNORECASE)


def _first_match(text: str, vocabulary: dict) -> Optional[str]:
    """Return the key whose phrase starts earliest in text (longest on ties)."""
    best = None  # (start, -length, key)
    for key, phrases in vocabulary.items():
        for phrase in phrases:
            match = _phrase_pattern(phrase).search(text)
            if match is None:
                continue
            candidate = (match.start(), -(match.end() - match.start()), key)
            if best is None or candidate < best:
                best = candidate
    return best[2] if best else None


def _to_cm(value: str, unit: str) -> float:
    unit = unit.lower()
    if unit.startswith("mm") or unit.startswith("milli"):
        factor = _UNIT_TO_CM["mm"]
    elif unit.startswith("c"):
        factor = _UNIT_TO_CM["cm"]
    else:
        factor = _UNIT_TO_CM["m"]
    return round(float(value) * factor, 1)


class QueryInterpreter:

    def __init__(self, rates: RateTable = DEFAULT_RATES):
        self.rates = rates

    def interpret(self, free_text) -> InterpretedQuery:
        text = str(free_text or "").strip()
        if not text:
            raise UnrecognizedIntent(text)

        furniture_type = _first_match(text, _FURNITURE_KEYWORDS)
        if furniture_type is None:
            raise UnrecognizedIntent(text)
        spec = lookup(furniture_type)

        vocabulary = {m: words for m, words in _MATERIAL_KEYWORDS.items() if self.rates.has(m)}
        material = _first_match(text, vocabulary)

        palette_material = material or spec.default_material
        material_color = self.extract_color(text, palette_material)

        dimensions = self.extract_dimensions(text)
        if furniture_type == "bed frame":
            dimensions = self._apply_bed_size(text, dimensions)

        result = InterpretedQuery(
            furniture_type=furniture_type,
            material=material,
            material_color=material_color,
            dimensions=dimensions or None,
        )
        logger.debug("Interpreted %r as %s", text, result)
        return result

    def extract_color(self, text: str, material: str) -> Optional[str]:
        """Color name from the material's palette, or an explicit #rrggbb code."""
        hex_match = _HEX_PATTERN.search(text)
        if hex_match:
            return hex_match.group(0).upper()
        if not self.rates.has(material):
            return None
        palette = self.rates.get(material).colors
        name = _first_match(text, {name: [name] for name in palette})
        return palette[name] if name else None

    def extract_dimensions(self, text: str) -> dict:
        dims = {}
        consumed = []

        triple = _TRIPLE_PATTERN.search(text)
        if triple and self._has_unit(triple, (2, 4, 6)):
            unit = self._last_unit(triple, (2, 4, 6))
            for field, value_group, unit_group in (("length", 1, 2), ("width", 3, 4), ("height", 5, 6)):
                dims[field] = _to_cm(triple.group(value_group), triple.group(unit_group) or unit)
            consumed.append(triple.span())
        else:
            pair = _PAIR_PATTERN.search(text)
            if pair and self._has_unit(pair, (2, 4)):
                unit = self._last_unit(pair, (2, 4))
                dims["length"] = _to_cm(pair.group(1), pair.group(2) or unit)
                dims["width"] = _to_cm(pair.group(3), pair.group(4) or unit)
                consumed.append(pair.span())

        def _free(span) -> bool:
            return not any(s < span[1] and span[0] < e for s, e in consumed)

        for match in _AXIS_AFTER_PATTERN.finditer(text):
            if _free(match.span()):
                field = _AXIS_WORDS[" ".join(match.group(3).lower().split())]
                dims.setdefault(field, _to_cm(match.group(1), match.group(2)))
        for match in _AXIS_BEFORE_PATTERN.finditer(text):
            if _free(match.span()):
                field = _AXIS_WORDS[match.group(1).lower()]
                dims.setdefault(field, _to_cm(match.group(2), match.group(3)))

        return {k: v for k, v in dims.items() if v > 0}

    def _apply_bed_size(self, text: str, dims: dict) -> dict:
        match = _BED_SIZE_PATTERN.search(text)
        if match is None:
            return dims
        length, width = _BED_SIZES[match.group(1).lower()]
        merged = {"length": length, "width": width}
        merged.update(dims)
        return merged

    def _has_unit(self, match, groups) -> bool:
        return any(match.group(g) for g in groups)

    def _last_unit(self, match, groups) -> str:
        return [match.group(g) for g in groups if match.group(g)][-1]


def interpret(free_text, rates: RateTable = DEFAULT_RATES) -> InterpretedQuery:
    return QueryInterpreter(rates).interpret(free_text)
