"""
Typed errors raised by the design engine.

All are terminal for the request that triggered them. The engine never maps
them to HTTP status codes; main.py does that.
"""


class DesignError(Exception):
    """Base class for every engine failure."""

    code = "design_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownFurnitureType(DesignError):
    code = "unknown_furniture_type"

    def __init__(self, furniture_type, available: list):
        super().__init__(
            f"Unknown furniture type: {furniture_type!r}. "
            f"Available: {available}"
        )
        self.furniture_type = furniture_type


class UnsupportedMaterial(DesignError):
    code = "unsupported_material"

    def __init__(self, material, available: list):
        super().__init__(
            f"Unsupported material: {material!r}. Available: {available}"
        )
        self.material = material


class InvalidDimension(DesignError):
    code = "invalid_dimension"

    def __init__(self, field: str, value):
        super().__init__(
            f"Invalid dimension {field}={value!r}: must be a positive number (cm)"
        )
        self.field = field
        self.value = value


class InvalidColor(DesignError):
    code = "invalid_color"

    def __init__(self, color, material: str, available: list):
        super().__init__(
            f"Color {color!r} is not offered for {material}. "
            f"Use a hex code or one of: {available}"
        )
        self.color = color


class UnrecognizedIntent(DesignError):
    code = "unrecognized_intent"

    def __init__(self, text: str):
        super().__init__(
            "Could not find a furniture type in the request. "
            "Mention a table, chair, bookshelf, desk or bed frame."
        )
        self.text = text


class PriceIntegrityViolation(DesignError):
    """Submitted price diverges from the recomputed price. Security relevant."""

    code = "price_integrity_violation"

    def __init__(self, submitted: float, recomputed: float, tolerance: float):
        super().__init__(
            f"Submitted total {submitted:.2f} does not match recomputed "
            f"total {recomputed:.2f} (tolerance {tolerance:.2f})"
        )
        self.submitted = submitted
        self.recomputed = recomputed
        self.tolerance = tolerance
