"""
Design parameter contract, validation, and price estimation.

The external contract is a flat record of six numeric fields (camelCase
keys). Validation checks each field against its declared range, fills in
defaults for missing optional fields, and returns a typed
GeometryParameters plus the checkout price multiplier. Every generator
downstream consumes the normalized dataclass, never the raw dict.
"""
import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSpec:
    """Declared range and default for one contract field."""

    name: str                       # contract (camelCase) name
    attr: str                       # GeometryParameters attribute
    minimum: float
    maximum: float
    default: Optional[float] = None  # None = optional, no default
    integer: bool = False
    step: Optional[float] = None     # required increment, e.g. half sizes
    exclusive_minimum: bool = False  # strictly greater than minimum


PARAMETER_SPECS: Dict[str, ParameterSpec] = {
    "size": ParameterSpec("size", "size", 0.5, 2.0, default=1.0),
    "thickness": ParameterSpec("thickness", "thickness", 0.1, 0.5, default=0.2),
    "complexity": ParameterSpec("complexity", "complexity", 0.1, 1.0, default=0.7),
    "symmetry": ParameterSpec("symmetry", "symmetry", 3, 12, default=8, integer=True),
    "spiralTurns": ParameterSpec(
        "spiralTurns", "spiral_turns", 1, 8, default=3, integer=True,
    ),
    "fingerSize": ParameterSpec("fingerSize", "finger_size", 4, 12, step=0.5),
}

# Per-type structure options; fingerSize overrides the parameter of that name
OPTION_SPECS: Dict[str, ParameterSpec] = {
    "chainLength": ParameterSpec(
        "chainLength", "chain_length", 0, math.inf, default=18.0, exclusive_minimum=True,
    ),
    "fingerSize": PARAMETER_SPECS["fingerSize"],
}

_MISSING = object()

# Reference values the price multiplier is normalized against
REFERENCE_THICKNESS = 0.2
REFERENCE_COMPLEXITY = 0.5
REFERENCE_SYMMETRY = 6


@dataclass(frozen=True)
class GeometryParameters:
    """Normalized, fully populated design parameters.

    Attributes:
        size: Overall scale factor
        thickness: Extrusion thickness (mm)
        complexity: 0..1, drives layer / generation / loop counts
        symmetry: Point or petal count
        spiral_turns: Number of turns (Fibonacci spiral only)
        finger_size: US ring size (rings only)
    """
    size: float = 1.0
    thickness: float = 0.2
    complexity: float = 0.7
    symmetry: int = 8
    spiral_turns: int = 3
    finger_size: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Contract (camelCase) representation."""
        payload: Dict[str, Any] = {
            "size": self.size,
            "thickness": self.thickness,
            "complexity": self.complexity,
            "symmetry": self.symmetry,
            "spiralTurns": self.spiral_turns,
        }
        if self.finger_size is not None:
            payload["fingerSize"] = self.finger_size
        return payload


@dataclass
class FieldError:
    """A single violated constraint."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(ValueError):
    """One or more parameter fields are malformed or out of range."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Invalid parameters: {fields}")


@dataclass
class ParameterValidationResult:
    valid: bool
    parameters: Optional[GeometryParameters] = None
    price_multiplier: Optional[float] = None
    errors: List[FieldError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        if self.valid:
            return {
                "valid": True,
                "parameters": self.parameters.to_dict(),
                "priceMultiplier": self.price_multiplier,
            }
        return {"valid": False, "errors": [e.to_dict() for e in self.errors]}


def validate_parameters(raw: Mapping[str, Any]) -> ParameterValidationResult:
    """Validate a raw parameter record.

    Keys may use the contract names (``spiralTurns``) or the Python
    attribute names (``spiral_turns``). Unknown keys are ignored; an
    explicit ``None`` is a type error, not a missing field.

    Returns:
        Result with the normalized parameters and price multiplier when
        valid, otherwise one FieldError per violated constraint.
    """
    values, errors = check_fields(PARAMETER_SPECS.values(), raw)
    if errors:
        logger.debug("Parameter validation failed: %s", [e.field for e in errors])
        return ParameterValidationResult(valid=False, errors=errors)

    params = GeometryParameters(**values)
    return ParameterValidationResult(
        valid=True,
        parameters=params,
        price_multiplier=calculate_price_multiplier(params),
    )


def parse_parameters(raw: Mapping[str, Any]) -> GeometryParameters:
    """Validate and return parameters, raising ValidationError on failure."""
    result = validate_parameters(raw)
    if not result.valid:
        raise ValidationError(result.errors)
    return result.parameters


def check_fields(
    specs: Iterable[ParameterSpec],
    raw: Mapping[str, Any],
) -> Tuple[Dict[str, Any], List[FieldError]]:
    """Check every declared field of a raw record.

    Returns:
        (values keyed by attribute name, field errors). Missing fields
        take their default, or are left out when they have none. Valid
        values come back as ``int`` for integer fields, ``float`` otherwise.
    """
    values: Dict[str, Any] = {}
    errors: List[FieldError] = []

    for spec in specs:
        value = _lookup(raw, spec)
        if value is _MISSING:
            if spec.default is not None:
                values[spec.attr] = spec.default
            continue
        field_errors = _check_field(spec, value)
        if field_errors:
            errors.extend(field_errors)
            continue
        values[spec.attr] = int(value) if spec.integer else float(value)

    return values, errors


def check_finger_size(finger_size: float) -> None:
    """Raise ValidationError if a ring size is outside the contract."""
    errors = _check_field(PARAMETER_SPECS["fingerSize"], finger_size)
    if errors:
        raise ValidationError(errors)


def calculate_price_multiplier(params: GeometryParameters) -> float:
    """Cost multiplier applied to a design's base price.

    size^1.5 * (thickness / 0.2) * (1 + (complexity - 0.5) * 0.3)
    * (1 + (symmetry - 6) * 0.02), rounded half-up to 2 decimals.
    """
    multiplier = 1.0
    # Material usage grows faster than linearly with size
    multiplier *= params.size ** 1.5
    multiplier *= params.thickness / REFERENCE_THICKNESS
    # Print time
    multiplier *= 1 + (params.complexity - REFERENCE_COMPLEXITY) * 0.3
    multiplier *= 1 + (params.symmetry - REFERENCE_SYMMETRY) * 0.02
    return _round_half_up(multiplier)


def estimate_price(base_price: float, params: GeometryParameters) -> float:
    """Final price for a design: base price times the multiplier."""
    return _round_half_up(base_price * calculate_price_multiplier(params))


# ─── Internal helpers ────────────────────────────────────────────────────────

def _lookup(raw: Mapping[str, Any], spec: ParameterSpec) -> Any:
    if spec.name in raw:
        return raw[spec.name]
    return raw.get(spec.attr, _MISSING)


def _check_field(spec: ParameterSpec, value: Any) -> List[FieldError]:
    if value is None:
        return [FieldError(spec.name, "Expected number, received null")]
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return [FieldError(
            spec.name, f"Expected number, received {type(value).__name__}",
        )]
    value = float(value)
    if not math.isfinite(value):
        return [FieldError(spec.name, "Expected finite number")]

    errors = []
    if spec.integer and not value.is_integer():
        errors.append(FieldError(spec.name, "Expected integer, received float"))
    if spec.exclusive_minimum and value <= spec.minimum:
        errors.append(FieldError(
            spec.name, f"Number must be greater than {_fmt_limit(spec.minimum)}",
        ))
    elif not spec.exclusive_minimum and value < spec.minimum:
        errors.append(FieldError(
            spec.name,
            f"Number must be greater than or equal to {_fmt_limit(spec.minimum)}",
        ))
    if value > spec.maximum:
        errors.append(FieldError(
            spec.name,
            f"Number must be less than or equal to {_fmt_limit(spec.maximum)}",
        ))
    if spec.step is not None and not float(value / spec.step).is_integer():
        errors.append(FieldError(
            spec.name, f"Number must be a multiple of {_fmt_limit(spec.step)}",
        ))
    return errors


def _fmt_limit(value: float) -> str:
    return f"{value:g}"


def _round_half_up(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100
