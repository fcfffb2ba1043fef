"""Resource quantities such as ``500m``, ``1Gi`` or ``2M``."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from fractions import Fraction

__all__ = ["Quantity", "QuantityError", "QuantityFormat", "parse_quantity"]


class QuantityError(ValueError):
    """Raised when a string is not a valid quantity."""


class QuantityFormat(enum.Enum):
    """How a quantity is written out."""

    DECIMAL_SI = "DecimalSI"
    BINARY_SI = "BinarySI"
    DECIMAL_EXPONENT = "DecimalExponent"


_BINARY_SUFFIXES = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL_SUFFIXES = {
    "n": -9,
    "u": -6,
    "m": -3,
    "": 0,
    "k": 3,
    "M": 6,
    "G": 9,
    "T": 12,
    "P": 15,
    "E": 18,
}
_DECIMAL_BY_EXPONENT = {exp: suffix for suffix, exp in _DECIMAL_SUFFIXES.items()}
_BINARY_BY_POWER = {power: suffix for suffix, power in _BINARY_SUFFIXES.items()}
_BINARY_BY_POWER[0] = ""

_NUMBER_RE = re.compile(r"^([+-]?)(\d+(?:\.\d*)?|\.\d+)(.*)$")
_EXPONENT_RE = re.compile(r"^[eE]([+-]?\d+)$")

# Decimal quantities are kept to nano precision, rounded away from zero.
_SMALLEST_EXPONENT = -9
_LARGEST_EXPONENT = 18


@dataclass(frozen=True)
class Quantity:
    """An exact amount of a resource together with the format it was written in."""

    value: Fraction = field(default_factory=Fraction)
    format: QuantityFormat = QuantityFormat.DECIMAL_SI

    def is_zero(self) -> bool:
        """Return True when the quantity holds no amount."""
        return self.value == 0

    def __str__(self) -> str:
        if self.value == 0:
            return "0"
        sign = "-" if self.value < 0 else ""
        magnitude = abs(self.value)

        if (
            self.format is QuantityFormat.BINARY_SI
            and magnitude.denominator == 1
            and magnitude >= 1024
        ):
            number = magnitude.numerator
            power = 0
            while power < 6 and number % 1024 == 0:
                number //= 1024
                power += 1
            return f"{sign}{number}{_BINARY_BY_POWER[power]}"

        scaled = magnitude * 10 ** (-_SMALLEST_EXPONENT)
        mantissa = -(-scaled.numerator // scaled.denominator)
        exponent = _SMALLEST_EXPONENT
        while mantissa % 1000 == 0 and exponent < _LARGEST_EXPONENT:
            mantissa //= 1000
            exponent += 3

        if self.format is QuantityFormat.DECIMAL_EXPONENT:
            suffix = f"e{exponent}" if exponent else ""
        else:
            suffix = _DECIMAL_BY_EXPONENT[exponent]
        return f"{sign}{mantissa}{suffix}"


def parse_quantity(text: str) -> Quantity:
    """Parse a quantity string such as ``"1Gi"``, ``"500m"`` or ``"1e3"``."""
    match = _NUMBER_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise QuantityError(f"unable to parse quantity {text!r}")
    sign, number, suffix = match.groups()
    amount = Fraction(number)

    if suffix in _BINARY_SUFFIXES:
        amount *= 1024 ** _BINARY_SUFFIXES[suffix]
        fmt = QuantityFormat.BINARY_SI
    elif suffix in _DECIMAL_SUFFIXES:
        amount *= Fraction(10) ** _DECIMAL_SUFFIXES[suffix]
        fmt = QuantityFormat.DECIMAL_SI
    else:
        exponent_match = _EXPONENT_RE.match(suffix)
        if exponent_match is None:
            raise QuantityError(f"unable to parse quantity {text!r}")
        amount *= Fraction(10) ** int(exponent_match.group(1))
        fmt = QuantityFormat.DECIMAL_EXPONENT

    if sign == "-":
        amount = -amount
    return Quantity(amount, fmt)