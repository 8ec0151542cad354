"""
Resource quantity parsing and formatting.
Converts Kubernetes CPU and memory strings into base-unit quantities and back.

CPU is normalized to nanocores, memory and storage to kibibytes. A single unit
table drives both directions, so every token the formatter emits is one the
parser accepts.

format_cpu and format_memory are string entry points for presentation clients.
"""

import logging
import math
import re
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

logger = logging.getLogger(__name__)


class UnitFamily(str, Enum):
    """Base unit a group of unit tokens converts into."""

    NANOCORES = "nanocores"
    KIBIBYTES = "kibibytes"


class Dimension(str, Enum):
    """Kind of resource a quantity measures."""

    CPU = "cpu"
    MEMORY = "memory"
    STORAGE = "storage"

    @property
    def family(self) -> UnitFamily:
        if self is Dimension.CPU:
            return UnitFamily.NANOCORES
        return UnitFamily.KIBIBYTES


class Unit(Enum):
    """Unit tokens with the factor that converts them into their family base unit."""

    NANOCORES = (UnitFamily.NANOCORES, ("n",), 1)
    MICROCORES = (UnitFamily.NANOCORES, ("u",), 10**3)
    MILLICORES = (UnitFamily.NANOCORES, ("m",), 10**6)
    CORES = (UnitFamily.NANOCORES, ("",), 10**9)

    BYTES = (UnitFamily.KIBIBYTES, ("", "B"), 1 / 1024)
    KIBIBYTES = (UnitFamily.KIBIBYTES, ("Ki", "KiB"), 1)
    MEBIBYTES = (UnitFamily.KIBIBYTES, ("Mi", "MiB"), 1024)
    GIBIBYTES = (UnitFamily.KIBIBYTES, ("Gi", "GiB"), 1024**2)
    TEBIBYTES = (UnitFamily.KIBIBYTES, ("Ti", "TiB"), 1024**3)
    PEBIBYTES = (UnitFamily.KIBIBYTES, ("Pi", "PiB"), 1024**4)
    KILOBYTES = (UnitFamily.KIBIBYTES, ("K", "KB"), 1000 / 1024)
    MEGABYTES = (UnitFamily.KIBIBYTES, ("M", "MB"), 1000**2 / 1024)
    GIGABYTES = (UnitFamily.KIBIBYTES, ("G", "GB"), 1000**3 / 1024)
    TERABYTES = (UnitFamily.KIBIBYTES, ("T", "TB"), 1000**4 / 1024)
    PETABYTES = (UnitFamily.KIBIBYTES, ("P", "PB"), 1000**5 / 1024)

    def __init__(self, family: UnitFamily, tokens: Tuple[str, ...], factor: float):
        self.family = family
        self.tokens = tokens
        self.factor = factor

    @property
    def symbol(self) -> str:
        """Spelling used when rendering a value in this unit."""
        return self.tokens[-1]


_UNITS_BY_TOKEN: Dict[Tuple[UnitFamily, str], Unit] = {
    (unit.family, token.lower()): unit for unit in Unit for token in unit.tokens
}

_PLAIN_UNITS: Dict[UnitFamily, Unit] = {
    UnitFamily.NANOCORES: Unit.CORES,
    UnitFamily.KIBIBYTES: Unit.BYTES,
}

# Largest first; bytes are handled separately since they render without decimals.
_MEMORY_DISPLAY_UNITS = (
    Unit.TEBIBYTES,
    Unit.GIBIBYTES,
    Unit.MEBIBYTES,
    Unit.KIBIBYTES,
)

_QUANTITY_PATTERN = re.compile(
    r"^\s*(?P<number>\d+(?:\.\d*)?|\.\d+)"
    r"(?:[eE](?P<exponent>[+-]?\d+))?"
    r"\s*(?P<unit>.*?)\s*$"
)


class Quantity(BaseModel):
    """An amount of one resource dimension in its base unit (nanocores or KiB)."""

    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    value: float = Field(default=0.0, ge=0)

    @classmethod
    def zero(cls, dimension: Dimension) -> "Quantity":
        return cls(dimension=dimension, value=0.0)

    @computed_field
    @property
    def display(self) -> str:
        return format_quantity(self)

    def __add__(self, other: "Quantity") -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        if other.dimension != self.dimension:
            raise ValueError(
                f"Cannot add {other.dimension.value} quantity to {self.dimension.value} quantity"
            )
        return Quantity(dimension=self.dimension, value=self.value + other.value)


def lookup_unit(token: str, dimension: Dimension) -> Optional[Unit]:
    """Return the unit a token denotes for the dimension, or None if unknown."""
    return _UNITS_BY_TOKEN.get((dimension.family, token.strip().lower()))


def parse_quantity(raw: Optional[Union[str, int, float]], dimension: Union[Dimension, str]) -> Quantity:
    """
    Parse a Kubernetes quantity string into base units.

    Handles the formats emitted by the API server and metrics-server:
    - CPU: "2" (cores), "250m" (millicores), "500u" (microcores), "32859908n" (nanocores)
    - Memory: "1847100Ki", "512Mi", "1Gi" (binary), "1G", "500M" (decimal), "1024" (bytes)

    Args:
        raw: Quantity as reported by the cluster (e.g., "100m", "1.5Gi")
        dimension: Dimension the value belongs to

    Returns:
        Quantity: Parsed quantity. Never raises; malformed input yields zero.
    """
    dimension = Dimension(dimension)
    if raw is None or isinstance(raw, bool):
        return Quantity.zero(dimension)

    text = str(raw)
    match = _QUANTITY_PATTERN.match(text)
    if not match:
        if text.strip():
            logger.debug(f"Malformed {dimension.value} quantity {text!r}, using zero")
        return Quantity.zero(dimension)

    literal = match.group("number")
    if match.group("exponent"):
        literal = f"{literal}e{match.group('exponent')}"
    number = float(literal)

    unit = lookup_unit(match.group("unit"), dimension)
    if unit is None:
        logger.debug(
            f"Unknown {dimension.value} unit {match.group('unit')!r} in {text!r}, "
            f"reading it without a unit"
        )
        unit = _PLAIN_UNITS[dimension.family]

    value = number * unit.factor
    if not math.isfinite(value):
        logger.debug(f"Out of range {dimension.value} quantity {text!r}, using zero")
        return Quantity.zero(dimension)
    return Quantity(dimension=dimension, value=value)


def sum_quantities(quantities: Iterable[Quantity], dimension: Dimension) -> Quantity:
    """Sum quantities of one dimension. The result does not depend on input order."""
    values = []
    for quantity in quantities:
        if quantity.dimension != dimension:
            raise ValueError(
                f"Cannot sum {quantity.dimension.value} quantity into {dimension.value} total"
            )
        values.append(quantity.value)
    return Quantity(dimension=dimension, value=math.fsum(values))


def _format_cores(nanocores: float) -> str:
    millicores = nanocores / Unit.MILLICORES.factor
    if millicores < 1000:
        return f"{millicores:.2f}m"
    return f"{nanocores / Unit.CORES.factor:.2f}"


def _format_bytes(kibibytes: float) -> str:
    for unit in _MEMORY_DISPLAY_UNITS:
        if kibibytes >= unit.factor:
            return f"{kibibytes / unit.factor:.2f} {unit.symbol}"
    return f"{kibibytes / Unit.BYTES.factor:.0f} {Unit.BYTES.symbol}"


def format_quantity(quantity: Quantity) -> str:
    """
    Render a quantity as a human-readable string.

    CPU below one core is shown in millicores ("32.86m"), otherwise in cores
    ("2.50"). Memory and storage always use binary units ("1.76 GiB"), even
    when the source value used a decimal suffix.
    """
    if quantity.dimension.family is UnitFamily.NANOCORES:
        return _format_cores(quantity.value)
    return _format_bytes(quantity.value)


def format_cpu(raw: Optional[str]) -> str:
    """Format a raw CPU string, e.g. "32859908n" -> "32.86m"."""
    return format_quantity(parse_quantity(raw, Dimension.CPU))


def format_memory(raw: Optional[str]) -> str:
    """Format a raw memory string, e.g. "1847100Ki" -> "1.76 GiB"."""
    return format_quantity(parse_quantity(raw, Dimension.MEMORY))
