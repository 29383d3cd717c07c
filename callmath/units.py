import enum
from dataclasses import dataclass
from typing import Mapping

from callmath.errors import DimensionMismatchError, UnknownUnitError
from callmath.utils import PrintableEnum
from callmath.value import QuantityValue


class Dimension(PrintableEnum):
    LENGTH = enum.auto()
    TIME = enum.auto()
    SPEED = enum.auto()

    @property
    def label(self) -> str:
        return self.name.lower()


# label used when a bare number meets a quantity
DIMENSIONLESS = "dimensionless"


@dataclass(frozen=True)
class Unit:
    dimension: Dimension
    scale: float  # factor to the dimension's base unit


BASE_UNITS: dict[Dimension, str] = {
    Dimension.LENGTH: "m",
    Dimension.TIME: "s",
    Dimension.SPEED: "m/s",
}

DEFAULT_UNIT_TABLE: dict[str, Unit] = {
    "mm": Unit(Dimension.LENGTH, 0.001),
    "cm": Unit(Dimension.LENGTH, 0.01),
    "m": Unit(Dimension.LENGTH, 1.0),
    "km": Unit(Dimension.LENGTH, 1000.0),
    "inch": Unit(Dimension.LENGTH, 0.0254),
    "ft": Unit(Dimension.LENGTH, 0.3048),
    "s": Unit(Dimension.TIME, 1.0),
    "min": Unit(Dimension.TIME, 60.0),
    "h": Unit(Dimension.TIME, 3600.0),
    "m/s": Unit(Dimension.SPEED, 1.0),
    "km/h": Unit(Dimension.SPEED, 1000 / 3600),
    "km/hr": Unit(Dimension.SPEED, 1000 / 3600),
    "mph": Unit(Dimension.SPEED, 0.44704),
}


class UnitConverter:
    """Dimension-aware conversion over a unit table

    Conversion pivots through the dimension's base unit, so only units of the
    same dimension can be converted into each other or added together.
    """

    def __init__(self, table: Mapping[str, Unit]) -> None:
        self.table = table

    def names(self) -> list[str]:
        return list(self.table)

    def lookup(self, name: str) -> Unit:
        try:
            return self.table[name]
        except KeyError:
            raise UnknownUnitError(name) from None

    def dimension_of(self, name: str) -> Dimension:
        return self.lookup(name).dimension

    def convert(self, value: float, from_unit: str, to_unit: str) -> float:
        src = self.lookup(from_unit)
        dst = self.lookup(to_unit)
        if src.dimension is not dst.dimension:
            raise DimensionMismatchError(from_dim=src.dimension.label, to_dim=dst.dimension.label)
        return value * src.scale / dst.scale

    def to_base(self, q: QuantityValue) -> QuantityValue:
        dimension = self.dimension_of(q.unit)
        base = BASE_UNITS[dimension]
        return QuantityValue(self.convert(q.v, q.unit, base), base)

    def add_quantities(self, q1: QuantityValue, q2: QuantityValue) -> QuantityValue:
        dim1 = self.dimension_of(q1.unit)
        dim2 = self.dimension_of(q2.unit)
        if dim1 is not dim2:
            raise DimensionMismatchError(from_dim=dim1.label, to_dim=dim2.label)
        a = self.to_base(q1)
        b = self.to_base(q2)
        return QuantityValue(a.v + b.v, a.unit)
