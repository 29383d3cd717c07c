import enum
import logging
import math
from dataclasses import dataclass, field

from callmath.units import DEFAULT_UNIT_TABLE, Unit, UnitConverter
from callmath.utils import PrintableEnum

logger = logging.getLogger(__name__)


class AngleMode(PrintableEnum):
    DEGREES = enum.auto()
    RADIANS = enum.auto()


# lexical constants, never stored as variables
CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "phi": (1 + math.sqrt(5)) / 2,
}

PREV = "prev"
CONVERSION_KEYWORDS = frozenset({"in", "to"})


def _default_unit_table() -> dict[str, Unit]:
    return dict(DEFAULT_UNIT_TABLE)


@dataclass
class Environment:
    """Mutable evaluation state of one calculator session"""

    angle_mode: AngleMode = AngleMode.DEGREES
    variables: dict[str, float] = field(default_factory=dict)
    last_result: float = 0.0
    unit_table: dict[str, Unit] = field(default_factory=_default_unit_table)
    default_angle_mode: AngleMode = AngleMode.DEGREES

    @property
    def units(self) -> UnitConverter:
        return UnitConverter(self.unit_table)

    def reset(self) -> None:
        self.angle_mode = self.default_angle_mode
        self.variables = dict()
        self.last_result = 0.0
        self.unit_table = _default_unit_table()
        logger.info("Environment reset, angle mode %s", self.angle_mode)

    def set_angle_mode(self, mode: AngleMode) -> None:
        if mode is not self.angle_mode:
            logger.info("Angle mode %s -> %s", self.angle_mode, mode)
        self.angle_mode = mode

    def to_radians(self, x: float) -> float:
        return math.radians(x) if self.angle_mode is AngleMode.DEGREES else x

    def from_radians(self, x: float) -> float:
        return math.degrees(x) if self.angle_mode is AngleMode.DEGREES else x
