from dataclasses import dataclass

from callmath.environment import AngleMode
from callmath.parser import DEFAULT_MAX_DEPTH

DEFAULT_PRECISION = 12


@dataclass(frozen=True)
class CalculatorConfig:
    precision: int = DEFAULT_PRECISION  # significant digits of printed numbers
    max_depth: int = DEFAULT_MAX_DEPTH  # deepest expression tree accepted
    angle_mode: AngleMode = AngleMode.DEGREES  # mode after start and after reset

    def __post_init__(self) -> None:
        if not 1 <= self.precision <= 17:
            raise ValueError(f"precision must be between 1 and 17, got {self.precision}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
