"""Public entry point of the calculator

`Calculator.evaluate` runs the whole pipeline (normalize, tokenize, parse,
evaluate) against the session's own `Environment` and reports every outcome as
a `Result`; it never raises.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from callmath.config import CalculatorConfig
from callmath.environment import AngleMode, Environment
from callmath.errors import CalcError, ExpressionTooComplexError, ResultKind
from callmath.normalizer import normalize
from callmath.parser import Assignment, parse
from callmath.runtime import evaluate
from callmath.tokenizer import tokenize
from callmath.utils import format_number
from callmath.value import Float, QuantityValue, Text, Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result:
    value: str
    error: bool
    kind: ResultKind
    position: Optional[int] = None


class Calculator:
    def __init__(self, config: Optional[CalculatorConfig] = None) -> None:
        self.config = config or CalculatorConfig()
        self.environment = Environment(
            angle_mode=self.config.angle_mode,
            default_angle_mode=self.config.angle_mode,
        )

    def evaluate(self, expression: str) -> Result:
        logger.debug("Evaluating %r", expression)
        try:
            result = self._evaluate(expression)
        except CalcError as e:
            logger.debug("%s at %s: %s", e.kind, e.position, e.errmsg)
            return Result(value=e.errmsg, error=True, kind=e.kind, position=e.position)
        except RecursionError:
            e = ExpressionTooComplexError(max_depth=self.config.max_depth)
            logger.debug("%s: %s", e.kind, e.errmsg)
            return Result(value=e.errmsg, error=True, kind=e.kind)
        logger.debug("%r -> %s %r", expression, result.kind, result.value)
        return result

    def _evaluate(self, expression: str) -> Result:
        env = self.environment
        unit_names = env.unit_table.keys()
        source = normalize(expression, unit_names)
        tokens = tokenize(source, unit_names)
        statement = parse(tokens, code=expression, unit_names=unit_names, max_depth=self.config.max_depth)
        value = evaluate(statement, env, max_depth=self.config.max_depth)

        if isinstance(value, Float) and math.isfinite(value.v):
            env.last_result = value.v
            if isinstance(statement, Assignment):
                text = f"{statement.name} = {self.format(value)}"
                return Result(value=text, error=False, kind=ResultKind.ASSIGNMENT)
        return self._to_result(value)

    def _to_result(self, value: Value) -> Result:
        if isinstance(value, Text):
            return Result(value=value.s, error=False, kind=ResultKind.TEXT)
        magnitude = value.v if isinstance(value, (Float, QuantityValue)) else math.nan
        if math.isnan(magnitude):
            return Result(value="NaN", error=False, kind=ResultKind.NAN)
        if math.isinf(magnitude):
            text = "Infinity" if magnitude > 0 else "-Infinity"
            return Result(value=text, error=False, kind=ResultKind.INFINITY)
        if isinstance(value, QuantityValue):
            return Result(value=self.format(value), error=False, kind=ResultKind.QUANTITY)
        return Result(value=self.format(value), error=False, kind=ResultKind.NUMBER)

    def format(self, value: Value) -> str:
        if isinstance(value, Float):
            return format_number(value.v, self.config.precision)
        elif isinstance(value, QuantityValue):
            return f"{format_number(value.v, self.config.precision)} {value.unit}"
        elif isinstance(value, Text):
            return value.s
        else:
            raise RuntimeError(f"Unexpected value type: {value}")

    def reset(self) -> None:
        self.environment.reset()

    def get_variables(self) -> dict[str, float]:
        return dict(self.environment.variables)

    def list_units(self) -> list[str]:
        return self.environment.units.names()

    def set_angle_mode(self, mode: AngleMode) -> None:
        self.environment.set_angle_mode(mode)
