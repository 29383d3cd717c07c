import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from callmath.environment import AngleMode, Environment
from callmath.errors import FactorialDomainError, InvalidOperandError
from callmath.value import Float, Text, Value

FACTORIAL_LIMIT = 170

BuiltinImpl = Callable[[Environment, list[Value]], Value]


@dataclass(frozen=True)
class BuiltinFunc:
    name: str
    fn: BuiltinImpl


BUILTIN_FUNCS: dict[str, BuiltinFunc] = dict()


def _check_arity(name: str, args: list[Value], arity: Optional[int], min_arity: int) -> None:
    if arity is not None and len(args) != arity:
        plural = "" if arity == 1 else "s"
        raise InvalidOperandError(f"{name!r} takes {arity} argument{plural}, got {len(args)}")
    if arity is None and len(args) < min_arity:
        raise InvalidOperandError(f"{name!r} takes at least {min_arity} arguments, got {len(args)}")


def register_builtin_func(*names: str, arity: Optional[int] = 1, min_arity: int = 0):
    """Registers fn(env, *floats) under every given name

    `arity=None` makes the function variadic with at least `min_arity`
    arguments. Domain failures of the underlying math (ValueError) become NaN
    and overflows become infinity, like IEEE floats behave elsewhere in the
    calculator.
    """
    primary_name = names[0]

    def decorator(fn: Callable[..., Union[float, Value]]) -> BuiltinImpl:
        def decorated(env: Environment, args: list[Value]) -> Value:
            _check_arity(primary_name, args, arity, min_arity)
            floats: list[float] = []
            for arg in args:
                if not isinstance(arg, Float):
                    raise InvalidOperandError(
                        f"{primary_name!r} is not defined for argument of type {arg.type_name()}"
                    )
                floats.append(arg.v)
            try:
                res = fn(env, *floats)
            except ValueError:
                return Float(math.nan)
            except OverflowError:
                return Float(math.inf)
            return res if isinstance(res, Value) else Float(res)

        for name in names:
            BUILTIN_FUNCS[name] = BuiltinFunc(name=name, fn=decorated)
        return decorated

    return decorator


def _require_integer(name: str, x: float) -> int:
    if not math.isfinite(x) or not x.is_integer():
        raise InvalidOperandError(f"{name!r} is only defined for integers, got {x:g}")
    return int(x)


# trigonometry


def _degrees_remainder(env: Environment, x: float) -> Optional[float]:
    """x mod 180 when the angle mode makes exact results possible"""
    if env.angle_mode is AngleMode.DEGREES and math.isfinite(x):
        return math.fmod(x, 180.0)
    return None


@register_builtin_func("sin")
def sin_(env: Environment, x: float) -> float:
    if _degrees_remainder(env, x) == 0:
        return 0.0
    return math.sin(env.to_radians(x))


@register_builtin_func("cos")
def cos_(env: Environment, x: float) -> float:
    if _degrees_remainder(env, x) in (90.0, -90.0):
        return 0.0
    return math.cos(env.to_radians(x))


@register_builtin_func("tan")
def tan_(env: Environment, x: float) -> float:
    rem = _degrees_remainder(env, x)
    if rem == 0:
        return 0.0
    if rem in (90.0, -90.0):
        return math.inf
    return math.tan(env.to_radians(x))


@register_builtin_func("asin")
def asin_(env: Environment, x: float) -> float:
    return env.from_radians(math.asin(x))


@register_builtin_func("acos")
def acos_(env: Environment, x: float) -> float:
    return env.from_radians(math.acos(x))


@register_builtin_func("atan")
def atan_(env: Environment, x: float) -> float:
    return env.from_radians(math.atan(x))


# pure numeric


@register_builtin_func("sqrt")
def sqrt_(env: Environment, x: float) -> float:
    return math.sqrt(x)


@register_builtin_func("abs")
def abs_(env: Environment, x: float) -> float:
    return abs(x)


@register_builtin_func("pow", arity=2)
def pow_(env: Environment, base: float, exponent: float) -> float:
    return power(base, exponent)


@register_builtin_func("ln")
def ln_(env: Environment, x: float) -> float:
    if x == 0:
        return -math.inf
    return math.log(x)


@register_builtin_func("log")
def log_(env: Environment, x: float) -> float:
    if x == 0:
        return -math.inf
    return math.log10(x)


@register_builtin_func("exp")
def exp_(env: Environment, x: float) -> float:
    return math.exp(x)


@register_builtin_func("sq", "square")
def sq_(env: Environment, x: float) -> float:
    return x * x


@register_builtin_func("cube")
def cube_(env: Environment, x: float) -> float:
    return x * x * x


@register_builtin_func("gcd", arity=None, min_arity=2)
def gcd_(env: Environment, *xs: float) -> float:
    return float(math.gcd(*(_require_integer("gcd", x) for x in xs)))


@register_builtin_func("lcm", arity=None, min_arity=2)
def lcm_(env: Environment, *xs: float) -> float:
    return float(math.lcm(*(_require_integer("lcm", x) for x in xs)))


@register_builtin_func("hypotenuse", "hyp", arity=2)
def hypotenuse_(env: Environment, a: float, b: float) -> float:
    return math.hypot(a, b)


@register_builtin_func("distance", "dist", arity=4)
def distance_(env: Environment, x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


@register_builtin_func("fact", "factorial")
def fact_(env: Environment, n: float) -> float:
    if not math.isfinite(n) or not n.is_integer() or n < 0 or n > FACTORIAL_LIMIT:
        raise FactorialDomainError(arg=n, limit=FACTORIAL_LIMIT)
    return float(math.factorial(int(n)))


# angle mode


@register_builtin_func("deg", "setdeg", arity=0)
def deg_(env: Environment) -> Value:
    env.set_angle_mode(AngleMode.DEGREES)
    return Text("Degrees mode")


@register_builtin_func("rad", "setrad", arity=0)
def rad_(env: Environment) -> Value:
    env.set_angle_mode(AngleMode.RADIANS)
    return Text("Radians mode")


def power(base: float, exponent: float) -> float:
    """base ** exponent with IEEE-style results instead of exceptions"""
    if base == 0 and exponent < 0:
        return math.inf
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and exponent.is_integer() and int(exponent) % 2:
            return -math.inf
        return math.inf
    except ValueError:
        return math.nan
