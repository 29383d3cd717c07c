import math

import pytest

from callmath.environment import AngleMode, Environment
from callmath.errors import (
    CalcError,
    DimensionMismatchError,
    ExpressionTooComplexError,
    FactorialDomainError,
    InvalidOperandError,
    NotDefinedError,
    ReservedNameError,
    UndefinedNameError,
    UnknownUnitError,
)
from callmath.normalizer import normalize
from callmath.parser import parse
from callmath.runtime import evaluate
from callmath.tokenizer import tokenize
from callmath.value import Float, QuantityValue, Text, Value


def run(code: str, env: Environment) -> Value:
    unit_names = env.unit_table.keys()
    tokens = tokenize(normalize(code, unit_names), unit_names)
    return evaluate(parse(tokens, code=code, unit_names=unit_names), env)


@pytest.mark.parametrize(
    "code, expected_ret_val",
    [
        pytest.param("1", Float(1.0)),
        pytest.param("-1", Float(-1.0)),
        pytest.param("+1", Float(1.0)),
        pytest.param("1+2", Float(3.0)),
        pytest.param("(1+2)", Float(3.0)),
        pytest.param("-(1+2)", Float(-3.0)),
        pytest.param("(((1)))", Float(1.0)),
        pytest.param("1 * 4 + 5", Float(9.0)),
        pytest.param("1 + 4 * 5", Float(21.0)),
        pytest.param("10 / 5 / 2 / 2", Float(0.5)),
        pytest.param("10 + 2 * (5 + 3 - 1)", Float(24.0)),
        pytest.param("2--3", Float(5.0)),
        pytest.param("2*-3", Float(-6.0)),
        # power
        pytest.param("2^10", Float(1024.0)),
        pytest.param("2**3**2", Float(512.0)),
        pytest.param("-2**2", Float(-4.0)),
        pytest.param("2**-1", Float(0.5)),
        pytest.param("5²", Float(25.0)),
        # percent
        pytest.param("50%", Float(0.5)),
        # implicit multiplication and shorthand
        pytest.param("2(3+4)", Float(14.0)),
        pytest.param("(1+1)(2+2)", Float(8.0)),
        pytest.param("what is 6×7?", Float(42.0)),
        pytest.param("9÷3", Float(3.0)),
        pytest.param("2π", Float(2 * math.pi)),
        pytest.param("√16", Float(4.0)),
        pytest.param("sqrt 16", Float(4.0)),
        # funcs
        pytest.param("sqrt(9)", Float(3.0)),
        pytest.param("abs(-3)", Float(3.0)),
        pytest.param("pow(2, 10)", Float(1024.0)),
        pytest.param("sq(5)", Float(25.0)),
        pytest.param("square(5)", Float(25.0)),
        pytest.param("cube(3)", Float(27.0)),
        pytest.param("gcd(12, 18)", Float(6.0)),
        pytest.param("lcm(4, 6)", Float(12.0)),
        pytest.param("hyp(3, 4)", Float(5.0)),
        pytest.param("hypotenuse(3, 4)", Float(5.0)),
        pytest.param("distance(0, 0, 3, 4)", Float(5.0)),
        pytest.param("fact(5)", Float(120.0)),
        pytest.param("fact(0)", Float(1.0)),
        pytest.param("log(1000)", Float(3.0)),
        pytest.param("ln(e)", Float(1.0)),
        pytest.param("exp(0)", Float(1.0)),
        pytest.param("sin(90)", Float(1.0)),
        pytest.param("sin90", Float(1.0)),
        pytest.param("sin(180)", Float(0.0)),
        pytest.param("cos(90)", Float(0.0)),
        pytest.param("cos(0)", Float(1.0)),
        pytest.param("tan(90)", Float(math.inf)),
        # non-finite outcomes
        pytest.param("5/0", Float(math.inf)),
        pytest.param("-5/0", Float(-math.inf)),
        pytest.param("10**400", Float(math.inf)),
        # quantities
        pytest.param("10km + 500m", QuantityValue(10500.0, "m")),
        pytest.param("1h + 30min", QuantityValue(5400.0, "s")),
        pytest.param("1h - 30min", QuantityValue(1800.0, "s")),
        pytest.param("2 * 3km", QuantityValue(6.0, "km")),
        pytest.param("10km / 4", QuantityValue(2.5, "km")),
        pytest.param("1km / 500m", Float(2.0)),
        pytest.param("-5m", QuantityValue(-5.0, "m")),
        pytest.param("(2+3)km", QuantityValue(5.0, "km")),
        pytest.param("10km to m", QuantityValue(10000.0, "m")),
        pytest.param("1h + 30min in min", QuantityValue(90.0, "min")),
        # mode switches
        pytest.param("deg()", Text("Degrees mode")),
        pytest.param("rad()", Text("Radians mode")),
    ],
)
def test_eval_arithmetic(code: str, expected_ret_val: Value) -> None:
    assert run(code, Environment()) == expected_ret_val


@pytest.mark.parametrize(
    "code, expected",
    [
        pytest.param("200+15%", 230.0),
        pytest.param("200-10%", 180.0),
        pytest.param("200*10%", 20.0),
        pytest.param("50+10%+10%", 60.5),
        pytest.param("2**50%", math.sqrt(2)),
        pytest.param("sin(30)", 0.5),
        pytest.param("asin(1)", 90.0),
        pytest.param("tan(45)", 1.0),
        pytest.param("acos(0.5)", 60.0),
        pytest.param("atan(1)", 45.0),
        pytest.param("90 km/h to m/s", 25.0),
        pytest.param("1 mph to km/h", 1.609344),
    ],
)
def test_eval_approximate(code: str, expected: float) -> None:
    res = run(code, Environment())
    assert isinstance(res, (Float, QuantityValue))
    assert res.v == pytest.approx(expected)


@pytest.mark.parametrize("code", ["sqrt(-1)", "asin(2)", "ln(-1)", "pow(-8, 1/3)"])
def test_domain_failures_are_nan(code: str) -> None:
    res = run(code, Environment())
    assert isinstance(res, Float)
    assert math.isnan(res.v)


def test_radians_mode() -> None:
    env = Environment(angle_mode=AngleMode.RADIANS)
    assert run("sin(pi/2)", env) == Float(1.0)
    assert run("asin(1)", env) == Float(math.pi / 2)


def test_mode_switch_changes_environment() -> None:
    env = Environment()
    run("rad()", env)
    assert env.angle_mode is AngleMode.RADIANS
    run("setdeg()", env)
    assert env.angle_mode is AngleMode.DEGREES


@pytest.mark.parametrize(
    "code, error_type",
    [
        pytest.param("0/0", NotDefinedError),
        pytest.param("y + 1", UndefinedNameError),
        pytest.param("foo(2)", UndefinedNameError),
        pytest.param("sin", UndefinedNameError),
        pytest.param("fact(-1)", FactorialDomainError),
        pytest.param("fact(171)", FactorialDomainError),
        pytest.param("fact(2.5)", FactorialDomainError),
        pytest.param("10km + 5", DimensionMismatchError),
        pytest.param("10km + 1h", DimensionMismatchError),
        pytest.param("1km / 1h", DimensionMismatchError),
        pytest.param("10km to s", DimensionMismatchError),
        pytest.param("5 to m", DimensionMismatchError),
        pytest.param("10km to parsec", UnknownUnitError),
        pytest.param("deg() + 1", InvalidOperandError),
        pytest.param("sin(1, 2)", InvalidOperandError),
        pytest.param("hyp(3)", InvalidOperandError),
        pytest.param("gcd(2.5, 5)", InvalidOperandError),
        pytest.param("gcd(4)", InvalidOperandError),
        pytest.param("sqrt(4km)", InvalidOperandError),
        pytest.param("2 ** 3km", InvalidOperandError),
        pytest.param("10km%", InvalidOperandError),
    ],
)
def test_eval_errors(code: str, error_type: type[CalcError]) -> None:
    with pytest.raises(error_type):
        run(code, Environment())


def test_dimension_mismatch_names_dimensions() -> None:
    with pytest.raises(DimensionMismatchError) as exc_info:
        run("10km + 5", Environment())
    assert (exc_info.value.from_dim, exc_info.value.to_dim) == ("length", "dimensionless")


@pytest.mark.parametrize(
    "code, expected_variables",
    [
        pytest.param("a = 1", {"a": 1.0}),
        pytest.param("b = 2 * (3 + 4)", {"b": 14.0}),
        pytest.param("c = 5/0", {}),
    ],
)
def test_assignment(code: str, expected_variables: dict[str, float]) -> None:
    env = Environment()
    run(code, env)
    assert env.variables == expected_variables


def test_variables_are_resolved() -> None:
    env = Environment()
    run("a = 1", env)
    run("b = 2", env)
    assert run("a + b", env) == Float(3.0)
    assert run("2a", env) == Float(2.0)


def test_prev_is_last_result() -> None:
    env = Environment(last_result=7.0)
    assert run("prev * 2", env) == Float(14.0)


@pytest.mark.parametrize(
    "code, error_type",
    [
        pytest.param("pi = 3", ReservedNameError),
        pytest.param("e = 3", ReservedNameError),
        pytest.param("sin = 2", ReservedNameError),
        pytest.param("km = 2", ReservedNameError),
        pytest.param("prev = 1", ReservedNameError),
        pytest.param("x = y + 1", UndefinedNameError),
        pytest.param("x = 3km", InvalidOperandError),
        pytest.param("x = 0/0", NotDefinedError),
    ],
)
def test_failed_assignment_leaves_environment_untouched(code: str, error_type: type[CalcError]) -> None:
    env = Environment(variables={"x": 1.0})
    with pytest.raises(error_type):
        run(code, env)
    assert env.variables == {"x": 1.0}


def test_evaluation_depth_is_limited() -> None:
    with pytest.raises(ExpressionTooComplexError):
        run("1" + "+1" * 300, Environment())
