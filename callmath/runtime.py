import math
from typing import Type

from callmath.builtins import BUILTIN_FUNCS, power
from callmath.environment import CONSTANTS, CONVERSION_KEYWORDS, PREV, Environment
from callmath.errors import (
    CalcError,
    DimensionMismatchError,
    ExpressionTooComplexError,
    InvalidOperandError,
    NotDefinedError,
    ReservedNameError,
    UndefinedNameError,
)
from callmath.parser import (
    DEFAULT_MAX_DEPTH,
    Assignment,
    BinaryOperation,
    BinaryOperator,
    Call,
    Conversion,
    Identifier,
    NumberLiteral,
    Quantity,
    Statement,
    UnaryOperation,
    UnaryOperator,
)
from callmath.units import DIMENSIONLESS, UnitConverter
from callmath.value import BinaryOperationImpl, Float, QuantityValue, UnaryOperationImpl, Value


def evaluate(statement: Statement, env: Environment, max_depth: int = DEFAULT_MAX_DEPTH) -> Value:
    """Evaluates a parsed statement, binding variables and switching modes in `env`

    A failed statement raises with `env` as it was: nothing is bound and a mode
    switch made along the way is undone.
    """
    angle_mode = env.angle_mode
    try:
        return _evaluate_statement(statement, env, max_depth)
    except (CalcError, RecursionError):
        env.angle_mode = angle_mode
        raise


def _evaluate_statement(statement: Statement, env: Environment, max_depth: int) -> Value:
    if isinstance(statement, Assignment):
        value = evaluate_expression(statement.value, env, max_depth=max_depth)
        _check_assignable(statement.name, env)
        if not isinstance(value, Float):
            raise InvalidOperandError(f"Only plain numbers can be stored, got a {value.type_name()}")
        if math.isfinite(value.v):
            env.variables[statement.name] = value.v
        return value
    elif isinstance(statement, Conversion):
        value = evaluate_expression(statement.value, env, max_depth=max_depth)
        return convert_value(value, statement.target_unit, env.units)
    else:
        return evaluate_expression(statement, env, max_depth=max_depth)


def is_reserved_name(name: str, env: Environment) -> bool:
    return (
        name in CONSTANTS
        or name in BUILTIN_FUNCS
        or name in env.unit_table
        or name in CONVERSION_KEYWORDS
        or name == PREV
    )


def _check_assignable(name: str, env: Environment) -> None:
    if is_reserved_name(name, env):
        raise ReservedNameError(name)


def convert_value(value: Value, target_unit: str, units: UnitConverter) -> QuantityValue:
    target_dimension = units.dimension_of(target_unit)
    if isinstance(value, QuantityValue):
        return QuantityValue(units.convert(value.v, value.unit, target_unit), target_unit)
    raise DimensionMismatchError(from_dim=_dimension_label(value, units), to_dim=target_dimension.label)


def evaluate_expression(
    expression: Statement, env: Environment, depth: int = 0, max_depth: int = DEFAULT_MAX_DEPTH
) -> Value:
    if depth > max_depth:
        raise ExpressionTooComplexError(max_depth=max_depth)

    if isinstance(expression, NumberLiteral):
        return Float(expression.value)
    elif isinstance(expression, Identifier):
        return Float(_resolve_name(expression.name, env))
    elif isinstance(expression, Quantity):
        magnitude = evaluate_expression(expression.value, env, depth + 1, max_depth)
        env.units.lookup(expression.unit)
        if not isinstance(magnitude, Float):
            raise InvalidOperandError(f"A {magnitude.type_name()} cannot carry a unit")
        return QuantityValue(magnitude.v, expression.unit)
    elif isinstance(expression, Call):
        func = BUILTIN_FUNCS.get(expression.name)
        if func is None:
            raise UndefinedNameError(expression.name)
        args = [evaluate_expression(arg, env, depth + 1, max_depth) for arg in expression.args]
        return func.fn(env, args)
    elif isinstance(expression, BinaryOperation):
        left_res = evaluate_expression(expression.left, env, depth + 1, max_depth)
        right_res = evaluate_expression(expression.right, env, depth + 1, max_depth)
        units = env.units
        if expression.operator == BinaryOperator.ADD:
            return eval_binary_operation(add_impls(units), a=left_res, b=right_res, op_name="Addition")
        elif expression.operator == BinaryOperator.SUB:
            return eval_binary_operation(sub_impls(units), a=left_res, b=right_res, op_name="Subtraction")
        elif expression.operator == BinaryOperator.MUL:
            return eval_binary_operation(mul_impls, a=left_res, b=right_res, op_name="Multiplication")
        elif expression.operator == BinaryOperator.DIV:
            return eval_binary_operation(div_impls(units), a=left_res, b=right_res, op_name="Division")
        elif expression.operator == BinaryOperator.POW:
            return eval_binary_operation(pow_impls, a=left_res, b=right_res, op_name="Power")
        elif expression.operator in (BinaryOperator.PERCENT_ADD, BinaryOperator.PERCENT_SUB):
            share = eval_binary_operation(
                mul_impls, a=left_res, b=_percent(right_res), op_name="Percentage")
            table = add_impls(units) if expression.operator == BinaryOperator.PERCENT_ADD else sub_impls(units)
            return eval_binary_operation(table, a=left_res, b=share, op_name="Percentage")
        else:
            raise RuntimeError(f"Unexpected binary operator: {expression.operator}")
    elif isinstance(expression, UnaryOperation):
        operand = evaluate_expression(expression.operand, env, depth + 1, max_depth)
        if expression.operator is UnaryOperator.NEG:
            return eval_unary_operation(neg_impls, operand=operand, op_name="Negation")
        elif expression.operator is UnaryOperator.POS:
            return eval_unary_operation(pos_impls, operand=operand, op_name="Unary plus")
        elif expression.operator is UnaryOperator.PERCENT:
            return _percent(operand)
        else:
            raise RuntimeError(f"Unexpected unary operator: {expression.operator}")
    else:
        raise RuntimeError(f"Unexpected expression type: {expression}")


def _resolve_name(name: str, env: Environment) -> float:
    if name in CONSTANTS:
        return CONSTANTS[name]
    elif name in env.variables:
        return env.variables[name]
    elif name == PREV:
        return env.last_result
    else:
        raise UndefinedNameError(name)


def _percent(value: Value) -> Value:
    if not isinstance(value, Float):
        raise InvalidOperandError(f"Percent is not defined for {value.type_name()}")
    return Float(value.v / 100)


def _dimension_label(value: Value, units: UnitConverter) -> str:
    if isinstance(value, QuantityValue):
        return units.dimension_of(value.unit).label
    if isinstance(value, Float):
        return DIMENSIONLESS
    return value.type_name()


BinaryOperationImplTable = list[tuple[tuple[Type[Value], Type[Value]], BinaryOperationImpl]]


def eval_binary_operation(table: BinaryOperationImplTable, a: Value, b: Value, op_name: str) -> Value:
    for (type_a, type_b), impl in table:
        if isinstance(a, type_a) and isinstance(b, type_b):
            return impl(a, b)
    else:
        raise InvalidOperandError(f"{op_name} is not defined for {a.type_name()} and {b.type_name()}")


def divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0:
            raise NotDefinedError()
        if math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _negate(q: QuantityValue) -> QuantityValue:
    return QuantityValue(-q.v, q.unit)


def _mismatch(units: UnitConverter) -> BinaryOperationImpl:
    def impl(a: Value, b: Value) -> Value:
        raise DimensionMismatchError(from_dim=_dimension_label(a, units), to_dim=_dimension_label(b, units))

    return impl


def add_impls(units: UnitConverter) -> BinaryOperationImplTable:
    return [
        ((Float, Float), lambda a, b: Float(a.v + b.v)),  # type: ignore
        ((QuantityValue, QuantityValue), units.add_quantities),  # type: ignore
        ((Float, QuantityValue), _mismatch(units)),
        ((QuantityValue, Float), _mismatch(units)),
    ]


def sub_impls(units: UnitConverter) -> BinaryOperationImplTable:
    return [
        ((Float, Float), lambda a, b: Float(a.v - b.v)),  # type: ignore
        ((QuantityValue, QuantityValue), lambda a, b: units.add_quantities(a, _negate(b))),  # type: ignore
        ((Float, QuantityValue), _mismatch(units)),
        ((QuantityValue, Float), _mismatch(units)),
    ]


def div_impls(units: UnitConverter) -> BinaryOperationImplTable:
    def ratio(a: QuantityValue, b: QuantityValue) -> Value:
        a_base = units.to_base(a)
        b_base = units.to_base(b)
        if a_base.unit != b_base.unit:
            raise DimensionMismatchError(
                from_dim=units.dimension_of(a.unit).label, to_dim=units.dimension_of(b.unit).label
            )
        return Float(divide(a_base.v, b_base.v))

    return [
        ((Float, Float), lambda a, b: Float(divide(a.v, b.v))),  # type: ignore
        ((QuantityValue, Float), lambda a, b: QuantityValue(divide(a.v, b.v), a.unit)),  # type: ignore
        ((QuantityValue, QuantityValue), ratio),  # type: ignore
    ]


mul_impls: BinaryOperationImplTable = [
    ((Float, Float), lambda a, b: Float(a.v * b.v)),  # type: ignore
    ((QuantityValue, Float), lambda a, b: QuantityValue(a.v * b.v, a.unit)),  # type: ignore
    ((Float, QuantityValue), lambda a, b: QuantityValue(a.v * b.v, b.unit)),  # type: ignore
]
pow_impls: BinaryOperationImplTable = [((Float, Float), lambda a, b: Float(power(a.v, b.v)))]  # type: ignore

UnaryOperationImplTable = list[tuple[Type[Value], UnaryOperationImpl]]


def eval_unary_operation(table: UnaryOperationImplTable, operand: Value, op_name: str) -> Value:
    for operand_type, impl in table:
        if isinstance(operand, operand_type):
            return impl(operand)
    else:
        raise InvalidOperandError(f"{op_name} is not defined for {operand.type_name()}")


neg_impls: UnaryOperationImplTable = [
    (Float, lambda a: Float(-a.v)),  # type: ignore
    (QuantityValue, _negate),  # type: ignore
]
pos_impls: UnaryOperationImplTable = [(Float, lambda a: a), (QuantityValue, lambda a: a)]
