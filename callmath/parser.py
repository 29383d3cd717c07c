import enum
from dataclasses import dataclass, field
from typing import Collection, Optional, Union

from callmath.builtins import BUILTIN_FUNCS
from callmath.environment import CONVERSION_KEYWORDS
from callmath.errors import ExpressionTooComplexError, ParseError, ResultKind
from callmath.tokenizer import Token, TokenType
from callmath.utils import PrintableEnum

DEFAULT_MAX_DEPTH = 200


class BinaryOperator(PrintableEnum):
    ADD = enum.auto()
    SUB = enum.auto()
    MUL = enum.auto()
    DIV = enum.auto()
    POW = enum.auto()
    # a + b% and a - b%, i.e. b percent of a added to / taken from a
    PERCENT_ADD = enum.auto()
    PERCENT_SUB = enum.auto()


class UnaryOperator(PrintableEnum):
    NEG = enum.auto()
    POS = enum.auto()
    PERCENT = enum.auto()


@dataclass(frozen=True)
class NumberLiteral:
    value: float
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Identifier:
    name: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UnaryOperation:
    operator: UnaryOperator
    operand: "Expression"
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class BinaryOperation:
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Expression", ...]
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Quantity:
    value: "Expression"
    unit: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Assignment:
    name: str
    value: "Expression"
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Conversion:
    value: "Expression"
    target_unit: str
    position: int = field(default=0, compare=False)


Expression = Union[NumberLiteral, Identifier, UnaryOperation, BinaryOperation, Call, Quantity]
Statement = Union[Expression, Assignment, Conversion]

BINARY_OPERATORS = {
    "+": BinaryOperator.ADD,
    "-": BinaryOperator.SUB,
    "*": BinaryOperator.MUL,
    "/": BinaryOperator.DIV,
    "**": BinaryOperator.POW,
}

RELATIVE_PERCENT_OPERATORS = {
    BinaryOperator.ADD: BinaryOperator.PERCENT_ADD,
    BinaryOperator.SUB: BinaryOperator.PERCENT_SUB,
}


def get_op_precedence(op: Union[BinaryOperator, UnaryOperator]) -> int:
    return {
        BinaryOperator.ADD: 1,
        BinaryOperator.SUB: 1,
        BinaryOperator.MUL: 2,
        BinaryOperator.DIV: 2,
        UnaryOperator.NEG: 3,
        UnaryOperator.POS: 3,
        BinaryOperator.POW: 4,
        UnaryOperator.PERCENT: 5,
    }[op]


def is_rtl_op(op: BinaryOperator) -> bool:
    return op is BinaryOperator.POW


@dataclass
class _ParserState:
    tokens: list[Token]
    code: str
    unit_names: Collection[str]
    max_depth: int

    def error(self, kind: ResultKind, reason: str, token: Token) -> ParseError:
        return ParseError(kind=kind, reason=reason, code=self.code, position=token.position)

    def check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise ExpressionTooComplexError(max_depth=self.max_depth)


def parse(
    tokens: list[Token],
    code: str = "",
    unit_names: Collection[str] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Statement:
    """Parses one statement: an assignment, a unit conversion or a plain expression

    `tokens` must end with an EXPR_END token, as produced by `tokenize`; `code`
    is the raw input, used only to render diagnostics.
    """
    state = _ParserState(tokens=tokens, code=code, unit_names=unit_names, max_depth=max_depth)
    _check_brackets(state)

    first = tokens[0]
    if first.type is TokenType.IDENTIFIER and len(tokens) > 1 and tokens[1].type is TokenType.EQUAL:
        value, i = _consume_expression(state, 2, min_precedence=1, depth=1)
        _expect_end(state, i)
        return Assignment(name=first.lexeme, value=value, position=first.position)

    expr, i = _consume_expression(state, 0, min_precedence=1, depth=1)
    keyword = tokens[i]
    if keyword.type is TokenType.IDENTIFIER and keyword.lexeme in CONVERSION_KEYWORDS:
        target = tokens[i + 1]
        if target.type is not TokenType.IDENTIFIER:
            raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unit expected after {keyword.lexeme!r}", target)
        _expect_end(state, i + 2)
        return Conversion(value=expr, target_unit=target.lexeme, position=keyword.position)

    _expect_end(state, i)
    return expr


def _check_brackets(state: _ParserState) -> None:
    open_brackets: list[Token] = []
    for token in state.tokens:
        if token.type is TokenType.BRACKET_OPEN:
            open_brackets.append(token)
        elif token.type is TokenType.BRACKET_CLOSE:
            if not open_brackets:
                raise state.error(ResultKind.UNMATCHED_PAREN, "Unexpected closing parenthesis ')'", token)
            open_brackets.pop()
    if open_brackets:
        raise state.error(ResultKind.UNMATCHED_PAREN, "Missing closing parenthesis ')'", state.tokens[-1])


def _expect_end(state: _ParserState, i: int) -> None:
    token = state.tokens[i]
    if token.type is TokenType.EXPR_END:
        return
    if token.type is TokenType.EQUAL:
        raise state.error(ResultKind.UNEXPECTED_TOKEN, "Only a single variable name can be assigned to", token)
    raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unexpected {token.lexeme!r}", token)


def _consume_expression(state: _ParserState, i: int, min_precedence: int, depth: int) -> tuple[Expression, int]:
    state.check_depth(depth)
    left, i = _consume_operand(state, i, depth)
    while True:
        operator_token = state.tokens[i]
        operator = BINARY_OPERATORS.get(operator_token.lexeme) if operator_token.is_operator() else None
        if operator is None:
            break
        precedence = get_op_precedence(operator)
        if precedence < min_precedence:
            break
        next_min_precedence = precedence if is_rtl_op(operator) else precedence + 1
        right, i = _consume_expression(state, i + 1, next_min_precedence, depth + 1)
        if (
            operator in RELATIVE_PERCENT_OPERATORS
            and isinstance(right, UnaryOperation)
            and right.operator is UnaryOperator.PERCENT
        ):
            left = BinaryOperation(
                operator=RELATIVE_PERCENT_OPERATORS[operator],
                left=left,
                right=right.operand,
                position=operator_token.position,
            )
        else:
            left = BinaryOperation(operator=operator, left=left, right=right, position=operator_token.position)
    return left, i


def _consume_operand(state: _ParserState, i: int, depth: int) -> tuple[Expression, int]:
    """Operand position: unary prefix operators, then a primary with postfix '%'"""
    token = state.tokens[i]
    prev: Optional[Token] = state.tokens[i - 1] if i > 0 else None
    after_operator = prev is not None and prev.is_operator()

    if token.type in (TokenType.EXPR_END, TokenType.BRACKET_CLOSE, TokenType.COMMA):
        if prev is not None and after_operator:
            raise state.error(ResultKind.DANGLING_OPERATOR, "Expression cannot end with an operator", prev)
        if token.type is TokenType.BRACKET_CLOSE and prev is not None and prev.type is TokenType.BRACKET_OPEN:
            raise state.error(ResultKind.UNEXPECTED_TOKEN, "Empty parenthesis", token)
        raise state.error(ResultKind.UNEXPECTED_TOKEN, "Operand expected", token)

    if token.is_operator("-") or (token.is_operator("+") and not after_operator):
        unary_operator = UnaryOperator.NEG if token.lexeme == "-" else UnaryOperator.POS
        operand, i = _consume_expression(state, i + 1, get_op_precedence(unary_operator), depth + 1)
        return UnaryOperation(operator=unary_operator, operand=operand, position=token.position), i

    if token.is_operator():
        if prev is not None and after_operator:
            doubled = prev.lexeme + token.lexeme
            raise state.error(ResultKind.DOUBLED_OPERATOR, f"Invalid double operator {doubled!r}", token)
        raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unexpected operator {token.lexeme!r}", token)

    operand, i = _consume_primary(state, i, depth)
    while state.tokens[i].is_operator("%"):
        operand = UnaryOperation(operator=UnaryOperator.PERCENT, operand=operand, position=state.tokens[i].position)
        i += 1
    return operand, i


def _starts_operand(token: Token) -> bool:
    if token.type is TokenType.IDENTIFIER:
        return token.lexeme not in CONVERSION_KEYWORDS
    return token.type is TokenType.NUMBER or token.is_operator("-")


def _consume_primary(state: _ParserState, i: int, depth: int) -> tuple[Expression, int]:
    tokens = state.tokens
    first = tokens[i]
    result: Expression
    if first.type is TokenType.NUMBER:
        result, i = NumberLiteral(float(first.lexeme), position=first.position), i + 1
    elif first.type is TokenType.BRACKET_OPEN:
        result, i = _consume_expression(state, i + 1, min_precedence=1, depth=depth + 1)
        if tokens[i].type is not TokenType.BRACKET_CLOSE:
            raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unexpected {tokens[i].lexeme!r}", tokens[i])
        i += 1
    elif first.type is TokenType.IDENTIFIER:
        if tokens[i + 1].type is TokenType.BRACKET_OPEN:
            return _consume_call(state, i, depth)
        if first.lexeme in BUILTIN_FUNCS and _starts_operand(tokens[i + 1]):
            # sin45, sqrt 16: the argument binds tighter than any binary operator except '**'
            arg, i = _consume_expression(state, i + 1, get_op_precedence(UnaryOperator.NEG), depth + 1)
            return Call(name=first.lexeme, args=(arg,), position=first.position), i
        return Identifier(first.lexeme, position=first.position), i + 1
    else:
        raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unexpected {first.lexeme!r}", first)

    unit_token = tokens[i]
    if unit_token.type is TokenType.IDENTIFIER and unit_token.lexeme in state.unit_names:
        return Quantity(value=result, unit=unit_token.lexeme, position=first.position), i + 1
    return result, i


def _consume_call(state: _ParserState, i: int, depth: int) -> tuple[Expression, int]:
    """name ( [expr {, expr}] )"""
    tokens = state.tokens
    name_token = tokens[i]
    i += 2  # name and opening bracket
    args: list[Expression] = []
    if tokens[i].type is TokenType.BRACKET_CLOSE:
        return Call(name=name_token.lexeme, args=(), position=name_token.position), i + 1
    while True:
        arg, i = _consume_expression(state, i, min_precedence=1, depth=depth + 1)
        args.append(arg)
        separator = tokens[i]
        if separator.type is TokenType.BRACKET_CLOSE:
            return Call(name=name_token.lexeme, args=tuple(args), position=name_token.position), i + 1
        if separator.type is not TokenType.COMMA:
            raise state.error(ResultKind.UNEXPECTED_TOKEN, f"Unexpected {separator.lexeme!r}", separator)
        i += 1
