"""Error taxonomy shared by every pipeline stage

Each exception carries the `ResultKind` the session reports for it, so
callers never need to look at message text to tell failures apart.
"""

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional

from callmath.utils import PrintableEnum, caret_snippet


class ResultKind(PrintableEnum):
    # successful outcomes
    NUMBER = enum.auto()
    QUANTITY = enum.auto()
    TEXT = enum.auto()
    ASSIGNMENT = enum.auto()
    # non-fatal tagged outcomes
    INFINITY = enum.auto()
    NAN = enum.auto()
    # errors
    INVALID_INPUT = enum.auto()
    LEX_ERROR = enum.auto()
    UNMATCHED_PAREN = enum.auto()
    DANGLING_OPERATOR = enum.auto()
    DOUBLED_OPERATOR = enum.auto()
    UNEXPECTED_TOKEN = enum.auto()
    UNDEFINED_NAME = enum.auto()
    RESERVED_NAME = enum.auto()
    UNKNOWN_UNIT = enum.auto()
    DIMENSION_MISMATCH = enum.auto()
    NOT_DEFINED = enum.auto()
    FACTORIAL_DOMAIN = enum.auto()
    INVALID_OPERAND = enum.auto()
    EXPRESSION_TOO_COMPLEX = enum.auto()

    @property
    def is_error(self) -> bool:
        return self not in _NON_ERROR_KINDS


_NON_ERROR_KINDS = frozenset(
    {
        ResultKind.NUMBER,
        ResultKind.QUANTITY,
        ResultKind.TEXT,
        ResultKind.ASSIGNMENT,
        ResultKind.INFINITY,
        ResultKind.NAN,
    }
)

PARSE_ERROR_KINDS = frozenset(
    {
        ResultKind.UNMATCHED_PAREN,
        ResultKind.DANGLING_OPERATOR,
        ResultKind.DOUBLED_OPERATOR,
        ResultKind.UNEXPECTED_TOKEN,
    }
)


class CalcError(Exception):
    kind: ClassVar[ResultKind]
    position: Optional[int] = None

    @property
    def errmsg(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.errmsg


@dataclass
class InvalidInputError(CalcError):
    kind = ResultKind.INVALID_INPUT

    reason: str = "Enter an expression"

    @property
    def errmsg(self) -> str:
        return self.reason


@dataclass
class LexError(CalcError):
    kind = ResultKind.LEX_ERROR

    char: str
    code: str
    position: int

    @property
    def errmsg(self) -> str:
        return f"Unexpected character: {self.char!r}"

    def __str__(self) -> str:
        return "\n".join([f"[Tokenizer error] {self.errmsg}", caret_snippet(self.code, self.position)])


@dataclass
class ParseError(CalcError):
    """Syntax error; `kind` is one of PARSE_ERROR_KINDS"""

    kind: ResultKind  # type: ignore[misc]
    reason: str
    code: str
    position: int

    @property
    def errmsg(self) -> str:
        return self.reason

    def __str__(self) -> str:
        return "\n".join([f"Parser error: {self.errmsg}", caret_snippet(self.code, self.position)])


@dataclass
class ExpressionTooComplexError(CalcError):
    kind = ResultKind.EXPRESSION_TOO_COMPLEX

    max_depth: int

    @property
    def errmsg(self) -> str:
        return f"Expression is nested deeper than {self.max_depth} levels"


@dataclass
class UndefinedNameError(CalcError):
    kind = ResultKind.UNDEFINED_NAME

    name: str

    @property
    def errmsg(self) -> str:
        return f"Undefined name: {self.name!r}"


@dataclass
class ReservedNameError(CalcError):
    kind = ResultKind.RESERVED_NAME

    name: str

    @property
    def errmsg(self) -> str:
        return f"{self.name!r} is reserved and cannot be assigned"


@dataclass
class UnknownUnitError(CalcError):
    kind = ResultKind.UNKNOWN_UNIT

    name: str

    @property
    def errmsg(self) -> str:
        return f"Unknown unit: {self.name!r}"


@dataclass
class DimensionMismatchError(CalcError):
    kind = ResultKind.DIMENSION_MISMATCH

    from_dim: str
    to_dim: str

    @property
    def errmsg(self) -> str:
        return f"Cannot combine {self.from_dim} with {self.to_dim}"


@dataclass
class NotDefinedError(CalcError):
    kind = ResultKind.NOT_DEFINED

    @property
    def errmsg(self) -> str:
        return "Not defined (0/0)"


@dataclass
class FactorialDomainError(CalcError):
    kind = ResultKind.FACTORIAL_DOMAIN

    arg: float
    limit: int

    @property
    def errmsg(self) -> str:
        return f"Factorial is only defined for integers from 0 to {self.limit}, got {self.arg:g}"


@dataclass
class InvalidOperandError(CalcError):
    kind = ResultKind.INVALID_OPERAND

    reason: str

    @property
    def errmsg(self) -> str:
        return self.reason
