import abc
from dataclasses import dataclass
from typing import Callable


class Value(abc.ABC):
    @classmethod
    @abc.abstractmethod
    def type_name(cls) -> str:
        ...


UnaryOperationImpl = Callable[[Value], Value]
BinaryOperationImpl = Callable[[Value, Value], Value]


@dataclass(frozen=True)
class Float(Value):
    v: float

    @classmethod
    def type_name(cls) -> str:
        return "number"


@dataclass(frozen=True)
class QuantityValue(Value):
    v: float
    unit: str

    @classmethod
    def type_name(cls) -> str:
        return "quantity"


@dataclass(frozen=True)
class Text(Value):
    """Confirmation message, e.g. from a mode switch"""

    s: str

    @classmethod
    def type_name(cls) -> str:
        return "text"
