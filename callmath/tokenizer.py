import enum
from dataclasses import dataclass
from typing import Collection

from callmath.errors import LexError
from callmath.normalizer import NormalizedText
from callmath.utils import PrintableEnum


class TokenType(PrintableEnum):
    NUMBER = enum.auto()
    IDENTIFIER = enum.auto()
    OPERATOR = enum.auto()
    BRACKET_OPEN = enum.auto()
    BRACKET_CLOSE = enum.auto()
    EQUAL = enum.auto()
    COMMA = enum.auto()
    EXPR_END = enum.auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    position: int  # offset into the raw input

    def __str__(self) -> str:
        return f"<{self.type}>{self.lexeme}"

    def is_operator(self, *lexemes: str) -> bool:
        return self.type is TokenType.OPERATOR and (not lexemes or self.lexeme in lexemes)


def _is_valid_in_number(s: str) -> bool:
    return s in "0123456789."


def _is_valid_in_identifier(s: str) -> bool:
    return s.isascii() and s.isalpha()


OPERATORS = ("**", "+", "-", "*", "/", "%")

SINGLE_CHAR_TOKENS = {
    "(": TokenType.BRACKET_OPEN,
    ")": TokenType.BRACKET_CLOSE,
    "=": TokenType.EQUAL,
    ",": TokenType.COMMA,
}


def _scan_identifier(code: str, i: int, unit_names: Collection[str]) -> int:
    """End index of the identifier starting at i; '/' only joins known compound units"""
    end = i + 1
    while end < len(code) and _is_valid_in_identifier(code[end]):
        end += 1
    if end < len(code) and code[end] == "/":
        compound_end = end + 1
        while compound_end < len(code) and _is_valid_in_identifier(code[compound_end]):
            compound_end += 1
        if compound_end > end + 1 and code[i:compound_end] in unit_names:
            return compound_end
    return end


def tokenize(source: NormalizedText, unit_names: Collection[str] = ()) -> list[Token]:
    code = source.text
    i = 0
    tokens: list[Token] = []
    while i < len(code):
        position = source.raw_offset(i)
        if _is_valid_in_number(code[i]):
            number_end_idx = i + 1
            while number_end_idx < len(code) and _is_valid_in_number(code[number_end_idx]):
                number_end_idx += 1
            lexeme = code[i:number_end_idx]
            if lexeme.count(".") > 1 or lexeme == ".":
                raise LexError(char=code[i], code=source.raw, position=position)
            tokens.append(Token(type=TokenType.NUMBER, lexeme=lexeme, position=position))
            i = number_end_idx
        elif _is_valid_in_identifier(code[i]):
            ident_end_idx = _scan_identifier(code, i, unit_names)
            tokens.append(Token(type=TokenType.IDENTIFIER, lexeme=code[i:ident_end_idx], position=position))
            i = ident_end_idx
        elif code.startswith(OPERATORS, i):
            lexeme = next(op for op in OPERATORS if code.startswith(op, i))
            tokens.append(Token(type=TokenType.OPERATOR, lexeme=lexeme, position=position))
            i += len(lexeme)
        elif code[i] in SINGLE_CHAR_TOKENS:
            tokens.append(Token(type=SINGLE_CHAR_TOKENS[code[i]], lexeme=code[i], position=position))
            i += 1
        elif code[i].isspace():
            i += 1
        else:
            raise LexError(char=code[i], code=source.raw, position=position)

    tokens.append(Token(type=TokenType.EXPR_END, lexeme="", position=source.end))
    return tokens


def untokenize(tokens: list[Token]) -> str:
    return " ".join(t.lexeme for t in tokens if t.type is not TokenType.EXPR_END)
