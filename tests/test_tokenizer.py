import pytest

from callmath.errors import LexError
from callmath.normalizer import normalize
from callmath.tokenizer import Token, TokenType, tokenize, untokenize
from callmath.units import DEFAULT_UNIT_TABLE

UNIT_NAMES = DEFAULT_UNIT_TABLE.keys()


def _tokenize(code: str) -> list[Token]:
    return tokenize(normalize(code, UNIT_NAMES), UNIT_NAMES)


@pytest.mark.parametrize(
    "code, expected",
    [
        pytest.param(
            "2+3*4",
            [
                (TokenType.NUMBER, "2"),
                (TokenType.OPERATOR, "+"),
                (TokenType.NUMBER, "3"),
                (TokenType.OPERATOR, "*"),
                (TokenType.NUMBER, "4"),
            ],
        ),
        pytest.param("2**3", [(TokenType.NUMBER, "2"), (TokenType.OPERATOR, "**"), (TokenType.NUMBER, "3")]),
        pytest.param("1.5%", [(TokenType.NUMBER, "1.5"), (TokenType.OPERATOR, "%")]),
        pytest.param(".5", [(TokenType.NUMBER, ".5")]),
        pytest.param(
            "x = hyp(3, 4)",
            [
                (TokenType.IDENTIFIER, "x"),
                (TokenType.EQUAL, "="),
                (TokenType.IDENTIFIER, "hyp"),
                (TokenType.BRACKET_OPEN, "("),
                (TokenType.NUMBER, "3"),
                (TokenType.COMMA, ","),
                (TokenType.NUMBER, "4"),
                (TokenType.BRACKET_CLOSE, ")"),
            ],
        ),
        pytest.param(
            "10km/h to m/s",
            [
                (TokenType.NUMBER, "10"),
                (TokenType.IDENTIFIER, "km/h"),
                (TokenType.IDENTIFIER, "to"),
                (TokenType.IDENTIFIER, "m/s"),
            ],
        ),
        pytest.param(
            "x/y",
            [(TokenType.IDENTIFIER, "x"), (TokenType.OPERATOR, "/"), (TokenType.IDENTIFIER, "y")],
        ),
        pytest.param(
            "m/2",
            [(TokenType.IDENTIFIER, "m"), (TokenType.OPERATOR, "/"), (TokenType.NUMBER, "2")],
        ),
        pytest.param("sin45", [(TokenType.IDENTIFIER, "sin"), (TokenType.NUMBER, "45")]),
    ],
)
def test_tokenize(code: str, expected: list[tuple[TokenType, str]]) -> None:
    tokens = _tokenize(code)
    assert tokens[-1].type is TokenType.EXPR_END
    assert [(t.type, t.lexeme) for t in tokens[:-1]] == expected


def test_positions_refer_to_raw_input() -> None:
    tokens = _tokenize("  12 + x")
    assert [t.position for t in tokens] == [2, 5, 7, 8]


def test_expanded_glyph_keeps_its_position() -> None:
    tokens = _tokenize("what is 2π")
    assert [(t.lexeme, t.position) for t in tokens] == [("2", 8), ("*", 9), ("pi", 9), ("", 10)]


@pytest.mark.parametrize(
    "code, position",
    [
        pytest.param("2;3", 1),
        pytest.param("[1]", 0),
        pytest.param("a{b", 1),
        pytest.param("2<3", 1),
        pytest.param("a:b", 1),
        pytest.param("x_1", 1),
        pytest.param("5!", 1),
        pytest.param("1.2.3", 0),
        pytest.param("2 + .", 4),
        pytest.param("what is 2 # 3", 10),
    ],
)
def test_rejected_characters(code: str, position: int) -> None:
    with pytest.raises(LexError) as exc_info:
        _tokenize(code)
    assert exc_info.value.position == position


def test_lex_error_message_points_at_character() -> None:
    with pytest.raises(LexError) as exc_info:
        _tokenize("2;3")
    assert str(exc_info.value) == "[Tokenizer error] Unexpected character: ';'\n2;3\n ^"


def test_untokenize() -> None:
    assert untokenize(_tokenize("2+ 3*(4)")) == "2 + 3 * ( 4 )"
