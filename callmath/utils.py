import decimal
import enum
import math


class PrintableEnum(enum.Enum):
    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


def format_number(x: float, precision: int = 12) -> str:
    """Round to `precision` significant digits and drop trailing fractional zeros

    Magnitudes from 1e21 up or below 1e-6 use the exponent form, without
    padding the exponent.

    >>> format_number(0.1 + 0.2)
    '0.3'
    >>> format_number(14.0)
    '14'
    >>> format_number(2.0**60)
    '1152921504610000000'
    >>> format_number(0.0000001)
    '1e-7'
    """
    if not math.isfinite(x):
        return str(x)
    # the %g text is already rounded and free of trailing zeros
    rounded = decimal.Decimal(f"{x:.{precision}g}")
    if rounded.is_zero():
        return "0"
    if -7 < rounded.adjusted() < 21:
        return format(rounded, "f")
    return format(rounded, "e")


def caret_snippet(code: str, error_char_idx: int) -> str:
    """Two lines: a window of `code` around the index and a caret under it"""
    print_start_idx = max(0, error_char_idx - 10)
    print_ellipsis_pre = print_start_idx > 0
    print_end_idx = min(len(code), error_char_idx + 10)
    print_ellipsis_post = print_end_idx < len(code)
    return "\n".join(
        [
            (
                ("..." if print_ellipsis_pre else "")
                + code[print_start_idx:print_end_idx]
                + ("..." if print_ellipsis_post else "")
            ),
            " " * (error_char_idx - print_start_idx + (3 if print_ellipsis_pre else 0)) + "^",
        ]
    )
