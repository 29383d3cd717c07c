import argparse
import logging
import sys
from typing import Optional, TextIO

from callmath.config import DEFAULT_PRECISION, CalculatorConfig
from callmath.environment import AngleMode
from callmath.errors import PARSE_ERROR_KINDS, ResultKind
from callmath.session import Calculator, Result
from callmath.utils import caret_snippet, format_number

__version__ = "0.5.0"

logger = logging.getLogger(__name__)


def render(code: str, result: Result) -> str:
    if not result.error:
        return result.value
    if result.position is None:
        return f"Error: {result.value}"
    label = "Syntax error" if result.kind in PARSE_ERROR_KINDS or result.kind is ResultKind.LEX_ERROR else "Error"
    return "\n".join([f"{label}: {result.value}", caret_snippet(code, result.position)])


def run_command(calculator: Calculator, command: str) -> Optional[str]:
    """Handles ':'-prefixed session commands; returns None to quit"""
    name = command[1:].strip().lower()
    if name in ("q", "quit", "exit"):
        return None
    elif name == "reset":
        calculator.reset()
        return "Memory cleared"
    elif name == "vars":
        variables = calculator.get_variables()
        if not variables:
            return "No variables"
        return "\n".join(f"{k} = {format_number(v, calculator.config.precision)}" for k, v in variables.items())
    elif name == "units":
        return " ".join(calculator.list_units())
    elif name == "deg":
        calculator.set_angle_mode(AngleMode.DEGREES)
        return "Degrees mode"
    elif name == "rad":
        calculator.set_angle_mode(AngleMode.RADIANS)
        return "Radians mode"
    else:
        return f"Unknown command {command!r}, try :vars :units :deg :rad :reset :quit"


def run_batch(calculator: Calculator, lines: TextIO, out: TextIO) -> int:
    """Evaluates every non-empty line; stops at the first error"""
    for line in lines:
        code = line.strip()
        if not code:
            continue
        result = calculator.evaluate(code)
        print(render(code, result), file=out)
        if result.error:
            return 1
    return 0


def run_interactive(calculator: Calculator, out: TextIO) -> int:
    while True:
        try:
            code = input("> ")
        except (EOFError, KeyboardInterrupt):
            print(file=out)
            return 0

        if not code.strip():
            continue

        if code.lstrip().startswith(":"):
            reply = run_command(calculator, code.strip())
            if reply is None:
                return 0
            print(reply, file=out)
            continue

        print(render(code, calculator.evaluate(code)), file=out)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="callmath", description="a human friendly calculator")
    parser.add_argument("--radians", action="store_true", help="start in radians mode")
    parser.add_argument(
        "--precision", type=int, default=DEFAULT_PRECISION, help="significant digits of printed numbers"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity",
    )
    parser.add_argument("-v", "--version", action="version", version=f"callmath {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        config = CalculatorConfig(
            precision=args.precision,
            angle_mode=AngleMode.RADIANS if args.radians else AngleMode.DEGREES,
        )
    except ValueError as e:
        print(f"callmath: {e}", file=sys.stderr)
        return 2
    calculator = Calculator(config)
    logger.info("Starting session in %s mode", config.angle_mode)

    if not sys.stdin.isatty():
        return run_batch(calculator, sys.stdin, sys.stdout)
    return run_interactive(calculator, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
