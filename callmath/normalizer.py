"""Canonicalization of human-typed calculator input

`normalize` rewrites shorthand ("what is 2×3?", "√16", "10km", "2π") into the
restricted symbol set the tokenizer accepts. Each character of the result
remembers the offset of the raw character it came from, so diagnostics can
point into the string the user actually typed.
"""

import re
from dataclasses import dataclass
from typing import Collection

from callmath.environment import CONVERSION_KEYWORDS
from callmath.errors import InvalidInputError


@dataclass(frozen=True)
class NormalizedText:
    text: str
    offsets: tuple[int, ...]  # raw offset of every character of `text`
    raw: str

    @property
    def end(self) -> int:
        """Raw offset just past the last meaningful character"""
        if not self.offsets:
            return len(self.raw.rstrip())
        return self.offsets[-1] + 1

    def raw_offset(self, idx: int) -> int:
        if idx >= len(self.offsets):
            return self.end
        return self.offsets[idx]


FILLER_WORDS_RE = re.compile(r"\b(?:what\s+is|what's|whats|calculate|solve|answer)\b")

# (pattern, replacement), applied in order after lower-casing
GLYPH_REWRITES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\?"), ""),
    (re.compile(r"=\s*$"), ""),
    (re.compile(r"[×✕·⋅]"), "*"),
    (re.compile(r"÷"), "/"),
    (re.compile(r"[–—−]"), "-"),
    (re.compile(r"π"), "pi"),
    (re.compile(r"√"), "sqrt"),
    (re.compile(r"\^"), "**"),
    (re.compile(r"²"), "**2"),
    (re.compile(r"³"), "**3"),
    (re.compile(r"°"), ""),
    (re.compile(r"％|\s*\bpercent\b"), "%"),
    (re.compile(r"\bsquare\b"), "sq"),
]

# a digit or closing bracket, optional spaces, then a word or an opening bracket
_IMPLICIT_MUL_RE = re.compile(r"(?<=[\d)])(\s*)(?=([a-z][a-z/]*|\())")


def _sub(text: NormalizedText, pattern: re.Pattern, repl: str) -> NormalizedText:
    """re.sub that keeps the offset map in step; inserted chars map to the match start"""
    chars: list[str] = []
    offsets: list[int] = []
    pos = 0
    for m in pattern.finditer(text.text):
        chars.append(text.text[pos : m.start()])
        offsets.extend(text.offsets[pos : m.start()])
        anchor = text.raw_offset(m.start())
        replacement = m.expand(repl)
        chars.append(replacement)
        offsets.extend([anchor] * len(replacement))
        pos = m.end()
    chars.append(text.text[pos:])
    offsets.extend(text.offsets[pos:])
    return NormalizedText(text="".join(chars), offsets=tuple(offsets), raw=text.raw)


def _lower(raw: str) -> NormalizedText:
    chars: list[str] = []
    offsets: list[int] = []
    for i, c in enumerate(raw):
        lowered = c.lower()
        chars.append(lowered)
        offsets.extend([i] * len(lowered))
    return NormalizedText(text="".join(chars), offsets=tuple(offsets), raw=raw)


def _strip(text: NormalizedText) -> NormalizedText:
    start = len(text.text) - len(text.text.lstrip())
    end = len(text.text.rstrip())
    if end <= start:
        return NormalizedText(text="", offsets=(), raw=text.raw)
    return NormalizedText(text=text.text[start:end], offsets=text.offsets[start:end], raw=text.raw)


def _leading_word(word: str, unit_names: Collection[str]) -> str:
    """Longest prefix of `word` that stands alone as a word of its own"""
    if "/" in word:
        head, _, _ = word.partition("/")
        # "m/s" is a unit; "m/2" is "m" followed by a division
        return word if word in unit_names else head
    return word


def _needs_multiplication(following: str, unit_names: Collection[str]) -> bool:
    if following == "(":
        return True
    word = _leading_word(following, unit_names)
    return word not in unit_names and word not in CONVERSION_KEYWORDS


def _insert_implicit_multiplication(text: NormalizedText, unit_names: Collection[str]) -> NormalizedText:
    chars: list[str] = []
    offsets: list[int] = []
    pos = 0
    for m in _IMPLICIT_MUL_RE.finditer(text.text):
        chars.append(text.text[pos : m.end()])
        offsets.extend(text.offsets[pos : m.end()])
        if _needs_multiplication(m.group(2), unit_names):
            chars.append("*")
            offsets.append(text.raw_offset(m.end()))
        pos = m.end()
    chars.append(text.text[pos:])
    offsets.extend(text.offsets[pos:])
    return NormalizedText(text="".join(chars), offsets=tuple(offsets), raw=text.raw)


def normalize(raw: str, unit_names: Collection[str] = ()) -> NormalizedText:
    text = _lower(raw)
    text = _sub(text, FILLER_WORDS_RE, "")
    for pattern, repl in GLYPH_REWRITES:
        text = _sub(text, pattern, repl)
    text = _strip(text)
    text = _insert_implicit_multiplication(text, unit_names)
    if not text.text:
        raise InvalidInputError()
    return text
