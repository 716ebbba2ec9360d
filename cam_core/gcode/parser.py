"""Minimal typed G-code line parser.

Turns one program line into a small instruction value:

* :class:`Blank` -- empty or whitespace-only line
* :class:`CommentLine` -- ``; text`` or ``(text)`` with nothing else
* :class:`Command` -- leading command token plus operand words
* :class:`OpaqueLine` -- anything else (``%``, ``BEGIN PGM ...``,
  ``CYCL DEF ...``), preserved verbatim

Grammar handled::

    line     := [token] {word | flag} [';' comment]
    token    := LETTER DIGITS          (G0, G01, M5, T1, O1000)
              | 'L' | 'C' | 'CC'       (Heidenhain path functions)
    word     := LETTER signed-decimal  (X-12.500, F800, R0)
    flag     := anything else          (FMAX, DR-, RL, M99 after L)

A word whose number does not parse (``X1.2.3``, ``Y--4``) keeps its
letter with value ``None`` -- "coordinate absent" -- so callers can drop
it instead of propagating garbage.  Every instruction keeps its ``raw``
text for verbatim pass-through.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union

_COMMAND_RE = re.compile(r"^([A-Z])(\d+)$")
_WORD_RE = re.compile(r"^([A-Z])(.+)$")
_NUMBER_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)$")
_HEIDENHAIN_TOKENS = frozenset({"L", "C", "CC"})


# ---------------------------------------------------------------------------
# Instruction variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Blank:
    raw: str


@dataclass(frozen=True, slots=True)
class CommentLine:
    raw: str
    text: str


@dataclass(frozen=True, slots=True)
class OpaqueLine:
    raw: str


@dataclass(frozen=True, slots=True)
class Command:
    """One command line.

    Attributes
    ----------
    raw : str
        Original line, unmodified.
    letter : str
        Command letter (``"G"``, ``"M"``) or Heidenhain function (``"L"``).
    number : int | None
        Command number (``G01`` → 1); ``None`` for Heidenhain functions.
    words : tuple[tuple[str, float | None], ...]
        Operand words in line order; malformed numbers are ``None``.
    flags : tuple[str, ...]
        Tokens that are not words (``FMAX``, ``DR-``, ``RL``).
    comment : str | None
        Trailing comment text without the ``;``.
    """

    raw: str
    letter: str
    number: int | None
    words: tuple[tuple[str, float | None], ...] = ()
    flags: tuple[str, ...] = ()
    comment: str | None = None

    @property
    def code(self) -> str:
        """Normalised command, e.g. ``"G0"`` for ``G00``, ``"L"`` for Heidenhain."""
        return self.letter if self.number is None else f"{self.letter}{self.number}"

    def get(self, letter: str) -> float | None:
        """Value of the first *letter* word, ``None`` if absent or malformed."""
        for key, value in self.words:
            if key == letter:
                return value
        return None

    def has_axis(self, letter: str) -> bool:
        """True when any *letter* word appears, even with a malformed value."""
        return any(k == letter for k, _ in self.words)

    def has_word(self, letter: str, value: float) -> bool:
        """True when a *letter* word with exactly *value* appears."""
        return any(k == letter and v == value for k, v in self.words)

    @property
    def is_rapid(self) -> bool:
        if self.code == "G0":
            return True
        return self.letter == "L" and "FMAX" in self.flags and self.get("F") is None

    @property
    def is_linear(self) -> bool:
        if self.code == "G1":
            return True
        return self.letter == "L" and not self.is_rapid

    @property
    def is_arc(self) -> bool:
        return self.code in ("G2", "G3") or self.letter == "C"

    @property
    def is_motion(self) -> bool:
        return self.is_rapid or self.is_linear or self.is_arc


Instruction = Union[Blank, CommentLine, Command, OpaqueLine]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _split_comment(line: str) -> tuple[str, str | None]:
    body, sep, rest = line.partition(";")
    return body, (rest.strip() if sep else None)


def _parse_number(text: str) -> float | None:
    if not _NUMBER_RE.match(text):
        return None
    return float(text)


def parse_line(line: str) -> Instruction:
    """Classify and tokenise one line of G-code.

    Parameters
    ----------
    line : str
        A single line without its newline.

    Returns
    -------
    Instruction
        ``Blank``, ``CommentLine``, ``Command`` or ``OpaqueLine``.  Never
        raises.
    """
    stripped = line.strip()
    if not stripped:
        return Blank(raw=line)
    if stripped.startswith(";"):
        return CommentLine(raw=line, text=stripped[1:].strip())
    if stripped.startswith("(") and stripped.endswith(")"):
        return CommentLine(raw=line, text=stripped[1:-1].strip())

    body, comment = _split_comment(stripped)
    tokens = body.split()
    if not tokens:
        return CommentLine(raw=line, text=comment or "")

    head = tokens[0].upper()
    m = _COMMAND_RE.match(head)
    if m:
        letter, number = m.group(1), int(m.group(2))
    elif head in _HEIDENHAIN_TOKENS:
        letter, number = head, None
    else:
        return OpaqueLine(raw=line)

    words: list[tuple[str, float | None]] = []
    flags: list[str] = []
    for token in tokens[1:]:
        token = token.upper()
        wm = _WORD_RE.match(token)
        # Multi-letter tokens (FMAX, DR-, RL) are flags, not words.
        if wm and not wm.group(2)[0].isalpha():
            words.append((wm.group(1), _parse_number(wm.group(2))))
        else:
            flags.append(token)

    return Command(
        raw=line,
        letter=letter,
        number=number,
        words=tuple(words),
        flags=tuple(flags),
        comment=comment,
    )


def parse_program(text: str) -> Iterator[Instruction]:
    """Lazily parse every line of *text*."""
    for line in text.splitlines():
        yield parse_line(line)
