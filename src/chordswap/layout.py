"""Chord placement on a line: inline brackets ⇄ chords over lyrics.

Two placement styles are used by the dialects:

  "brackets": OnSong / ChordPro / PCO:   I [D]pulled into [G]Nazareth
  "inline":   Songbook / Guitar Tabs:      D           G
                                         I pulled into Nazareth

Nashville charts use the chords-over-lyrics layout with numbers instead of
letters ("nashville" style).  A *placement* is a ``(column, token)`` pair:
the token's column in the lyric it sits above.

Pipeline helpers:

  1. classify_line()               BLANK / CHORD / TAB / LYRIC
  2. extract_chords_with_offsets() (column, token) pairs from a chord line
  3. merge_chord_lyric_lines()     chord line + lyric → bracketed line
  4. split_inline_line()           bracketed line → placements + bare lyric
  5. render_chord_line()           placements → chord line
"""

import re
from enum import Enum, auto

from .chords import BRACKET_TOKEN_RE, is_valid_chord
from .models import Dialect
from .nashville import is_chart_filler, is_nashville_line, is_nashville_token

# ASCII guitar tab line.  Two formats appear in the wild:
#   Standard:  e|---0---1---  (string name + pipe + fret chars)
#   Compact:   E---------2--  (string name + dashes, no leading pipe)
TAB_LINE_RE = re.compile(r"^[eEBGDAd](?:\|[-\d]|--)")

BRACKETS = "brackets"
INLINE = "inline"
NASHVILLE = "nashville"

_CHORD_STYLES = {
    Dialect.ONSONG: BRACKETS,
    Dialect.CHORDPRO: BRACKETS,
    Dialect.PCO: BRACKETS,
    Dialect.SONGBOOK: INLINE,
    Dialect.GUITAR_TABS: INLINE,
    Dialect.NASHVILLE: NASHVILLE,
}


def chord_style(dialect: Dialect) -> str:
    """Return how *dialect* places chords: ``"brackets"``, ``"inline"`` or ``"nashville"``."""
    return _CHORD_STYLES[dialect]


class LineType(Enum):
    BLANK = auto()  # empty or whitespace only
    CHORD = auto()  # chord-only line: [D] [G]  or  D  G  or  1  4
    TAB = auto()  # ASCII guitar tab line: e|--0--1--
    LYRIC = auto()  # everything else, including lyrics with inline chords


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def classify_line(line: str, style: str) -> LineType:
    """Classify a single line for the given placement *style*."""
    stripped = line.strip()
    if not stripped:
        return LineType.BLANK
    if TAB_LINE_RE.match(stripped):
        return LineType.TAB
    if style == BRACKETS:
        tokens = BRACKET_TOKEN_RE.findall(stripped)
        remainder = BRACKET_TOKEN_RE.sub("", stripped).strip()
        if tokens and not remainder and all(is_valid_chord(t) for t in tokens):
            return LineType.CHORD
        return LineType.LYRIC
    if style == NASHVILLE:
        return LineType.CHORD if is_nashville_line(stripped) else LineType.LYRIC
    tokens = stripped.split()
    if all(is_valid_chord(t) for t in tokens):
        return LineType.CHORD
    return LineType.LYRIC


# ---------------------------------------------------------------------------
# Chord extraction
# ---------------------------------------------------------------------------


def extract_chords_with_offsets(line: str, style: str, keep_bars: bool = False) -> list[tuple[int, str]]:
    """Return ``(column, token)`` pairs from a CHORD line, left to right.

    The column is that of the token's opening ``[`` (brackets) or first
    character (inline and nashville).  With *keep_bars*, the bar lines and
    rhythm marks of a Nashville chart come back as placements too.
    """
    if style == BRACKETS:
        return [(m.start(), m.group(1)) for m in BRACKET_TOKEN_RE.finditer(line)]
    if style == NASHVILLE:
        def is_token(token):
            return is_nashville_token(token) or (keep_bars and is_chart_filler(token))
    else:
        is_token = is_valid_chord
    return [(m.start(), m.group()) for m in re.finditer(r"\S+", line) if is_token(m.group())]


# ---------------------------------------------------------------------------
# Chords over lyrics → inline brackets
# ---------------------------------------------------------------------------


def insert_inline_chords(lyric: str, placements: list[tuple[int, str]]) -> str:
    """Insert ``[token]`` into *lyric* at each placement's column.

    A column past the end of the (growing) lyric appends the chord rather
    than dropping it.  A blank lyric yields a chord-only line ``[D] [G]``.
    """
    if not lyric.strip():
        return " ".join(f"[{token}]" for _, token in placements)

    result = lyric
    inserted = 0  # characters inserted so far; shifts every later column
    for column, token in placements:
        bracket = f"[{token}]"
        pos = min(column + inserted, len(result))
        result = result[:pos] + bracket + result[pos:]
        inserted += len(bracket)
    return result


def merge_chord_lyric_lines(chord_line: str, lyric_line: str, style: str = INLINE) -> str:
    """Merge a chord line and the lyric below it into one bracketed line.

    Example::

        chord_line = "  D           G"
        lyric_line = "I pulled into Nazareth"
        result     = "I [D]pulled into [G]Nazareth"
    """
    chords = extract_chords_with_offsets(chord_line, style)
    if not chords:
        return lyric_line
    return insert_inline_chords(lyric_line, chords)


# ---------------------------------------------------------------------------
# Inline brackets → chords over lyrics
# ---------------------------------------------------------------------------


def split_inline_line(line: str) -> tuple[list[tuple[int, str]], str]:
    """Pull every ``[token]`` out of *line*.

    Returns the placements, with columns measured in the bare lyric, and
    the bare lyric itself: ``"I [D]pulled"`` → ``([(2, "D")], "I pulled")``.
    """
    placements = []
    lyric = ""
    last = 0
    for m in BRACKET_TOKEN_RE.finditer(line):
        lyric += line[last:m.start()]
        placements.append((len(lyric), m.group(1)))
        last = m.end()
    lyric += line[last:]
    return placements, lyric


def render_chord_line(placements: list[tuple[int, str]]) -> str:
    """Lay tokens out on one line at their columns.

    A token that would collide with the previous one is pushed right so
    there is always at least one space between tokens.
    """
    line = ""
    for column, token in placements:
        if line:
            column = max(column, len(line) + 1)
        line = line.ljust(column) + token
    return line
