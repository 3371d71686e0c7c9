"""Chord grammar parser.

Grammar::

    Root Accidental? Quality? Extension* ("/" BassRoot BassAccidental?)?

Quality and extension tokens are matched greedily, longest first, from the
tables in :mod:`chordswap.tables`.  Compound ``maj*`` extensions are claimed
before quality matching so ``Cmaj7`` is a major chord with extension
``maj7`` rather than quality ``maj`` plus ``7``.

Two extraction styles are supported:

  "brackets": OnSong / ChordPro / PCO:  [D]  [Am7]  [G/B]
  "inline":   Songbook / Guitar Tabs:   D    Am7    G/B   (chord lines above lyrics)
"""

import logging
import re
from typing import NamedTuple

from .exceptions import ParseError
from .models import Chord, Quality
from .tables import (
    CHORD_EXTENSIONS,
    COMPOUND_EXTENSIONS,
    EXTENSION_ALIASES,
    NOTE_INDEX,
    QUALITY_ALIASES,
    QUALITY_SUFFIXES,
)

logger = logging.getLogger(__name__)

_ROOT_RE = re.compile(r"([A-G])([#b]?)")
_BASS_RE = re.compile(r"[A-G][#b]?")

# Any [token] group regardless of content
BRACKET_TOKEN_RE = re.compile(r"\[([^\]]+)\]")

_QUALITY_KEYWORDS = sorted(QUALITY_ALIASES, key=len, reverse=True)
_NASHVILLE_SLASH_RE = re.compile(r"^[#b]?\d+[m°+]?/[#b]?\d+$")


class ChordExtraction(NamedTuple):
    """Chords found in a text plus a warning for every token that was skipped."""

    chords: list[Chord]
    warnings: list[str]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_chord(token: str, position: int = 0) -> Chord:
    """Parse a chord symbol such as ``"F#m7/C#"`` into a :class:`Chord`.

    Raises ParseError("invalid chord") if *token* does not match the grammar.
    """
    text = token.strip()
    m = _ROOT_RE.match(text)
    if not m:
        raise ParseError(token)
    root = m.group(1) + m.group(2)
    quality, extensions, rest = _parse_quality_and_extensions(text[m.end():])

    bass = None
    if rest:
        if not rest.startswith("/") or not _BASS_RE.fullmatch(rest[1:]):
            raise ParseError(token)
        bass = rest[1:]

    if root not in NOTE_INDEX or (bass is not None and bass not in NOTE_INDEX):
        raise ParseError(token)

    return Chord(
        root=root,
        quality=quality,
        extensions=tuple(extensions),
        bass=bass,
        position=position,
    )


def _parse_quality_and_extensions(text: str) -> tuple[Quality, list[str], str]:
    """Split the text after the root into quality, extensions and leftovers."""
    quality = Quality.MAJOR
    extensions: list[str] = []

    for compound in COMPOUND_EXTENSIONS:
        if text.startswith(compound):
            extensions.append(EXTENSION_ALIASES.get(compound, compound))
            return quality, extensions, _parse_extensions(text[len(compound):], extensions)

    for keyword in _QUALITY_KEYWORDS:
        if text.startswith(keyword):
            quality = QUALITY_ALIASES[keyword]
            text = text[len(keyword):]
            break

    return quality, extensions, _parse_extensions(text, extensions)


def _parse_extensions(text: str, extensions: list[str]) -> str:
    """Strip extension tokens off the front of *text*, longest match first.

    Matched tokens are appended to *extensions* in encounter order; the
    unmatched remainder is returned.
    """
    while text:
        for ext in CHORD_EXTENSIONS:
            if text.startswith(ext):
                extensions.append(EXTENSION_ALIASES.get(ext, ext))
                text = text[len(ext):]
                break
        else:
            break
    return text


def split_extensions(text: str) -> tuple[list[str], str]:
    """Public wrapper used by the Nashville parser: ``(extensions, leftover)``."""
    extensions: list[str] = []
    rest = _parse_extensions(text, extensions)
    return extensions, rest


def is_valid_chord(token: str) -> bool:
    try:
        parse_chord(token)
    except ParseError:
        return False
    return True


def parse_chord_with_nashville_support(token: str, position: int = 0, key: str | None = None) -> Chord:
    """Parse *token*, accepting Nashville slash numbers like ``5/7`` when *key* is set."""
    stripped = token.strip()
    if key and _NASHVILLE_SLASH_RE.match(stripped):
        from .nashville import nashville_to_chord

        return nashville_to_chord(stripped, key, position=position)
    return parse_chord(token, position)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def chord_to_string(chord: Chord, brackets: bool = False) -> str:
    """Render *chord* back to a symbol: ``Chord("A", MINOR, ("7",))`` → ``"Am7"``."""
    text = chord.root + QUALITY_SUFFIXES[chord.quality] + "".join(chord.extensions)
    if chord.bass:
        text += f"/{chord.bass}"
    return f"[{text}]" if brackets else text


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def is_chord_line(line: str) -> bool:
    """True if every whitespace-separated token on *line* is a chord symbol."""
    tokens = line.split()
    return bool(tokens) and all(is_valid_chord(t) for t in tokens)


def extract_chords_from_text(text: str, style: str = "brackets") -> ChordExtraction:
    """Return every chord in *text*, skipping (and reporting) invalid tokens.

    Args:
        text:  Chord-sheet text.
        style: ``"brackets"`` scans every ``[...]`` token; ``"inline"`` scans
               word tokens on chord-only lines.

    Returns:
        A :class:`ChordExtraction`; ``chords`` is in text order and carries
        absolute character offsets.  Extraction never fails.
    """
    result = ChordExtraction([], [])
    if style == "brackets":
        for m in BRACKET_TOKEN_RE.finditer(text):
            try:
                result.chords.append(parse_chord(m.group(1), m.start()))
            except ParseError:
                line = text.count("\n", 0, m.start()) + 1
                column = m.start() - (text.rfind("\n", 0, m.start()) + 1) + 1
                message = f"Skipped invalid chord token {m.group(0)!r} (line {line}, column {column})"
                logger.warning(message)
                result.warnings.append(message)
        return result

    offset = 0
    for line in text.split("\n"):
        if is_chord_line(line):
            for m in re.finditer(r"\S+", line):
                result.chords.append(parse_chord(m.group(), offset + m.start()))
        offset += len(line) + 1
    return result
