"""Chord ⇄ Nashville Number System conversion.

Numbers are scale degrees of the key: in C, ``G7/B`` is ``57/7`` and ``Am``
is ``6m``.  Minor keys are numbered against the parallel major, so the
third, sixth and seventh of A minor are ``b3``, ``b6`` and ``b7``.

Quality suffixes: minor ``m``, diminished ``°``, augmented ``+``,
suspended ``sus2``/``sus4``; major has none.  Extensions are carried
verbatim.
"""

import re

from .chords import split_extensions
from .exceptions import ParseError, UnknownKeyError
from .models import Chord, KeySignature, Quality
from .tables import (
    CHROMATIC_FLAT,
    CHROMATIC_SHARP,
    NASHVILLE_MAJOR_DEGREES,
    NASHVILLE_MINOR_DEGREES,
    NASHVILLE_QUALITY_SUFFIXES,
    get_key_signature,
    pitch_class,
)

# A single degree; any digits after it are extensions ("57" is 5 + "7").
_NUMBER_RE = re.compile(r"([#b]?)([1-7])")

# Minor-key degrees that name the natural-minor note directly instead of a
# chromatic shift from the parallel-major degree.
_MINOR_SPECIAL_DEGREES = frozenset({"b3", "b6", "b7"})

# Bar lines and rhythm marks that may sit between numbers on a chart line.
_CHART_FILLER_RE = re.compile(r"^[|:.%\-]+$")

# (keyword, quality) pairs checked right after the degree, longest first.
_NASHVILLE_QUALITIES = (
    ("dim", Quality.DIMINISHED),
    ("aug", Quality.AUGMENTED),
    ("m", Quality.MINOR),
    ("-", Quality.MINOR),
    ("°", Quality.DIMINISHED),
    ("+", Quality.AUGMENTED),
)


def _degree_labels(signature: KeySignature) -> tuple[str, ...]:
    return NASHVILLE_MINOR_DEGREES if signature.is_minor else NASHVILLE_MAJOR_DEGREES


def is_supported_key(key: str) -> bool:
    try:
        get_key_signature(key)
    except UnknownKeyError:
        return False
    return True


# ---------------------------------------------------------------------------
# Chord → number
# ---------------------------------------------------------------------------


def note_to_degree(note: str, key: str | KeySignature) -> str:
    """Return the Nashville degree of *note* in *key*, e.g. ``"F#"`` in D → ``"3"``.

    Out-of-key notes get a ``#``/``b`` prefix relative to the neighbouring
    scale degree.  Degrees are scanned 1..7 and the first neighbour wins,
    except that a note spelled with a flat prefers a ``b`` neighbour and a
    note spelled with a sharp prefers a ``#`` neighbour.
    """
    signature = key if isinstance(key, KeySignature) else get_key_signature(key)
    labels = _degree_labels(signature)

    degree = signature.degree_of(note)
    if degree is not None:
        return labels[degree - 1]

    target = pitch_class(note)
    scale_classes = [pitch_class(n) for n in signature.scale]
    for index, pc in enumerate(scale_classes):
        if pc == target:  # enharmonic spelling of a scale note
            return labels[index]

    candidates = []
    for index, pc in enumerate(scale_classes):
        if (pc + 1) % 12 == target:
            candidates.append(f"#{index + 1}")
        if (pc - 1) % 12 == target:
            candidates.append(f"b{index + 1}")

    preferred = note[1:2]
    for candidate in candidates:
        if candidate[0] == preferred:
            return candidate
    return candidates[0]


def chord_to_nashville(chord: Chord, key: str) -> str:
    """Render *chord* as a Nashville number in *key*.

    Raises UnknownKeyError for unknown keys.
    """
    signature = get_key_signature(key)
    number = note_to_degree(chord.root, signature)
    number += NASHVILLE_QUALITY_SUFFIXES[chord.quality]
    number += "".join(chord.extensions)
    if chord.bass:
        number += "/" + note_to_degree(chord.bass, signature)
    return number


def chords_to_nashville(chords: list[Chord], key: str) -> list[str]:
    return [chord_to_nashville(chord, key) for chord in chords]


# ---------------------------------------------------------------------------
# Number → chord
# ---------------------------------------------------------------------------


def _split_number(text: str) -> tuple[str, int, Quality, list[str]]:
    """Split ``"b7sus4"`` into accidental, degree, quality and extensions.

    Raises ParseError when *text* is not a Nashville number.
    """
    m = _NUMBER_RE.match(text)
    if not m:
        raise ParseError(text, "invalid Nashville number")
    accidental, degree = m.group(1), int(m.group(2))

    rest = text[m.end():]
    quality = Quality.MAJOR
    for keyword, kw_quality in _NASHVILLE_QUALITIES:
        # "maj7" is an extension; its leading "m" is not a minor quality.
        if rest.startswith(keyword) and not rest.startswith("maj"):
            quality = kw_quality
            rest = rest[len(keyword):]
            break

    if rest.startswith("sus2"):
        quality, rest = Quality.SUS2, rest[4:]
    elif rest.startswith("sus4"):
        quality, rest = Quality.SUS4, rest[4:]
    elif rest.startswith("sus") and not rest.startswith("sus9"):
        quality, rest = Quality.SUS4, rest[3:]

    # Charts often write the half-diminished seventh as a bare "ø".
    if rest == "ø":
        return accidental, degree, quality, ["ø7"]

    extensions, leftover = split_extensions(rest)
    # A repeated extension ("1999") is a number in a lyric, not a chord.
    if leftover or len(set(extensions)) != len(extensions):
        raise ParseError(text, "invalid Nashville number")
    return accidental, degree, quality, extensions


def degree_to_note(accidental: str, degree: int, key: str | KeySignature) -> str:
    """Resolve ``b7`` (accidental ``"b"``, degree 7) to a note name in *key*."""
    signature = key if isinstance(key, KeySignature) else get_key_signature(key)
    if signature.is_minor and f"{accidental}{degree}" in _MINOR_SPECIAL_DEGREES:
        return signature.note_for(degree)

    base = signature.note_for(degree)
    if not accidental:
        return base
    if accidental == "#":
        return CHROMATIC_SHARP[(pitch_class(base) + 1) % 12]
    return CHROMATIC_FLAT[(pitch_class(base) - 1) % 12]


def nashville_to_chord(number: str, key: str, position: int = 0) -> Chord:
    """Parse a Nashville number such as ``"4maj7/5"`` into a chord in *key*.

    Raises UnknownKeyError for unknown keys and ParseError for malformed numbers.
    """
    signature = get_key_signature(key)
    main, slash, bass_part = number.strip().partition("/")
    accidental, degree, quality, extensions = _split_number(main)
    root = degree_to_note(accidental, degree, signature)

    bass = None
    if slash:
        m = _NUMBER_RE.fullmatch(bass_part)
        if not m:
            raise ParseError(number, "invalid Nashville bass number")
        bass = degree_to_note(m.group(1), int(m.group(2)), signature)

    return Chord(
        root=root,
        quality=quality,
        extensions=tuple(extensions),
        bass=bass,
        position=position,
    )


def nashville_to_chords(numbers: list[str], key: str) -> list[Chord]:
    return [nashville_to_chord(number, key) for number in numbers]


# ---------------------------------------------------------------------------
# Chart scanning
# ---------------------------------------------------------------------------


def is_nashville_token(token: str) -> bool:
    main, slash, bass = token.partition("/")
    try:
        _split_number(main)
    except ParseError:
        return False
    if slash:
        return _NUMBER_RE.fullmatch(bass) is not None
    return True


def is_chart_filler(token: str) -> bool:
    """True for bar lines and rhythm marks: ``|``, ``||:``, ``.``, ``%``, ``-``."""
    return bool(_CHART_FILLER_RE.match(token))


def is_nashville_line(line: str) -> bool:
    """True if *line* is a chart line: numbers, optionally between bar lines."""
    tokens = [t for t in line.split() if not is_chart_filler(t)]
    return bool(tokens) and all(is_nashville_token(t) for t in tokens)


def extract_nashville_tokens(text: str) -> list[tuple[int, str]]:
    """Return ``(offset, number)`` pairs for every number on a chart line of *text*."""
    tokens = []
    offset = 0
    for line in text.split("\n"):
        if is_nashville_line(line):
            tokens.extend(
                (offset + m.start(), m.group())
                for m in re.finditer(r"\S+", line)
                if not is_chart_filler(m.group())
            )
        offset += len(line) + 1
    return tokens
