"""Key transposition over parsed chords.

Spelling rule: the transposed note is taken from the flat chromatic scale
when the target key is conventionally written with flats (F, Bb, Dm, ...)
and from the sharp scale otherwise.
"""

from dataclasses import replace

from .chords import chord_to_string
from .exceptions import ParseError, UnknownKeyError
from .models import Chord
from .tables import (
    CHROMATIC_FLAT,
    CHROMATIC_SHARP,
    FLAT_KEYS,
    get_key_signature,
    normalize_key_name,
    pitch_class,
)


def _uses_flats(target_key: str | None) -> bool:
    if not target_key:
        return False
    return normalize_key_name(target_key) in FLAT_KEYS


def transpose_note(note: str, semitones: int, target_key: str | None = None) -> str:
    """Shift *note* by *semitones* (negative = down), wrapping around the octave.

    Raises ParseError if *note* is not a note name.
    """
    index = (pitch_class(note) + semitones) % 12
    scale = CHROMATIC_FLAT if _uses_flats(target_key) else CHROMATIC_SHARP
    return scale[index]


def transpose_chord(chord: Chord, semitones: int, target_key: str | None = None) -> Chord:
    """Return a copy of *chord* with root and bass shifted by *semitones*.

    A shift of a whole number of octaves with no *target_key* spelling hint
    returns *chord* itself, so ``transpose_chord(c, 0) == c`` for any spelling.
    """
    if semitones % 12 == 0 and target_key is None:
        return chord
    return replace(
        chord,
        root=transpose_note(chord.root, semitones, target_key),
        bass=transpose_note(chord.bass, semitones, target_key) if chord.bass else None,
    )


def transpose_chords(chords: list[Chord], semitones: int, target_key: str | None = None) -> list[Chord]:
    return [transpose_chord(chord, semitones, target_key) for chord in chords]


def _key_root(key: str) -> str:
    name = normalize_key_name(key)
    return name[:-1] if name.endswith("m") else name


def key_distance(from_key: str, to_key: str) -> int:
    """Return the upward semitone distance ``(to - from) mod 12`` between two keys.

    Raises UnknownKeyError if either key's root is not a note name.
    """
    indices = []
    for key in (from_key, to_key):
        try:
            indices.append(pitch_class(_key_root(key)))
        except ParseError:
            raise UnknownKeyError(key) from None
    return (indices[1] - indices[0]) % 12


def transpose_to_key(chords: list[Chord], from_key: str, to_key: str) -> list[Chord]:
    """Transpose *chords* from *from_key* to *to_key*, spelled for *to_key*."""
    semitones = key_distance(from_key, to_key)
    return transpose_chords(chords, semitones, to_key)


# ---------------------------------------------------------------------------
# Diatonic vocabulary
# ---------------------------------------------------------------------------

_MAJOR_TRIADS = ("", "m", "m", "", "", "m", "dim")
_MINOR_TRIADS = ("m", "dim", "", "m", "m", "", "")

# Scale degree (0-based) carrying the half-diminished seventh.
_HALF_DIMINISHED_DEGREE = {False: 6, True: 1}


def chords_in_key(key: str, include_sevenths: bool = False) -> list[str]:
    """List the diatonic chord symbols of *key*, triads first per degree.

    With *include_sevenths*, each degree also gets its conventional seventh:
    ``maj7`` on I and IV of a major key, a half-diminished ``ø7`` (and its
    ``m7b5`` spelling) on the leading tone (major) or supertonic (minor),
    ``m7`` on the other minor triads and a dominant ``7`` elsewhere.

    Raises UnknownKeyError for unknown keys.
    """
    signature = get_key_signature(key)
    qualities = _MINOR_TRIADS if signature.is_minor else _MAJOR_TRIADS
    half_dim = _HALF_DIMINISHED_DEGREE[signature.is_minor]

    chords: list[str] = []
    for index, (note, triad) in enumerate(zip(signature.scale, qualities)):
        chords.append(note + triad)
        if not include_sevenths:
            continue
        if index == half_dim:
            chords.extend((note + "ø7", note + "m7b5"))
        elif not signature.is_minor and index in (0, 3):
            chords.append(note + "maj7")
        elif triad == "m":
            chords.append(note + "m7")
        else:
            chords.append(note + "7")
    return chords


def _comparable(symbol: str) -> tuple[int, str]:
    """Reduce a chord symbol to (root pitch class, suffix) for spelling-free comparison."""
    root = symbol[:2] if len(symbol) > 1 and symbol[1] in "#b" else symbol[:1]
    return pitch_class(root), symbol[len(root):]


def is_chord_in_key(chord: Chord, key: str) -> bool:
    """True if *chord* (sevenths included, bass ignored) is diatonic to *key*.

    A chord matches either a generated symbol exactly or, ignoring its
    extensions, the triad of a degree.  Roots are compared by pitch class,
    so ``A#`` counts in ``F``.
    """
    vocabulary = {_comparable(symbol) for symbol in chords_in_key(key, include_sevenths=True)}
    full = _comparable(chord_to_string(replace(chord, bass=None)))
    triad = _comparable(chord_to_string(Chord(chord.root, chord.quality)))
    return full in vocabulary or triad in vocabulary
