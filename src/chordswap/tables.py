"""Static music-theory lookup tables.

Everything here is computed once at import time by small generator functions
and exposed read-only (tuples and :class:`types.MappingProxyType`), so the
tables can be shared freely between concurrent conversions.
"""

from types import MappingProxyType

from .exceptions import ParseError, UnknownKeyError
from .models import KeySignature, Quality

# ---------------------------------------------------------------------------
# Chromatic scales and pitch classes
# ---------------------------------------------------------------------------

CHROMATIC_SHARP = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
CHROMATIC_FLAT = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")

_NATURALS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def _build_note_index() -> dict[str, int]:
    index = {}
    for letter, pc in _NATURALS.items():
        index[letter] = pc
        index[letter + "#"] = (pc + 1) % 12
        index[letter + "b"] = (pc - 1) % 12
    return index


# Every single-accidental spelling, including E#, B#, Cb and Fb.
NOTE_INDEX = MappingProxyType(_build_note_index())

ENHARMONIC_EQUIVALENTS = MappingProxyType({
    "C#": "Db", "Db": "C#",
    "D#": "Eb", "Eb": "D#",
    "F#": "Gb", "Gb": "F#",
    "G#": "Ab", "Ab": "G#",
    "A#": "Bb", "Bb": "A#",
    "E#": "F", "Fb": "E",
    "B#": "C", "Cb": "B",
})


def pitch_class(note: str) -> int:
    """Return the 0-11 pitch class of *note*.

    Raises ParseError if *note* is not a note name.
    """
    try:
        return NOTE_INDEX[note]
    except KeyError:
        raise ParseError(note, "invalid note") from None


# ---------------------------------------------------------------------------
# Key signatures
# ---------------------------------------------------------------------------

# Conventional spellings: 15 major keys and 15 minor keys, enharmonic
# duplicates (Cb/B, Gb/F#, Db/C#, Abm/G#m, ...) included.
MAJOR_KEY_SIGNATURES = MappingProxyType({
    "C": ("C", "D", "E", "F", "G", "A", "B"),
    "G": ("G", "A", "B", "C", "D", "E", "F#"),
    "D": ("D", "E", "F#", "G", "A", "B", "C#"),
    "A": ("A", "B", "C#", "D", "E", "F#", "G#"),
    "E": ("E", "F#", "G#", "A", "B", "C#", "D#"),
    "B": ("B", "C#", "D#", "E", "F#", "G#", "A#"),
    "F#": ("F#", "G#", "A#", "B", "C#", "D#", "E#"),
    "C#": ("C#", "D#", "E#", "F#", "G#", "A#", "B#"),
    "F": ("F", "G", "A", "Bb", "C", "D", "E"),
    "Bb": ("Bb", "C", "D", "Eb", "F", "G", "A"),
    "Eb": ("Eb", "F", "G", "Ab", "Bb", "C", "D"),
    "Ab": ("Ab", "Bb", "C", "Db", "Eb", "F", "G"),
    "Db": ("Db", "Eb", "F", "Gb", "Ab", "Bb", "C"),
    "Gb": ("Gb", "Ab", "Bb", "Cb", "Db", "Eb", "F"),
    "Cb": ("Cb", "Db", "Eb", "Fb", "Gb", "Ab", "Bb"),
})

MINOR_KEY_SIGNATURES = MappingProxyType({
    "Am": ("A", "B", "C", "D", "E", "F", "G"),
    "Em": ("E", "F#", "G", "A", "B", "C", "D"),
    "Bm": ("B", "C#", "D", "E", "F#", "G", "A"),
    "F#m": ("F#", "G#", "A", "B", "C#", "D", "E"),
    "C#m": ("C#", "D#", "E", "F#", "G#", "A", "B"),
    "G#m": ("G#", "A#", "B", "C#", "D#", "E", "F#"),
    "D#m": ("D#", "E#", "F#", "G#", "A#", "B", "C#"),
    "A#m": ("A#", "B#", "C#", "D#", "E#", "F#", "G#"),
    "Dm": ("D", "E", "F", "G", "A", "Bb", "C"),
    "Gm": ("G", "A", "Bb", "C", "D", "Eb", "F"),
    "Cm": ("C", "D", "Eb", "F", "G", "Ab", "Bb"),
    "Fm": ("F", "G", "Ab", "Bb", "C", "Db", "Eb"),
    "Bbm": ("Bb", "C", "Db", "Eb", "F", "Gb", "Ab"),
    "Ebm": ("Eb", "F", "Gb", "Ab", "Bb", "Cb", "Db"),
    "Abm": ("Ab", "Bb", "Cb", "Db", "Eb", "Fb", "Gb"),
})


def _build_key_signatures() -> dict[str, KeySignature]:
    keys = {}
    for name, scale in MAJOR_KEY_SIGNATURES.items():
        keys[name] = KeySignature(name=name, is_minor=False, scale=scale)
    for name, scale in MINOR_KEY_SIGNATURES.items():
        keys[name] = KeySignature(name=name, is_minor=True, scale=scale)
    return keys


KEY_SIGNATURES = MappingProxyType(_build_key_signatures())

# Keys conventionally written with flats; used to pick a transposition spelling.
FLAT_KEYS = frozenset({
    "F", "Bb", "Eb", "Ab", "Db", "Gb", "Cb",
    "Dm", "Gm", "Cm", "Fm", "Bbm", "Ebm", "Abm",
})


def normalize_key_name(name: str) -> str:
    """Normalise spellings such as ``"a minor"``, ``"Amin"`` or ``" bbm "``."""
    text = name.strip()
    if not text:
        return text
    lowered = text.lower()
    for suffix in (" minor", "minor", " min", "min"):
        if lowered.endswith(suffix):
            text = text[: -len(suffix)] + "m"
            break
    else:
        for suffix in (" major", "major", " maj", "maj"):
            if lowered.endswith(suffix):
                text = text[: -len(suffix)]
                break
    text = text.replace(" ", "")
    return text[0].upper() + text[1:]


def get_key_signature(name: str) -> KeySignature:
    """Return the :class:`KeySignature` for *name*.

    Raises UnknownKeyError if the key is not one of the 30 conventional keys.
    """
    try:
        return KEY_SIGNATURES[normalize_key_name(name)]
    except (KeyError, IndexError):
        raise UnknownKeyError(name) from None


# ---------------------------------------------------------------------------
# Nashville degree labels
# ---------------------------------------------------------------------------

NASHVILLE_MAJOR_DEGREES = ("1", "2", "3", "4", "5", "6", "7")
# Minor keys are numbered against the parallel major, hence the flats.
NASHVILLE_MINOR_DEGREES = ("1", "2", "b3", "4", "5", "b6", "b7")


def _build_nashville_mappings(minor: bool) -> dict[str, MappingProxyType]:
    source = MINOR_KEY_SIGNATURES if minor else MAJOR_KEY_SIGNATURES
    labels = NASHVILLE_MINOR_DEGREES if minor else NASHVILLE_MAJOR_DEGREES
    return {
        key: MappingProxyType(dict(zip(scale, labels)))
        for key, scale in source.items()
    }


NASHVILLE_MAJOR_MAPPINGS = MappingProxyType(_build_nashville_mappings(minor=False))
NASHVILLE_MINOR_MAPPINGS = MappingProxyType(_build_nashville_mappings(minor=True))

# ---------------------------------------------------------------------------
# Chord vocabulary
# ---------------------------------------------------------------------------

# Quality keywords, walked longest first.
QUALITY_ALIASES = MappingProxyType({
    "major": Quality.MAJOR,
    "minor": Quality.MINOR,
    "sus4": Quality.SUS4,
    "sus2": Quality.SUS2,
    "maj": Quality.MAJOR,
    "min": Quality.MINOR,
    "dim": Quality.DIMINISHED,
    "aug": Quality.AUGMENTED,
    "sus": Quality.SUS4,
    "M": Quality.MAJOR,
    "m": Quality.MINOR,
    "-": Quality.MINOR,
    "°": Quality.DIMINISHED,
    "+": Quality.AUGMENTED,
})

# Extensions that start with a quality keyword and must be claimed whole,
# so "maj7" is never split into quality "maj" + extension "7".
COMPOUND_EXTENSIONS = (
    "maj7sus4", "maj7sus2", "maj11", "maj13", "maj7", "maj9", "maj6",
    "M11", "M13", "M7", "M9", "M6",
)

EXTENSION_ALIASES = MappingProxyType({
    "M7": "maj7",
    "M9": "maj9",
    "M11": "maj11",
    "M13": "maj13",
    "M6": "maj6",
})

CHORD_EXTENSIONS = tuple(sorted(
    (
        "7", "maj7", "M7", "9", "maj9", "M9", "11", "maj11", "M11", "13", "maj13", "M13",
        "add9", "add2", "add4", "add11", "6", "maj6", "M6", "6/9",
        "sus", "sus2", "sus4", "sus9",
        "b5", "#5", "b9", "#9", "#11", "b13",
        "7sus4", "7sus2", "maj7sus4", "maj7sus2",
        "dim7", "ø7", "m7b5", "aug7", "+7",
        "2", "4", "5",
    ),
    key=len,
    reverse=True,
))

# Rendered suffix for each quality in letter-name chords.
QUALITY_SUFFIXES = MappingProxyType({
    Quality.MAJOR: "",
    Quality.MINOR: "m",
    Quality.DIMINISHED: "dim",
    Quality.AUGMENTED: "aug",
    Quality.SUS2: "sus2",
    Quality.SUS4: "sus4",
})

# Rendered suffix for each quality in Nashville numbers.
NASHVILLE_QUALITY_SUFFIXES = MappingProxyType({
    Quality.MAJOR: "",
    Quality.MINOR: "m",
    Quality.DIMINISHED: "°",
    Quality.AUGMENTED: "+",
    Quality.SUS2: "sus2",
    Quality.SUS4: "sus4",
})
