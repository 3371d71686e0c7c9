from dataclasses import dataclass, field
from enum import Enum

from .exceptions import FormatError

# Source-dialect tag meaning "run the classifier first".
AUTO = "auto"


class Dialect(Enum):
    """The chord-sheet text notations chordswap reads and writes."""

    ONSONG = "onsong"
    CHORDPRO = "chordpro"
    SONGBOOK = "songbook"
    GUITAR_TABS = "guitar_tabs"
    NASHVILLE = "nashville"
    PCO = "pco"

    @classmethod
    def parse(cls, value: "Dialect | str") -> "Dialect":
        """Return the member for *value*, accepting tags like ``"Guitar-Tabs"``.

        Raises FormatError for anything that is not a known dialect.
        """
        if isinstance(value, cls):
            return value
        tag = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(tag)
        except ValueError:
            raise FormatError(str(value)) from None


class Quality(Enum):
    MAJOR = "maj"
    MINOR = "min"
    DIMINISHED = "dim"
    AUGMENTED = "aug"
    SUS2 = "sus2"
    SUS4 = "sus4"


class SectionType(Enum):
    VERSE = "verse"
    CHORUS = "chorus"
    BRIDGE = "bridge"
    INTRO = "intro"
    OUTRO = "outro"
    PRE_CHORUS = "pre_chorus"
    POST_CHORUS = "post_chorus"
    INSTRUMENTAL = "instrumental"
    TAG = "tag"
    VAMP = "vamp"
    INTERLUDE = "interlude"


class AnnotationPosition(Enum):
    ABOVE = "above"  # alone on its own line, before the content it annotates
    INLINE = "inline"  # embedded in a content line
    BESIDE = "beside"  # trailing a content line


class ErrorKind(Enum):
    PARSE_ERROR = "PARSE_ERROR"
    FORMAT_ERROR = "FORMAT_ERROR"
    KEY_ERROR = "KEY_ERROR"


@dataclass(frozen=True)
class Chord:
    """A single parsed chord occurrence.

    Example: ``Cmaj7/E`` at offset 12 is
    ``Chord(root="C", extensions=("maj7",), bass="E", position=12)``.
    """

    root: str
    quality: Quality = Quality.MAJOR
    extensions: tuple[str, ...] = ()
    bass: str | None = None  # slash-chord bass note
    position: int = 0  # character offset in the source text


@dataclass(frozen=True)
class KeySignature:
    """A major or minor key and its seven-note diatonic scale."""

    name: str  # e.g. "Bb", "F#m"
    is_minor: bool
    scale: tuple[str, ...]

    @property
    def tonic(self) -> str:
        return self.scale[0]

    def degree_of(self, note: str) -> int | None:
        """Return the 1-based scale degree spelled exactly as *note*, if any."""
        try:
            return self.scale.index(note) + 1
        except ValueError:
            return None

    def note_for(self, degree: int) -> str:
        return self.scale[degree - 1]


@dataclass(frozen=True)
class Annotation:
    """A performance note ("Softly", "x2") found alongside the music."""

    text: str
    dialect: Dialect
    position: AnnotationPosition = AnnotationPosition.ABOVE


@dataclass(frozen=True)
class AnnotationMatch:
    """An annotation plus the span it occupied in the parsed text."""

    annotation: Annotation
    original_text: str
    start: int
    end: int


@dataclass(frozen=True)
class PlacedAnnotation:
    """An annotation anchored to a line of the annotation-free text."""

    annotation: Annotation
    line: int  # may equal the line count: "after the last line"


@dataclass(frozen=True)
class Section:
    """A labelled block of a song (verse, chorus, bridge, etc.)."""

    type: SectionType
    name: str  # display name, e.g. "Verse 2"
    content: str
    chords: tuple[Chord, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    start_index: int = 0
    end_index: int = 0


@dataclass(frozen=True)
class FormatDetectionResult:
    dialect: Dialect
    confidence: float
    indicators: tuple[str, ...] = ()


@dataclass(frozen=True)
class KeyDetectionResult:
    key: str
    is_minor: bool
    confidence: float
    chord_frequency: dict[str, int] = field(default_factory=dict, compare=False)
    progression_matches: tuple[str, ...] = ()
    tonic_indicators: int = 0


@dataclass(frozen=True)
class ConversionOptions:
    preserve_extensions: bool = True
    handle_slash_chords: bool = True
    convert_annotations: bool = True
    maintain_spacing: bool = True
    auto_detect_key: bool = True


@dataclass(frozen=True)
class ConversionIssue:
    """A structured error reported by a conversion."""

    kind: ErrorKind
    message: str
    recoverable: bool
    line: int | None = None
    column: int | None = None
    suggestion: str | None = None


@dataclass
class ConversionResult:
    """Outcome of a conversion: the text plus diagnostics."""

    output: str
    success: bool
    errors: list[ConversionIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source_dialect: Dialect | None = None
    source_key: str | None = None
    target_key: str | None = None
