"""Split chord sheets into labelled sections.

Header syntax per dialect
-------------------------

+------------------+---------------------------------------------------------+
| Dialect          | Recognised headers                                      |
+==================+=========================================================+
| Guitar Tabs      | ``[Verse 1]``, ``[Chorus]`` (a bracketed chord is not a |
|                  | header)                                                 |
+------------------+---------------------------------------------------------+
| ChordPro         | ``{start_of_verse}``, ``{start_of_verse: Verse 2}``,    |
|                  | ``{start_of_chorus_2}``, ``{soc}``, ``{chorus}``;       |
|                  | ``{end_of_*}`` lines close nothing and are dropped      |
+------------------+---------------------------------------------------------+
| everything else  | ``Verse 1:``, ``Chorus``, ``V2``, ``C:``, ``1.``        |
+------------------+---------------------------------------------------------+

Header names are mapped to a :class:`~chordswap.models.SectionType` by an
alias table first, then by numbered-abbreviation patterns, falling back to
``verse``.
"""

import logging
import re
from typing import NamedTuple

from .annotations.registry import get_codec
from .chords import extract_chords_from_text, is_valid_chord
from .exceptions import ChordSwapError
from .layout import NASHVILLE, chord_style
from .metadata import find_metadata_lines
from .models import Chord, Dialect, Section, SectionType
from .nashville import extract_nashville_tokens, nashville_to_chord

logger = logging.getLogger(__name__)


class SectionHeader(NamedTuple):
    type: SectionType
    name: str  # display name, e.g. "Verse 2"


# ---------------------------------------------------------------------------
# Section type mapping
# ---------------------------------------------------------------------------

SECTION_ALIASES = {
    "verse": SectionType.VERSE,
    "v": SectionType.VERSE,
    "chorus": SectionType.CHORUS,
    "c": SectionType.CHORUS,
    "refrain": SectionType.CHORUS,
    "bridge": SectionType.BRIDGE,
    "b": SectionType.BRIDGE,
    "middle 8": SectionType.BRIDGE,
    "middle8": SectionType.BRIDGE,
    "intro": SectionType.INTRO,
    "introduction": SectionType.INTRO,
    "opening": SectionType.INTRO,
    "outro": SectionType.OUTRO,
    "ending": SectionType.OUTRO,
    "coda": SectionType.OUTRO,
    "end": SectionType.OUTRO,
    "pre-chorus": SectionType.PRE_CHORUS,
    "prechorus": SectionType.PRE_CHORUS,
    "pre chorus": SectionType.PRE_CHORUS,
    "buildup": SectionType.PRE_CHORUS,
    "build": SectionType.PRE_CHORUS,
    "post-chorus": SectionType.POST_CHORUS,
    "postchorus": SectionType.POST_CHORUS,
    "post chorus": SectionType.POST_CHORUS,
    "instrumental": SectionType.INSTRUMENTAL,
    "solo": SectionType.INSTRUMENTAL,
    "guitar solo": SectionType.INSTRUMENTAL,
    "piano solo": SectionType.INSTRUMENTAL,
    "interlude": SectionType.INTERLUDE,
    "tag": SectionType.TAG,
    "tag out": SectionType.TAG,
    "tagout": SectionType.TAG,
    "vamp": SectionType.VAMP,
    "vamp out": SectionType.VAMP,
    "vampout": SectionType.VAMP,
}

# Numbered forms: "v2", "verse 3", "chorus2", "c 1", "b1", and bare "3".
_NUMBERED_PATTERNS = (
    (re.compile(r"^(?:chorus|c)\s*\d+$"), SectionType.CHORUS),
    (re.compile(r"^(?:bridge|b)\s*\d+$"), SectionType.BRIDGE),
    (re.compile(r"^(?:verse|v)\s*\d+$|^\d+$"), SectionType.VERSE),
)

# Freeform names that merely start with a known type: "Chorus (x2)", "Intro riff".
_FREEFORM_RE = re.compile(
    r"^(pre-?chorus|post-?chorus|chorus|verse|bridge|intro|outro|instrumental|"
    r"solo|interlude|tag|vamp|refrain|coda)\b"
)


def map_section_type(name: str) -> SectionType:
    normalized = re.sub(r"[_\s]+", " ", name.lower()).strip()
    if normalized in SECTION_ALIASES:
        return SECTION_ALIASES[normalized]
    for pattern, section_type in _NUMBERED_PATTERNS:
        if pattern.match(normalized):
            return section_type
    m = _FREEFORM_RE.match(normalized)
    if m:
        return SECTION_ALIASES[m.group(1)]
    return SectionType.VERSE


def format_section_name(name: str, section_type: SectionType) -> str:
    """Return the display name for a header: ``v1`` → ``Verse 1``, ``c`` → ``Chorus``."""
    normalized = name.lower().strip()

    m = re.match(r"^([vcb])(\d+)$", normalized)
    if m:
        prefix = {"v": "Verse", "c": "Chorus", "b": "Bridge"}[m.group(1)]
        return f"{prefix} {m.group(2)}"
    if normalized == "v":
        return "Verse 1"
    if normalized == "c":
        return "Chorus"
    if normalized == "b":
        return "Bridge 1"
    if normalized.isdigit():
        return f"{section_type.value.replace('_', ' ').title()} {normalized}"
    if normalized in {t.value for t in SectionType}:
        return normalized.replace("_", "-").capitalize()

    text = name.strip()
    return text[:1].upper() + text[1:]


# ---------------------------------------------------------------------------
# Header recognition
# ---------------------------------------------------------------------------

_BRACKET_HEADER_RE = re.compile(r"^\[([^\]]+)\]$")

_CHORDPRO_START_RE = re.compile(
    r"^\{start_of_([a-z]+(?:_[a-z]+)*?)(?:_(\d+))?(?::\s*([^}]*))?\}$", re.IGNORECASE
)
_CHORDPRO_SHORT_RE = re.compile(r"^\{so([cvb])(?::\s*([^}]*))?\}$", re.IGNORECASE)
_CHORDPRO_BARE_RE = re.compile(r"^\{([a-z]+(?:[_-][a-z]+)*?)(?:_(\d+))?\}$", re.IGNORECASE)
_CHORDPRO_END_RE = re.compile(r"^\{(?:end_of_[a-z_\d]+|eo[cvb])\}$", re.IGNORECASE)

_NAMED_HEADER_RE = re.compile(r"^([a-z][a-z-]*(?:\s+[a-z-]+){0,2}(?:\s*\d+)?):$")
_ABBREVIATED_HEADER_RE = re.compile(r"^([vcb]\d*)(:?)$")
_NUMBERED_HEADER_RE = re.compile(r"^(\d+)\.$")
_KEYWORD_HEADER_RE = re.compile(
    r"^(?:verse|chorus|bridge|intro|outro|pre-?chorus|post-?chorus|instrumental|"
    r"solo|interlude|tag|vamp|refrain|coda|ending)(?:\s*\d+)?$"
)


def _guitar_tabs_header(line: str) -> SectionHeader | None:
    m = _BRACKET_HEADER_RE.match(line)
    if not m or is_valid_chord(m.group(1)):
        return None
    name = m.group(1).strip()
    section_type = map_section_type(name)
    return SectionHeader(section_type, format_section_name(name, section_type))


def _chordpro_header(line: str) -> SectionHeader | None:
    m = _CHORDPRO_START_RE.match(line)
    if m:
        raw, number, label = m.group(1), m.group(2), m.group(3)
    else:
        m = _CHORDPRO_SHORT_RE.match(line)
        if m:
            raw, number, label = m.group(1), None, m.group(2)
        else:
            m = _CHORDPRO_BARE_RE.match(line)
            # A bare directive is only a header when it names a section.
            if not m or m.group(1).lower().replace("_", " ") not in SECTION_ALIASES:
                return None
            raw, number, label = m.group(1), m.group(2), None

    section_type = map_section_type(raw)
    if label and label.strip():
        return SectionHeader(section_type, label.strip())
    name = format_section_name(raw.replace("_", " "), section_type)
    if number:
        name += f" {number}"
    return SectionHeader(section_type, name)


def _general_header(line: str) -> SectionHeader | None:
    lowered = line.lower()
    raw = None
    m = _NAMED_HEADER_RE.match(lowered)
    if m:
        raw = line[: len(m.group(1))].strip()
    else:
        m = _ABBREVIATED_HEADER_RE.match(lowered)
        # Bare "C" or "B7" is a chord; it needs a colon to be a header.
        if m and (m.group(2) or not is_valid_chord(line)):
            raw = m.group(1)
        else:
            m = _NUMBERED_HEADER_RE.match(lowered) or _KEYWORD_HEADER_RE.match(lowered)
            if m:
                raw = m.group(1) if m.re is _NUMBERED_HEADER_RE else line
    if raw is None:
        return None
    section_type = map_section_type(raw)
    return SectionHeader(section_type, format_section_name(raw, section_type))


def detect_section_header(line: str, dialect: Dialect | str = Dialect.ONSONG) -> SectionHeader | None:
    """Return the header on *line* for *dialect*, or None for content lines."""
    stripped = line.strip()
    if not stripped:
        return None
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.GUITAR_TABS:
        return _guitar_tabs_header(stripped)
    if dialect is Dialect.CHORDPRO:
        return _chordpro_header(stripped)
    return _general_header(stripped)


def is_section_end(line: str, dialect: Dialect | str) -> bool:
    """True for ChordPro ``{end_of_*}`` directives."""
    return Dialect.parse(dialect) is Dialect.CHORDPRO and bool(_CHORDPRO_END_RE.match(line.strip()))


# ---------------------------------------------------------------------------
# Header rendering
# ---------------------------------------------------------------------------

# Section types whose directives ChordPro has standardised.
_CHORDPRO_STRUCTURED = {
    SectionType.VERSE: ("start_of_verse", "end_of_verse"),
    SectionType.CHORUS: ("start_of_chorus", "end_of_chorus"),
    SectionType.BRIDGE: ("start_of_bridge", "end_of_bridge"),
}


def format_section_header(name: str, section_type: SectionType, dialect: Dialect | str) -> str:
    """Render a section header line in *dialect*.

    ChordPro labels verses in the directive (``{start_of_verse: Verse 1}``);
    a chorus or bridge uses the bare directive unless its name carries more
    than the type.  Types ChordPro has no directive for become comments.
    """
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.CHORDPRO:
        if section_type in _CHORDPRO_STRUCTURED:
            start, _ = _CHORDPRO_STRUCTURED[section_type]
            if section_type is SectionType.VERSE or name.lower() != section_type.value:
                return f"{{{start}: {name}}}"
            return f"{{{start}}}"
        return f"{{comment: {name}}}"
    if dialect is Dialect.GUITAR_TABS:
        return f"[{name}]"
    return f"{name}:"


def format_section_footer(section_type: SectionType, dialect: Dialect | str) -> str | None:
    """Return the closing directive for *section_type*, if *dialect* has one."""
    if Dialect.parse(dialect) is not Dialect.CHORDPRO or section_type not in _CHORDPRO_STRUCTURED:
        return None
    return f"{{{_CHORDPRO_STRUCTURED[section_type][1]}}}"


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


def _section_chords(content: str, dialect: Dialect, key: str | None) -> tuple[Chord, ...]:
    style = chord_style(dialect)
    if style != NASHVILLE:
        return tuple(extract_chords_from_text(content, style).chords)
    if not key:
        return ()
    chords = []
    for offset, token in extract_nashville_tokens(content):
        try:
            chords.append(nashville_to_chord(token, key, position=offset))
        except ChordSwapError as exc:
            logger.warning("Skipped Nashville number %r: %s", token, exc)
    return tuple(chords)


def _build_section(
    header: SectionHeader,
    lines: list[str],
    dialect: Dialect,
    key: str | None,
    start: int,
    end: int,
) -> Section:
    content = "\n".join(lines).strip()
    annotations = tuple(m.annotation for m in get_codec(dialect).parse(content))
    return Section(
        type=header.type,
        name=header.name,
        content=content,
        chords=_section_chords(content, dialect, key),
        annotations=annotations,
        start_index=start,
        end_index=end,
    )


def parse_sections(text: str, dialect: Dialect | str = Dialect.ONSONG, key: str | None = None) -> list[Section]:
    """Split *text* into sections using *dialect*'s header syntax.

    Content before the first header becomes an implicit ``Verse`` section.
    Metadata lines belong to no section.  Sections without content are
    dropped.  When no section survives but the text is not blank,
    blank-line separated paragraphs become ``Verse N``.  Nashville numbers
    are only resolved to chords when *key* is given.
    """
    dialect = Dialect.parse(dialect)
    lines = text.split("\n")
    metadata = find_metadata_lines(lines, dialect)
    sections: list[Section] = []
    header: SectionHeader | None = None
    body: list[str] = []
    start = 0
    offset = 0

    def flush(end: int) -> None:
        if header is not None and any(line.strip() for line in body):
            sections.append(_build_section(header, body, dialect, key, start, end))

    for index, line in enumerate(lines):
        found = detect_section_header(line, dialect)
        if found:
            flush(offset)
            header, body, start = found, [], offset
        elif index not in metadata and not is_section_end(line, dialect):
            if header is None:
                header = SectionHeader(SectionType.VERSE, "Verse")
            body.append(line)
        offset += len(line) + 1
    flush(len(text))

    if not sections and any(line.strip() for i, line in enumerate(lines) if i not in metadata):
        return identify_implicit_sections(text, dialect, key)
    return sections


def identify_implicit_sections(
    text: str, dialect: Dialect | str = Dialect.ONSONG, key: str | None = None
) -> list[Section]:
    """Treat each blank-line separated paragraph as ``Verse 1``, ``Verse 2``, ..."""
    dialect = Dialect.parse(dialect)
    lines = text.split("\n")
    metadata = find_metadata_lines(lines, dialect)
    sections: list[Section] = []
    paragraph: list[str] = []
    start = 0
    offset = 0

    def flush(end: int) -> None:
        if paragraph:
            header = SectionHeader(SectionType.VERSE, f"Verse {len(sections) + 1}")
            sections.append(_build_section(header, paragraph, dialect, key, start, end))

    for index, line in enumerate(lines):
        if line.strip() and index not in metadata:
            if not paragraph:
                start = offset
            paragraph.append(line)
        else:
            flush(offset)
            paragraph = []
        offset += len(line) + 1
    flush(len(text))
    return sections
