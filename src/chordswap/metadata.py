"""Song metadata lines: title, artist, key and friends.

Each dialect writes the same fields its own way::

  ChordPro              {title: Amazing Grace}   {artist: John Newton}
  OnSong / PCO / NNS    Title: Amazing Grace     Artist: John Newton
  Songbook              AMAZING GRACE            by John Newton
  Guitar Tabs           // Amazing Grace         // Artist: John Newton

Songbook titles and artists are only written, never recognised: an upper
case line or one starting with "by" is just as likely to be a lyric.  A
bare Guitar Tabs ``// comment`` counts as the title only before any other
content.
"""

import re
from typing import NamedTuple

from .models import Dialect

FIELDS = (
    "title",
    "subtitle",
    "artist",
    "album",
    "year",
    "key",
    "tempo",
    "time",
    "capo",
    "copyright",
)

_CHORDPRO_ALIASES = {"t": "title", "st": "subtitle"}

_FIELD_PATTERN = "|".join(FIELDS)
_CHORDPRO_META_RE = re.compile(rf"^\{{({_FIELD_PATTERN}|t|st):\s*([^}}]*?)\s*\}}$", re.IGNORECASE)
_LABEL_META_RE = re.compile(rf"^({_FIELD_PATTERN}):\s*(\S.*?)\s*$", re.IGNORECASE)
_TABS_META_RE = re.compile(rf"^//\s*({_FIELD_PATTERN}):\s*(\S.*?)\s*$", re.IGNORECASE)
_TABS_TITLE_RE = re.compile(r"^//\s*(\S.*?)\s*$")


class MetadataLine(NamedTuple):
    field: str  # one of FIELDS
    value: str


def parse_metadata_line(line: str, dialect: Dialect | str, leading: bool = False) -> MetadataLine | None:
    """Return the metadata on *line*, or None.

    *leading* says no content has been seen yet, which lets a bare Guitar
    Tabs ``// comment`` stand for the title.
    """
    stripped = line.strip()
    if not stripped:
        return None
    dialect = Dialect.parse(dialect)

    if dialect is Dialect.CHORDPRO:
        m = _CHORDPRO_META_RE.match(stripped)
        if not m or not m.group(2):
            return None
        name = m.group(1).lower()
        return MetadataLine(_CHORDPRO_ALIASES.get(name, name), m.group(2))

    if dialect is Dialect.GUITAR_TABS:
        m = _TABS_META_RE.match(stripped)
        if m:
            return MetadataLine(m.group(1).lower(), m.group(2))
        m = _TABS_TITLE_RE.match(stripped)
        if m and leading:
            return MetadataLine("title", m.group(1))
        return None

    m = _LABEL_META_RE.match(stripped)
    if m:
        return MetadataLine(m.group(1).lower(), m.group(2))
    return None


def find_metadata_lines(lines: list[str], dialect: Dialect | str) -> dict[int, MetadataLine]:
    """Map the index of every metadata line in *lines* to its field and value."""
    found = {}
    leading = True
    for index, line in enumerate(lines):
        meta = parse_metadata_line(line, dialect, leading)
        if meta:
            found[index] = meta
        elif line.strip():
            leading = False
    return found


def read_metadata(text: str, dialect: Dialect | str) -> dict[str, str]:
    """Return ``{field: value}`` for *text*; the first line for a field wins."""
    metadata: dict[str, str] = {}
    for meta in find_metadata_lines(text.split("\n"), dialect).values():
        metadata.setdefault(meta.field, meta.value)
    return metadata


def _label(field: str) -> str:
    return field.capitalize()


def format_metadata_line(field: str, value: str, dialect: Dialect | str) -> str:
    """Render one metadata field in *dialect*: ``("artist", "X", CHORDPRO)`` → ``{artist: X}``."""
    dialect = Dialect.parse(dialect)
    if dialect is Dialect.CHORDPRO:
        return f"{{{field}: {value}}}"
    if dialect is Dialect.SONGBOOK:
        if field == "title":
            return value.upper()
        if field == "artist":
            return f"by {value}"
    if dialect is Dialect.GUITAR_TABS:
        if field == "title":
            return f"// {value}"
        return f"// {_label(field)}: {value}"
    return f"{_label(field)}: {value}"
