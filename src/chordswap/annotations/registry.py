import re

from ..exceptions import FormatError
from ..models import AnnotationPosition, Dialect
from .codec import AnnotationCodec

_STAR_LINE_RE = re.compile(r"^\*(.+)$", re.M)

_CODECS: dict[Dialect, AnnotationCodec] = {
    Dialect.ONSONG: AnnotationCodec(Dialect.ONSONG, _STAR_LINE_RE, AnnotationPosition.INLINE),
    Dialect.SONGBOOK: AnnotationCodec(
        Dialect.SONGBOOK, re.compile(r"^\(([^)]+)\)$", re.M), AnnotationPosition.INLINE
    ),
    Dialect.PCO: AnnotationCodec(Dialect.PCO, re.compile(r"<b>([^<]+)</b>"), AnnotationPosition.BESIDE),
    Dialect.CHORDPRO: AnnotationCodec(
        Dialect.CHORDPRO, re.compile(r"\{(?:comment|c):\s*(.+?)\}"), AnnotationPosition.BESIDE
    ),
    Dialect.GUITAR_TABS: AnnotationCodec(Dialect.GUITAR_TABS, _STAR_LINE_RE, AnnotationPosition.INLINE),
    Dialect.NASHVILLE: AnnotationCodec(Dialect.NASHVILLE, _STAR_LINE_RE, AnnotationPosition.INLINE),
}


def get_codec(dialect: Dialect | str) -> AnnotationCodec:
    """Return the annotation codec for *dialect*.

    Raises FormatError if no codec is registered for it.
    """
    try:
        return _CODECS[Dialect.parse(dialect)]
    except KeyError:
        raise FormatError(str(dialect)) from None
