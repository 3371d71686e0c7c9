"""Heuristic dialect classifier.

Each scored dialect has a small set of regexes.  Every pattern contributes
``0.1`` per match plus ``0.5 * matches / lines`` (a density bonus); a
dialect-specific pass then adds bonuses for tell-tale markup and subtracts
penalties for markup that points at a competitor.  Scores are capped at
``1.5`` so close calls can still be ranked.

PCO text is indistinguishable from OnSong by markup alone and is never
reported by the classifier.
"""

import logging
import re

from .models import Dialect, FormatDetectionResult

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = 0.3
MAX_SCORE = 1.5

# ---------------------------------------------------------------------------
# Shared fragments
# ---------------------------------------------------------------------------

_CHORD = r"[A-G][#b]?(?:m|maj|dim|aug)?(?:sus[24]?|add[0-9]|[0-9]+)?(?:\/[A-G][#b]?)?"

_CHORD_BRACKET_RE = re.compile(r"\[[A-G][#b]?[^\]]*\]")
_INLINE_BRACKET_RE = re.compile(r"\[[A-G][#b]?[^\]]*\][^[]*\w")
_BRACKET_HEADER_RE = re.compile(r"^\[[A-Za-z][^\]]*\]$", re.M)
_COMMON_BRACKET_HEADER_RE = re.compile(r"^\[(Intro|Verse|Chorus|Bridge|Outro)\]", re.M | re.I)
_STAR_ANNOTATION_RE = re.compile(r"^\*[^*\n]+$", re.M)
_PAREN_ANNOTATION_RE = re.compile(r"^\([^)]+\)$", re.M)
_CHORD_THEN_LYRIC_RE = re.compile(r"^[A-G][#b]?(?:m|maj|dim|aug)?[^\n]*\n[a-z]", re.M | re.I)
_CHORD_PAIR_RE = re.compile(rf"^{_CHORD}\s+[A-G][#b]?", re.M)
_CHORD_DASH_RE = re.compile(rf"^{_CHORD}\s*-\s*", re.M)
_CHORD_LINE_OVER_TEXT_RE = re.compile(r"^\s*[A-G][#b]?[^\n]*\n\s*[^A-G(\[\n]", re.M)
_LONE_CHORD_LINE_RE = re.compile(rf"^{_CHORD}$", re.M)
_LETTER_CHORD_RE = re.compile(r"\b[A-G][#b]?(?:m|maj)")
_NUMBER_DASH_RE = re.compile(r"\b[1-7]\s*-\s*[1-7]")
_NUMBER_BAR_RE = re.compile(r"\|[^|]*[1-7][^|]*\|")
_NUMBER_QUALITY_RE = re.compile(r"\b[1-7][mb°]")
_ANY_NUMBER_RE = re.compile(r"\b[1-7]")
_TITLE_RE = re.compile(r"\{title:", re.I)


def _has(pattern: re.Pattern, text: str) -> bool:
    return pattern.search(text) is not None


def _count(pattern: re.Pattern, text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


# ---------------------------------------------------------------------------
# Pattern sets
# ---------------------------------------------------------------------------

_PATTERNS: dict[Dialect, tuple[re.Pattern, ...]] = {
    Dialect.NASHVILLE: (
        re.compile(r"\b[1-7][mb°]?(?:sus[24]?|add[0-9]|maj[0-9]|[0-9]+)?(?:\/[1-7])?"),
        _NUMBER_DASH_RE,
        _NUMBER_BAR_RE,
    ),
    Dialect.ONSONG: (
        re.compile(r"\[[A-G][#b]?(?:m|maj|dim|aug)?(?:sus[24]?|add[0-9]|[0-9]+)?(?:\/[A-G][#b]?)?\]"),
        _STAR_ANNOTATION_RE,
        _INLINE_BRACKET_RE,
    ),
    Dialect.SONGBOOK: (
        _CHORD_PAIR_RE,
        _PAREN_ANNOTATION_RE,
        _CHORD_THEN_LYRIC_RE,
    ),
    Dialect.CHORDPRO: (
        re.compile(r"\{[^}]+\}"),
        _TITLE_RE,
        re.compile(r"\{artist:[^}]+\}", re.I),
        re.compile(r"\{key:[^}]+\}", re.I),
        re.compile(r"\{start_of_chorus\}", re.I),
        re.compile(r"\{end_of_chorus\}", re.I),
    ),
    Dialect.GUITAR_TABS: (
        _BRACKET_HEADER_RE,
        _CHORD_DASH_RE,
        _CHORD_LINE_OVER_TEXT_RE,
    ),
}

_INDICATORS: dict[Dialect, tuple[str, ...]] = {
    Dialect.NASHVILLE: ("Nashville numbers", "numeric chord notation", "bar notation with numbers"),
    Dialect.ONSONG: ("chords in brackets", "inline chord placement", "OnSong annotations (*)"),
    Dialect.SONGBOOK: ("chords above lyrics", "chord-over-lyrics format", "Songbook annotations (())"),
    Dialect.CHORDPRO: ("ChordPro directives {}", "metadata tags", "section markers"),
    Dialect.GUITAR_TABS: ("section headers in brackets", "chord lines followed by lyrics", "Guitar Tabs format"),
}


# ---------------------------------------------------------------------------
# Dialect-specific adjustments
# ---------------------------------------------------------------------------


def _nashville_bonus(text: str) -> float:
    bonus = 0.0
    if _has(_NUMBER_DASH_RE, text):
        bonus += 0.3
    if _has(_NUMBER_BAR_RE, text):
        bonus += 0.2
    if _has(_NUMBER_QUALITY_RE, text):
        bonus += 0.2
    if _has(_LETTER_CHORD_RE, text):
        bonus -= 0.1
    if _has(_TITLE_RE, text):
        bonus -= 0.2
    return bonus


def _onsong_bonus(text: str) -> float:
    bonus = 0.0
    if _has(_INLINE_BRACKET_RE, text):
        bonus += 0.3
    if _has(_STAR_ANNOTATION_RE, text):
        bonus += 0.2
    if _has(_BRACKET_HEADER_RE, text):
        bonus -= 0.2
    if _has(_TITLE_RE, text):
        bonus -= 0.2
    return bonus


def _songbook_bonus(text: str) -> float:
    bonus = 0.0
    if _has(_PAREN_ANNOTATION_RE, text):
        bonus += 0.3
    if _has(_CHORD_THEN_LYRIC_RE, text):
        bonus += 0.4
    if _has(_CHORD_PAIR_RE, text):
        bonus += 0.3
    if _has(_BRACKET_HEADER_RE, text):
        bonus -= 0.4
    if _has(_CHORD_BRACKET_RE, text):
        bonus -= 0.3
    return bonus


_CHORDPRO_DIRECTIVE_BONUSES = (
    (_TITLE_RE, 0.8),
    (re.compile(r"\{artist:", re.I), 0.4),
    (re.compile(r"\{key:", re.I), 0.4),
    (re.compile(r"\{start_of_chorus\}", re.I), 0.4),
    (re.compile(r"\{end_of_chorus\}", re.I), 0.4),
    (re.compile(r"\{start_of_verse\}", re.I), 0.4),
    (re.compile(r"\{[^}]+\}"), 0.2),
)


def _chordpro_bonus(text: str) -> float:
    return sum(weight for pattern, weight in _CHORDPRO_DIRECTIVE_BONUSES if _has(pattern, text))


def _guitar_tabs_bonus(text: str) -> float:
    bonus = 0.0
    headers = _count(_BRACKET_HEADER_RE, text)
    if headers:
        bonus += 0.6
    if _has(_CHORD_DASH_RE, text):
        bonus += 0.3
    if _has(_CHORD_LINE_OVER_TEXT_RE, text):
        bonus += 0.2
    if headers > 1:
        bonus += 0.4
    if _has(_COMMON_BRACKET_HEADER_RE, text):
        bonus += 0.3
    if _has(_CHORD_BRACKET_RE, text):
        bonus -= 0.2
    return bonus


_BONUSES = {
    Dialect.NASHVILLE: _nashville_bonus,
    Dialect.ONSONG: _onsong_bonus,
    Dialect.SONGBOOK: _songbook_bonus,
    Dialect.CHORDPRO: _chordpro_bonus,
    Dialect.GUITAR_TABS: _guitar_tabs_bonus,
}


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_dialect(text: str, dialect: Dialect) -> float:
    """Return the raw (capped) score of *text* for one scored dialect."""
    total_lines = len(text.split("\n"))
    score = 0.0
    for pattern in _PATTERNS[dialect]:
        matches = _count(pattern, text)
        if matches:
            score += matches * 0.1 + matches / total_lines * 0.5
    score += _BONUSES[dialect](text)
    return min(score, MAX_SCORE)


def _score_all(text: str) -> list[FormatDetectionResult]:
    results = []
    for dialect in _PATTERNS:
        score = score_dialect(text, dialect)
        indicators = _INDICATORS[dialect] if score > 0 else ()
        results.append(FormatDetectionResult(dialect, score, indicators))
    # sorted() is stable: equal scores keep the table order above.
    return sorted(results, key=lambda r: r.confidence, reverse=True)


def _fallback(text: str) -> FormatDetectionResult:
    has_brackets = _has(_CHORD_BRACKET_RE, text)
    has_headers = _has(_BRACKET_HEADER_RE, text)

    if has_brackets and not has_headers:
        return FormatDetectionResult(Dialect.ONSONG, 0.5, ("fallback: detected chord brackets",))
    if _has(_ANY_NUMBER_RE, text) and not _has(_LETTER_CHORD_RE, text):
        return FormatDetectionResult(Dialect.NASHVILLE, 0.4, ("fallback: detected numeric notation",))
    if _has(_LONE_CHORD_LINE_RE, text) and not has_headers and not has_brackets:
        return FormatDetectionResult(Dialect.SONGBOOK, 0.4, ("fallback: detected chord lines",))
    return FormatDetectionResult(Dialect.ONSONG, 0.2, ("fallback: default to OnSong format",))


def detect_format(text: str) -> FormatDetectionResult:
    """Guess the dialect of *text*.

    Never raises.  Empty or whitespace-only input yields OnSong with
    confidence 0; a best score below ``LOW_CONFIDENCE`` switches to a
    coarse fallback whose confidence is at most 0.5.
    """
    if not text or not text.strip():
        return FormatDetectionResult(Dialect.ONSONG, 0.0, ("empty input - defaulting to OnSong",))

    best = _score_all(text)[0]
    if best.confidence < LOW_CONFIDENCE:
        result = _fallback(text)
    else:
        result = best
    logger.debug("detected %s (confidence %.2f)", result.dialect.value, result.confidence)
    return result


def detect_all_formats(text: str) -> list[FormatDetectionResult]:
    """Score *text* against every classified dialect, best first."""
    if not text or not text.strip():
        return [FormatDetectionResult(Dialect.ONSONG, 0.0, ("empty input",))]
    return _score_all(text)
