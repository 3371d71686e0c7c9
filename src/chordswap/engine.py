"""End-to-end dialect conversion.

Pipeline for one call to :meth:`ConversionEngine.convert`:

  1. resolve the dialects (``auto`` runs the classifier)
  2. strip the source annotations, remembering the line each one belongs to
  3. resolve the keys (a missing source key comes from a ``Key:`` line or
     is detected from the chords)
  4. rewrite the annotation-free text line by line: metadata and section
     headers in the target syntax, chords parsed, transposed and placed in
     the target style, everything else verbatim
  5. lay the annotations back on in the target syntax

Failures are reported on the :class:`~chordswap.models.ConversionResult`,
never raised: an unknown dialect aborts with the input unchanged, an
unknown key fails the conversion, and an unparsable chord is left as
written with a warning.
"""

import logging
from dataclasses import dataclass, field, replace

from .annotations.codec import render_annotation
from .annotations.registry import get_codec
from .chords import chord_to_string, extract_chords_from_text, parse_chord
from .detector import detect_all_formats, detect_format
from .exceptions import ChordSwapError, FormatError, MissingKeyError, UnknownKeyError
from .keys import detect_all_keys, detect_key, detect_key_from_chords, detect_key_from_nashville
from .layout import (
    BRACKETS,
    NASHVILLE,
    LineType,
    chord_style,
    classify_line,
    extract_chords_with_offsets,
    insert_inline_chords,
    render_chord_line,
    split_inline_line,
)
from .metadata import MetadataLine, find_metadata_lines, format_metadata_line, read_metadata
from .models import (
    AUTO,
    AnnotationPosition,
    ConversionIssue,
    ConversionOptions,
    ConversionResult,
    Dialect,
    ErrorKind,
    FormatDetectionResult,
    KeyDetectionResult,
    PlacedAnnotation,
    Section,
    SectionType,
)
from .nashville import chord_to_nashville, is_chart_filler, nashville_to_chord
from .sections import (
    detect_section_header,
    format_section_footer,
    format_section_header,
    is_section_end,
    parse_sections,
)
from .tables import get_key_signature
from .transpose import key_distance, transpose_chord

logger = logging.getLogger(__name__)

KEY_SUGGESTION = "Check that both keys are valid (e.g. C, F#, Bbm)"


@dataclass
class _Plan:
    """Everything the line rewriter needs for one conversion."""

    source: Dialect
    target: Dialect
    source_key: str | None
    target_key: str | None
    semitones: int
    options: ConversionOptions
    warnings: list[str] = field(default_factory=list)

    @property
    def source_style(self) -> str:
        return chord_style(self.source)

    @property
    def target_style(self) -> str:
        return chord_style(self.target)


@dataclass
class _Block:
    """Output lines produced for one line of the annotation-free input."""

    lines: list[str] = field(default_factory=list)
    footer: list[str] = field(default_factory=list)  # closing directives, after annotations
    is_header: bool = False


class ConversionEngine:
    """Convert chord sheets between dialects.

    *options* are the defaults for every call; :meth:`convert` can override
    them per call.  The engine keeps no state between calls.
    """

    def __init__(self, options: ConversionOptions | None = None):
        self.options = options or ConversionOptions()

    # -----------------------------------------------------------------------
    # Diagnostics
    # -----------------------------------------------------------------------

    def detect_format(self, text: str) -> FormatDetectionResult:
        return detect_format(text)

    def detect_all_formats(self, text: str) -> list[FormatDetectionResult]:
        return detect_all_formats(text)

    def detect_key(self, text: str, dialect: Dialect | str = AUTO) -> KeyDetectionResult:
        """Detect the key of *text*, extracting chords the way *dialect* places them."""
        dialect = self._resolve_for_diagnostics(text, dialect)
        if dialect is Dialect.NASHVILLE:
            return detect_key_from_nashville(text)
        return detect_key(text, chord_style(dialect))

    def detect_all_keys(self, text: str, dialect: Dialect | str = AUTO) -> list[KeyDetectionResult]:
        dialect = self._resolve_for_diagnostics(text, dialect)
        if dialect is Dialect.NASHVILLE:
            return [detect_key_from_nashville(text)]
        return detect_all_keys(text, chord_style(dialect))

    def parse_sections(self, text: str, dialect: Dialect | str = AUTO, key: str | None = None) -> list[Section]:
        return parse_sections(text, self._resolve_for_diagnostics(text, dialect), key)

    # -----------------------------------------------------------------------
    # Conversion
    # -----------------------------------------------------------------------

    def convert(
        self,
        text: str,
        source: Dialect | str = AUTO,
        target: Dialect | str = Dialect.ONSONG,
        source_key: str | None = None,
        target_key: str | None = None,
        options: ConversionOptions | None = None,
    ) -> ConversionResult:
        """Convert *text* from the *source* dialect to the *target* dialect.

        When both keys are given and differ, every chord is transposed.
        A Nashville source or target needs a key.  A missing source key is
        taken from the song's key metadata line, or with ``auto_detect_key``
        detected from the chords.
        """
        options = options or self.options
        if not text.strip():
            return ConversionResult(output="", success=True)

        try:
            source_dialect = self._resolve_source(text, source)
            target_dialect = Dialect.parse(target)
            codec = get_codec(source_dialect)
            get_codec(target_dialect)
        except FormatError as exc:
            logger.error("%s", exc)
            issue = ConversionIssue(ErrorKind.FORMAT_ERROR, str(exc), recoverable=False)
            return ConversionResult(output=text, success=False, errors=[issue])

        placed: list[PlacedAnnotation] = []
        body = text
        if options.convert_annotations:
            body, placed = codec.extract(text)

        try:
            plan = self._plan(body, source_dialect, target_dialect, source_key, target_key, options)
        except (UnknownKeyError, MissingKeyError) as exc:
            logger.error("%s", exc)
            issue = ConversionIssue(
                ErrorKind.KEY_ERROR, str(exc), recoverable=True, suggestion=KEY_SUGGESTION
            )
            return ConversionResult(
                output=text, success=False, errors=[issue], source_dialect=source_dialect
            )

        blocks = self._rewrite(body.split("\n"), plan)
        output = self._assemble(blocks, placed, plan)
        return ConversionResult(
            output=output,
            success=True,
            warnings=plan.warnings,
            source_dialect=source_dialect,
            source_key=plan.source_key,
            target_key=plan.target_key,
        )

    # -----------------------------------------------------------------------
    # Resolution
    # -----------------------------------------------------------------------

    def _resolve_source(self, text: str, source: Dialect | str) -> Dialect:
        if isinstance(source, str) and source.strip().lower() == AUTO:
            detected = detect_format(text)
            logger.debug("auto-detected source dialect %s", detected.dialect.value)
            return detected.dialect
        return Dialect.parse(source)

    def _resolve_for_diagnostics(self, text: str, dialect: Dialect | str) -> Dialect:
        """Like :meth:`_resolve_source`, but an unknown tag falls back to detection."""
        try:
            return self._resolve_source(text, dialect)
        except FormatError as exc:
            logger.warning("%s; detecting the dialect instead", exc)
            return detect_format(text).dialect

    def _plan(
        self,
        body: str,
        source: Dialect,
        target: Dialect,
        source_key: str | None,
        target_key: str | None,
        options: ConversionOptions,
    ) -> _Plan:
        """Validate and complete the keys; raises UnknownKeyError or MissingKeyError."""
        if source_key:
            source_key = get_key_signature(source_key).name
        if target_key:
            target_key = get_key_signature(target_key).name
        if not source_key:
            source_key = _metadata_key(body, source)

        needs_key = target_key is not None or Dialect.NASHVILLE in (source, target)
        if not source_key and needs_key and options.auto_detect_key and source is not Dialect.NASHVILLE:
            detected = detect_key_from_chords(extract_chords_from_text(body, chord_style(source)).chords)
            if detected.confidence > 0:
                source_key = detected.key
                logger.info("detected source key %s (confidence %.2f)", source_key, detected.confidence)

        if source is Dialect.NASHVILLE and not source_key:
            raise MissingKeyError("source")
        if target is Dialect.NASHVILLE and not (target_key or source_key):
            raise MissingKeyError("target")

        semitones = 0
        if source_key and target_key and source_key != target_key:
            semitones = key_distance(source_key, target_key)
        return _Plan(source, target, source_key, target_key, semitones, options)

    # -----------------------------------------------------------------------
    # Line rewriting
    # -----------------------------------------------------------------------

    def _convert_token(self, token: str, plan: _Plan, line_no: int) -> str:
        """Rewrite one chord token for the target, or return it unchanged if invalid."""
        try:
            if plan.source_style == NASHVILLE:
                chord = nashville_to_chord(token, plan.source_key)
            else:
                chord = parse_chord(token)
            if plan.semitones:
                chord = transpose_chord(chord, plan.semitones, plan.target_key)
            if not plan.options.preserve_extensions:
                chord = replace(chord, extensions=())
            if not plan.options.handle_slash_chords:
                chord = replace(chord, bass=None)
            if plan.target_style == NASHVILLE:
                return chord_to_nashville(chord, plan.target_key or plan.source_key)
            return chord_to_string(chord)
        except ChordSwapError as exc:
            message = f"Left invalid chord token {token!r} unchanged (line {line_no}): {exc}"
            logger.warning(message)
            plan.warnings.append(message)
            return token

    def _render_chords(self, placements: list[tuple[int, str]], lyric: str, plan: _Plan, line_no: int) -> list[str]:
        converted = [
            (column, token if is_chart_filler(token) else self._convert_token(token, plan, line_no))
            for column, token in placements
        ]
        if plan.target_style == BRACKETS:
            return [insert_inline_chords(lyric, converted)]
        lines = [render_chord_line(converted)]
        if lyric.strip():
            lines.append(lyric.rstrip())
        return lines

    def _render_metadata(self, meta: MetadataLine, plan: _Plan) -> str:
        value = meta.value
        if meta.field == "key" and plan.target_key:
            value = plan.target_key
        return format_metadata_line(meta.field, value, plan.target)

    def _rewrite(self, lines: list[str], plan: _Plan) -> list[_Block]:
        blocks = [_Block() for _ in lines]
        metadata = find_metadata_lines(lines, plan.source)
        open_section: SectionType | None = None
        last_content: int | None = None

        def close_section() -> None:
            footer = format_section_footer(open_section, plan.target) if open_section else None
            if footer and last_content is not None:
                blocks[last_content].footer.append(footer)

        i = 0
        while i < len(lines):
            line = lines[i]
            if i in metadata:
                blocks[i].lines = [self._render_metadata(metadata[i], plan)]
                last_content = i
                i += 1
                continue
            header = detect_section_header(line, plan.source)
            if header:
                close_section()
                open_section, last_content = header.type, None
                blocks[i] = _Block([format_section_header(header.name, header.type, plan.target)], is_header=True)
                i += 1
                continue
            if is_section_end(line, plan.source):
                i += 1
                continue

            kind = classify_line(line, plan.source_style)
            consumed = 1
            if kind is LineType.CHORD and plan.source_style != BRACKETS:
                lyric = ""
                if i + 1 < len(lines) and i + 1 not in metadata and self._is_lyric(lines[i + 1], plan):
                    lyric, consumed = lines[i + 1], 2
                keep_bars = plan.target_style == NASHVILLE
                placements = extract_chords_with_offsets(line, plan.source_style, keep_bars)
                blocks[i].lines = self._render_chords(placements, lyric, plan, i + 1)
            elif kind in (LineType.CHORD, LineType.LYRIC) and plan.source_style == BRACKETS and "[" in line:
                placements, lyric = split_inline_line(line)
                if placements:
                    blocks[i].lines = self._render_chords(placements, lyric, plan, i + 1)
                else:
                    blocks[i].lines = [line]
            else:
                blocks[i].lines = [line]

            if kind is not LineType.BLANK:
                last_content = i
            i += consumed

        close_section()
        return blocks

    def _is_lyric(self, line: str, plan: _Plan) -> bool:
        return (
            classify_line(line, plan.source_style) is LineType.LYRIC
            and detect_section_header(line, plan.source) is None
            and not is_section_end(line, plan.source)
        )

    # -----------------------------------------------------------------------
    # Assembly
    # -----------------------------------------------------------------------

    def _assemble(self, blocks: list[_Block], placed: list[PlacedAnnotation], plan: _Plan) -> str:
        above: dict[int, list[str]] = {}
        for item in placed:
            if item.annotation.position is AnnotationPosition.ABOVE:
                above.setdefault(item.line, []).append(render_annotation(item.annotation.text, plan.target))
            else:
                self._attach(blocks, item, plan)

        out: list[tuple[str, bool]] = []
        for index in range(len(blocks) + 1):
            out.extend((line, False) for line in above.get(index, ()))
            if index < len(blocks):
                block = blocks[index]
                out.extend((line, block.is_header) for line in block.lines)
                out.extend((line, False) for line in block.footer)

        if not plan.options.maintain_spacing:
            out = _normalize_spacing(out)
        return "\n".join(line for line, _ in out)

    def _attach(self, blocks: list[_Block], item: PlacedAnnotation, plan: _Plan) -> None:
        """Append an inline or beside annotation to the last line produced for its anchor."""
        rendered = render_annotation(item.annotation.text, plan.target)
        for index in range(min(item.line, len(blocks) - 1), -1, -1):
            if blocks[index].lines:
                blocks[index].lines[-1] = f"{blocks[index].lines[-1]} {rendered}"
                return
        blocks[0].lines.insert(0, rendered)


def _metadata_key(body: str, source: Dialect) -> str | None:
    """Return the key named by a ``{key: G}`` / ``Key: G`` line, if it is a known key."""
    declared = read_metadata(body, source).get("key")
    if not declared:
        return None
    try:
        key = get_key_signature(declared).name
    except UnknownKeyError:
        logger.warning("Ignoring unknown key %r in the song metadata", declared)
        return None
    logger.info("using source key %s from the song metadata", key)
    return key


def _normalize_spacing(out: list[tuple[str, bool]]) -> list[tuple[str, bool]]:
    """Collapse blank runs and put exactly one blank line before each header."""
    result: list[tuple[str, bool]] = []
    for line, is_header in out:
        if not line.strip():
            continue
        if is_header and result:
            result.append(("", False))
        result.append((line, is_header))
    return result


_default_engine = ConversionEngine()


def convert(
    text: str,
    source: Dialect | str = AUTO,
    target: Dialect | str = Dialect.ONSONG,
    source_key: str | None = None,
    target_key: str | None = None,
    options: ConversionOptions | None = None,
) -> ConversionResult:
    """Convert *text* with default options; see :meth:`ConversionEngine.convert`."""
    return _default_engine.convert(text, source, target, source_key, target_key, options)
