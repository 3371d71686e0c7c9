from chordswap.layout import (
    BRACKETS,
    INLINE,
    NASHVILLE,
    LineType,
    chord_style,
    classify_line,
    extract_chords_with_offsets,
    insert_inline_chords,
    merge_chord_lyric_lines,
    render_chord_line,
    split_inline_line,
)
from chordswap.models import Dialect

# ---------------------------------------------------------------------------
# chord_style
# ---------------------------------------------------------------------------


def test_chord_styles():
    assert chord_style(Dialect.ONSONG) == BRACKETS
    assert chord_style(Dialect.CHORDPRO) == BRACKETS
    assert chord_style(Dialect.PCO) == BRACKETS
    assert chord_style(Dialect.SONGBOOK) == INLINE
    assert chord_style(Dialect.GUITAR_TABS) == INLINE
    assert chord_style(Dialect.NASHVILLE) == NASHVILLE


# ---------------------------------------------------------------------------
# classify_line
# ---------------------------------------------------------------------------


def test_classify_blank():
    assert classify_line("", BRACKETS) == LineType.BLANK
    assert classify_line("   ", INLINE) == LineType.BLANK


def test_classify_tab():
    assert classify_line("e|--0--1--2--|", BRACKETS) == LineType.TAB
    # string name and dashes, no leading pipe
    assert classify_line("E------2--", INLINE) == LineType.TAB


def test_classify_bracket_chord_line():
    assert classify_line("      [D]              [G]", BRACKETS) == LineType.CHORD


def test_classify_bracket_inline_chords_are_lyrics():
    assert classify_line("[D]pulled into Nazareth", BRACKETS) == LineType.LYRIC


def test_classify_bracketed_word_is_not_a_chord():
    assert classify_line("[Verse 1]", BRACKETS) == LineType.LYRIC


def test_classify_inline():
    assert classify_line("  D       G/B   Am7", INLINE) == LineType.CHORD
    assert classify_line("I pulled into Nazareth", INLINE) == LineType.LYRIC


def test_classify_nashville():
    assert classify_line("1   4   5", NASHVILLE) == LineType.CHORD
    assert classify_line("I pulled into Nazareth", NASHVILLE) == LineType.LYRIC


# ---------------------------------------------------------------------------
# extract_chords_with_offsets
# ---------------------------------------------------------------------------


def test_extract_offsets_inline():
    assert extract_chords_with_offsets("  D   G", INLINE) == [(2, "D"), (6, "G")]


def test_extract_offsets_brackets():
    assert extract_chords_with_offsets("[D] [G]", BRACKETS) == [(0, "D"), (4, "G")]


def test_extract_offsets_nashville():
    assert extract_chords_with_offsets("1   4m", NASHVILLE) == [(0, "1"), (4, "4m")]


def test_extract_offsets_nashville_bar_lines():
    line = "| 1 57 | 4maj7 |"
    assert extract_chords_with_offsets(line, NASHVILLE) == [(2, "1"), (4, "57"), (9, "4maj7")]
    assert extract_chords_with_offsets(line, NASHVILLE, keep_bars=True) == [
        (0, "|"),
        (2, "1"),
        (4, "57"),
        (7, "|"),
        (9, "4maj7"),
        (15, "|"),
    ]


# ---------------------------------------------------------------------------
# Chords over lyrics → brackets
# ---------------------------------------------------------------------------


def test_merge_basic():
    merged = merge_chord_lyric_lines("  D           G", "I pulled into Nazareth")
    assert merged == "I [D]pulled into [G]Nazareth"


def test_merge_no_chords_returns_lyric():
    assert merge_chord_lyric_lines("", "la la") == "la la"


def test_insert_past_end_appends():
    assert insert_inline_chords("Hi", [(10, "G")]) == "Hi[G]"


def test_insert_blank_lyric_gives_chord_only_line():
    assert insert_inline_chords("", [(0, "D"), (6, "G")]) == "[D] [G]"


# ---------------------------------------------------------------------------
# Brackets → chords over lyrics
# ---------------------------------------------------------------------------


def test_split_inline_line():
    placements, lyric = split_inline_line("I [D]pulled into [G]Nazareth")
    assert placements == [(2, "D"), (14, "G")]
    assert lyric == "I pulled into Nazareth"


def test_split_line_without_chords():
    assert split_inline_line("just words") == ([], "just words")


def test_render_chord_line():
    assert render_chord_line([(2, "D"), (14, "G")]) == "  D" + " " * 11 + "G"


def test_render_chord_line_pushes_colliding_tokens():
    assert render_chord_line([(0, "Am7"), (2, "G")]) == "Am7 G"


def test_split_then_merge_restores_line():
    line = "I [D]pulled into [G]Nazareth"
    placements, lyric = split_inline_line(line)
    assert merge_chord_lyric_lines(render_chord_line(placements), lyric) == line
