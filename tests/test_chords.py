import pytest

from chordswap.chords import (
    chord_to_string,
    extract_chords_from_text,
    is_chord_line,
    is_valid_chord,
    parse_chord,
    parse_chord_with_nashville_support,
)
from chordswap.exceptions import ParseError
from chordswap.models import Chord, Quality

# ---------------------------------------------------------------------------
# parse_chord
# ---------------------------------------------------------------------------


def test_parse_simple_major():
    assert parse_chord("G") == Chord("G")


def test_parse_minor_seventh_slash():
    chord = parse_chord("F#m7/C#")
    assert chord.root == "F#"
    assert chord.quality == Quality.MINOR
    assert chord.extensions == ("7",)
    assert chord.bass == "C#"


def test_parse_maj7_is_extension_not_quality():
    chord = parse_chord("Cmaj7")
    assert chord.quality == Quality.MAJOR
    assert chord.extensions == ("maj7",)


def test_parse_capital_m7_alias():
    assert parse_chord("CM7").extensions == ("maj7",)


def test_parse_sus_qualities():
    assert parse_chord("Asus4").quality == Quality.SUS4
    assert parse_chord("Dsus2").quality == Quality.SUS2
    assert parse_chord("Dsus").quality == Quality.SUS4


def test_parse_dim_and_aug():
    assert parse_chord("Bdim").quality == Quality.DIMINISHED
    assert parse_chord("C+").quality == Quality.AUGMENTED
    assert parse_chord("Bdim7").extensions == ("7",)


def test_parse_dash_minor():
    chord = parse_chord("C-7")
    assert chord.quality == Quality.MINOR
    assert chord.extensions == ("7",)


def test_parse_multiple_extensions():
    assert parse_chord("Cm7b5").extensions == ("7", "b5")
    assert parse_chord("Gadd9").extensions == ("add9",)


def test_parse_keeps_position():
    assert parse_chord("D", position=17).position == 17


@pytest.mark.parametrize("token", ["", "H", "Cx", "C/H", "c", "Verse"])
def test_parse_invalid(token):
    with pytest.raises(ParseError):
        parse_chord(token)


def test_is_valid_chord():
    assert is_valid_chord("Bb")
    assert is_valid_chord("G/B")
    assert not is_valid_chord("Chorus")


def test_nashville_slash_with_key():
    chord = parse_chord_with_nashville_support("5/7", key="C")
    assert chord.root == "G"
    assert chord.bass == "B"


def test_nashville_slash_without_key_is_invalid():
    with pytest.raises(ParseError):
        parse_chord_with_nashville_support("5/7")


# ---------------------------------------------------------------------------
# chord_to_string
# ---------------------------------------------------------------------------


def test_chord_to_string():
    assert chord_to_string(Chord("A", Quality.MINOR, ("7",))) == "Am7"
    assert chord_to_string(Chord("B", Quality.DIMINISHED)) == "Bdim"
    assert chord_to_string(Chord("G", bass="B")) == "G/B"


def test_chord_to_string_brackets():
    assert chord_to_string(Chord("D"), brackets=True) == "[D]"


def test_chord_to_string_reparses():
    for token in ("F#m7/C#", "Cmaj7", "Dsus4", "Ebaug", "Bdim"):
        assert chord_to_string(parse_chord(token)) == token


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def test_is_chord_line():
    assert is_chord_line("D   G   Am7")
    assert not is_chord_line("I pulled into Nazareth")
    assert not is_chord_line("")


def test_extract_brackets_skips_invalid_tokens():
    result = extract_chords_from_text("[C]Amazing [G]grace [Xyz]bad")
    assert [c.root for c in result.chords] == ["C", "G"]
    assert [c.position for c in result.chords] == [0, 11]
    assert len(result.warnings) == 1
    assert "'[Xyz]'" in result.warnings[0]
    assert "line 1" in result.warnings[0]


def test_extract_inline_only_reads_chord_lines():
    result = extract_chords_from_text("C   G\nAmazing grace", style="inline")
    assert [c.root for c in result.chords] == ["C", "G"]
    assert [c.position for c in result.chords] == [0, 4]
    assert result.warnings == []


def test_extract_empty():
    result = extract_chords_from_text("")
    assert result.chords == []
    assert result.warnings == []
