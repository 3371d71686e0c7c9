import pytest

from chordswap.chords import chord_to_string, parse_chord
from chordswap.exceptions import ParseError, UnknownKeyError
from chordswap.models import Chord, Quality
from chordswap.nashville import (
    chord_to_nashville,
    chords_to_nashville,
    extract_nashville_tokens,
    is_chart_filler,
    is_nashville_line,
    is_nashville_token,
    is_supported_key,
    nashville_to_chord,
    nashville_to_chords,
    note_to_degree,
)
from chordswap.tables import KEY_SIGNATURES
from chordswap.transpose import chords_in_key

# ---------------------------------------------------------------------------
# note_to_degree
# ---------------------------------------------------------------------------


def test_note_in_scale():
    assert note_to_degree("G", "C") == "5"
    assert note_to_degree("F#", "D") == "3"


def test_note_enharmonic_spelling_of_scale_note():
    assert note_to_degree("Gb", "D") == "3"


def test_note_out_of_key_prefers_matching_accidental():
    assert note_to_degree("Bb", "C") == "b7"
    assert note_to_degree("A#", "C") == "#6"
    assert note_to_degree("Eb", "C") == "b3"


def test_note_in_minor_key():
    assert note_to_degree("C", "Am") == "b3"
    assert note_to_degree("G", "Am") == "b7"
    assert note_to_degree("E", "Am") == "5"


# ---------------------------------------------------------------------------
# chord → number
# ---------------------------------------------------------------------------


def test_chord_to_nashville():
    assert chord_to_nashville(parse_chord("G7/B"), "C") == "57/7"
    assert chord_to_nashville(parse_chord("Am"), "C") == "6m"
    assert chord_to_nashville(parse_chord("Bdim"), "C") == "7°"
    assert chord_to_nashville(parse_chord("Caug"), "C") == "1+"
    assert chord_to_nashville(parse_chord("Dsus4"), "C") == "2sus4"


def test_chords_to_nashville():
    chords = [parse_chord(t) for t in ("C", "G", "Am", "F")]
    assert chords_to_nashville(chords, "C") == ["1", "5", "6m", "4"]


def test_chord_to_nashville_unknown_key():
    with pytest.raises(UnknownKeyError):
        chord_to_nashville(parse_chord("C"), "H")


# ---------------------------------------------------------------------------
# number → chord
# ---------------------------------------------------------------------------


def test_nashville_to_chord_with_extension_and_bass():
    chord = nashville_to_chord("4maj7/5", "C")
    assert chord.root == "F"
    assert chord.quality == Quality.MAJOR
    assert chord.extensions == ("maj7",)
    assert chord.bass == "G"


def test_nashville_qualities():
    assert nashville_to_chord("6m", "C").quality == Quality.MINOR
    assert nashville_to_chord("6-", "C").quality == Quality.MINOR
    assert nashville_to_chord("7°", "C").quality == Quality.DIMINISHED
    assert nashville_to_chord("5+", "C").quality == Quality.AUGMENTED
    assert nashville_to_chord("1sus", "C").quality == Quality.SUS4


def test_nashville_chromatic_degrees():
    assert nashville_to_chord("b7", "C").root == "Bb"
    assert nashville_to_chord("#4", "C").root == "F#"


def test_nashville_minor_key_flats_name_scale_notes():
    assert nashville_to_chord("b3", "Am").root == "C"
    assert nashville_to_chord("b7", "Am").root == "G"
    assert nashville_to_chord("5", "Am").root == "E"


def test_nashville_bare_half_diminished():
    chord = nashville_to_chord("2ø", "Am")
    assert chord.root == "B"
    assert chord.extensions == ("ø7",)


def test_nashville_to_chords_in_g():
    chords = nashville_to_chords(["1", "5", "6m", "4"], "G")
    assert [c.root for c in chords] == ["G", "D", "E", "C"]


def test_nashville_digits_after_degree_are_extensions():
    assert nashville_to_chord("57", "C") == Chord("G", extensions=("7",))
    assert nashville_to_chord("2m7", "C") == Chord("D", Quality.MINOR, ("7",))
    assert nashville_to_chord("49", "C") == Chord("F", extensions=("9",))
    assert nashville_to_chord("57/7", "C") == Chord("G", extensions=("7",), bass="B")


def test_nashville_flat_seventh_degree_with_extension_in_minor():
    assert nashville_to_chord("b77", "Am") == Chord("G", extensions=("7",))
    assert nashville_to_chord("b67", "Am") == Chord("F", extensions=("7",))


@pytest.mark.parametrize("number", ["8", "0", "5x", "x", "5/9", "Am", "10", "1999"])
def test_nashville_invalid_numbers(number):
    with pytest.raises(ParseError):
        nashville_to_chord(number, "C")


def test_nashville_unknown_key():
    with pytest.raises(UnknownKeyError):
        nashville_to_chord("1", "H")


def test_is_supported_key():
    assert is_supported_key("F#m")
    assert not is_supported_key("H")


# ---------------------------------------------------------------------------
# Chart scanning
# ---------------------------------------------------------------------------


def test_is_nashville_token():
    assert is_nashville_token("1")
    assert is_nashville_token("6m7")
    assert is_nashville_token("b7/1")
    assert not is_nashville_token("Am")
    assert not is_nashville_token("9")


def test_is_nashville_token_with_numeric_extension():
    assert is_nashville_token("57")
    assert is_nashville_token("b77")
    assert is_nashville_token("57/7")
    assert not is_nashville_token("1999")


def test_is_chart_filler():
    for token in ("|", "||", "|:", ":|", ".", "%", "-"):
        assert is_chart_filler(token)
    assert not is_chart_filler("1")
    assert not is_chart_filler("|1")


def test_is_nashville_line():
    assert is_nashville_line("| 1 . . . | 4 . . . |")
    assert is_nashville_line("1 - 5 - 6m - 4")
    assert is_nashville_line("1 57 | 4maj7 |")
    assert not is_nashville_line("I love you")
    assert not is_nashville_line("")
    assert not is_nashville_line("| . |")


def test_extract_nashville_tokens_offsets():
    assert extract_nashville_tokens("1 4\nla la\n5 6m") == [(0, "1"), (2, "4"), (10, "5"), (12, "6m")]


# ---------------------------------------------------------------------------
# Round trip over every diatonic chord
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("key", list(KEY_SIGNATURES))
def test_diatonic_chords_survive_nashville_round_trip(key):
    for symbol in chords_in_key(key, include_sevenths=True):
        chord = parse_chord(symbol)
        number = chord_to_nashville(chord, key)
        assert nashville_to_chord(number, key) == chord, (symbol, number)
        assert chord_to_string(nashville_to_chord(number, key)) == symbol
