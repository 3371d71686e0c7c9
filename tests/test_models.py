import pytest

from chordswap.exceptions import (
    FetchError,
    FormatError,
    MissingKeyError,
    ParseError,
    UnknownKeyError,
)
from chordswap.models import (
    Chord,
    ConversionOptions,
    ConversionResult,
    Dialect,
    KeySignature,
    Quality,
)

# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


def test_dialect_parse_member_passthrough():
    assert Dialect.parse(Dialect.NASHVILLE) is Dialect.NASHVILLE


def test_dialect_parse_tag_variants():
    assert Dialect.parse("chordpro") is Dialect.CHORDPRO
    assert Dialect.parse("ChordPro") is Dialect.CHORDPRO
    assert Dialect.parse("Guitar-Tabs") is Dialect.GUITAR_TABS
    assert Dialect.parse(" guitar tabs ") is Dialect.GUITAR_TABS


def test_dialect_parse_unknown_raises():
    with pytest.raises(FormatError) as exc_info:
        Dialect.parse("tabledit")
    assert exc_info.value.dialect == "tabledit"
    assert "tabledit" in str(exc_info.value)


def test_dialect_parse_auto_is_not_a_dialect():
    with pytest.raises(FormatError):
        Dialect.parse("auto")


# ---------------------------------------------------------------------------
# Chord / KeySignature
# ---------------------------------------------------------------------------


def test_chord_defaults():
    chord = Chord("C")
    assert chord.quality == Quality.MAJOR
    assert chord.extensions == ()
    assert chord.bass is None
    assert chord.position == 0


def test_chord_is_hashable_and_comparable():
    assert Chord("G", bass="B") == Chord("G", bass="B")
    assert len({Chord("G"), Chord("G")}) == 1


def test_key_signature_helpers():
    sig = KeySignature("D", False, ("D", "E", "F#", "G", "A", "B", "C#"))
    assert sig.tonic == "D"
    assert sig.degree_of("F#") == 3
    assert sig.degree_of("Gb") is None
    assert sig.note_for(5) == "A"


# ---------------------------------------------------------------------------
# Options / result
# ---------------------------------------------------------------------------


def test_conversion_options_defaults_all_on():
    opts = ConversionOptions()
    assert opts.preserve_extensions
    assert opts.handle_slash_chords
    assert opts.convert_annotations
    assert opts.maintain_spacing
    assert opts.auto_detect_key


def test_conversion_result_lists_are_independent():
    a = ConversionResult(output="", success=True)
    b = ConversionResult(output="", success=True)
    a.warnings.append("x")
    assert b.warnings == []


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


def test_parse_error_message():
    exc = ParseError("Hx", "invalid chord")
    assert exc.token == "Hx"
    assert str(exc) == "invalid chord: 'Hx'"


def test_unknown_key_error_message():
    assert str(UnknownKeyError("H")) == "Unknown key: H"


def test_missing_key_error_message():
    exc = MissingKeyError("source")
    assert exc.role == "source"
    assert "source key is required" in str(exc)


def test_fetch_error_carries_status():
    exc = FetchError("https://example.com/song", 404)
    assert exc.status_code == 404
    assert "404" in str(exc)
