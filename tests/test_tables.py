import pytest

from chordswap.exceptions import ParseError, UnknownKeyError
from chordswap.tables import (
    FLAT_KEYS,
    KEY_SIGNATURES,
    NASHVILLE_MAJOR_MAPPINGS,
    NASHVILLE_MINOR_MAPPINGS,
    get_key_signature,
    normalize_key_name,
    pitch_class,
)


def test_thirty_keys():
    assert len(KEY_SIGNATURES) == 30
    assert sum(1 for sig in KEY_SIGNATURES.values() if sig.is_minor) == 15


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        KEY_SIGNATURES["H"] = None


def test_pitch_class():
    assert pitch_class("C") == 0
    assert pitch_class("Bb") == 10
    assert pitch_class("A#") == 10
    assert pitch_class("E#") == 5
    assert pitch_class("Cb") == 11


def test_pitch_class_invalid():
    with pytest.raises(ParseError):
        pitch_class("H")


def test_normalize_key_name():
    assert normalize_key_name("a minor") == "Am"
    assert normalize_key_name("Amin") == "Am"
    assert normalize_key_name(" bbm ") == "Bbm"
    assert normalize_key_name("G major") == "G"


def test_get_key_signature():
    sig = get_key_signature("F#m")
    assert sig.is_minor
    assert sig.scale == ("F#", "G#", "A", "B", "C#", "D", "E")


def test_get_key_signature_unknown():
    with pytest.raises(UnknownKeyError):
        get_key_signature("H")
    with pytest.raises(UnknownKeyError):
        get_key_signature("")


def test_nashville_mappings():
    assert NASHVILLE_MAJOR_MAPPINGS["G"]["D"] == "5"
    assert NASHVILLE_MINOR_MAPPINGS["Am"]["C"] == "b3"
    assert NASHVILLE_MINOR_MAPPINGS["Am"]["G"] == "b7"


def test_flat_keys():
    assert "F" in FLAT_KEYS
    assert "Dm" in FLAT_KEYS
    assert "G" not in FLAT_KEYS
