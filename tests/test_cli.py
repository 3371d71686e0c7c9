from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from chordswap.cli import _default_filename, _slugify, main
from chordswap.exceptions import FetchError
from chordswap.models import Dialect

ONSONG_SONG = "Verse 1:\n[C]Amazing [G]grace\n\nChorus:\n[F]How sweet"

CHORDPRO_SONG = "{title: Amazing Grace}\n{start_of_chorus}\n[C]Amazing [G]grace [Am]how [F]sweet\n{end_of_chorus}"


def _invoke(args, text=None, **kwargs):
    if text is None:
        return CliRunner().invoke(main, args, **kwargs)
    with patch("chordswap.cli.read_source", return_value=text):
        return CliRunner().invoke(main, args, **kwargs)


# ---------------------------------------------------------------------------
# Filenames
# ---------------------------------------------------------------------------


def test_slugify_basic():
    assert _slugify("Amazing Grace") == "amazing-grace"
    assert _slugify("Blowin' in the Wind") == "blowin-in-the-wind"
    assert _slugify("A  B") == "a-b"


def test_default_filename_for_path():
    assert _default_filename("songs/Amazing Grace.txt", Dialect.CHORDPRO) == "amazing-grace-chordpro.cho"
    assert _default_filename("grace.cho", Dialect.ONSONG) == "grace-onsong.onsong"


def test_default_filename_for_url():
    url = "https://example.com/tabs/dark-star"
    assert _default_filename(url, Dialect.GUITAR_TABS) == "dark-star-guitar-tabs.txt"


# ---------------------------------------------------------------------------
# --help
# ---------------------------------------------------------------------------


def test_help_output():
    result = _invoke(["--help"])
    assert result.exit_code == 0
    assert "Convert chord sheets" in result.output
    for command in ("convert", "detect", "sections"):
        assert command in result.output


def test_short_help_flag():
    assert _invoke(["convert", "-h"]).exit_code == 0


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


def test_convert_stdout():
    result = _invoke(["convert", "song.txt", "--from", "onsong", "--to", "songbook", "--stdout"], "[C]Amazing [G]grace")
    assert result.exit_code == 0
    assert "C       G\nAmazing grace" in result.output


def test_convert_writes_default_file(tmp_path):
    with CliRunner().isolated_filesystem(temp_dir=tmp_path):
        with patch("chordswap.cli.read_source", return_value=ONSONG_SONG):
            result = CliRunner().invoke(main, ["convert", "song.txt", "--from", "onsong", "--to", "chordpro"])
        assert result.exit_code == 0
        out = Path("song-chordpro.cho")
        assert out.exists()
        assert "{start_of_verse: Verse 1}" in out.read_text()
        assert "Written to song-chordpro.cho" in result.output


def test_convert_output_option(tmp_path):
    dest = tmp_path / "out.cho"
    result = _invoke(["convert", "song.txt", "--to", "chordpro", "-o", str(dest)], ONSONG_SONG)
    assert result.exit_code == 0
    assert dest.read_text().startswith("{start_of_verse: Verse 1}")


def test_convert_stdin_prints_by_default():
    result = _invoke(["convert", "-", "--from", "songbook", "--to", "onsong"], input="C       G\nAmazing grace")
    assert result.exit_code == 0
    assert "[C]Amazing [G]grace" in result.output


def test_convert_transposes():
    args = ["convert", "s.txt", "--from", "onsong", "--to", "onsong", "--from-key", "C", "--to-key", "D", "--stdout"]
    result = _invoke(args, "[C]Amazing [Am]grace")
    assert result.exit_code == 0
    assert "[D]Amazing [Bm]grace" in result.output


def test_convert_flags_map_to_options():
    args = ["convert", "s.txt", "--from", "onsong", "--to", "onsong", "--strip-extensions", "--no-slash", "--stdout"]
    result = _invoke(args, "[Cmaj7]Amazing [G/B]grace")
    assert "[C]Amazing [G]grace" in result.output


def test_convert_missing_nashville_key():
    result = _invoke(["convert", "s.txt", "--from", "nashville", "--to", "onsong", "--stdout"], "1   4\nAmazing grace")
    assert result.exit_code == 1
    assert "Error: A source key is required for Nashville numbers" in result.output


def test_convert_prints_warnings():
    result = _invoke(["convert", "s.txt", "--from", "onsong", "--to", "onsong", "--stdout"], "[C]x [Xyz]y")
    assert result.exit_code == 0
    assert "Warning: Left invalid chord token 'Xyz'" in result.output


def test_convert_requires_target():
    result = _invoke(["convert", "s.txt"], ONSONG_SONG)
    assert result.exit_code != 0


def test_convert_fetch_error():
    with patch("chordswap.cli.read_source", side_effect=FetchError("https://example.com/x", 404)):
        result = CliRunner().invoke(main, ["convert", "https://example.com/x", "--to", "onsong"])
    assert result.exit_code == 1
    assert "Could not fetch https://example.com/x (HTTP 404)" in result.output


def test_convert_missing_file(tmp_path):
    result = _invoke(["convert", str(tmp_path / "nope.txt"), "--to", "onsong"])
    assert result.exit_code == 1
    assert "Error:" in result.output


# ---------------------------------------------------------------------------
# detect
# ---------------------------------------------------------------------------


def test_detect_prints_dialect_and_key():
    result = _invoke(["detect", "s.cho"], CHORDPRO_SONG)
    assert result.exit_code == 0
    assert "Dialect: chordpro" in result.output
    assert "Key: C major" in result.output
    assert "1-5-6m-4" in result.output


def test_detect_all():
    result = _invoke(["detect", "s.cho", "--all"], CHORDPRO_SONG)
    assert result.exit_code == 0
    for dialect in ("chordpro", "onsong", "songbook", "guitar_tabs", "nashville"):
        assert dialect in result.output


def test_verbose_flag():
    assert _invoke(["-v", "detect", "s.cho"], CHORDPRO_SONG).exit_code == 0


# ---------------------------------------------------------------------------
# sections
# ---------------------------------------------------------------------------


def test_sections_lists_chords():
    result = _invoke(["sections", "s.txt", "--from", "onsong"], ONSONG_SONG)
    assert result.exit_code == 0
    assert "Verse 1 [verse]: C G" in result.output
    assert "Chorus [chorus]: F" in result.output


def test_sections_nashville_with_key():
    result = _invoke(["sections", "s.txt", "--from", "nashville", "--key", "G"], "Verse 1:\n1 4 5")
    assert "Verse 1 [verse]: G C D" in result.output


def test_sections_empty():
    result = _invoke(["sections", "s.txt"], "")
    assert "No sections found." in result.output
