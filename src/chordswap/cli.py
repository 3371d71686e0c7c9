import logging
import re
import sys
from pathlib import Path
from urllib.parse import urlparse

import click

from .chords import chord_to_string
from .engine import ConversionEngine
from .exceptions import FetchError
from .models import AUTO, ConversionOptions, Dialect
from .sources import STDIN, is_url, read_source

DIALECTS = [d.value for d in Dialect]

_EXTENSIONS = {
    Dialect.ONSONG: ".onsong",
    Dialect.CHORDPRO: ".cho",
    Dialect.PCO: ".pco.txt",
}


def _slugify(text: str) -> str:
    """Convert a string to a lowercase hyphenated slug suitable for filenames."""
    text = text.lower()
    text = re.sub(r"[^\w\s-]", "", text)   # drop punctuation
    text = re.sub(r"[\s_]+", "-", text)     # spaces/underscores → hyphens
    text = re.sub(r"-{2,}", "-", text)      # collapse multiple hyphens
    return text.strip("-")


def _default_filename(location: str, dialect: Dialect) -> str:
    """``songs/Amazing Grace.txt`` converted to ChordPro → ``amazing-grace-chordpro.cho``."""
    path = urlparse(location).path if is_url(location) else location
    stem = _slugify(Path(path).stem) or "song"
    return f"{stem}-{dialect.value.replace('_', '-')}{_EXTENSIONS.get(dialect, '.txt')}"


def _load(location: str) -> str:
    """Read *location* or exit with an error message."""
    try:
        return read_source(location)
    except FetchError as exc:
        msg = f"Error: Could not fetch {exc.url}"
        if exc.status_code:
            msg += f" (HTTP {exc.status_code})"
        click.echo(msg, err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


_dialect_option = click.option(
    "--from",
    "source_dialect",
    type=click.Choice([AUTO, *DIALECTS], case_sensitive=False),
    default=AUTO,
    show_default=True,
    help="Dialect of SOURCE; 'auto' guesses it from the text.",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log detection and conversion details.")
def main(verbose: bool) -> None:
    """Convert chord sheets between OnSong, ChordPro, Songbook, Guitar Tabs,
    Nashville numbers and Planning Center.

    SOURCE is a file path, an http(s) URL, or '-' for stdin.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


@main.command()
@click.argument("source")
@_dialect_option
@click.option("--to", "target_dialect", type=click.Choice(DIALECTS, case_sensitive=False), required=True,
              help="Dialect to write.")
@click.option("--from-key", default=None, metavar="KEY", help="Key of SOURCE, e.g. G or F#m.")
@click.option("--to-key", default=None, metavar="KEY", help="Transpose into this key.")
@click.option("--no-annotations", is_flag=True, default=False,
              help="Leave annotations as plain text instead of converting them.")
@click.option("--strip-extensions", is_flag=True, default=False,
              help="Drop chord extensions (7, add9, sus4 ...).")
@click.option("--no-slash", is_flag=True, default=False, help="Drop slash-chord bass notes.")
@click.option("--compact", is_flag=True, default=False,
              help="Normalise spacing to one blank line between sections.")
@click.option("--no-auto-key", is_flag=True, default=False,
              help="Never guess a missing source key.")
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Output file path (default: <source>-<dialect>.<ext>).")
@click.option("--stdout", is_flag=True, default=False, help="Print to stdout instead of writing a file.")
def convert(
    source: str,
    source_dialect: str,
    target_dialect: str,
    from_key: str | None,
    to_key: str | None,
    no_annotations: bool,
    strip_extensions: bool,
    no_slash: bool,
    compact: bool,
    no_auto_key: bool,
    output_path: str | None,
    stdout: bool,
) -> None:
    """Convert SOURCE to another dialect, optionally transposing it."""
    text = _load(source)
    options = ConversionOptions(
        preserve_extensions=not strip_extensions,
        handle_slash_chords=not no_slash,
        convert_annotations=not no_annotations,
        maintain_spacing=not compact,
        auto_detect_key=not no_auto_key,
    )

    result = ConversionEngine(options).convert(text, source_dialect, target_dialect, from_key, to_key)
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not result.success:
        for error in result.errors:
            click.echo(f"Error: {error.message}", err=True)
            if error.suggestion:
                click.echo(error.suggestion, err=True)
        sys.exit(1)

    # --- Output ---
    if stdout or (source == STDIN and not output_path):
        click.echo(result.output)
        return

    target = Dialect.parse(target_dialect)
    dest = Path(output_path) if output_path else Path(_default_filename(source, target))
    dest.write_text(result.output + "\n", encoding="utf-8")
    click.echo(f"Written to {dest}")


# ---------------------------------------------------------------------------
# detect
# ---------------------------------------------------------------------------


@main.command()
@click.argument("source")
@click.option("--all", "show_all", is_flag=True, default=False, help="Show every dialect's score.")
def detect(source: str, show_all: bool) -> None:
    """Guess the dialect and key of SOURCE."""
    text = _load(source)
    engine = ConversionEngine()

    if show_all:
        for result in engine.detect_all_formats(text):
            click.echo(f"{result.dialect.value:<12} {result.confidence:.2f}")
    else:
        result = engine.detect_format(text)
        click.echo(f"Dialect: {result.dialect.value} (confidence {result.confidence:.2f})")
        for indicator in result.indicators:
            click.echo(f"  - {indicator}")

    key = engine.detect_key(text)
    mode = "minor" if key.is_minor else "major"
    click.echo(f"Key: {key.key} {mode} (confidence {key.confidence:.2f})")
    if key.progression_matches:
        click.echo(f"Progressions: {', '.join(key.progression_matches)}")


# ---------------------------------------------------------------------------
# sections
# ---------------------------------------------------------------------------


@main.command()
@click.argument("source")
@_dialect_option
@click.option("--key", default=None, metavar="KEY", help="Key for resolving Nashville numbers.")
def sections(source: str, source_dialect: str, key: str | None) -> None:
    """List the sections of SOURCE with their chords."""
    text = _load(source)
    found = ConversionEngine().parse_sections(text, source_dialect, key)
    if not found:
        click.echo("No sections found.")
        return
    for section in found:
        chords = " ".join(chord_to_string(c) for c in section.chords)
        click.echo(f"{section.name} [{section.type.value}]: {chords or '(no chords)'}")
        for annotation in section.annotations:
            click.echo(f"  * {annotation.text}")
