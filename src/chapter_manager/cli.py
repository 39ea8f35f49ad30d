"""Click CLI entry point for the chapter manager."""

from __future__ import annotations

import contextlib
import os

import click

from chapter_manager.errors import ChapterError
from chapter_manager.images import image_to_data_uri, save_data_uri
from chapter_manager.logging_setup import setup_logging
from chapter_manager.models import ChapterRecord, TagDefaults
from chapter_manager.probe import probe_duration
from chapter_manager.service import (
    add_chapters,
    discover_mp3s,
    get_metadata,
    read_chapters,
)
from chapter_manager.storage import load_chapters, save_chapters
from chapter_manager.timecode import milliseconds_to_time_string


@contextlib.contextmanager
def _reported_errors():
    """Turn missing files and missing tools into one-line CLI errors."""
    try:
        yield
    except (FileNotFoundError, RuntimeError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="chapter-manager")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Read and write ID3 chapter markers in MP3 files."""
    setup_logging(verbose)


@cli.command()
@click.argument("mp3_path", type=click.Path(exists=True, dir_okay=False))
def show(mp3_path: str):
    """List the chapters embedded in MP3_PATH."""
    with _reported_errors():
        chapters = read_chapters(mp3_path)

    if not chapters:
        click.echo("No chapters in {}".format(mp3_path))
        return

    click.echo("Chapters ({}):\n".format(len(chapters)))
    _print_chapters(chapters)


def _print_chapters(chapters: list[ChapterRecord]) -> None:
    for i, ch in enumerate(chapters, 1):
        span = ch.start_time
        if ch.end_time:
            span = "{} - {}".format(ch.start_time, ch.end_time)
        marker = "  (image)" if ch.image else ""
        click.echo("  {:3d}. {} [{}]{}".format(i, ch.title, span, marker))


@cli.command()
@click.argument("mp3_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output",
    default=None,
    help="Output JSON path (default: next to MP3_PATH with a .json extension)",
)
def export(mp3_path: str, output: str | None):
    """Save the chapters of MP3_PATH to a JSON file."""
    with _reported_errors():
        chapters = read_chapters(mp3_path)

    output_path = output or os.path.splitext(mp3_path)[0] + ".json"
    save_chapters(output_path, chapters)
    click.echo("Exported {} chapters to {}".format(len(chapters), output_path))


@cli.command()
@click.argument("mp3_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("chapters_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output",
    default=None,
    help="Output MP3 path (default: NAME_with_chapters.mp3 next to MP3_PATH)",
)
@click.option("--title", default=None, help='Title if the file has none (default: "Audio with Chapters")')
@click.option("--artist", default=None, help='Artist if the file has none (default: "Chapter Manager")')
@click.option("--album", default=None, help='Album if the file has none (default: "Chapters")')
@click.option("--genre", default=None, help='Genre if the file has none (default: "Podcast")')
@click.option("--dry-run", is_flag=True, help="Show the chapters without writing")
def apply(
    mp3_path: str,
    chapters_json: str,
    output: str | None,
    title: str | None,
    artist: str | None,
    album: str | None,
    genre: str | None,
    dry_run: bool,
):
    """Write the chapters in CHAPTERS_JSON into a copy of MP3_PATH."""
    chapters = load_chapters(chapters_json)

    if output is None:
        stem = os.path.splitext(mp3_path)[0]
        output = "{}_with_chapters.mp3".format(stem)

    defaults = TagDefaults()
    if title is not None:
        defaults.title = title
    if artist is not None:
        defaults.artist = artist
    if album is not None:
        defaults.album = album
    if genre is not None:
        defaults.genre = genre

    if dry_run:
        click.echo("\n--- Dry Run ---\n")
        click.echo("  Input:  {}".format(mp3_path))
        click.echo("  Output: {}".format(output))
        click.echo("\nChapters ({}):\n".format(len(chapters)))
        _print_chapters(chapters)
        return

    with _reported_errors():
        add_chapters(mp3_path, output, chapters, defaults)
    click.echo("Done! Wrote {} chapters to {}".format(len(chapters), output))


@cli.command()
@click.argument("mp3_path", type=click.Path(exists=True, dir_okay=False))
def duration(mp3_path: str):
    """Print the duration of MP3_PATH as reported by ffprobe."""
    with _reported_errors():
        seconds = probe_duration(mp3_path)
    click.echo(
        "{} ({:.3f}s)".format(milliseconds_to_time_string(seconds * 1000), seconds)
    )


@cli.command()
@click.argument("mp3_path", type=click.Path(exists=True, dir_okay=False))
def metadata(mp3_path: str):
    """Print the duration and raw chapter frames of MP3_PATH."""
    with _reported_errors():
        meta = get_metadata(mp3_path)

    seconds = meta["format"]["duration"]
    click.echo(
        "Duration: {} ({:.3f}s)".format(
            milliseconds_to_time_string(seconds * 1000), seconds
        )
    )
    click.echo("Chapter frames ({}):".format(len(meta["chapters"])))
    for raw in meta["chapters"]:
        click.echo(
            "  {}  {}-{} ms".format(
                raw["elementID"], raw.get("startTimeMs"), raw.get("endTimeMs")
            )
        )


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, file_okay=False))
def scan(input_path: str):
    """List the MP3 files in INPUT_PATH with their chapter counts."""
    mp3_paths = discover_mp3s(input_path)
    if not mp3_paths:
        click.echo("No MP3 files found in {}".format(input_path))
        return

    for path in mp3_paths:
        try:
            count = len(read_chapters(path))
        except ChapterError as e:
            click.echo(
                "  unreadable    {}: {}".format(os.path.basename(path), e.message),
                err=True,
            )
            continue
        click.echo("  {:3d} chapters  {}".format(count, os.path.basename(path)))


@cli.command(name="image-to-base64")
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
def image_to_base64(image_path: str):
    """Print IMAGE_PATH as a data URI usable as a chapter image."""
    click.echo(image_to_data_uri(image_path))


@cli.command(name="save-image")
@click.argument("data_file", type=click.File("r"))
@click.argument("output_path", type=click.Path(dir_okay=False, writable=True))
def save_image(data_file, output_path: str):
    """Decode the data URI stored in DATA_FILE into OUTPUT_PATH.

    Pass - as DATA_FILE to read the data URI from stdin.
    """
    save_data_uri(data_file.read().strip(), output_path)
    click.echo("Saved image to {}".format(output_path))
