"""Chapter operations on MP3 files: read, write, inspect."""

from __future__ import annotations

import logging
import os
import shutil

import click
from mutagen import MutagenError
from natsort import natsorted

from chapter_manager import codec, id3
from chapter_manager.errors import ChapterError, TagWriteError
from chapter_manager.models import ChapterRecord, TagDefaults
from chapter_manager.probe import probe_duration

logger = logging.getLogger(__name__)


def discover_mp3s(input_path: str) -> list[str]:
    """Find all MP3 files in a directory, natural-sorted by filename."""
    if not os.path.isdir(input_path):
        raise click.ClickException("{} is not a directory".format(input_path))

    mp3s = []
    for f in os.listdir(input_path):
        if f.lower().endswith(".mp3"):
            mp3s.append(os.path.join(input_path, f))

    return natsorted(mp3s, key=os.path.basename)


def _require_file(filepath: str) -> None:
    if not os.path.isfile(filepath):
        raise FileNotFoundError("Input file does not exist: {}".format(filepath))


def _read_tags(filepath: str) -> dict:
    try:
        return id3.read_tags(filepath)
    except MutagenError as e:
        raise ChapterError(
            "Cannot read ID3 tag of {}: {}".format(filepath, e)
        ) from e


def read_chapters(filepath: str) -> list[ChapterRecord]:
    """Read the chapter list embedded in an MP3 file."""
    _require_file(filepath)
    logger.info("Reading chapters from %s", filepath)
    chapters = codec.decode(_read_tags(filepath))
    logger.info("Found %d chapters in %s", len(chapters), filepath)
    return chapters


def add_chapters(
    input_path: str,
    output_path: str,
    chapters: list[ChapterRecord],
    defaults: TagDefaults | None = None,
) -> None:
    """Copy ``input_path`` to ``output_path`` and tag the copy with chapters.

    Input and output may be the same path, in which case the file is
    retagged in place.
    """
    _require_file(input_path)
    output_dir = os.path.dirname(os.path.abspath(output_path))
    if not os.path.isdir(output_dir):
        raise FileNotFoundError(
            "Output directory does not exist: {}".format(output_dir)
        )
    codec.validate_chapters(chapters)

    logger.info(
        "Adding %d chapters: %s -> %s", len(chapters), input_path, output_path
    )
    new_tags = codec.encode(_read_tags(input_path), chapters, defaults)

    if os.path.abspath(input_path) != os.path.abspath(output_path):
        shutil.copyfile(input_path, output_path)

    if not id3.write_tags(new_tags, output_path):
        raise TagWriteError("Failed to write ID3 tags to {}".format(output_path))
    logger.info("Chapters added to %s", output_path)


def get_metadata(filepath: str) -> dict:
    """Return the file's duration and its raw chapter frames."""
    _require_file(filepath)
    tags = _read_tags(filepath)
    return {
        "format": {"duration": probe_duration(filepath)},
        "chapters": tags.get("chapter", []),
    }
