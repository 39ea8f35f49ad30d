"""Saving and loading chapter lists as JSON files."""

from __future__ import annotations

import json
import logging

from chapter_manager.errors import ChapterFormatError
from chapter_manager.models import ChapterRecord

logger = logging.getLogger(__name__)


def save_chapters(filepath: str, chapters: list[ChapterRecord]) -> None:
    """Write chapters as a pretty-printed JSON array."""
    data = [chapter.to_dict() for chapter in chapters]
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(json.dumps(data, indent=2, ensure_ascii=False))
    logger.info("Saved %d chapters to %s", len(chapters), filepath)


def load_chapters(filepath: str) -> list[ChapterRecord]:
    """Read a JSON array of chapters written by :func:`save_chapters`."""
    with open(filepath, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ChapterFormatError(
                "{} is not valid JSON: {}".format(filepath, e)
            ) from e

    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise ChapterFormatError(
            "{} does not contain a list of chapters".format(filepath)
        )
    try:
        return [ChapterRecord.from_dict(d) for d in data]
    except ValueError as e:
        raise ChapterFormatError("{}: {}".format(filepath, e)) from e
